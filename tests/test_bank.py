import json

import pytest

from jlpt_planner.bank import DEFAULT_BANK_PATH, QuestionBank, load_bank, question_from_dict
from jlpt_planner.models import SKILLS

VALID = {
    "id": "v-1", "skill": "vocab", "level_tag": "N5", "prompt": "みず",
    "choices": ["water", "fire"], "correct_index": 0,
}


def test_question_from_dict_valid():
    q = question_from_dict(VALID)
    assert q.id == "v-1"
    assert q.level_tag == "N5"
    assert q.explanation == ""


def test_question_from_dict_accepts_level_and_correct_aliases():
    row = {**VALID, "level": "N4", "correct": 1}
    del row["level_tag"], row["correct_index"]
    q = question_from_dict(row)
    assert q.level_tag == "N4"
    assert q.correct_index == 1


@pytest.mark.parametrize("override", [
    {"id": ""},
    {"skill": "listening"},
    {"level_tag": "N6"},
    {"choices": ["only one"]},
    {"correct_index": 5},
    {"correct_index": "x"},
    {"prompt": ""},
])
def test_question_from_dict_rejects_bad_rows(override):
    assert question_from_dict({**VALID, **override}) is None


def test_bank_lookups(bank):
    assert len(bank) == 3 * 5 * 40
    assert len(bank.list_by_skill("vocab")) == 200
    assert {q.level_tag for q in bank.list_by_skill_level("grammar", "N2")} == {"N2"}
    assert bank.get("reading-N1-001").skill == "reading"
    assert bank.get("missing") is None


def test_bank_skips_duplicate_ids():
    q = question_from_dict(VALID)
    assert len(QuestionBank([q, q])) == 1


def test_load_bank_json_drops_invalid_rows(tmp_path):
    path = tmp_path / "bank.json"
    path.write_text(json.dumps({"questions": [VALID, {"id": "broken"}]}), encoding="utf-8")
    loaded = load_bank(path)
    assert len(loaded) == 1


def test_load_bank_yaml_list(tmp_path):
    path = tmp_path / "bank.yaml"
    path.write_text(
        "- id: g-1\n  skill: grammar\n  level_tag: N4\n  prompt: p\n"
        "  choices: [a, b, c]\n  correct_index: 2\n",
        encoding="utf-8",
    )
    assert load_bank(path).get("g-1").correct_index == 2


def test_load_bank_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_bank(tmp_path / "nope.yaml")


def test_packaged_bank_covers_every_skill():
    packaged = load_bank(DEFAULT_BANK_PATH)
    for skill in SKILLS:
        assert packaged.list_by_skill(skill)
