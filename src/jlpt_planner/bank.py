"""Question bank loading and lookup."""
import json
from pathlib import Path

import yaml
from loguru import logger

from jlpt_planner.levels import as_level
from jlpt_planner.models import LEVELS, SKILLS, Question

CONTENT_DIR = Path(__file__).parent / "content"
DEFAULT_BANK_PATH = CONTENT_DIR / "questions.yaml"


def question_from_dict(row) -> Question | None:
    """Build a Question from a raw row, or None if the row is unusable."""
    if not isinstance(row, dict):
        return None
    qid = str(row.get("id") or "").strip()
    skill = row.get("skill")
    level = row.get("level_tag", row.get("level"))
    prompt = row.get("prompt")
    choices = row.get("choices")
    if not qid or skill not in SKILLS or level not in LEVELS:
        return None
    if not isinstance(prompt, str) or not prompt:
        return None
    if not isinstance(choices, list) or len(choices) < 2:
        return None
    try:
        correct = int(row.get("correct_index", row.get("correct")))
    except (TypeError, ValueError):
        return None
    if not 0 <= correct < len(choices):
        return None
    return Question(
        id=qid,
        skill=skill,
        level_tag=as_level(level),
        prompt=prompt,
        choices=[str(c) for c in choices],
        correct_index=correct,
        explanation=str(row.get("explanation") or ""),
    )


class QuestionBank:
    """Read-only collection of questions indexed by skill and id."""

    def __init__(self, questions=()):
        self._by_skill = {skill: [] for skill in SKILLS}
        self._by_id = {}
        for q in questions:
            if q.id in self._by_id:
                continue
            self._by_id[q.id] = q
            self._by_skill[q.skill].append(q)

    def __len__(self) -> int:
        return len(self._by_id)

    def list_by_skill(self, skill: str) -> list[Question]:
        return list(self._by_skill.get(skill, []))

    def list_by_skill_level(self, skill: str, level: str) -> list[Question]:
        return [q for q in self._by_skill.get(skill, []) if q.level_tag == level]

    def get(self, qid: str) -> Question | None:
        return self._by_id.get(qid)

    def all_questions(self) -> list[Question]:
        return [q for skill in SKILLS for q in self._by_skill[skill]]


def read_bank_rows(path) -> list:
    path = Path(path)
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if isinstance(data, dict):
        data = data.get("questions", [])
    return data if isinstance(data, list) else []


def load_bank(path=DEFAULT_BANK_PATH) -> QuestionBank:
    """Load a bank from a .json or .yaml file, dropping invalid rows."""
    rows = read_bank_rows(path)
    questions = []
    for row in rows:
        q = question_from_dict(row)
        if q is None:
            logger.warning("Dropping invalid bank row from {}: {!r}", path, row)
            continue
        questions.append(q)
    logger.debug("Loaded {} questions from {}", len(questions), path)
    return QuestionBank(questions)
