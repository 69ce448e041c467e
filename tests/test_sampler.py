from conftest import make_bank, make_question
from jlpt_planner.bank import QuestionBank
from jlpt_planner.sampler import candidate_pool, parse_set_seq, sample_question_ids, seed_key


def test_parse_set_seq():
    assert parse_set_seq(3) == 3
    assert parse_set_seq("2") == 2
    assert parse_set_seq("grammar_4") == 4
    assert parse_set_seq("nope") == 1
    assert parse_set_seq(0) == 1
    assert parse_set_seq(None) == 1


def test_seed_key_format():
    assert seed_key("wk-2", 3, "vocab", "N4") == "practice|wk-2|day:3|skill:vocab|level:N4"
    assert seed_key(None, 1, "reading", "N5").startswith("practice|no-week|")


def test_same_inputs_same_ids(bank):
    a = sample_question_ids(bank, "vocab", "N4", set_ref=1, week_id="wk-1", day=2)
    b = sample_question_ids(bank, "vocab", "N4", set_ref=1, week_id="wk-1", day=2)
    assert a == b
    assert len(a) == 10


def test_different_day_changes_order(bank):
    a = sample_question_ids(bank, "vocab", "N4", set_ref=1, week_id="wk-1", day=1)
    b = sample_question_ids(bank, "vocab", "N4", set_ref=1, week_id="wk-1", day=2)
    assert a != b


def test_default_count_by_skill(bank):
    assert len(sample_question_ids(bank, "grammar", "N5", week_id="wk-1", day=1)) == 10
    assert len(sample_question_ids(bank, "reading", "N5", week_id="wk-1", day=1)) == 5


def test_ids_unique_within_set_and_at_level(bank):
    ids = sample_question_ids(bank, "grammar", "N3", set_ref=2, week_id="wk-1", day=1)
    assert len(set(ids)) == len(ids)
    assert all(bank.get(qid).level_tag == "N3" for qid in ids)


def test_consecutive_sets_do_not_overlap(bank):
    sets = [
        sample_question_ids(bank, "vocab", "N5", set_ref=n, week_id="wk-1", day=1)
        for n in (1, 2, 3, 4)
    ]
    all_ids = [qid for s in sets for qid in s]
    assert len(set(all_ids)) == 40


def test_wraparound_repeats_the_first_window(bank):
    first = sample_question_ids(bank, "vocab", "N5", set_ref=1, week_id="wk-1", day=1)
    fifth = sample_question_ids(bank, "vocab", "N5", set_ref="vocab_5", week_id="wk-1", day=1)
    assert fifth == first


def test_avoid_ids_skipped_while_pool_allows(bank):
    first = sample_question_ids(bank, "vocab", "N5", set_ref=1, week_id="wk-1", day=1)
    second = sample_question_ids(bank, "vocab", "N5", set_ref=2, week_id="wk-1", day=1)
    fifth = sample_question_ids(
        bank, "vocab", "N5", set_ref=5, week_id="wk-1", day=1, avoid_ids=set(first),
    )
    assert not set(fifth) & set(first)
    assert fifth == second


def test_pool_widens_to_cover_avoided_ids(bank):
    level_ids = {q.id for q in bank.list_by_skill_level("vocab", "N4")}
    ids = sample_question_ids(
        bank, "vocab", "N4", set_ref=5, week_id="wk-1", day=1, avoid_ids=level_ids,
    )
    assert len(set(ids)) == 10
    assert not set(ids) & level_ids
    assert {bank.get(qid).level_tag for qid in ids} == {"N5"}


def test_avoided_ids_readmitted_when_pool_is_exhausted():
    small = make_bank(per_level=2, skills=("vocab",))
    everything = {q.id for q in small.all_questions()}
    ids = sample_question_ids(small, "vocab", "N5", week_id="wk-1", day=1, avoid_ids=everything)
    assert len(ids) == 10
    assert len(set(ids)) == 10


def test_pool_widens_in_fallback_order():
    questions = (
        [make_question("vocab", "N3", n) for n in range(5)]
        + [make_question("vocab", "N4", n) for n in range(40)]
        + [make_question("vocab", "N2", n) for n in range(40)]
    )
    pool = candidate_pool(QuestionBank(questions), "vocab", "N3", 30)
    assert len(pool) == 45
    assert pool[:5] == [f"vocab-N3-{n:03d}" for n in range(5)]
    assert not any("N2" in qid for qid in pool)


def test_pool_smaller_than_count_repeats():
    tiny = QuestionBank([make_question("reading", "N5", n) for n in range(3)])
    ids = sample_question_ids(tiny, "reading", "N5", week_id="wk-1", day=1)
    assert len(ids) == 5
    assert set(ids) == {q.id for q in tiny.all_questions()}
    assert ids[3:] == ids[:2]


def test_empty_skill_returns_empty_list():
    only_vocab = make_bank(per_level=5, skills=("vocab",))
    assert sample_question_ids(only_vocab, "grammar", "N5", week_id="wk-1", day=1) == []
