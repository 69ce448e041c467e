from jlpt_planner.normalize import new_progress
from jlpt_planner.progress import (
    finish_roadmap_set, finish_set, mastery_percent, record_answer, record_set_answer,
)
from jlpt_planner.roadmap import build_roadmap, find_set, load_roadmap, save_roadmap

NOW = "2026-04-06T10:00:00"


def test_correct_answer_masters_once():
    progress = new_progress(["q1", "q2"])
    record_answer(progress, "q1", True)
    record_answer(progress, "q1", True)
    assert progress.mastered == ["q1"]
    assert progress.remaining == ["q2"]
    assert progress.attempts == 2


def test_wrong_answer_requeues_and_is_remembered():
    progress = new_progress(["q1", "q2", "q3"])
    record_answer(progress, "q1", False)
    assert progress.remaining == ["q2", "q3", "q1"]
    assert progress.wrong_ever == ["q1"]
    record_answer(progress, "q1", False)
    assert progress.wrong_ever == ["q1"]


def test_wrong_ever_survives_later_mastery():
    progress = new_progress(["q1"])
    record_answer(progress, "q1", False)
    record_answer(progress, "q1", True)
    assert progress.mastered == ["q1"]
    assert progress.wrong_ever == ["q1"]
    assert progress.remaining == []


def test_wrong_answer_after_mastery_does_not_requeue():
    progress = new_progress(["q1", "q2"])
    record_answer(progress, "q1", True)
    record_answer(progress, "q1", False)
    assert progress.remaining == ["q2"]
    assert progress.mastered == ["q1"]


def test_answer_for_question_outside_set_is_ignored():
    progress = new_progress(["q1", "q2"])
    record_answer(progress, "stray", True, NOW)
    record_answer(progress, "stray", False, NOW)
    assert progress.attempts == 0
    assert progress.mastered == []
    assert progress.wrong_ever == []
    assert progress.remaining == ["q1", "q2"]
    assert progress.started_at_iso is None


def test_first_answer_stamps_start():
    progress = new_progress(["q1", "q2"])
    record_answer(progress, "q1", False, NOW)
    record_answer(progress, "q2", True, "2026-04-06T11:00:00")
    assert progress.started_at_iso == NOW


def test_finish_only_when_everything_mastered():
    progress = new_progress(["q1", "q2"])
    record_answer(progress, "q1", True)
    assert finish_set(progress, NOW) is False
    assert progress.finished_at is None
    record_answer(progress, "q2", True)
    assert finish_set(progress, NOW) is True
    assert progress.finished_at == NOW


def test_finish_is_stamped_automatically_and_never_undone():
    progress = new_progress(["q1"])
    record_answer(progress, "q1", True, NOW)
    assert progress.finished
    record_answer(progress, "q1", False, "2026-04-06T12:00:00")
    assert progress.finished_at == NOW


def test_empty_set_never_finishes():
    assert finish_set(new_progress([]), NOW) is False


def test_mastery_percent():
    progress = new_progress(["a", "b", "c"])
    record_answer(progress, "a", True)
    assert mastery_percent(progress) == 33
    assert mastery_percent(new_progress([])) == 0


def test_record_set_answer_persists(store, bank, clock):
    roadmap = build_roadmap(bank, clock.today_iso(), "N5", "N5", "wk-1", clock)
    save_roadmap(store, roadmap)
    qid = find_set(roadmap, "grammar_1", 1).question_ids[0]

    progress = record_set_answer(store, "grammar_1", qid, True, clock, day_index=1)

    assert progress.mastered == [qid]
    stored = find_set(load_roadmap(store), "grammar_1", 1)
    assert stored.progress.mastered == [qid]
    assert stored.progress.started_at_iso == clock.now_iso()
    assert find_set(load_roadmap(store), "grammar_1", 2).progress.attempts == 0


def test_record_set_answer_unknown_set(store, bank, clock):
    assert record_set_answer(store, "vocab_1", "q", True, clock) is None
    save_roadmap(store, build_roadmap(bank, clock.today_iso(), "N5", "N5", "wk-1", clock))
    assert record_set_answer(store, "vocab_99", "q", True, clock) is None


def test_finish_roadmap_set(store, bank, clock):
    roadmap = build_roadmap(bank, clock.today_iso(), "N5", "N5", "wk-1", clock)
    save_roadmap(store, roadmap)
    assert finish_roadmap_set(store, "reading_1", clock, day_index=2) is False
    for qid in find_set(roadmap, "reading_1", 2).question_ids:
        record_set_answer(store, "reading_1", qid, True, clock, day_index=2)
    assert finish_roadmap_set(store, "reading_1", clock, day_index=2) is True
    assert find_set(load_roadmap(store), "reading_1", 2).progress.finished
