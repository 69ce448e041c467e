"""End-to-end runs of the weekly loop."""
import random

from jlpt_planner.carryover import ensure_carryover_for_today, log_practice_event, mark_carryover_cleared
from jlpt_planner.db import SqliteStore
from jlpt_planner.plan import generate_next_week, resolve_today, start_first_week
from jlpt_planner.progress import record_set_answer
from jlpt_planner.promotion import load_promotion_state
from jlpt_planner.roadmap import day_status, get_day, load_roadmap
from jlpt_planner.weekly_check import (
    answer_weekly_check, build_weekly_check_session, complete_weekly_check,
    load_used_ids, load_weekly_check_session, save_weekly_check_session,
)


def _pass_weekly_check(store, bank, clock, seed=0):
    plan = resolve_today(store, clock)
    assert plan.is_weekly_check_day
    session = build_weekly_check_session(
        bank, plan.week_id, plan.goal_level, plan.practice_level, clock,
        rng=random.Random(seed), used_ids=load_used_ids(store),
    )
    save_weekly_check_session(store, session)
    for ref in session.questions:
        answer_weekly_check(session, ref.id, True)
    return complete_weekly_check(store, session, bank, clock)


def test_full_week_workflow(store, bank, clock):
    """Start, practice, carry a mistake over, take the check, plan week 2."""
    start_first_week(store, bank, clock, "N4", estimate="N4", rates={"vocab": 0.4, "grammar": 0.9, "reading": 0.9})

    # Day 1
    plan = resolve_today(store, clock)
    assert plan.day_index == 1
    assert len(plan.sets) == 9
    assert plan.allocation == {"vocab": 5, "grammar": 2, "reading": 2}

    first_set = plan.sets[0]
    missed = first_set.question_ids[0]
    record_set_answer(store, first_set.set_id, missed, False, clock, 1)
    log_practice_event(store, clock, missed, False, skill=first_set.skill, set_id=first_set.set_id)

    progress = load_roadmap(store).days[0].sets[0].progress
    while progress.remaining:
        qid = progress.remaining[0]
        progress = record_set_answer(store, first_set.set_id, qid, True, clock, 1)
        log_practice_event(store, clock, qid, True, skill=first_set.skill, set_id=first_set.set_id)

    assert progress.finished
    assert progress.wrong_ever == [missed]
    assert day_status(get_day(load_roadmap(store), 1)) == "in_progress"

    # Day 2: yesterday's mistake comes back
    clock.advance(1)
    carryover = ensure_carryover_for_today(store, clock)
    assert carryover.qids == [missed]
    assert not carryover.cleared
    assert mark_carryover_cleared(store, clock).cleared
    assert ensure_carryover_for_today(store, clock).cleared
    assert resolve_today(store, clock).day_index == 2

    # Day 7
    clock.advance(5)
    state, entry = _pass_weekly_check(store, bank, clock)
    assert entry.total == 30
    assert entry.all_skills_passed_90
    assert state.promotion_streak == 1
    assert load_weekly_check_session(store) is None
    assert len(load_used_ids(store)) == 30

    result = generate_next_week(store, bank, clock)
    assert not result.skipped
    assert result.source == "weekly"
    assert result.roadmap.week_id == "wk-2"
    assert result.roadmap.days[0].date_iso == "2026-04-13"
    assert result.roadmap.days[0].allocation == {"vocab": 3, "grammar": 3, "reading": 3}
    assert load_roadmap(store).week_id == "wk-2"

    # Week 2 cannot be replaced again before it starts
    assert generate_next_week(store, bank, clock).skipped


def test_three_passing_weeks_promote(store, bank, clock):
    start_first_week(store, bank, clock, "N2", estimate="N4")
    assert load_promotion_state(store).current_practice_level == "N3"

    entries = []
    for week in range(3):
        clock.advance(6)
        _, entry = _pass_weekly_check(store, bank, clock, seed=week)
        entries.append(entry)
        generate_next_week(store, bank, clock)
        clock.advance(1)

    assert [e.promotion_streak_after_save for e in entries] == [1, 2, 0]
    assert [e.promoted for e in entries] == [False, False, True]

    state = load_promotion_state(store)
    assert state.current_practice_level == "N2"
    assert state.promotion_streak == 0

    roadmap = load_roadmap(store)
    assert roadmap.week_id == "wk-4"
    assert all(day.practice_level == "N2" for day in roadmap.days)


def test_state_survives_reopening_the_database(tmp_db, bank, clock):
    start_first_week(SqliteStore(tmp_db), bank, clock, "N4")
    plan = resolve_today(SqliteStore(tmp_db), clock)
    assert plan.week_id == "wk-1"
    assert plan.practice_level == "N4"
    assert len(plan.sets) == 9
