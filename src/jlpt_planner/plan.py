"""Today's plan and week-to-week roadmap generation."""
from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

from jlpt_planner.allocation import questions_for_allocation, weekly_check_allocation
from jlpt_planner.clock import add_days_iso
from jlpt_planner.levels import as_level, clamp_to_goal
from jlpt_planner.models import SKILLS, WEEK_LENGTH, Roadmap
from jlpt_planner.normalize import by_skill_rates, opt_str
from jlpt_planner.promotion import initialize_promotion_state, latest_entry, load_promotion_state
from jlpt_planner.roadmap import (
    RoadmapNotFoundError, build_roadmap, get_day, load_roadmap, make_week_id,
    next_week_id, save_roadmap,
)
from jlpt_planner.weakness import classify_weakness, normalize_rates

DIAGNOSTIC_KEY = "diagnostic.result.v1"
FALLBACK_RATES = {"vocab": 0.5, "grammar": 0.5, "reading": 0.5}


@dataclass
class TodayPlan:
    week_id: str
    day_index: int
    date_iso: str
    is_weekly_check_day: bool
    practice_level: str
    goal_level: str
    allocation: dict
    question_counts: dict
    sets: list = field(default_factory=list)


@dataclass
class NextWeekResult:
    roadmap: Roadmap
    skipped: bool
    reason: Optional[str] = None
    source: Optional[str] = None
    shape: object = None
    practice_level: Optional[str] = None
    rates: Optional[dict] = None
    dry_run: bool = False


def today_day_index(roadmap: Roadmap, today_iso: str) -> int:
    """Roadmap day dated today, or day 1 when today is outside the week."""
    for day in roadmap.days:
        if day.date_iso == today_iso and 1 <= day.day_index <= WEEK_LENGTH:
            return day.day_index
    return 1


def resolve_today(store, clock) -> TodayPlan | None:
    roadmap = load_roadmap(store)
    if roadmap is None:
        return None
    state = load_promotion_state(store, roadmap.goal_level)
    day_index = today_day_index(roadmap, clock.today_iso())
    day = get_day(roadmap, day_index)
    if day is None:
        logger.warning("Roadmap {} has no day {}", roadmap.week_id, day_index)
        return None
    allocation = day.allocation if day.allocation is not None else weekly_check_allocation()
    return TodayPlan(
        week_id=roadmap.week_id,
        day_index=day_index,
        date_iso=day.date_iso,
        is_weekly_check_day=day.is_weekly_check_day,
        practice_level=day.practice_level or state.current_practice_level,
        goal_level=state.goal_level,
        allocation=allocation,
        question_counts=questions_for_allocation(allocation),
        sets=list(day.sets),
    )


def save_diagnostic_rates(store, rates: dict, clock, estimate: str | None = None) -> dict:
    record = {
        "rates": normalize_rates(rates),
        "estimate": as_level(estimate, default=None),
        "saved_at": clock.now_iso(),
    }
    store.write(DIAGNOSTIC_KEY, record)
    return record


def load_diagnostic_rates(store) -> dict | None:
    raw = store.read(DIAGNOSTIC_KEY)
    if not isinstance(raw, dict) or not isinstance(raw.get("rates"), dict):
        return None
    return normalize_rates(raw["rates"])


def pick_rates_for_next_week(store) -> tuple[dict, str]:
    """Rates to plan the next week from, and where they came from.

    The latest weekly check wins, then the diagnostic, then an even 50%.
    """
    state = load_promotion_state(store)
    entry = latest_entry(state)
    if entry is not None:
        return normalize_rates(by_skill_rates(entry.by_skill)), "weekly"
    diagnostic = load_diagnostic_rates(store)
    if diagnostic is not None:
        return diagnostic, "diag"
    return dict(FALLBACK_RATES), "fallback"


def start_first_week(store, bank, clock, goal_level: str, estimate=None, rates: dict | None = None) -> Roadmap:
    """Set up a learner from their diagnostic and save week 1 starting today."""
    goal = as_level(goal_level)
    state = initialize_promotion_state(store, goal, estimate, clock)
    if rates is not None:
        save_diagnostic_rates(store, rates, clock, estimate)
    roadmap = build_roadmap(
        bank,
        start_date_iso=clock.today_iso(),
        practice_level=state.current_practice_level,
        goal_level=goal,
        week_id=make_week_id(1),
        clock=clock,
        rates=rates if rates is not None else FALLBACK_RATES,
    )
    save_roadmap(store, roadmap)
    return roadmap


def generate_next_week(store, bank, clock, force: bool = False, dry_run: bool = False) -> NextWeekResult:
    """Replace the active roadmap with the following week.

    Args:
        store: Key-value store with the active roadmap and promotion state.
        bank: Question bank for the new sets.
        clock: Supplies today's date and timestamps.
        force: Build even if the active week has not started yet.
        dry_run: Build and return the week without saving it.

    Returns:
        NextWeekResult. ``skipped`` is True, with the current roadmap, when the
        active week's day 1 is still in the future and ``force`` is not set.

    Raises:
        RoadmapNotFoundError: No active roadmap is stored.
    """
    current = load_roadmap(store)
    if current is None:
        raise RoadmapNotFoundError("Roadmap not found")

    day1 = get_day(current, 1)
    if not force and day1 is not None and day1.date_iso and day1.date_iso > clock.today_iso():
        logger.info("Week {} has not started; next week not generated", current.week_id)
        return NextWeekResult(roadmap=current, skipped=True, reason="already-next-week")

    state = load_promotion_state(store, current.goal_level)
    goal = state.goal_level
    practice_level = clamp_to_goal(state.current_practice_level, goal)
    rates, source = pick_rates_for_next_week(store)
    shape = classify_weakness(rates)

    day7 = get_day(current, WEEK_LENGTH)
    last_date = opt_str(day7.date_iso) if day7 is not None else None
    try:
        start = add_days_iso(last_date, 1)
    except (TypeError, ValueError):
        start = add_days_iso(clock.today_iso(), 1)

    roadmap = build_roadmap(
        bank,
        start_date_iso=start,
        practice_level=practice_level,
        goal_level=goal,
        week_id=next_week_id(current.week_id),
        clock=clock,
        shape=shape,
    )
    if not dry_run:
        save_roadmap(store, roadmap)
    logger.info(
        "Next week {} from {} rates: {} at {}",
        roadmap.week_id, source, ", ".join(f"{s}={rates[s]:.2f}" for s in SKILLS), practice_level,
    )
    return NextWeekResult(
        roadmap=roadmap,
        skipped=False,
        source=source,
        shape=shape,
        practice_level=practice_level,
        rates=rates,
        dry_run=dry_run,
    )
