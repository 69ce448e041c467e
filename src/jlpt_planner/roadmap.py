"""Weekly roadmap construction and persistence."""
import re

from loguru import logger

from jlpt_planner.allocation import daily_allocation, focus_skill
from jlpt_planner.clock import add_days_iso
from jlpt_planner.levels import as_level
from jlpt_planner.models import (
    PRACTICE_SETS_PER_DAY, SET_SIZES, SKILLS, WEEK_LENGTH, WEEKLY_CHECK_DAY,
    PracticeSet, Roadmap, RoadmapDay,
)
from jlpt_planner.normalize import new_progress, roadmap_from_dict, roadmap_to_dict
from jlpt_planner.sampler import sample_question_ids
from jlpt_planner.weakness import classify_weakness

ROADMAP_KEY = "roadmap.active.v1"
BACKFILL_SKILL = "vocab"

_PRACTICE_SET_ID = re.compile(r"^(vocab|grammar|reading)_(\d{1,3})$")
_TRAILING_NUMBER = re.compile(r"(\d+)(?!.*\d)")


class RoadmapNotFoundError(LookupError):
    """Raised when an operation needs an active roadmap and none is stored."""


def make_week_id(serial: int) -> str:
    return f"wk-{serial}"


def week_serial(week_id) -> int | None:
    if not isinstance(week_id, str):
        return None
    match = _TRAILING_NUMBER.search(week_id)
    return int(match.group(1)) if match else None


def next_week_id(prev_week_id) -> str:
    serial = week_serial(prev_week_id)
    return make_week_id(2 if serial is None else serial + 1)


def _build_set(bank, skill, seq, level, week_id, day_index, avoid, started_at_iso) -> PracticeSet:
    qids = sample_question_ids(
        bank, skill, level, set_ref=seq, week_id=week_id, day=day_index, avoid_ids=avoid,
    )
    avoid.update(qids)
    return PracticeSet(
        set_id=f"{skill}_{seq}",
        skill=skill,
        level_tag=level,
        planned_count=SET_SIZES[skill],
        question_ids=qids,
        progress=new_progress(qids, started_at_iso),
    )


def build_practice_day(bank, day_index, date_iso, allocation, level, week_id, started_at_iso=None) -> RoadmapDay:
    """One practice day: sets in descending allocation order, topped up to 9."""
    order = sorted(SKILLS, key=lambda s: (-allocation.get(s, 0), SKILLS.index(s)))
    used = {skill: set() for skill in SKILLS}
    seq = {skill: 0 for skill in SKILLS}
    sets = []

    for skill in order:
        for _ in range(allocation.get(skill, 0)):
            seq[skill] += 1
            sets.append(_build_set(
                bank, skill, seq[skill], level, week_id, day_index, used[skill], started_at_iso,
            ))

    while len(sets) < PRACTICE_SETS_PER_DAY:
        seq[BACKFILL_SKILL] += 1
        sets.append(_build_set(
            bank, BACKFILL_SKILL, seq[BACKFILL_SKILL], level, week_id, day_index,
            used[BACKFILL_SKILL], started_at_iso,
        ))
        logger.warning("Day {} short of sets; backfilled {}_{}", day_index, BACKFILL_SKILL, seq[BACKFILL_SKILL])

    return RoadmapDay(
        day_index=day_index,
        date_iso=date_iso,
        focus_skill=focus_skill(allocation),
        is_weekly_check_day=False,
        allocation={skill: allocation.get(skill, 0) for skill in SKILLS},
        practice_level=level,
        sets=sets,
    )


def build_weekly_check_day(date_iso: str, level: str) -> RoadmapDay:
    return RoadmapDay(
        day_index=WEEKLY_CHECK_DAY,
        date_iso=date_iso,
        focus_skill=SKILLS[0],
        is_weekly_check_day=True,
        allocation=None,
        practice_level=level,
        sets=[],
    )


def build_roadmap(
    bank,
    start_date_iso: str,
    practice_level: str,
    goal_level: str,
    week_id: str,
    clock,
    rates: dict | None = None,
    shape=None,
) -> Roadmap:
    """Build a fresh 7-day roadmap.

    Args:
        bank: Question bank to draw set questions from.
        start_date_iso: Date of day 1 (YYYY-MM-DD).
        practice_level: Unified level every set is drawn at.
        goal_level: Learner's target level, stored on the roadmap.
        week_id: Identifier such as ``wk-3``; also seeds question ordering.
        clock: Supplies created/updated timestamps.
        rates: Skill accuracy rates to classify, used when ``shape`` is None.
        shape: Precomputed weakness shape.

    Returns:
        Roadmap with days 1-6 holding 9 sets each and day 7 reserved for the
        weekly check. Set progress always starts empty.
    """
    level = as_level(practice_level)
    shape = shape if shape is not None else classify_weakness(rates)
    now = clock.now_iso()
    days = []
    for day_index in range(1, WEEK_LENGTH + 1):
        date_iso = add_days_iso(start_date_iso, day_index - 1)
        if day_index == WEEKLY_CHECK_DAY:
            days.append(build_weekly_check_day(date_iso, level))
            continue
        allocation = daily_allocation(shape, day_index)
        days.append(build_practice_day(bank, day_index, date_iso, allocation, level, week_id))
    logger.info("Built roadmap {} from {} at {} ({})", week_id, start_date_iso, level, shape.kind)
    return Roadmap(
        week_id=week_id,
        goal_level=as_level(goal_level),
        days=days,
        created_at=now,
        updated_at=now,
    )


def save_roadmap(store, roadmap: Roadmap) -> None:
    """Replace the stored week with ``roadmap``."""
    store.write(ROADMAP_KEY, roadmap_to_dict(roadmap))


def roadmap_problems(roadmap: Roadmap) -> list[str]:
    """Shape violations of a week: 7 contiguous days, one calendar day apart."""
    problems = []
    if len(roadmap.days) != WEEK_LENGTH:
        problems.append(f"expected {WEEK_LENGTH} days, found {len(roadmap.days)}")
    try:
        first_date = add_days_iso(roadmap.days[0].date_iso, 0) if roadmap.days else None
    except ValueError:
        first_date = None
        problems.append(f"day 1 dated {roadmap.days[0].date_iso!r}")
    for position, day in enumerate(roadmap.days, start=1):
        if day.day_index != position:
            problems.append(f"day {position} has index {day.day_index}")
        if first_date and day.date_iso != add_days_iso(first_date, position - 1):
            problems.append(f"day {position} dated {day.date_iso!r}")
    check_day = get_day(roadmap, WEEKLY_CHECK_DAY)
    if check_day is not None and (check_day.sets or not check_day.is_weekly_check_day):
        problems.append("day 7 must be the weekly check with no sets")
    return problems


def load_roadmap(store) -> Roadmap | None:
    roadmap = roadmap_from_dict(store.read(ROADMAP_KEY))
    if roadmap is not None:
        for problem in roadmap_problems(roadmap):
            logger.warning("Stored roadmap {}: {}", roadmap.week_id, problem)
    return roadmap


def get_day(roadmap: Roadmap, day_index: int) -> RoadmapDay | None:
    for day in roadmap.days:
        if day.day_index == day_index:
            return day
    return None


def find_set(roadmap: Roadmap, set_id: str, day_index: int | None = None) -> PracticeSet | None:
    """First set with ``set_id``, restricted to one day when ``day_index`` is given."""
    for day in roadmap.days:
        if day_index is not None and day.day_index != day_index:
            continue
        for practice_set in day.sets:
            if practice_set.set_id == set_id:
                return practice_set
    return None


def is_practice_set(practice_set) -> bool:
    """Only ``<skill>_<n>`` sets whose prefix matches their skill count toward a day."""
    match = _PRACTICE_SET_ID.match(getattr(practice_set, "set_id", "") or "")
    return bool(match) and match.group(1) == getattr(practice_set, "skill", None)


def day_status(day: RoadmapDay) -> str:
    practice = [s for s in day.sets if is_practice_set(s)]
    if practice and all(s.progress.finished for s in practice):
        return "finish"
    if any(s.progress.attempts > 0 for s in practice):
        return "in_progress"
    return "todo"
