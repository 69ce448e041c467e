"""Deterministic question sampling for practice sets."""
import re

from loguru import logger

from jlpt_planner.levels import as_level
from jlpt_planner.models import SET_SIZES
from jlpt_planner.rng import seeded_shuffle

SETS_PER_SKILL_HINT = 3

# Nearest levels first when a level runs short
LEVEL_FALLBACK_ORDER = {
    "N5": ("N5", "N4", "N3", "N2", "N1"),
    "N4": ("N4", "N5", "N3", "N2", "N1"),
    "N3": ("N3", "N4", "N2", "N5", "N1"),
    "N2": ("N2", "N3", "N1", "N4", "N5"),
    "N1": ("N1", "N2", "N3", "N4", "N5"),
}

_SET_SUFFIX = re.compile(r"_(\d+)$")


def set_size(skill: str) -> int:
    return SET_SIZES.get(skill, 10)


def parse_set_seq(value) -> int:
    """Set sequence number from ``2``, ``"2"`` or ``"vocab_2"``; 1 when unparseable."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value if value > 0 else 1
    text = str(value if value is not None else "").strip()
    match = _SET_SUFFIX.search(text)
    if match:
        text = match.group(1)
    try:
        n = int(text)
    except ValueError:
        return 1
    return n if n > 0 else 1


def seed_key(week_id, day, skill: str, level: str) -> str:
    return "|".join([
        "practice",
        str(week_id) if week_id else "no-week",
        f"day:{day if day is not None else '?'}",
        f"skill:{skill}",
        f"level:{level}",
    ])


def candidate_pool(bank, skill: str, level: str, min_count: int) -> list:
    """Questions for a skill, widening through nearby levels until min_count is met."""
    rows = bank.list_by_skill(skill)
    out = []
    seen = set()
    for lv in LEVEL_FALLBACK_ORDER[as_level(level)]:
        for q in rows:
            if q.level_tag != lv or q.id in seen:
                continue
            seen.add(q.id)
            out.append(q.id)
        if len(out) >= min_count:
            break
    return out


def _circular_slice(ordered: list, offset: int, count: int) -> list:
    if not ordered or count <= 0:
        return []
    return [ordered[(offset + i) % len(ordered)] for i in range(count)]


def _fill_unique(raw: list, ordered: list, offset: int, count: int, avoid: set) -> list:
    out = []
    seen = set()

    def take(ids, allow_avoided):
        for qid in ids:
            if len(out) >= count:
                return
            if qid in seen or (qid in avoid and not allow_avoided):
                continue
            seen.add(qid)
            out.append(qid)

    take(raw, allow_avoided=False)
    rotated = ordered[offset % len(ordered):] + ordered[:offset % len(ordered)]
    take(rotated, allow_avoided=False)
    take(rotated, allow_avoided=True)
    return out


def sample_question_ids(
    bank,
    skill: str,
    level: str,
    set_ref=1,
    week_id=None,
    day=None,
    count: int | None = None,
    avoid_ids=None,
    shuffle=seeded_shuffle,
) -> list[str]:
    """Return a stable, collision-avoiding slice of question IDs for one set.

    The pool for (week, day, skill, level) is shuffled with a seeded generator,
    so the same inputs always produce the same IDs. Set N takes the N-th
    ``count``-sized window of that ordering, wrapping around when the pool is
    short. IDs in ``avoid_ids`` are skipped while the pool can still fill the
    set without them.
    """
    level = as_level(level)
    seq = parse_set_seq(set_ref)
    count = count if count and count > 0 else set_size(skill)
    avoid = set(avoid_ids or ())

    # Widen far enough that the day's earlier sets need not be repeated
    pool = candidate_pool(bank, skill, level, max(count * SETS_PER_SKILL_HINT, len(avoid) + count))
    if not pool:
        logger.warning("No {} questions in bank; set {} left empty", skill, seq)
        return []

    ordered = shuffle(pool, seed_key(week_id, day, skill, level))
    offset = (seq - 1) * count
    if offset + count > len(ordered):
        logger.warning(
            "{} pool at {} wraps for set {} ({} questions for {} needed)",
            skill, level, seq, len(ordered), offset + count,
        )
    raw = _circular_slice(ordered, offset, count)
    picked = _fill_unique(raw, ordered, offset, count, avoid)

    if len(picked) < count:
        # Pool smaller than one set: repeats are the only way to fill it
        picked = _circular_slice(picked, 0, count)

    logger.debug("Sampled {} {} set {} at {}: {}", len(picked), skill, seq, level, picked)
    return picked
