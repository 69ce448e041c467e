"""JLPT level ordering and the unified practice-level resolver."""
from jlpt_planner.models import LEVELS


def is_level(value) -> bool:
    return value in LEVELS


def as_level(value, default: str = "N5") -> str:
    """Coerce any value to a level, falling back to ``default``."""
    if isinstance(value, str) and value.strip().upper() in LEVELS:
        return value.strip().upper()
    return default


def level_index(level: str) -> int:
    return LEVELS.index(as_level(level))


def level_by_index(index: int) -> str:
    return LEVELS[max(0, min(len(LEVELS) - 1, index))]


def next_level(level: str) -> str:
    """One level harder, capped at N1."""
    return level_by_index(level_index(level) + 1)


def prev_level(level: str) -> str:
    """One level easier, floored at N5."""
    return level_by_index(level_index(level) - 1)


def clamp_to_goal(level: str, goal: str) -> str:
    return level_by_index(min(level_index(level), level_index(goal)))


def resolve_practice_level(estimate: str | None, goal: str) -> str:
    """Pick the unified practice level for a learner's first week.

    Args:
        estimate: Level estimated by the diagnostic, or None if not taken.
        goal: Target level chosen by the learner.

    Returns:
        The goal when there is no estimate, when the learner is already at or
        above it, or when they are one level below it. Two or more levels
        below the goal starts one level under the goal.
    """
    goal = as_level(goal)
    estimate = as_level(estimate, default=None)
    if estimate is None:
        return goal
    gap = level_index(goal) - level_index(estimate)
    if gap <= 1:
        return goal
    return prev_level(goal)
