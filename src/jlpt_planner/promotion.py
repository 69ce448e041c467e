"""Weekly-check history and the streak-based promotion state machine."""
from loguru import logger

from jlpt_planner.levels import as_level, clamp_to_goal, next_level, resolve_practice_level
from jlpt_planner.models import PROMOTION_STREAK, PromotionState, WeeklyCheckEntry
from jlpt_planner.normalize import (
    by_skill_from_dict, passed_all_skills, percent_rate, promotion_state_from_dict,
    promotion_state_to_dict, safe_int,
)

PROMOTION_KEY = "promotion.state.v1"
HISTORY_LIMIT = 52


def default_promotion_state(goal_level: str) -> PromotionState:
    goal = as_level(goal_level)
    return PromotionState(goal_level=goal, current_practice_level=goal)


def load_promotion_state(store, goal_level: str = "N5") -> PromotionState:
    """Stored state, or defaults for ``goal_level`` when nothing usable is stored."""
    state = promotion_state_from_dict(store.read(PROMOTION_KEY), goal_level)
    return state if state is not None else default_promotion_state(goal_level)


def save_promotion_state(store, state: PromotionState) -> None:
    store.write(PROMOTION_KEY, promotion_state_to_dict(state))


def initialize_promotion_state(store, goal_level: str, estimate, clock) -> PromotionState:
    """Seed the practice level from a diagnostic estimate and reset the streak.

    History from earlier weeks is kept.
    """
    goal = as_level(goal_level)
    state = load_promotion_state(store, goal)
    state.goal_level = goal
    state.current_practice_level = resolve_practice_level(estimate, goal)
    state.promotion_streak = 0
    state.updated_at_iso = clock.now_iso()
    save_promotion_state(store, state)
    logger.info("Practice level set to {} for goal {}", state.current_practice_level, goal)
    return state


def set_current_practice_level(store, goal_level: str, level: str, clock, reset_streak: bool = False) -> PromotionState:
    state = load_promotion_state(store, goal_level)
    state.current_practice_level = clamp_to_goal(as_level(level, state.goal_level), state.goal_level)
    if reset_streak:
        state.promotion_streak = 0
    state.updated_at_iso = clock.now_iso()
    save_promotion_state(store, state)
    return state


def set_goal_level(store, goal_level: str, clock) -> PromotionState:
    """Change the goal; the current level is pulled down if it now exceeds it."""
    goal = as_level(goal_level)
    state = load_promotion_state(store, goal)
    state.goal_level = goal
    state.current_practice_level = clamp_to_goal(state.current_practice_level, goal)
    state.updated_at_iso = clock.now_iso()
    save_promotion_state(store, state)
    return state


def record_weekly_check(
    store,
    week_id: str,
    level: str,
    by_skill,
    clock,
    total: int | None = None,
    correct: int | None = None,
    history_limit: int = HISTORY_LIMIT,
) -> tuple[PromotionState, WeeklyCheckEntry]:
    """Save one weekly-check result and advance the promotion streak.

    Args:
        store: Key-value store holding the promotion state.
        week_id: Week the check belongs to. Re-saving a week replaces its
            history entry, but the streak still moves on from the stored value.
        level: Level the check was taken at; capped at the goal.
        by_skill: ``{skill: SkillScore | {"total", "correct", "rate"}}``.
            Anything malformed scores 0 and so fails the 90% bar.
        clock: Supplies timestamps.
        total: Overall question count; summed from ``by_skill`` when omitted.
        correct: Overall correct count; summed from ``by_skill`` when omitted.
        history_limit: Most recent entries kept.

    Returns:
        The saved state and the new history entry.
    """
    scores = by_skill_from_dict(by_skill)
    total = safe_int(total if total is not None else sum(s.total for s in scores.values()))
    correct = min(safe_int(correct if correct is not None else sum(s.correct for s in scores.values())), total)

    state = load_promotion_state(store, level)
    goal = state.goal_level
    passed = passed_all_skills(scores)

    streak = state.promotion_streak + 1 if passed else 0
    promoted = False
    practice_level = state.current_practice_level
    if streak >= PROMOTION_STREAK:
        candidate = clamp_to_goal(next_level(practice_level), goal)
        if candidate != practice_level:
            promoted = True
            practice_level = candidate
        streak = 0
    practice_level = clamp_to_goal(practice_level, goal)

    now = clock.now_iso()
    entry = WeeklyCheckEntry(
        week_id=str(week_id),
        created_at_iso=now,
        level=clamp_to_goal(as_level(level), goal),
        total=total,
        correct=correct,
        rate=percent_rate(correct, total),
        by_skill=scores,
        all_skills_passed_90=passed,
        promotion_streak_after_save=streak,
        promoted=promoted,
        current_practice_level_after_save=practice_level,
    )

    history = [h for h in state.history if h.week_id != entry.week_id]
    history.append(entry)
    state.history = history[-history_limit:]
    state.promotion_streak = streak
    state.current_practice_level = practice_level
    state.updated_at_iso = now
    save_promotion_state(store, state)

    if promoted:
        logger.info("Promoted to {} after week {}", practice_level, week_id)
    else:
        logger.debug("Week {} saved; streak {} at {}", week_id, streak, practice_level)
    return state, entry


def latest_entry(state: PromotionState) -> WeeklyCheckEntry | None:
    return state.history[-1] if state.history else None
