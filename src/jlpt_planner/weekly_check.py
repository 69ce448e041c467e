"""Day-7 weekly check: a 30-question session, 10 per skill.

Unlike practice sets the check is not reproducible; it draws from
``random.Random`` and prefers questions not served in earlier checks.
"""
import random

from loguru import logger

from jlpt_planner.levels import as_level, clamp_to_goal, next_level
from jlpt_planner.models import SKILLS, QuestionRef, SkillScore, WeeklyCheckSession
from jlpt_planner.normalize import percent_rate, session_from_dict, session_to_dict, str_list
from jlpt_planner.promotion import HISTORY_LIMIT, record_weekly_check

SESSION_KEY = "weekly_check.session.v1"
USED_KEY = "weekly_check.used.v1"

CURRENT_PER_SKILL = 6
HARD_PER_SKILL = 4
PER_SKILL = CURRENT_PER_SKILL + HARD_PER_SKILL


def load_used_ids(store) -> set:
    raw = store.read(USED_KEY)
    return set(str_list(raw.get("used_ids"))) if isinstance(raw, dict) else set()


def _sample(rng, pool: list, n: int) -> list:
    if n <= 0 or not pool:
        return []
    return rng.sample(pool, min(n, len(pool)))


def _pick_for_skill(bank, skill: str, level: str, rng, exclude: set) -> list:
    questions = [q for q in bank.list_by_skill(skill) if q.id not in exclude]
    hard_level = next_level(level)

    same = [q for q in questions if q.level_tag == level]
    picked = _sample(rng, same, CURRENT_PER_SKILL)
    taken = {q.id for q in picked}

    hard = [q for q in questions if q.level_tag == hard_level and q.id not in taken]
    picked += _sample(rng, hard, HARD_PER_SKILL)
    taken.update(q.id for q in picked)

    rest = [q for q in questions if q.id not in taken]
    picked += _sample(rng, rest, PER_SKILL - len(picked))
    return picked


def pick_skill_questions(bank, skill: str, level: str, rng=None, used_ids=(), taken_ids=()) -> list[QuestionRef]:
    """Ten refs for one skill: 6 at ``level`` and 4 one level harder.

    Short level pools are topped up from the skill's other levels, then from
    any skill in the bank; those fill this skill's slots and are scored
    under it. Questions in ``used_ids`` are only drawn when the skill cannot
    be filled without them; ``taken_ids`` are never drawn.
    """
    rng = rng or random.Random()
    level = as_level(level)
    taken = set(taken_ids)
    used = set(used_ids) | taken

    picked = _pick_for_skill(bank, skill, level, rng, used)
    if len(picked) < PER_SKILL and used != taken:
        logger.warning("Unused {} questions exhausted; drawing from the full pool", skill)
        picked = _pick_for_skill(bank, skill, level, rng, taken)

    if len(picked) < PER_SKILL:
        taken.update(q.id for q in picked)
        others = [q for q in bank.all_questions() if q.id not in taken]
        picked += _sample(rng, others, PER_SKILL - len(picked))

    return [QuestionRef(id=q.id, skill=skill, level_tag=q.level_tag) for q in picked]


def build_weekly_check_session(
    bank,
    week_id: str,
    goal_level: str,
    practice_level: str,
    clock,
    rng=None,
    used_ids=(),
) -> WeeklyCheckSession:
    """Build the 30-question check for a week. Nothing is written."""
    rng = rng or random.Random()
    goal = as_level(goal_level)
    level = clamp_to_goal(as_level(practice_level, goal), goal)

    questions = []
    for skill in SKILLS:
        questions += pick_skill_questions(
            bank, skill, level, rng, used_ids, taken_ids=[q.id for q in questions],
        )
    rng.shuffle(questions)

    logger.debug("Weekly check {} at {}: {} questions", week_id, level, len(questions))
    return WeeklyCheckSession(
        week_id=str(week_id),
        goal_level=goal,
        level=level,
        questions=questions,
        answers={},
        created_at_iso=clock.now_iso(),
    )


def answer_weekly_check(session: WeeklyCheckSession, qid: str, correct: bool) -> bool:
    """Record an answer; ids outside the session are ignored."""
    if not any(q.id == qid for q in session.questions):
        logger.warning("Answer for {} ignored; not in weekly check {}", qid, session.week_id)
        return False
    session.answers[qid] = bool(correct)
    return True


def summarize_by_skill(answers) -> dict:
    """``{skill: SkillScore}`` from ``(skill, correct)`` pairs."""
    totals = {skill: [0, 0] for skill in SKILLS}
    for skill, correct in answers:
        if skill not in totals:
            continue
        totals[skill][0] += 1
        if correct:
            totals[skill][1] += 1
    return {
        skill: SkillScore(total=total, correct=correct, rate=percent_rate(correct, total))
        for skill, (total, correct) in totals.items()
    }


def finalize_weekly_check(session: WeeklyCheckSession):
    """Score a session as ``(total, correct, rate, by_skill)``.

    Unanswered questions count as incorrect.
    """
    pairs = [(q.skill, session.answers.get(q.id) is True) for q in session.questions]
    by_skill = summarize_by_skill(pairs)
    total = sum(s.total for s in by_skill.values())
    correct = sum(s.correct for s in by_skill.values())
    return total, correct, percent_rate(correct, total), by_skill


def register_used_ids(store, session: WeeklyCheckSession, bank) -> set:
    """Add the session's questions to the used registry.

    A skill whose unused questions can no longer fill a check is reset.
    """
    used = load_used_ids(store) | {q.id for q in session.questions}
    for skill in SKILLS:
        ids = {q.id for q in bank.list_by_skill(skill)}
        if len(ids - used) < PER_SKILL:
            logger.warning("Weekly-check registry for {} reset", skill)
            used -= ids
    store.write(USED_KEY, {"used_ids": sorted(used)})
    return used


def save_weekly_check_session(store, session: WeeklyCheckSession) -> None:
    store.write(SESSION_KEY, session_to_dict(session))


def load_weekly_check_session(store) -> WeeklyCheckSession | None:
    return session_from_dict(store.read(SESSION_KEY))


def clear_weekly_check_session(store) -> None:
    store.write(SESSION_KEY, None)


def complete_weekly_check(store, session: WeeklyCheckSession, bank, clock, history_limit: int = HISTORY_LIMIT):
    """Finalize a session, save the result to promotion state and close it.

    Returns ``(state, entry)`` from the promotion state machine.
    """
    total, correct, _, by_skill = finalize_weekly_check(session)
    state, entry = record_weekly_check(
        store, session.week_id, session.level, by_skill, clock,
        total=total, correct=correct, history_limit=history_limit,
    )
    register_used_ids(store, session, bank)
    clear_weekly_check_session(store)
    return state, entry
