"""Coercion between stored JSON and typed entities.

Everything read from a store passes through here. Wrong types and missing
fields become typed defaults; nothing in this module raises on bad data.
"""
import math
from dataclasses import asdict

from jlpt_planner.levels import as_level, clamp_to_goal
from jlpt_planner.models import (
    SET_SIZES, SKILLS, WEEK_LENGTH, PASS_RATE,
    PracticeSet, PromotionState, QuestionRef, Roadmap, RoadmapDay,
    SetProgress, SkillScore, WeeklyCheckEntry, WeeklyCheckSession,
)
from jlpt_planner.weakness import normalize_rate


def safe_int(value, fallback: int = 0) -> int:
    try:
        n = float(value)
    except (TypeError, ValueError):
        return fallback
    if math.isnan(n) or math.isinf(n):
        return fallback
    return max(0, int(n))


def str_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [x for x in value if isinstance(x, str) and x]


def unique(items) -> list:
    return list(dict.fromkeys(items))


def as_skill(value, default: str = "vocab") -> str:
    return value if value in SKILLS else default


def opt_str(value) -> str | None:
    return value if isinstance(value, str) and value else None


def percent_rate(correct: int, total: int) -> float:
    """correct/total as a percentage rounded half-up to one decimal."""
    if total <= 0:
        return 0.0
    return math.floor(correct * 1000 / total + 0.5) / 10


# Set progress

def new_progress(question_ids, started_at_iso: str | None = None) -> SetProgress:
    ids = unique(str_list(question_ids))
    return SetProgress(total=len(ids), remaining=list(ids), started_at_iso=started_at_iso)


def progress_from_dict(raw, question_ids) -> SetProgress:
    ids = unique(str_list(question_ids))
    if not isinstance(raw, dict):
        return new_progress(ids)
    mastered = [q for q in unique(str_list(raw.get("mastered"))) if q in ids]
    remaining_raw = str_list(raw.get("remaining"))
    remaining = [q for q in unique(remaining_raw or ids) if q not in mastered]
    progress = SetProgress(
        total=len(ids),
        mastered=mastered,
        remaining=remaining,
        wrong_ever=unique(str_list(raw.get("wrong_ever"))),
        attempts=safe_int(raw.get("attempts")),
        started_at_iso=opt_str(raw.get("started_at_iso")),
        finished_at=opt_str(raw.get("finished_at")),
    )
    if progress.finished_at and len(mastered) < progress.total:
        progress.finished_at = None
    return progress


# Roadmap

def practice_set_from_dict(raw, fallback_skill: str, fallback_level: str) -> PracticeSet | None:
    if not isinstance(raw, dict):
        return None
    set_id = str(raw.get("set_id") or "").strip()
    if not set_id:
        return None
    skill = as_skill(raw.get("skill"), fallback_skill)
    ids = str_list(raw.get("question_ids"))
    return PracticeSet(
        set_id=set_id,
        skill=skill,
        level_tag=as_level(raw.get("level_tag"), fallback_level),
        planned_count=safe_int(raw.get("planned_count"), SET_SIZES[skill]) or SET_SIZES[skill],
        question_ids=ids,
        progress=progress_from_dict(raw.get("progress"), ids),
    )


def allocation_from_dict(raw) -> dict | None:
    if not isinstance(raw, dict):
        return None
    return {skill: safe_int(raw.get(skill)) for skill in SKILLS}


def day_from_dict(raw, position: int, goal_level: str) -> RoadmapDay | None:
    if not isinstance(raw, dict):
        return None
    day_index = safe_int(raw.get("day_index"), position) or position
    focus = as_skill(raw.get("focus_skill"))
    level = as_level(raw.get("practice_level"), goal_level)
    is_check = day_index == WEEK_LENGTH
    sets = []
    if not is_check:
        for s in raw.get("sets") or []:
            ps = practice_set_from_dict(s, focus, level)
            if ps is not None:
                sets.append(ps)
    return RoadmapDay(
        day_index=day_index,
        date_iso=raw.get("date_iso") if isinstance(raw.get("date_iso"), str) else "",
        focus_skill=focus,
        is_weekly_check_day=is_check,
        allocation=None if is_check else allocation_from_dict(raw.get("allocation")),
        practice_level=level,
        sets=sets,
    )


def roadmap_from_dict(raw) -> Roadmap | None:
    """A stored roadmap, or None when it is missing or has no usable days."""
    if not isinstance(raw, dict) or not isinstance(raw.get("days"), list):
        return None
    goal = as_level(raw.get("goal_level"))
    days = []
    for position, d in enumerate(raw["days"], start=1):
        day = day_from_dict(d, position, goal)
        if day is not None:
            days.append(day)
    if not days:
        return None
    days.sort(key=lambda d: d.day_index)
    return Roadmap(
        week_id=opt_str(raw.get("week_id")) or "wk-1",
        goal_level=goal,
        days=days,
        created_at=opt_str(raw.get("created_at")) or "",
        updated_at=opt_str(raw.get("updated_at")) or "",
    )


def roadmap_to_dict(roadmap: Roadmap) -> dict:
    return asdict(roadmap)


# Weekly check results

def skill_score_from_dict(raw) -> SkillScore:
    if isinstance(raw, SkillScore):
        return raw
    if not isinstance(raw, dict):
        return SkillScore(total=0, correct=0, rate=0.0)
    total = safe_int(raw.get("total"))
    correct = min(safe_int(raw.get("correct")), total)
    if total > 0:
        return SkillScore(total=total, correct=correct, rate=percent_rate(correct, total))
    # rate-only summaries are accepted as-is
    rate = round(normalize_rate(raw.get("rate")) * 100, 1)
    return SkillScore(total=0, correct=0, rate=rate)


def by_skill_from_dict(raw) -> dict:
    raw = raw if isinstance(raw, dict) else {}
    return {skill: skill_score_from_dict(raw.get(skill)) for skill in SKILLS}


def by_skill_rates(by_skill: dict) -> dict:
    return {skill: by_skill[skill].rate for skill in SKILLS}


def passed_all_skills(by_skill: dict) -> bool:
    return all(by_skill[skill].rate >= PASS_RATE for skill in SKILLS)


def entry_from_dict(raw, goal_level: str, fallback_level: str) -> WeeklyCheckEntry | None:
    if not isinstance(raw, dict):
        return None
    by_skill = by_skill_from_dict(raw.get("by_skill"))
    sum_total = sum(s.total for s in by_skill.values())
    sum_correct = sum(s.correct for s in by_skill.values())
    total = safe_int(raw.get("total"), sum_total)
    correct = min(safe_int(raw.get("correct"), sum_correct), total)
    return WeeklyCheckEntry(
        week_id=str(raw.get("week_id") or ""),
        created_at_iso=opt_str(raw.get("created_at_iso")) or "",
        level=as_level(raw.get("level"), fallback_level),
        total=total,
        correct=correct,
        rate=percent_rate(correct, total),
        by_skill=by_skill,
        all_skills_passed_90=passed_all_skills(by_skill),
        promotion_streak_after_save=safe_int(raw.get("promotion_streak_after_save")),
        promoted=bool(raw.get("promoted")),
        current_practice_level_after_save=clamp_to_goal(
            as_level(raw.get("current_practice_level_after_save"), fallback_level), goal_level
        ),
    )


def promotion_state_from_dict(raw, goal_fallback: str) -> PromotionState | None:
    if not isinstance(raw, dict):
        return None
    goal = as_level(raw.get("goal_level"), as_level(goal_fallback))
    current = clamp_to_goal(as_level(raw.get("current_practice_level"), goal), goal)
    history = []
    for h in raw.get("history") if isinstance(raw.get("history"), list) else []:
        entry = entry_from_dict(h, goal, current)
        if entry is not None:
            history.append(entry)
    return PromotionState(
        goal_level=goal,
        current_practice_level=current,
        promotion_streak=safe_int(raw.get("promotion_streak")),
        history=history,
        updated_at_iso=opt_str(raw.get("updated_at_iso")),
    )


def promotion_state_to_dict(state: PromotionState) -> dict:
    return asdict(state)


# Weekly check sessions

def session_from_dict(raw) -> WeeklyCheckSession | None:
    if not isinstance(raw, dict) or not isinstance(raw.get("questions"), list):
        return None
    goal = as_level(raw.get("goal_level"))
    questions = []
    for q in raw["questions"]:
        if isinstance(q, dict) and opt_str(q.get("id")) and q.get("skill") in SKILLS:
            questions.append(QuestionRef(
                id=q["id"], skill=q["skill"], level_tag=as_level(q.get("level_tag")),
            ))
    answers = raw.get("answers") if isinstance(raw.get("answers"), dict) else {}
    return WeeklyCheckSession(
        week_id=str(raw.get("week_id") or ""),
        goal_level=goal,
        level=as_level(raw.get("level"), goal),
        questions=questions,
        answers={str(k): v for k, v in answers.items() if isinstance(v, bool)},
        created_at_iso=opt_str(raw.get("created_at_iso")) or "",
    )


def session_to_dict(session: WeeklyCheckSession) -> dict:
    return asdict(session)
