"""Daily practice-set allocation across the three skills."""
from jlpt_planner.models import SET_SIZES, SKILLS, WEEKLY_CHECK_DAY, OneWeak, Stair, TwoWeakTie


def weekly_check_allocation() -> dict:
    return {skill: 0 for skill in SKILLS}


def daily_allocation(shape, day_index: int) -> dict:
    """Split the day's 9 practice sets according to the weakness shape.

    Days 1-6 always sum to 9. Day 7 is the weekly check and gets nothing.
    """
    if day_index == WEEKLY_CHECK_DAY:
        return weekly_check_allocation()

    if isinstance(shape, OneWeak):
        out = {skill: 2 for skill in SKILLS}
        out[shape.skill] = 5
        return out

    if isinstance(shape, TwoWeakTie):
        odd_day = day_index % 2 == 1
        out = {skill: 0 for skill in SKILLS}
        out[shape.weak_a] = 4 if odd_day else 3
        out[shape.weak_b] = 3 if odd_day else 4
        out[shape.strongest] = 2
        return out

    if isinstance(shape, Stair):
        w1, w2, w3 = shape.order
        out = {skill: 0 for skill in SKILLS}
        out[w1] = 4
        out[w2] = 3
        out[w3] = 2
        return out

    # AllEqual, and anything unrecognised, gets the balanced split
    return {skill: 3 for skill in SKILLS}


def questions_for_allocation(allocation: dict) -> dict:
    """Convert set counts into question counts (sets x set size)."""
    return {skill: allocation.get(skill, 0) * SET_SIZES[skill] for skill in SKILLS}


def focus_skill(allocation: dict) -> str:
    """Skill with the most sets; ties go to the earlier skill."""
    return max(SKILLS, key=lambda skill: (allocation.get(skill, 0), -SKILLS.index(skill)))
