"""Classify a learner's skill accuracy rates into a weakness shape."""
import math

from jlpt_planner.models import SKILLS, AllEqual, OneWeak, Stair, TwoWeakTie


def normalize_rate(value) -> float:
    """Accept a 0-1 fraction or a 0-100 percentage and return a 0-1 fraction."""
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(n) or math.isinf(n):
        return 0.0
    if n > 1:
        n = n / 100
    return max(0.0, min(1.0, n))


def normalize_rates(rates: dict | None) -> dict:
    rates = rates if isinstance(rates, dict) else {}
    return {skill: normalize_rate(rates.get(skill)) for skill in SKILLS}


def rank_skills(rates: dict | None) -> list[tuple[str, float]]:
    """Skills ordered weakest first; equal rates keep vocab, grammar, reading order."""
    normalized = normalize_rates(rates)
    return sorted(
        ((skill, normalized[skill]) for skill in SKILLS),
        key=lambda row: (row[1], SKILLS.index(row[0])),
    )


def classify_weakness(rates: dict | None):
    (s1, r1), (s2, r2), (s3, r3) = rank_skills(rates)
    if r1 == r2 == r3:
        return AllEqual()
    if r1 < r2 and r2 == r3:
        return OneWeak(skill=s1)
    if r1 == r2 and r2 < r3:
        return TwoWeakTie(weak_a=s1, weak_b=s2, strongest=s3)
    return Stair(order=(s1, s2, s3))
