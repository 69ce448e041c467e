"""Data classes for the scheduler domain model."""
from dataclasses import dataclass, field
from typing import Optional, Protocol

SKILLS = ("vocab", "grammar", "reading")
LEVELS = ("N5", "N4", "N3", "N2", "N1")  # easiest -> hardest

SET_SIZES = {"vocab": 10, "grammar": 10, "reading": 5}
PRACTICE_SETS_PER_DAY = 9
WEEK_LENGTH = 7
WEEKLY_CHECK_DAY = 7
PASS_RATE = 90.0
PROMOTION_STREAK = 3


# Weakness shapes

@dataclass(frozen=True)
class AllEqual:
    kind: str = field(default="all_equal", init=False)


@dataclass(frozen=True)
class OneWeak:
    skill: str
    kind: str = field(default="one_weak", init=False)


@dataclass(frozen=True)
class TwoWeakTie:
    weak_a: str
    weak_b: str
    strongest: str
    kind: str = field(default="two_weak_tie", init=False)


@dataclass(frozen=True)
class Stair:
    order: tuple
    kind: str = field(default="stair", init=False)


WeaknessShape = AllEqual | OneWeak | TwoWeakTie | Stair


@dataclass
class Question:
    id: str
    skill: str
    level_tag: str
    prompt: str
    choices: list
    correct_index: int
    explanation: str = ""


@dataclass
class SetProgress:
    total: int
    mastered: list = field(default_factory=list)
    remaining: list = field(default_factory=list)
    wrong_ever: list = field(default_factory=list)
    attempts: int = 0
    started_at_iso: Optional[str] = None
    finished_at: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.finished_at is not None


@dataclass
class PracticeSet:
    set_id: str
    skill: str
    level_tag: str
    planned_count: int
    question_ids: list
    progress: SetProgress


@dataclass
class RoadmapDay:
    day_index: int
    date_iso: str
    focus_skill: str
    is_weekly_check_day: bool
    allocation: Optional[dict]
    practice_level: str
    sets: list = field(default_factory=list)


@dataclass
class Roadmap:
    week_id: str
    goal_level: str
    days: list
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class SkillScore:
    total: int
    correct: int
    rate: float  # percent, one decimal


@dataclass(frozen=True)
class WeeklyCheckEntry:
    week_id: str
    created_at_iso: str
    level: str
    total: int
    correct: int
    rate: float
    by_skill: dict
    all_skills_passed_90: bool
    promotion_streak_after_save: int
    promoted: bool
    current_practice_level_after_save: str


@dataclass
class PromotionState:
    goal_level: str
    current_practice_level: str
    promotion_streak: int = 0
    history: list = field(default_factory=list)
    updated_at_iso: Optional[str] = None


@dataclass(frozen=True)
class QuestionRef:
    id: str
    skill: str
    level_tag: str


@dataclass
class WeeklyCheckSession:
    week_id: str
    goal_level: str
    level: str
    questions: list
    answers: dict = field(default_factory=dict)
    created_at_iso: str = ""


@dataclass
class PracticeEvent:
    date_iso: str
    qid: str
    correct: bool
    skill: Optional[str] = None
    set_id: Optional[str] = None


@dataclass
class Carryover:
    """Questions missed yesterday, to be cleared before today's sets."""
    date_iso: str
    qids: list = field(default_factory=list)
    cleared: bool = True
    updated_at: str = ""


class EntitlementProvider(Protocol):
    """Billing collaborator; returns ``"free"`` or ``"pro"``. Scheduling never consults it."""

    def get_plan(self) -> str: ...
