import pytest

from jlpt_planner.bank import QuestionBank
from jlpt_planner.clock import FixedClock
from jlpt_planner.db import MemoryStore
from jlpt_planner.models import LEVELS, SKILLS, Question


def make_question(skill, level, n):
    return Question(
        id=f"{skill}-{level}-{n:03d}",
        skill=skill,
        level_tag=level,
        prompt=f"{skill} {level} #{n}",
        choices=["a", "b", "c", "d"],
        correct_index=n % 4,
    )


def make_bank(per_level=40, skills=SKILLS, levels=LEVELS):
    return QuestionBank(
        make_question(skill, level, n)
        for skill in skills
        for level in levels
        for n in range(1, per_level + 1)
    )


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_planner.db")
    return db_path


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def bank():
    """40 questions for every skill at every level."""
    return make_bank()


@pytest.fixture
def clock():
    return FixedClock("2026-04-06T09:00:00")
