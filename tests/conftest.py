"""Shared pytest fixtures for the vocabulary quiz test suite."""

import pytest

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from models import (
    Difficulty,
    QuestionSet,
    QuestionSetMetadata,
    QuestionType,
    SectionStatus,
)
from storage import SQLiteSessionProgressStore

from fakes import (
    FakeAnalysisService,
    FakeGenerationService,
    choice_question,
    cloze_question,
    make_session,
)


@pytest.fixture
def test_db_path(tmp_path) -> Path:
    """Create a temporary database path for testing."""
    return tmp_path / "test_quiz.db"


@pytest.fixture
def progress_store(test_db_path) -> SQLiteSessionProgressStore:
    return SQLiteSessionProgressStore(test_db_path)


@pytest.fixture
def sample_questions() -> dict[QuestionType, list]:
    """One question per section for the word "apple"."""
    return {
        QuestionType.CHOICE_ZH_TO_EN: [
            choice_question("q1", "apple", QuestionType.CHOICE_ZH_TO_EN)
        ],
        QuestionType.CHOICE_EN_TO_ZH: [
            choice_question("q2", "apple", QuestionType.CHOICE_EN_TO_ZH)
        ],
        QuestionType.CLOZE_FILL: [
            cloze_question("q3", "apple", "apple", "She ate an apple for lunch.")
        ],
    }


@pytest.fixture
def sample_question_set(sample_questions) -> QuestionSet:
    return QuestionSet(
        metadata=QuestionSetMetadata(
            total_questions=3, words=["apple"], difficulty=Difficulty.BEGINNER
        ),
        questions_type_1=sample_questions[QuestionType.CHOICE_ZH_TO_EN],
        questions_type_2=sample_questions[QuestionType.CHOICE_EN_TO_ZH],
        questions_type_3=sample_questions[QuestionType.CLOZE_FILL],
    )


@pytest.fixture
def ready_session(sample_questions):
    """A generation session whose three sections are all ready."""
    return make_session("gen-1", sample_questions)


@pytest.fixture
def partial_session(sample_questions):
    """A generation session with only the first section ready."""
    return make_session(
        "gen-1",
        sample_questions,
        statuses={
            QuestionType.CHOICE_EN_TO_ZH: SectionStatus.GENERATING,
            QuestionType.CLOZE_FILL: SectionStatus.PENDING,
        },
    )


@pytest.fixture
def analysis_service() -> FakeAnalysisService:
    return FakeAnalysisService()


@pytest.fixture
def generation_service(ready_session) -> FakeGenerationService:
    return FakeGenerationService(ready_session)
