"""Abstract interface for session progress storage."""

from abc import ABC, abstractmethod

from models import (
    AnalysisSummary,
    AnswerRecord,
    CreatedSession,
    Difficulty,
    InProgressSessionSummary,
    QuestionSet,
    SessionSnapshot,
    VocabularyDetail,
)


class SessionProgressStore(ABC):
    """Backend-agnostic CRUD over resumable session snapshots.

    Implementations raise SessionNotFoundError for unknown session ids and
    never retry internally; callers decide what a failure means.
    """

    @abstractmethod
    def create_in_progress(
        self,
        difficulty: Difficulty,
        words: list[str],
        question_set: QuestionSet,
        vocab_details: list[VocabularyDetail] | None = None,
    ) -> CreatedSession:
        """Create an in-progress snapshot with no answers at index 0.

        Args:
            difficulty: Difficulty tier of the practice.
            words: The practiced word list.
            question_set: Questions generated so far.
            vocab_details: Optional vocabulary details payload.

        Returns:
            The new session id and creation timestamp.
        """
        pass

    @abstractmethod
    def save_answer(
        self, session_id: str, answer: AnswerRecord, new_index: int
    ) -> SessionSnapshot:
        """Append an answer and move the question index.

        The session becomes completed (with its score computed) once
        `new_index` reaches the total question count.

        Raises:
            SessionNotFoundError: If the session doesn't exist.
        """
        pass

    @abstractmethod
    def list_in_progress(self) -> list[InProgressSessionSummary]:
        """Summaries of all in-progress sessions, most recent first."""
        pass

    @abstractmethod
    def get_for_resume(self, session_id: str) -> SessionSnapshot:
        """Load a full snapshot without modifying it.

        Raises:
            SessionNotFoundError: If the session doesn't exist.
        """
        pass

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        """Delete a session.

        Returns:
            False if the session was already absent.
        """
        pass

    @abstractmethod
    def update_question_set(
        self, session_id: str, question_set: QuestionSet
    ) -> SessionSnapshot:
        """Replace the question set of an in-progress session.

        Raises:
            SessionNotFoundError: If the session doesn't exist.
            SessionNotEditableError: If the session is already completed.
        """
        pass

    @abstractmethod
    def complete(
        self,
        session_id: str,
        answers: list[AnswerRecord],
        score: int,
        analysis: AnalysisSummary,
    ) -> SessionSnapshot:
        """Finalize a linked session in a single write.

        Raises:
            SessionNotFoundError: If the session doesn't exist.
        """
        pass

    @abstractmethod
    def save_completed(
        self,
        difficulty: Difficulty,
        words: list[str],
        question_set: QuestionSet,
        answers: list[AnswerRecord],
        score: int,
        analysis: AnalysisSummary,
    ) -> SessionSnapshot:
        """Store a completed snapshot for a practice with no linked session."""
        pass
