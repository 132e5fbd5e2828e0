"""Remote-authoritative session progress store backed by the history service."""

import logging

from .base import SessionProgressStore
from errors import NotFoundError, SessionNotEditableError, SessionNotFoundError
from models import (
    AnalysisSummary,
    AnswerRecord,
    CreatedSession,
    Difficulty,
    InProgressSessionSummary,
    QuestionSet,
    SessionSnapshot,
    SessionStatus,
    StoreMode,
    VocabularyDetail,
)
from services.http import ApiClient

logger = logging.getLogger(__name__)


class RemoteSessionProgressStore(SessionProgressStore):
    """History-service backend, scoped to the caller's bearer token."""

    def __init__(self, client: ApiClient):
        self.client = client

    def create_in_progress(
        self,
        difficulty: Difficulty,
        words: list[str],
        question_set: QuestionSet,
        vocab_details: list[VocabularyDetail] | None = None,
    ) -> CreatedSession:
        payload = {
            "difficulty": difficulty.value,
            "words": words,
            "superJson": question_set.to_payload(),
        }
        if vocab_details:
            payload["vocabDetails"] = [d.to_payload() for d in vocab_details]
        data = self.client.post("/history/in-progress", json=payload)
        created = CreatedSession.model_validate(data)
        logger.info("Created remote session %s", created.id)
        return created

    def save_answer(
        self, session_id: str, answer: AnswerRecord, new_index: int
    ) -> SessionSnapshot:
        # The progress endpoint answers with a summary, so re-read the snapshot.
        try:
            self.client.patch(
                f"/history/{session_id}/progress",
                json={"answer": answer.to_payload(), "currentQuestionIndex": new_index},
            )
        except NotFoundError as e:
            raise SessionNotFoundError() from e
        return self.get_for_resume(session_id)

    def list_in_progress(self) -> list[InProgressSessionSummary]:
        data = self.client.get("/history", params={"status": SessionStatus.IN_PROGRESS.value})
        sessions = (data or {}).get("sessions", [])
        return [
            snapshot.summary()
            for snapshot in (SessionSnapshot.model_validate(s) for s in sessions)
            if snapshot.status == SessionStatus.IN_PROGRESS
        ]

    def get_for_resume(self, session_id: str) -> SessionSnapshot:
        try:
            data = self.client.get(f"/history/{session_id}")
        except NotFoundError as e:
            raise SessionNotFoundError() from e
        return SessionSnapshot.model_validate(data)

    def delete(self, session_id: str) -> bool:
        try:
            self.client.delete(f"/history/{session_id}")
        except NotFoundError:
            return False
        return True

    def update_question_set(
        self, session_id: str, question_set: QuestionSet
    ) -> SessionSnapshot:
        try:
            self.client.patch(
                f"/history/{session_id}/super-json",
                json={"superJson": question_set.to_payload()},
            )
        except NotFoundError as e:
            # The service answers 404 for both missing and completed sessions.
            snapshot = self.get_for_resume(session_id)
            if snapshot.status != SessionStatus.IN_PROGRESS:
                raise SessionNotEditableError() from e
            raise SessionNotFoundError() from e
        return self.get_for_resume(session_id)

    def complete(
        self,
        session_id: str,
        answers: list[AnswerRecord],
        score: int,
        analysis: AnalysisSummary,
    ) -> SessionSnapshot:
        """Post the finished practice to /history as a completed entry.

        Difficulty, words and question set come from the in-progress entry,
        which the last saved answer has already closed.
        """
        snapshot = self.get_for_resume(session_id)
        saved = self.save_completed(
            snapshot.difficulty,
            snapshot.words,
            snapshot.question_set,
            answers,
            score,
            analysis,
        )
        logger.info("Completed remote session %s as %s (score %d)", session_id, saved.id, score)
        return saved

    def save_completed(
        self,
        difficulty: Difficulty,
        words: list[str],
        question_set: QuestionSet,
        answers: list[AnswerRecord],
        score: int,
        analysis: AnalysisSummary,
    ) -> SessionSnapshot:
        payload = {
            "mode": StoreMode.AUTHENTICATED.value,
            "difficulty": difficulty.value,
            "words": words,
            "score": score,
            "analysis": analysis.to_payload(),
            "superJson": question_set.to_payload(),
            "answers": [a.to_payload() for a in answers],
        }
        data = self.client.post("/history", json=payload)
        return SessionSnapshot.model_validate(data)
