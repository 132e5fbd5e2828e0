"""Question generation service: segmented, per-section generation sessions."""

import logging
from abc import ABC, abstractmethod

from errors import NotFoundError, SessionExpiredError
from models import Difficulty, GenerationSession, QuestionType
from services.http import ApiClient

logger = logging.getLogger(__name__)


class GenerationService(ABC):
    """Creates generation sessions and reports their per-section progress."""

    @abstractmethod
    def create_session(
        self,
        words: list[str],
        difficulty: Difficulty,
        per_type: int | None = None,
    ) -> GenerationSession:
        """Start generating questions for a word list.

        The first section is usually ready in the returned session; the
        others keep generating in the background.
        """
        pass

    @abstractmethod
    def get_session(self, session_id: str) -> GenerationSession:
        """Fetch the current state of a session.

        Raises:
            SessionExpiredError: If the session no longer exists.
        """
        pass

    @abstractmethod
    def retry_section(
        self, session_id: str, question_type: QuestionType
    ) -> GenerationSession:
        """Restart generation of one section and return the updated session."""
        pass


class HttpGenerationService(GenerationService):
    def __init__(self, client: ApiClient):
        self.client = client

    def create_session(self, words, difficulty, per_type=None):
        payload = {"words": words, "difficulty": difficulty.value}
        if per_type:
            payload["questionCountPerType"] = per_type
        logger.info("Starting generation for %d words (%s)", len(words), difficulty.value)
        data = self.client.post("/generation/session", json=payload)
        return GenerationSession.model_validate(data)

    def get_session(self, session_id):
        try:
            data = self.client.get(f"/generation/session/{session_id}")
        except NotFoundError as e:
            raise SessionExpiredError() from e
        return GenerationSession.model_validate(data)

    def retry_section(self, session_id, question_type):
        logger.info("Retrying %s of generation session %s", question_type.value, session_id)
        try:
            data = self.client.post(
                f"/generation/session/{session_id}/retry",
                json={"type": question_type.value},
            )
        except NotFoundError as e:
            raise SessionExpiredError() from e
        return GenerationSession.model_validate(data)
