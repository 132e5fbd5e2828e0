"""Retry rounds over the questions answered wrong."""

import logging

from .progression import EnginePhase, QuizProgressionEngine
from .state import PracticeResult, exit_retry, start_retry
from .store import PracticeStore
from exercises.wrong_answers import extract_wrong_answers, retry_questions
from models import AnswerRecord, Question

logger = logging.getLogger(__name__)


class RetryModeController:
    """Runs "wrong answers only" rounds on top of the progression engine.

    Retry rounds never touch the poller, the progress store, or the main
    answers and index. The result the first round started from is restored
    when retry mode ends.
    """

    def __init__(self, store: PracticeStore, engine: QuizProgressionEngine):
        self.store = store
        self.engine = engine
        self.last_round_result: PracticeResult | None = None

    @property
    def active(self) -> bool:
        return self.store.state.is_retry_mode

    def wrong_questions(self) -> list[Question]:
        """Questions answered wrong in the current round (or the main one)."""
        state = self.store.state
        if state.is_retry_mode:
            items = extract_wrong_answers(state.retry_answers, state.retry_questions)
        else:
            items = extract_wrong_answers(state.answers, self.engine.tracker.queue)
        return retry_questions(items)

    def start(self, questions: list[Question] | None = None) -> None:
        """Begin a retry round.

        Raises:
            ValueError: If there is nothing to retry.
        """
        if questions is None:
            questions = self.wrong_questions()
        if not questions:
            raise ValueError("There are no wrong answers to retry")
        logger.info("Starting retry round with %d question(s)", len(questions))
        self.last_round_result = None
        self.store.dispatch(start_retry, questions)

    def continue_retry(self) -> None:
        """Start a nested round from the questions still answered wrong."""
        self.start(self.wrong_questions())

    async def submit_answer(self, record: AnswerRecord) -> EnginePhase:
        phase = await self.engine.submit_answer(record)
        if phase == EnginePhase.DONE and self.store.state.is_retry_mode:
            self.last_round_result = self.store.state.last_result
            if not self.wrong_questions():
                self.exit()
        return phase

    def exit(self) -> None:
        """Leave retry mode and restore the original result."""
        if self.store.state.is_retry_mode:
            self.store.dispatch(exit_retry)
