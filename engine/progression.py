"""Question-by-question progression: submit, advance, wait, finalize."""

import asyncio
import logging
import uuid
from enum import Enum

from .state import (
    Phase,
    PracticeResult,
    PracticeState,
    TransientWarning,
    advance_question,
    advance_retry,
    begin_finalizing,
    begin_pending_advance,
    clear_warning,
    end_pending_advance,
    finalize_failed,
    record_answer,
    record_retry_answer,
    set_last_result,
    set_retry_result,
    show_warning,
)
from .store import PracticeStore
from .tracker import SectionGenerationTracker, all_sections_ready, build_queue
from errors import AnswerValidationError, FinalizationFailure, PersistenceFailure
from exercises.answer_match import match_answer
from exercises.wrong_answers import (
    build_retry_report,
    extract_wrong_answers,
    incorrect_words,
)
from models import AnswerRecord, Question, compute_score
from services.analysis import AnalysisService
from storage.base import SessionProgressStore

logger = logging.getLogger(__name__)


class EnginePhase(str, Enum):
    ANSWERING = "answering"
    PENDING_ADVANCE = "pending_advance"
    FINALIZING = "finalizing"
    DONE = "done"


class QuizProgressionEngine:
    """Drives the learner through the queue of the main or retry round.

    Question order is the queue order and is never shuffled. Answers are
    persisted in the background; a failed write only shows a warning.
    """

    def __init__(
        self,
        store: PracticeStore,
        tracker: SectionGenerationTracker,
        progress_store: SessionProgressStore,
        analysis_service: AnalysisService,
        warning_ttl: float = 4.0,
    ):
        self.store = store
        self.tracker = tracker
        self.progress_store = progress_store
        self.analysis_service = analysis_service
        self.warning_ttl = warning_ttl
        self._pending_writes: set[asyncio.Task] = set()
        # One answer write in flight at a time, in submission order.
        self._write_lock = asyncio.Lock()
        self._finalize_task: asyncio.Task | None = None
        self._unsubscribe = store.subscribe(self._on_state_change)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def queue(self) -> list[Question]:
        state = self.store.state
        if state.is_retry_mode:
            return state.retry_questions
        return self.tracker.queue

    @property
    def index(self) -> int:
        state = self.store.state
        return state.retry_index if state.is_retry_mode else state.current_question_index

    @property
    def answers(self) -> list[AnswerRecord]:
        state = self.store.state
        return state.retry_answers if state.is_retry_mode else state.answers

    @property
    def phase(self) -> EnginePhase:
        state = self.store.state
        if state.phase == Phase.REPORT:
            return EnginePhase.DONE
        if state.finalizing or state.finalize_error is not None:
            return EnginePhase.FINALIZING
        if state.pending_advance:
            return EnginePhase.PENDING_ADVANCE
        return EnginePhase.ANSWERING

    @property
    def awaiting_finalize(self) -> bool:
        """Every question was answered but no result exists yet."""
        state = self.store.state
        queue = self.queue
        return (
            not state.is_retry_mode
            and state.last_result is None
            and not state.finalizing
            and bool(queue)
            and len(state.answers) >= len(queue)
            and self.tracker.settled
        )

    @property
    def current_question(self) -> Question | None:
        if self.phase != EnginePhase.ANSWERING:
            return None
        queue, index = self.queue, self.index
        if index >= len(queue) or len(self.answers) > index:
            return None
        return queue[index]

    # ------------------------------------------------------------------
    # Answering
    # ------------------------------------------------------------------

    def build_answer(
        self,
        choice_id: str | None = None,
        user_input: str | None = None,
        elapsed_ms: int = 0,
    ) -> AnswerRecord:
        """Grade an answer to the current question."""
        question = self.current_question
        if question is None:
            raise AnswerValidationError("There is no question to answer right now")

        if question.type.is_choice:
            correct = choice_id is not None and choice_id == question.correct_choice_id
        else:
            correct = user_input is not None and match_answer(
                user_input, question.correct_answer or ""
            )
        return AnswerRecord(
            question_id=question.id,
            choice_id=choice_id,
            user_input=user_input,
            correct=correct,
            elapsed_ms=elapsed_ms,
        )

    def validate(self, record: AnswerRecord) -> Question:
        """Check that `record` answers the current question in its shape.

        Raises:
            AnswerValidationError: If it doesn't.
        """
        question = self.current_question
        if question is None:
            raise AnswerValidationError("There is no question to answer right now")
        if record.question_id != question.id:
            raise AnswerValidationError("This answer is for a different question")

        if question.type.is_choice:
            choice_ids = {c.id for c in question.choices or []}
            if record.user_input is not None or record.choice_id not in choice_ids:
                raise AnswerValidationError("Please pick one of the choices")
        else:
            if record.choice_id is not None or not (record.user_input or "").strip():
                raise AnswerValidationError("Please type your answer")
        return question

    async def submit_answer(self, record: AnswerRecord) -> EnginePhase:
        """Record an answer and move on.

        Returns:
            The phase the engine is in afterwards.

        Raises:
            AnswerValidationError: If `record` doesn't fit the current question.
        """
        self.validate(record)
        state = self.store.state

        if state.is_retry_mode:
            self.store.dispatch(record_retry_answer, record)
        else:
            self.store.dispatch(record_answer, record)
            self._persist_answer(record, state.current_question_index + 1)

        if self.index + 1 < len(self.queue):
            self.store.dispatch(
                advance_retry if state.is_retry_mode else advance_question
            )
            return self.phase

        if not state.is_retry_mode and not self.tracker.settled:
            logger.info("Waiting for more questions after #%d", self.index + 1)
            self.store.dispatch(begin_pending_advance)
            return self.phase

        await self.finalize()
        return self.phase

    async def wait_for_question(self) -> EnginePhase:
        """Suspend until the pending state ends, then report the new phase."""
        if self.phase == EnginePhase.PENDING_ADVANCE:
            waiter = asyncio.get_running_loop().create_future()

            def on_change(state: PracticeState, previous: PracticeState) -> None:
                if not state.pending_advance and not waiter.done():
                    waiter.set_result(None)

            unsubscribe = self.store.subscribe(on_change)
            try:
                await waiter
            finally:
                unsubscribe()

        if self._finalize_task is not None:
            await asyncio.shield(self._finalize_task)
        return self.phase

    def _on_state_change(self, state: PracticeState, previous: PracticeState) -> None:
        if not state.pending_advance or state.is_retry_mode or state.finalizing:
            return

        queue_length = len(build_queue(state.sections))
        if state.current_question_index + 1 < queue_length:
            self.store.dispatch(end_pending_advance)
        elif all_sections_ready(state.sections) or state.session_id is None:
            if self._finalize_task is None or self._finalize_task.done():
                self._finalize_task = asyncio.get_running_loop().create_task(
                    self.finalize()
                )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist_answer(self, record: AnswerRecord, new_index: int) -> None:
        history_id = self.store.state.history_session_id
        if history_id is None:
            return
        task = asyncio.get_running_loop().create_task(
            self._save_answer(history_id, record, new_index)
        )
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _save_answer(self, history_id: str, record: AnswerRecord, new_index: int) -> None:
        try:
            async with self._write_lock:
                await asyncio.to_thread(
                    self.progress_store.save_answer, history_id, record, new_index
                )
        except Exception as e:
            logger.warning("Saving answer to session %s failed: %s", history_id, e)
            self.warn(PersistenceFailure().message)

    def warn(self, message: str) -> None:
        """Show a warning that clears itself after the configured TTL."""
        loop = asyncio.get_running_loop()
        warning = TransientWarning(
            id=uuid.uuid4().hex, message=message, expires_at=loop.time() + self.warning_ttl
        )
        self.store.dispatch(show_warning, warning)
        loop.call_later(self.warning_ttl, self.store.dispatch, clear_warning, warning.id)

    async def drain(self) -> None:
        """Wait for every background write started so far."""
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes))

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    async def finalize(self) -> PracticeResult | None:
        """Score the round and produce its result.

        The main round asks the analysis service for a report and stores the
        completed snapshot. A retry round is reported locally and stores
        nothing. On failure the error is recorded in the state and the
        engine stays on the last answered question, so finalize can be
        called again.
        """
        state = self.store.state
        if state.finalizing:
            return None
        self.store.dispatch(begin_finalizing)

        if state.is_retry_mode:
            return self._finalize_retry(state)

        answers = state.answers
        queue = self.tracker.queue
        score = compute_score(answers, len(answers))
        question_set = self.tracker.question_set()

        try:
            await self.drain()
            analysis = await asyncio.to_thread(
                self.analysis_service.analyze,
                state.difficulty,
                state.words,
                answers,
                question_set,
                score,
            )
            if state.history_session_id is not None:
                snapshot = await asyncio.to_thread(
                    self.progress_store.complete,
                    state.history_session_id,
                    answers,
                    score,
                    analysis,
                )
            else:
                snapshot = await asyncio.to_thread(
                    self.progress_store.save_completed,
                    state.difficulty,
                    state.words,
                    question_set,
                    answers,
                    score,
                    analysis,
                )
        except Exception as e:
            logger.warning("Finalizing practice failed: %s", e)
            self.store.dispatch(finalize_failed, FinalizationFailure().message)
            return None

        result = PracticeResult(
            score=score,
            analysis=analysis,
            incorrect_words=incorrect_words(extract_wrong_answers(answers, queue)),
            snapshot=snapshot,
        )
        self.store.dispatch(set_last_result, result)
        logger.info("Practice finished with score %d", score)
        return result

    def _finalize_retry(self, state: PracticeState) -> PracticeResult:
        answers = state.retry_answers
        wrong = extract_wrong_answers(answers, state.retry_questions)
        result = PracticeResult(
            score=compute_score(answers, len(answers)),
            analysis=build_retry_report(state.retry_questions, answers),
            incorrect_words=incorrect_words(wrong),
        )
        self.store.dispatch(set_retry_result, result)
        return result

    def close(self) -> None:
        self._unsubscribe()
