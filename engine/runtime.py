"""Wires the store, tracker, poller, engine and retry controller together."""

import asyncio
import logging

from .poller import GenerationPoller
from .progression import QuizProgressionEngine
from .retry import RetryModeController
from .state import (
    PracticeState,
    initialize_history_session,
    reset_session,
    resume_session,
    set_error,
    start_generating,
)
from .store import PracticeStore
from .tracker import SectionGenerationTracker, all_sections_ready
from config import Settings
from errors import PersistenceFailure, QuizError
from models import Difficulty, QuestionType, SessionSnapshot
from services.analysis import AnalysisService, HttpAnalysisService
from services.generation import GenerationService, HttpGenerationService
from services.http import ApiClient
from storage import get_progress_store
from storage.base import SessionProgressStore

logger = logging.getLogger(__name__)


class QuizRuntime:
    """One learner's practice: starting, resuming and answering."""

    def __init__(
        self,
        generation_service: GenerationService,
        analysis_service: AnalysisService,
        progress_store: SessionProgressStore,
        store: PracticeStore | None = None,
        poll_interval: float = 4.0,
        warning_ttl: float = 4.0,
    ):
        self.generation_service = generation_service
        self.progress_store = progress_store
        self.store = store or PracticeStore()
        self.tracker = SectionGenerationTracker(self.store)
        self.poller = GenerationPoller(
            self.store,
            self.tracker,
            generation_service,
            progress_store,
            interval=poll_interval,
        )
        self.engine = QuizProgressionEngine(
            self.store,
            self.tracker,
            progress_store,
            analysis_service,
            warning_ttl=warning_ttl,
        )
        self.retry = RetryModeController(self.store, self.engine)
        self._sync_tasks: set[asyncio.Task] = set()
        self.store.subscribe(self._on_state_change)

    @classmethod
    def from_settings(cls, settings: Settings) -> "QuizRuntime":
        client = ApiClient(
            settings.api_base_url,
            token=settings.auth_token,
            timeout=settings.request_timeout_seconds,
        )
        return cls(
            HttpGenerationService(client),
            HttpAnalysisService(client),
            get_progress_store(settings, client),
            poll_interval=settings.poll_interval_seconds,
            warning_ttl=settings.warning_ttl_seconds,
        )

    @property
    def state(self) -> PracticeState:
        return self.store.state

    async def start_practice(
        self,
        words: list[str],
        difficulty: Difficulty,
        per_type: int | None = None,
    ) -> None:
        """Start generating questions and open a linked history snapshot.

        Raises:
            QuizError: If the generation session can't be created.
        """
        self.poller.stop()
        self.store.dispatch(start_generating, words, difficulty)

        try:
            session = await asyncio.to_thread(
                self.generation_service.create_session, words, difficulty, per_type
            )
        except QuizError as e:
            self.store.dispatch(set_error, e.message)
            raise
        self.tracker.apply(session)

        try:
            created = await asyncio.to_thread(
                self.progress_store.create_in_progress,
                difficulty,
                words,
                self.tracker.question_set(),
                self.state.vocab_details,
            )
        except Exception as e:
            logger.warning("Creating the history session failed: %s", e)
            self.engine.warn(PersistenceFailure().message)
        else:
            self.store.dispatch(initialize_history_session, created.id)

        if not self.tracker.all_ready:
            self.poller.start(session.session_id)

    async def resume(self, history_id: str) -> SessionSnapshot:
        """Load a stored session and continue where it stopped.

        Raises:
            SessionNotFoundError: If the session doesn't exist.
        """
        self.poller.stop()
        snapshot = await asyncio.to_thread(self.progress_store.get_for_resume, history_id)
        self.store.dispatch(resume_session, snapshot)
        logger.info(
            "Resumed session %s at question %d", history_id, snapshot.current_question_index
        )
        if self.engine.awaiting_finalize:
            await self.engine.finalize()
        return snapshot

    async def retry_section(self, question_type: QuestionType) -> bool:
        applied = await self.tracker.retry_section(self.generation_service, question_type)
        if applied and not self.tracker.all_ready:
            self.poller.start(self.state.session_id)
        return applied

    def reset(self) -> None:
        self.poller.stop()
        self.store.dispatch(reset_session)

    async def shutdown(self) -> None:
        """Stop polling and wait for outstanding writes."""
        self.poller.stop()
        await self.engine.drain()
        if self._sync_tasks:
            await asyncio.gather(*list(self._sync_tasks))

    def _on_state_change(self, state: PracticeState, previous: PracticeState) -> None:
        became_ready = all_sections_ready(state.sections) and not all_sections_ready(
            previous.sections
        )
        if not became_ready or state.is_resumed_session:
            return
        if state.history_session_id is None or state.session_id is None:
            return

        question_set = self.tracker.question_set()
        task = asyncio.get_running_loop().create_task(
            self._sync_question_set(state.history_session_id, question_set)
        )
        self._sync_tasks.add(task)
        task.add_done_callback(self._sync_tasks.discard)

    async def _sync_question_set(self, history_id, question_set) -> None:
        try:
            await asyncio.to_thread(
                self.progress_store.update_question_set, history_id, question_set
            )
        except Exception as e:
            logger.warning("Updating questions of session %s failed: %s", history_id, e)
            self.engine.warn(PersistenceFailure().message)
        else:
            logger.info("Stored the complete question set for session %s", history_id)
