"""Background polling of a generation session until every section is ready."""

import asyncio
import logging

from pydantic import ValidationError

from .state import (
    fallback_started,
    poll_failed,
    poll_started,
    poll_succeeded,
    poller_stopped,
    resume_session,
)
from .store import PracticeStore
from .tracker import SectionGenerationTracker
from errors import HardResumeFailure, QuizError, SessionExpiredError, TransientFetchError
from services.generation import GenerationService
from storage.base import SessionProgressStore

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation shared by one polling loop."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def sleep(self, delay: float) -> bool:
        """Sleep for `delay` seconds.

        Returns:
            False if the token was cancelled before the delay elapsed.
        """
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return not self.cancelled
        return False


class GenerationPoller:
    """Polls one generation session at a time and feeds the tracker.

    At most one request is in flight. Once stopped (or restarted for another
    session) any response that still arrives is ignored.
    """

    def __init__(
        self,
        store: PracticeStore,
        tracker: SectionGenerationTracker,
        generation_service: GenerationService,
        progress_store: SessionProgressStore,
        interval: float = 4.0,
    ):
        self.store = store
        self.tracker = tracker
        self.generation_service = generation_service
        self.progress_store = progress_store
        self.interval = interval
        self._session_id: str | None = None
        self._token: CancellationToken | None = None
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, session_id: str) -> asyncio.Task:
        """Start polling `session_id`; a no-op if it's already being polled."""
        if self.running and self._session_id == session_id:
            return self._task
        self.stop()

        self._session_id = session_id
        self._token = CancellationToken()
        self.store.dispatch(poll_started, session_id)
        self._task = asyncio.create_task(self._run(session_id, self._token))
        return self._task

    def stop(self) -> None:
        if self._token is not None:
            self._token.cancel()
            self._token = None

    async def join(self) -> None:
        """Wait for the current polling loop to finish."""
        if self._task is not None:
            await self._task

    async def _run(self, session_id: str, token: CancellationToken) -> None:
        logger.debug("Polling generation session %s", session_id)
        while not token.cancelled:
            if self.tracker.all_ready:
                break

            try:
                session = await asyncio.to_thread(
                    self.generation_service.get_session, session_id
                )
            except SessionExpiredError:
                if token.cancelled:
                    return
                if self._can_fall_back():
                    await self._fall_back(token)
                    return
                self._transient_failure(session_id, "session expired")
            except (QuizError, ValidationError) as e:
                if token.cancelled:
                    return
                self._transient_failure(session_id, e)
            else:
                if token.cancelled:
                    return
                self.tracker.apply(session)
                self.store.dispatch(poll_succeeded)
                if self.tracker.all_ready:
                    break

            if not await token.sleep(self.interval):
                return

        if not token.cancelled:
            logger.info("Generation session %s is complete", session_id)
            self.store.dispatch(poller_stopped)

    def _can_fall_back(self) -> bool:
        state = self.store.state
        return state.history_session_id is not None and not state.poller.fallback_attempted

    async def _fall_back(self, token: CancellationToken) -> None:
        """Resume from the linked history snapshot, once per session."""
        history_id = self.store.state.history_session_id
        logger.info("Generation session expired, resuming history session %s", history_id)
        self.store.dispatch(fallback_started)

        try:
            snapshot = await asyncio.to_thread(self.progress_store.get_for_resume, history_id)
        except (QuizError, ValidationError) as e:
            if token.cancelled:
                return
            logger.warning("Resuming history session %s failed: %s", history_id, e)
            self.store.dispatch(poller_stopped, HardResumeFailure().message)
            return

        if token.cancelled:
            return
        self.store.dispatch(resume_session, snapshot)
        self.store.dispatch(poller_stopped)

    def _transient_failure(self, session_id: str, cause) -> None:
        logger.warning("Polling generation session %s failed: %s", session_id, cause)
        self.store.dispatch(poll_failed, TransientFetchError().message)
