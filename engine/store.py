"""Single owner of the practice state."""

import logging
from collections import deque
from typing import Callable

from .state import PracticeState

logger = logging.getLogger(__name__)

Transition = Callable[..., PracticeState]
Listener = Callable[[PracticeState, PracticeState], None]


class PracticeStore:
    """Holds the current PracticeState and applies transitions in order.

    Listeners are called with (new_state, previous_state) after every
    transition. A transition dispatched from inside a listener is queued
    and applied once the current one has been delivered to all listeners.
    """

    def __init__(self, state: PracticeState | None = None):
        self._state = state or PracticeState()
        self._listeners: list[Listener] = []
        self._queue: deque = deque()
        self._dispatching = False

    @property
    def state(self) -> PracticeState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, transition: Transition, *args, **kwargs) -> PracticeState:
        self._queue.append((transition, args, kwargs))
        if self._dispatching:
            return self._state

        self._dispatching = True
        try:
            while self._queue:
                fn, fn_args, fn_kwargs = self._queue.popleft()
                previous = self._state
                self._state = fn(previous, *fn_args, **fn_kwargs)
                logger.debug("Applied %s", fn.__name__)
                for listener in list(self._listeners):
                    listener(self._state, previous)
        finally:
            self._queue.clear()
            self._dispatching = False
        return self._state
