"""Quiz session engine.

The practice state lives in a single PracticeStore and only changes through
the transitions in `engine.state`. The tracker, poller, progression engine
and retry controller read it and dispatch transitions; QuizRuntime wires
them to the services and the progress store.
"""

from .poller import CancellationToken, GenerationPoller
from .progression import EnginePhase, QuizProgressionEngine
from .retry import RetryModeController
from .runtime import QuizRuntime
from .state import Phase, PollerStatus, PracticeResult, PracticeState
from .store import PracticeStore
from .tracker import (
    RETRYABLE_SECTIONS,
    SectionGenerationTracker,
    SectionView,
    all_sections_ready,
    build_queue,
)

__all__ = [
    "CancellationToken",
    "GenerationPoller",
    "EnginePhase",
    "QuizProgressionEngine",
    "RetryModeController",
    "QuizRuntime",
    "Phase",
    "PollerStatus",
    "PracticeResult",
    "PracticeState",
    "PracticeStore",
    "RETRYABLE_SECTIONS",
    "SectionGenerationTracker",
    "SectionView",
    "all_sections_ready",
    "build_queue",
]
