"""Practice state and the pure transitions that update it.

Every transition takes the current PracticeState (plus arguments) and
returns a new one; nothing here performs I/O. The store applies them in
order and notifies subscribers.
"""

from enum import Enum

from pydantic import BaseModel, Field

from models import (
    SECTION_ORDER,
    AnswerRecord,
    AnalysisSummary,
    Difficulty,
    GenerationMetadata,
    GenerationSession,
    Question,
    QuestionType,
    SectionState,
    SectionStatus,
    SessionSnapshot,
    SessionStatus,
    VocabularyDetail,
)

QUESTION_DATA_MISSING = "Question data missing for this section"


class Phase(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    IN_PROGRESS = "in_progress"
    REPORT = "report"


class PollerStatus(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    FALLBACK_ATTEMPTED = "fallback_attempted"
    STOPPED = "stopped"


class PollerState(BaseModel):
    """Per-session poller record; a new session id starts a fresh one."""

    session_id: str | None = None
    status: PollerStatus = PollerStatus.IDLE
    fallback_attempted: bool = False
    error: str | None = None


class TransientWarning(BaseModel):
    id: str
    message: str
    expires_at: float


class PracticeResult(BaseModel):
    score: int
    analysis: AnalysisSummary
    incorrect_words: list[str] = Field(default_factory=list)
    snapshot: SessionSnapshot | None = None


def _empty_sections() -> dict[QuestionType, SectionState]:
    return {qtype: SectionState() for qtype in SECTION_ORDER}


class PracticeState(BaseModel):
    # Practice input
    words: list[str] = Field(default_factory=list)
    difficulty: Difficulty | None = None
    vocab_details: list[VocabularyDetail] | None = None

    # Generation
    session_id: str | None = None
    per_type: int = 0
    generation_metadata: GenerationMetadata | None = None
    sections: dict[QuestionType, SectionState] = Field(default_factory=_empty_sections)

    # Main progression
    phase: Phase = Phase.IDLE
    answers: list[AnswerRecord] = Field(default_factory=list)
    current_question_index: int = 0
    pending_advance: bool = False
    finalizing: bool = False
    finalize_error: str | None = None
    last_result: PracticeResult | None = None

    # Linked history snapshot
    history_session_id: str | None = None
    is_resumed_session: bool = False

    # Retry sub-session (never persisted)
    is_retry_mode: bool = False
    retry_questions: list[Question] = Field(default_factory=list)
    retry_answers: list[AnswerRecord] = Field(default_factory=list)
    retry_index: int = 0
    original_last_result: PracticeResult | None = None

    poller: PollerState = Field(default_factory=PollerState)
    warning: TransientWarning | None = None
    error: str | None = None

    def section(self, question_type: QuestionType) -> SectionState:
        return self.sections.get(question_type) or SectionState()


# ============================================================================
# Session lifecycle
# ============================================================================


def reset_session(state: PracticeState) -> PracticeState:
    return PracticeState()


def start_generating(
    state: PracticeState, words: list[str], difficulty: Difficulty
) -> PracticeState:
    return PracticeState(words=list(words), difficulty=difficulty, phase=Phase.GENERATING)


def apply_generation_session(
    state: PracticeState, session: GenerationSession
) -> PracticeState:
    """Replace all sections with the ones of `session` (last applied wins)."""
    update: dict = {
        "session_id": session.session_id,
        "per_type": session.per_type,
        "generation_metadata": session.metadata,
        "sections": {qtype: session.section(qtype) for qtype in SECTION_ORDER},
        "difficulty": session.metadata.difficulty,
        "words": session.metadata.words or state.words,
        "error": None,
    }
    if session.session_id != state.session_id:
        update.update(
            answers=[],
            current_question_index=0,
            pending_advance=False,
            finalizing=False,
            finalize_error=None,
            poller=PollerState(session_id=session.session_id),
        )
    if state.phase in (Phase.IDLE, Phase.GENERATING):
        update["phase"] = Phase.IN_PROGRESS
    return state.model_copy(update=update)


def initialize_history_session(state: PracticeState, history_id: str) -> PracticeState:
    return state.model_copy(update={"history_session_id": history_id})


def resume_session(state: PracticeState, snapshot: SessionSnapshot) -> PracticeState:
    """Load a stored snapshot as the active practice.

    Sections with questions become ready; empty ones are marked as errors.
    Applying the same snapshot twice yields the same state.
    """
    question_set = snapshot.question_set
    sections = {}
    for qtype in SECTION_ORDER:
        questions = question_set.section(qtype)
        if questions:
            sections[qtype] = SectionState(status=SectionStatus.READY, questions=questions)
        else:
            sections[qtype] = SectionState(
                status=SectionStatus.ERROR, error=QUESTION_DATA_MISSING
            )

    metadata = question_set.metadata
    completed = snapshot.status == SessionStatus.COMPLETED
    last_result = (
        PracticeResult(score=snapshot.score, analysis=snapshot.analysis, snapshot=snapshot)
        if completed
        else None
    )

    return PracticeState(
        words=snapshot.words,
        difficulty=snapshot.difficulty,
        vocab_details=snapshot.vocab_details,
        generation_metadata=GenerationMetadata(
            total_questions=metadata.total_questions,
            words=metadata.words,
            difficulty=metadata.difficulty,
            generated_at=metadata.generated_at,
            estimated_total_questions=metadata.total_questions,
        ),
        sections=sections,
        phase=Phase.REPORT if completed else Phase.IN_PROGRESS,
        answers=snapshot.answers,
        current_question_index=snapshot.current_question_index,
        last_result=last_result,
        history_session_id=snapshot.id,
        is_resumed_session=True,
        poller=state.poller,
    )


# ============================================================================
# Main progression
# ============================================================================


def record_answer(state: PracticeState, answer: AnswerRecord) -> PracticeState:
    return state.model_copy(update={"answers": [*state.answers, answer], "error": None})


def advance_question(state: PracticeState) -> PracticeState:
    return state.model_copy(
        update={"current_question_index": state.current_question_index + 1}
    )


def begin_pending_advance(state: PracticeState) -> PracticeState:
    return state.model_copy(update={"pending_advance": True})


def end_pending_advance(state: PracticeState) -> PracticeState:
    """Leave the waiting state and move to the next question."""
    return state.model_copy(
        update={
            "pending_advance": False,
            "current_question_index": state.current_question_index + 1,
        }
    )


def begin_finalizing(state: PracticeState) -> PracticeState:
    return state.model_copy(
        update={"finalizing": True, "finalize_error": None, "pending_advance": False}
    )


def finalize_failed(state: PracticeState, message: str) -> PracticeState:
    return state.model_copy(update={"finalizing": False, "finalize_error": message})


def set_last_result(state: PracticeState, result: PracticeResult) -> PracticeState:
    return state.model_copy(
        update={
            "last_result": result,
            "finalizing": False,
            "finalize_error": None,
            "current_question_index": len(state.answers),
            "phase": Phase.REPORT,
        }
    )


# ============================================================================
# Retry sub-session
# ============================================================================


def start_retry(state: PracticeState, questions: list[Question]) -> PracticeState:
    """Enter (or restart) a retry round over `questions`.

    The result the learner first retried from is kept across nested rounds.
    """
    return state.model_copy(
        update={
            "is_retry_mode": True,
            "retry_questions": list(questions),
            "retry_answers": [],
            "retry_index": 0,
            "original_last_result": state.original_last_result or state.last_result,
            "finalizing": False,
            "finalize_error": None,
            "phase": Phase.IN_PROGRESS,
        }
    )


def record_retry_answer(state: PracticeState, answer: AnswerRecord) -> PracticeState:
    return state.model_copy(
        update={"retry_answers": [*state.retry_answers, answer], "error": None}
    )


def advance_retry(state: PracticeState) -> PracticeState:
    return state.model_copy(update={"retry_index": state.retry_index + 1})


def set_retry_result(state: PracticeState, result: PracticeResult) -> PracticeState:
    return state.model_copy(
        update={
            "last_result": result,
            "finalizing": False,
            "finalize_error": None,
            "phase": Phase.REPORT,
        }
    )


def exit_retry(state: PracticeState) -> PracticeState:
    """Leave retry mode and restore the result it started from."""
    return state.model_copy(
        update={
            "is_retry_mode": False,
            "retry_questions": [],
            "retry_answers": [],
            "retry_index": 0,
            "last_result": state.original_last_result or state.last_result,
            "original_last_result": None,
            "finalizing": False,
            "finalize_error": None,
            "phase": Phase.REPORT,
        }
    )


# ============================================================================
# Poller, warnings and errors
# ============================================================================


def poll_started(state: PracticeState, session_id: str) -> PracticeState:
    if state.poller.session_id != session_id:
        poller = PollerState(session_id=session_id, status=PollerStatus.POLLING)
    else:
        poller = state.poller.model_copy(update={"status": PollerStatus.POLLING})
    return state.model_copy(update={"poller": poller})


def poll_succeeded(state: PracticeState) -> PracticeState:
    return state.model_copy(update={"poller": state.poller.model_copy(update={"error": None})})


def poll_failed(state: PracticeState, message: str) -> PracticeState:
    return state.model_copy(
        update={"poller": state.poller.model_copy(update={"error": message})}
    )


def fallback_started(state: PracticeState) -> PracticeState:
    poller = state.poller.model_copy(
        update={"status": PollerStatus.FALLBACK_ATTEMPTED, "fallback_attempted": True}
    )
    return state.model_copy(update={"poller": poller})


def poller_stopped(state: PracticeState, error: str | None = None) -> PracticeState:
    poller = state.poller.model_copy(update={"status": PollerStatus.STOPPED, "error": error})
    update: dict = {"poller": poller}
    if error:
        update["error"] = error
    return state.model_copy(update=update)


def show_warning(state: PracticeState, warning: TransientWarning) -> PracticeState:
    return state.model_copy(update={"warning": warning})


def clear_warning(state: PracticeState, warning_id: str) -> PracticeState:
    """Clear the warning only if it is still the one being shown."""
    if state.warning is None or state.warning.id != warning_id:
        return state
    return state.model_copy(update={"warning": None})


def set_error(state: PracticeState, message: str | None) -> PracticeState:
    return state.model_copy(update={"error": message})
