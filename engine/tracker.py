"""Per-section generation tracking: readiness, the question queue, and labels."""

import asyncio
import logging

from pydantic import BaseModel

from .state import apply_generation_session, set_error
from .store import PracticeStore
from errors import QuizError
from models import (
    SECTION_LABELS,
    SECTION_ORDER,
    GenerationSession,
    Question,
    QuestionSet,
    QuestionSetMetadata,
    QuestionType,
    SectionState,
    SectionStatus,
)
from services.generation import GenerationService

logger = logging.getLogger(__name__)

# Section 1 is generated synchronously when the session is created.
RETRYABLE_SECTIONS = (QuestionType.CHOICE_EN_TO_ZH, QuestionType.CLOZE_FILL)


def all_sections_ready(sections: dict[QuestionType, SectionState]) -> bool:
    return all(
        qtype in sections and sections[qtype].status == SectionStatus.READY
        for qtype in SECTION_ORDER
    )


def build_queue(sections: dict[QuestionType, SectionState]) -> list[Question]:
    """Questions of ready sections in answering order.

    Cloze questions need a correct answer.
    """
    queue: list[Question] = []
    for qtype in SECTION_ORDER:
        section = sections.get(qtype)
        if section is None or section.status != SectionStatus.READY:
            continue
        for question in section.questions:
            if qtype == QuestionType.CLOZE_FILL and not question.correct_answer:
                continue
            queue.append(question)
    return queue


class SectionView(BaseModel):
    type: QuestionType
    label: str
    status: SectionStatus
    error: str | None = None
    count: int = 0
    can_retry: bool = False


class SectionGenerationTracker:
    """Reads and feeds the section part of the practice state."""

    def __init__(self, store: PracticeStore):
        self.store = store

    def apply(self, session: GenerationSession) -> None:
        self.store.dispatch(apply_generation_session, session)

    @property
    def sections(self) -> dict[QuestionType, SectionState]:
        return self.store.state.sections

    @property
    def queue(self) -> list[Question]:
        return build_queue(self.sections)

    @property
    def all_ready(self) -> bool:
        return all_sections_ready(self.sections)

    @property
    def settled(self) -> bool:
        """True when no further questions can arrive.

        That is the case once every section is ready, or when there is no
        generation session at all (a practice resumed from history).
        """
        return self.all_ready or self.store.state.session_id is None

    @property
    def progress_target(self) -> int:
        """Denominator for "question i of N" displays."""
        metadata = self.store.state.generation_metadata
        estimated = metadata.estimated_total_questions if metadata else 0
        total = metadata.total_questions if metadata else 0
        return max(estimated or total or len(self.queue), 1)

    def question_set(self) -> QuestionSet | None:
        """The question set as it stands, for persisting.

        Until every section is ready the total is the largest of the
        estimate and the questions received so far.
        """
        state = self.store.state
        metadata = state.generation_metadata
        if metadata is None:
            return None

        if self.all_ready:
            total = len(self.queue)
        else:
            received = sum(len(self.sections[t].questions) for t in SECTION_ORDER)
            total = max(
                received, metadata.estimated_total_questions, metadata.total_questions
            )

        return QuestionSet(
            metadata=QuestionSetMetadata(
                total_questions=total,
                words=metadata.words or state.words,
                difficulty=metadata.difficulty,
                generated_at=metadata.generated_at,
            ),
            questions_type_1=self.sections[QuestionType.CHOICE_ZH_TO_EN].questions,
            questions_type_2=self.sections[QuestionType.CHOICE_EN_TO_ZH].questions,
            questions_type_3=self.sections[QuestionType.CLOZE_FILL].questions,
        )

    def waiting_section(self, index: int) -> QuestionType | None:
        """The section the learner is waiting on after question `index`."""
        queue = self.queue
        start = 0
        if queue:
            current = queue[min(index, len(queue) - 1)]
            start = SECTION_ORDER.index(current.type) if current.type in SECTION_ORDER else 0
        for qtype in SECTION_ORDER[start:]:
            if self.sections[qtype].status != SectionStatus.READY:
                return qtype
        return None

    def section_views(self) -> list[SectionView]:
        views = []
        for qtype in SECTION_ORDER:
            section = self.sections[qtype]
            views.append(
                SectionView(
                    type=qtype,
                    label=SECTION_LABELS[qtype],
                    status=section.status,
                    error=section.error,
                    count=len(section.questions),
                    can_retry=(
                        qtype in RETRYABLE_SECTIONS
                        and section.status == SectionStatus.ERROR
                        and self.store.state.session_id is not None
                    ),
                )
            )
        return views

    async def retry_section(
        self, service: GenerationService, question_type: QuestionType
    ) -> bool:
        """Ask the generation service to regenerate one failed section.

        Returns:
            True if the updated session was applied.

        Raises:
            ValueError: If the section can't be retried.
        """
        if question_type not in RETRYABLE_SECTIONS:
            raise ValueError(f"{question_type.value} can't be retried")
        session_id = self.store.state.session_id
        if session_id is None:
            raise ValueError("No generation session to retry")

        try:
            session = await asyncio.to_thread(
                service.retry_section, session_id, question_type
            )
        except QuizError as e:
            logger.warning("Retrying %s failed: %s", question_type.value, e)
            self.store.dispatch(set_error, e.message)
            return False

        if self.store.state.session_id != session_id:
            logger.debug("Discarding retry response for stale session %s", session_id)
            return False
        self.apply(session)
        return True
