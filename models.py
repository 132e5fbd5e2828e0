from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with a trailing Z."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ApiModel(BaseModel):
    """Base for records exchanged as JSON (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        """Dump to a JSON-ready dict using wire aliases."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class QuestionType(str, Enum):
    CHOICE_ZH_TO_EN = "questions_type_1"
    CHOICE_EN_TO_ZH = "questions_type_2"
    CLOZE_FILL = "questions_type_3"

    @property
    def is_choice(self) -> bool:
        return self is not QuestionType.CLOZE_FILL


SECTION_ORDER: list[QuestionType] = [
    QuestionType.CHOICE_ZH_TO_EN,
    QuestionType.CHOICE_EN_TO_ZH,
    QuestionType.CLOZE_FILL,
]

SECTION_LABELS: dict[QuestionType, str] = {
    QuestionType.CHOICE_ZH_TO_EN: "Section 1 · Chinese to English",
    QuestionType.CHOICE_EN_TO_ZH: "Section 2 · English to Chinese",
    QuestionType.CLOZE_FILL: "Section 3 · Sentence cloze",
}


# ============================================================================
# Questions
# ============================================================================


class Choice(ApiModel):
    id: str
    text: str


class Question(ApiModel):
    id: str
    word: str
    prompt: str
    type: QuestionType
    choices: list[Choice] | None = None
    correct_choice_id: str | None = None
    correct_answer: str | None = None
    explanation: str = ""
    sentence: str | None = None
    translation: str | None = None
    hint: str | None = None

    def choice_text(self, choice_id: str | None) -> str:
        """Return the text of a choice, or an empty string if unknown."""
        for choice in self.choices or []:
            if choice.id == choice_id:
                return choice.text
        return ""


class QuestionSetMetadata(ApiModel):
    total_questions: int
    words: list[str] = Field(default_factory=list)
    difficulty: Difficulty
    generated_at: str = Field(default_factory=utc_now_iso)


class QuestionSet(ApiModel):
    """The fully materialized three-section question set."""

    metadata: QuestionSetMetadata
    questions_type_1: list[Question] = Field(default_factory=list, alias="questions_type_1")
    questions_type_2: list[Question] = Field(default_factory=list, alias="questions_type_2")
    questions_type_3: list[Question] = Field(default_factory=list, alias="questions_type_3")

    def section(self, question_type: QuestionType) -> list[Question]:
        return getattr(self, question_type.value)

    def all_questions(self) -> list[Question]:
        """All questions in section order, unfiltered."""
        return [q for qtype in SECTION_ORDER for q in self.section(qtype)]

    def find(self, question_id: str) -> Question | None:
        for question in self.all_questions():
            if question.id == question_id:
                return question
        return None


# ============================================================================
# Generation sessions
# ============================================================================


class SectionStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    READY = "ready"
    ERROR = "error"


class SectionState(ApiModel):
    status: SectionStatus = SectionStatus.PENDING
    questions: list[Question] = Field(default_factory=list)
    error: str | None = None
    updated_at: int | None = None  # epoch millis


class GenerationMetadata(QuestionSetMetadata):
    estimated_total_questions: int = 0


class GenerationSession(ApiModel):
    session_id: str
    metadata: GenerationMetadata
    per_type: int = 0
    sections: dict[QuestionType, SectionState]

    def section(self, question_type: QuestionType) -> SectionState:
        return self.sections.get(question_type) or SectionState()

    def to_question_set(self) -> QuestionSet:
        return QuestionSet(
            metadata=QuestionSetMetadata(
                total_questions=self.metadata.total_questions,
                words=self.metadata.words,
                difficulty=self.metadata.difficulty,
                generated_at=self.metadata.generated_at,
            ),
            questions_type_1=self.section(QuestionType.CHOICE_ZH_TO_EN).questions,
            questions_type_2=self.section(QuestionType.CHOICE_EN_TO_ZH).questions,
            questions_type_3=self.section(QuestionType.CLOZE_FILL).questions,
        )


# ============================================================================
# Answers and session snapshots
# ============================================================================


class AnswerRecord(ApiModel):
    """One submitted answer. `correct` is fixed when the record is built."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    question_id: str
    choice_id: str | None = None
    user_input: str | None = None
    correct: bool
    elapsed_ms: int = 0


class AnalysisSummary(ApiModel):
    report: str = ""
    recommendations: list[str] = Field(default_factory=list)


class SessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class StoreMode(str, Enum):
    GUEST = "guest"
    AUTHENTICATED = "authenticated"


class VocabularyExample(ApiModel):
    en: str
    zh: str


class VocabularyDetail(ApiModel):
    word: str
    parts_of_speech: list[str] = Field(default_factory=list)
    definitions: list[str] = Field(default_factory=list)
    examples: list[VocabularyExample] = Field(default_factory=list)


class SessionSnapshot(ApiModel):
    """The durable, resumable unit of practice progress."""

    id: str
    mode: StoreMode = StoreMode.GUEST
    user_id: str | None = None
    difficulty: Difficulty
    words: list[str] = Field(default_factory=list)
    score: int = 0
    analysis: AnalysisSummary = Field(default_factory=AnalysisSummary)
    question_set: QuestionSet = Field(alias="superJson")
    answers: list[AnswerRecord] = Field(default_factory=list)
    status: SessionStatus = SessionStatus.IN_PROGRESS
    current_question_index: int = 0
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)
    has_vocab_details: bool = False
    vocab_details: list[VocabularyDetail] | None = None

    @property
    def total_questions(self) -> int:
        return self.question_set.metadata.total_questions

    def summary(self) -> "InProgressSessionSummary":
        return InProgressSessionSummary(
            id=self.id,
            difficulty=self.difficulty,
            word_count=len(self.words),
            answered_count=len(self.answers),
            total_questions=self.total_questions,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class InProgressSessionSummary(ApiModel):
    id: str
    difficulty: Difficulty
    word_count: int
    answered_count: int
    total_questions: int
    created_at: str
    updated_at: str


class CreatedSession(ApiModel):
    id: str
    created_at: str


def compute_score(answers: list[AnswerRecord], total: int) -> int:
    """Percentage of correct answers over `total`, rounded half up."""
    if total <= 0:
        return 0
    correct = sum(1 for a in answers if a.correct)
    return int(100 * correct / total + 0.5)
