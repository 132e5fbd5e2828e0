"""Terminal interface for vocabulary quiz practice."""

from ui.app import QuizUI
from ui.components import (
    FeedbackPanel,
    QuestionPanel,
    ReportPanel,
    SectionProgress,
    SessionsTable,
    WaitingPanel,
    WrongAnswerTable,
)

__all__ = [
    "QuizUI",
    "FeedbackPanel",
    "QuestionPanel",
    "ReportPanel",
    "SectionProgress",
    "SessionsTable",
    "WaitingPanel",
    "WrongAnswerTable",
]
