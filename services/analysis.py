"""Analysis service: turns a finished practice into a report."""

import logging
from abc import ABC, abstractmethod

from models import AnalysisSummary, AnswerRecord, Difficulty, QuestionSet
from services.http import ApiClient

logger = logging.getLogger(__name__)


class AnalysisService(ABC):
    @abstractmethod
    def analyze(
        self,
        difficulty: Difficulty,
        words: list[str],
        answers: list[AnswerRecord],
        question_set: QuestionSet,
        score: int,
    ) -> AnalysisSummary:
        """Build the report and recommendations for a completed practice."""
        pass


class HttpAnalysisService(AnalysisService):
    def __init__(self, client: ApiClient):
        self.client = client

    def analyze(self, difficulty, words, answers, question_set, score):
        logger.info("Requesting analysis for %d answers (score %d)", len(answers), score)
        data = self.client.post(
            "/analysis/report",
            json={
                "difficulty": difficulty.value,
                "words": words,
                "answers": [a.to_payload() for a in answers],
                "superJson": question_set.to_payload(),
                "score": score,
            },
        )
        return AnalysisSummary.model_validate(data or {})
