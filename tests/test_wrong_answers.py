"""Tests for wrong-answer extraction and the retry report."""

from exercises.wrong_answers import (
    RETRY_ALL_CORRECT_REPORT,
    build_retry_report,
    extract_wrong_answers,
    incorrect_words,
    retry_questions,
)
from models import AnswerRecord, QuestionType

from fakes import choice_question, cloze_question


def _questions():
    return [
        choice_question("q1", "apple"),
        choice_question("q2", "pear", QuestionType.CHOICE_EN_TO_ZH),
        cloze_question("q3", "plum", "plum"),
    ]


class TestExtractWrongAnswers:
    def test_pairs_wrong_answers_with_their_questions(self):
        answers = [
            AnswerRecord(question_id="q1", choice_id="a", correct=True),
            AnswerRecord(question_id="q2", choice_id="c", correct=False),
            AnswerRecord(question_id="q3", user_input="plums", correct=False),
        ]

        items = extract_wrong_answers(answers, _questions())

        assert [item.question.id for item in items] == ["q2", "q3"]
        assert items[0].user_answer == "banana"
        assert items[0].correct_answer == "pear"
        assert items[1].user_answer == "plums"
        assert items[1].correct_answer == "plum"

    def test_skips_unknown_questions(self):
        answers = [AnswerRecord(question_id="missing", choice_id="b", correct=False)]
        assert extract_wrong_answers(answers, _questions()) == []

    def test_retry_questions_keep_answer_order(self):
        answers = [
            AnswerRecord(question_id="q3", user_input="x", correct=False),
            AnswerRecord(question_id="q1", choice_id="b", correct=False),
        ]
        items = extract_wrong_answers(answers, _questions())

        assert [q.id for q in retry_questions(items)] == ["q3", "q1"]

    def test_incorrect_words_are_distinct(self):
        questions = [choice_question("q1", "apple"), cloze_question("q2", "apple", "apple")]
        answers = [
            AnswerRecord(question_id="q1", choice_id="b", correct=False),
            AnswerRecord(question_id="q2", user_input="x", correct=False),
        ]
        assert incorrect_words(extract_wrong_answers(answers, questions)) == ["apple"]


class TestBuildRetryReport:
    def test_all_correct_gives_congratulations(self):
        questions = _questions()[:1]
        answers = [AnswerRecord(question_id="q1", choice_id="a", correct=True)]

        report = build_retry_report(questions, answers)

        assert report.report == RETRY_ALL_CORRECT_REPORT
        assert report.recommendations == []

    def test_names_words_still_wrong(self):
        questions = _questions()
        answers = [
            AnswerRecord(question_id="q1", choice_id="b", correct=False),
            AnswerRecord(question_id="q2", choice_id="a", correct=True),
            AnswerRecord(question_id="q3", user_input="x", correct=False),
        ]

        report = build_retry_report(questions, answers)

        assert report.report == "Still incorrect: apple, plum"
        assert len(report.recommendations) == 2
