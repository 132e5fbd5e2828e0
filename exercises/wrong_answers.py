"""Wrong-answer extraction and the local report for retry rounds."""

from pydantic import BaseModel

from models import AnalysisSummary, AnswerRecord, Question, QuestionType

RETRY_ALL_CORRECT_REPORT = "Congratulations! Every question you missed is now mastered."


class WrongAnswerItem(BaseModel):
    question: Question
    user_answer: str
    correct_answer: str


def extract_wrong_answers(
    answers: list[AnswerRecord],
    questions: list[Question],
) -> list[WrongAnswerItem]:
    """Pair every incorrect answer with its question.

    Answers whose question is not in `questions` are skipped.

    Args:
        answers: Answer records in submission order.
        questions: The questions the answers refer to.

    Returns:
        One item per incorrect answer, in answer order.
    """
    by_id = {q.id: q for q in questions}
    items: list[WrongAnswerItem] = []

    for answer in answers:
        if answer.correct:
            continue
        question = by_id.get(answer.question_id)
        if question is None:
            continue

        if question.type == QuestionType.CLOZE_FILL:
            user_answer = answer.user_input or ""
            correct_answer = question.correct_answer or ""
        else:
            user_answer = question.choice_text(answer.choice_id)
            correct_answer = question.choice_text(question.correct_choice_id)

        items.append(
            WrongAnswerItem(
                question=question,
                user_answer=user_answer,
                correct_answer=correct_answer,
            )
        )

    return items


def retry_questions(items: list[WrongAnswerItem]) -> list[Question]:
    """Questions to practice again, in the order they were answered."""
    return [item.question for item in items]


def incorrect_words(items: list[WrongAnswerItem]) -> list[str]:
    """Distinct lexemes of the wrong answers, first occurrence first."""
    return list(dict.fromkeys(item.question.word for item in items))


def build_retry_report(
    questions: list[Question],
    answers: list[AnswerRecord],
) -> AnalysisSummary:
    """Summarize a retry round without calling the analysis service."""
    wrong = extract_wrong_answers(answers, questions)
    if not wrong:
        return AnalysisSummary(report=RETRY_ALL_CORRECT_REPORT, recommendations=[])

    words = incorrect_words(wrong)
    return AnalysisSummary(
        report=f"Still incorrect: {', '.join(words)}",
        recommendations=[
            f"Review '{item.question.word}': the answer is {item.correct_answer}"
            for item in wrong
        ],
    )
