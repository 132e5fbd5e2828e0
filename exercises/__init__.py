"""Pure answer-checking and question-rendering helpers.

- answer_match: free-text normalization, matching and first-letter hints
- sentence_mask: blanks the target phrase (in any inflected form) in a
  cloze sentence
- wrong_answers: wrong-answer extraction and the local retry report
- base: option-letter parsing for choice questions
"""

from exercises.answer_match import (
    first_letter_hint,
    hint_for,
    match_answer,
    normalize_answer,
)
from exercises.base import parse_letter_input, resolve_choice_id
from exercises.sentence_mask import (
    SentenceMaskResult,
    build_answer_variants,
    build_sentence_parts,
    render_masked,
)
from exercises.wrong_answers import (
    WrongAnswerItem,
    build_retry_report,
    extract_wrong_answers,
    incorrect_words,
    retry_questions,
)

__all__ = [
    "first_letter_hint",
    "hint_for",
    "match_answer",
    "normalize_answer",
    "parse_letter_input",
    "resolve_choice_id",
    "SentenceMaskResult",
    "build_answer_variants",
    "build_sentence_parts",
    "render_masked",
    "WrongAnswerItem",
    "build_retry_report",
    "extract_wrong_answers",
    "incorrect_words",
    "retry_questions",
]
