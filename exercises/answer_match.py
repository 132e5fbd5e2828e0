"""Free-text answer comparison for cloze questions.

Matching rules:
- case-insensitive
- fullwidth ASCII characters (and the fullwidth space) count as halfwidth
- runs of whitespace collapse to a single space, ends are trimmed
- hyphens are optional, but apostrophes must match exactly
"""

import re

from models import Difficulty

HINT_MASK = "_____"

_FULLWIDTH_START = 0xFF01
_FULLWIDTH_END = 0xFF5E
_FULLWIDTH_OFFSET = 0xFEE0
_FULLWIDTH_SPACE = "　"

_WHITESPACE_RE = re.compile(r"\s+")


def to_halfwidth(text: str) -> str:
    """Fold fullwidth ASCII-range characters to their halfwidth forms."""
    chars = []
    for ch in text:
        code = ord(ch)
        if _FULLWIDTH_START <= code <= _FULLWIDTH_END:
            chars.append(chr(code - _FULLWIDTH_OFFSET))
        elif ch == _FULLWIDTH_SPACE:
            chars.append(" ")
        else:
            chars.append(ch)
    return "".join(chars)


def normalize_answer(text: str, fold_hyphen: bool = True) -> str:
    """Normalize an answer string for comparison.

    Args:
        text: Raw answer text.
        fold_hyphen: Strip every hyphen when True.

    Returns:
        The normalized string.
    """
    normalized = to_halfwidth(text).lower()
    normalized = _WHITESPACE_RE.sub(" ", normalized).strip()
    if fold_hyphen:
        normalized = normalized.replace("-", "")
    return normalized


def match_answer(user_input: str, expected: str) -> bool:
    """Check a typed answer against the expected one.

    The answers match if they are equal with hyphens stripped from both, or
    equal with hyphens kept in both.
    """
    if normalize_answer(user_input) == normalize_answer(expected):
        return True
    return normalize_answer(user_input, fold_hyphen=False) == normalize_answer(
        expected, fold_hyphen=False
    )


def first_letter_hint(answer: str) -> str:
    """Build a hint such as "m_____" from the first letter of the answer."""
    trimmed = answer.strip()
    if not trimmed:
        return HINT_MASK
    return f"{trimmed[0].lower()}{HINT_MASK}"


def hint_for(answer: str | None, difficulty: Difficulty | None) -> str | None:
    """Return the first-letter hint, or None where hints are not allowed."""
    if difficulty == Difficulty.ADVANCED or answer is None:
        return None
    return first_letter_hint(answer)
