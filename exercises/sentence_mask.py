"""Cloze sentence masking.

Finds the target phrase of a cloze question inside its example sentence and
splits the sentence into literal text and blanks. The phrase is matched in
several surface forms: inflections of its first word, concrete pronouns in
place of placeholders such as "someone", and passive constructions.
"""

import re
from typing import Literal

from pydantic import BaseModel

# Irregular verbs whose surface forms can't be derived with suffix rules.
INFLECTION_MAP: dict[str, list[str]] = {
    "be": ["be", "am", "is", "are", "was", "were", "been", "being"],
    "have": ["have", "has", "had", "having"],
    "do": ["do", "does", "did", "doing", "done"],
}

IRREGULAR_VERBS: dict[str, list[str]] = {
    "hold": ["hold", "holds", "held", "holding"],
    "make": ["make", "makes", "made", "making"],
    "take": ["take", "takes", "took", "taking", "taken"],
    "bring": ["bring", "brings", "brought", "bringing"],
    "get": ["get", "gets", "got", "getting", "gotten"],
}

PAST_PARTICIPLES: dict[str, list[str]] = {
    "be": ["been"],
    "have": ["had"],
    "do": ["done"],
    "hold": ["held"],
    "make": ["made"],
    "take": ["taken"],
    "bring": ["brought"],
    "get": ["got", "gotten"],
}

OBJECT_PRONOUNS = ["him", "her", "them", "us", "me", "you"]
SUBJECT_PRONOUNS = ["he", "she", "they", "we", "i", "you"]
POSSESSIVE_PRONOUNS = ["his", "her", "their", "my", "your", "our"]

_PLACEHOLDER_RE = re.compile(r"^(sb|someone|somebody)(?:'s|’s)?\.?$", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    value: str


class BlankPart(BaseModel):
    type: Literal["blank"] = "blank"
    length: int


SentencePart = TextPart | BlankPart


class SentenceMaskResult(BaseModel):
    parts: list[SentencePart]
    matched_variant: str


def build_regular_word_forms(word: str) -> list[str]:
    """Guess inflected forms of a word with plain suffix rules."""
    lower = word.lower()
    forms = [word, lower]

    if len(lower) > 2:
        forms += [f"{lower}s", f"{lower}es", f"{lower}ed", f"{lower}ing"]
        if lower.endswith("y"):
            forms.append(f"{lower[:-1]}ies")
        if lower.endswith("e"):
            forms += [f"{lower[:-1]}ing", f"{lower}d"]

    return list(dict.fromkeys(forms))


def word_forms(word: str) -> list[str]:
    """All surface forms known for a word, irregular tables first."""
    lower = word.lower()
    if lower in INFLECTION_MAP:
        return INFLECTION_MAP[lower]
    if lower in IRREGULAR_VERBS:
        return IRREGULAR_VERBS[lower]
    return build_regular_word_forms(word)


def past_participles(verb: str) -> list[str]:
    lower = verb.lower()
    if lower in PAST_PARTICIPLES:
        return PAST_PARTICIPLES[lower]
    if lower.endswith("e"):
        return [f"{lower}d"]
    return [f"{lower}ed"]


def _join(words: list[str]) -> str:
    return " ".join(w for w in words if w).strip()


def build_answer_variants(phrase: str) -> list[str]:
    """Build every surface variant of a phrase worth searching for.

    Args:
        phrase: The target phrase, e.g. "hold someone accountable".

    Returns:
        Distinct variants in insertion order (literal phrase first).
    """
    normalized = _WHITESPACE_RE.sub(" ", phrase.strip())
    if not normalized:
        return []

    words = normalized.split(" ")
    first_word, tail = words[0], words[1:]
    variants = [normalized]

    for form in word_forms(first_word):
        variants.append(_join([form, *tail]))

    placeholder_index = next(
        (i for i, w in enumerate(words) if _PLACEHOLDER_RE.match(w)), -1
    )
    if placeholder_index >= 0:
        prefix = words[:placeholder_index]
        after = words[placeholder_index + 1 :]
        prefix_first = prefix[0] if prefix else ""
        prefix_rest = prefix[1:]
        prefix_forms = word_forms(prefix_first) if prefix_first else [""]

        # hold him accountable
        for form in prefix_forms:
            for pronoun in OBJECT_PRONOUNS:
                variants.append(_join([form, *prefix_rest, pronoun, *after]))

        # he holds ... accountable
        for form in prefix_forms:
            for pronoun in SUBJECT_PRONOUNS:
                variants.append(_join([pronoun, form, *prefix_rest, *after]))

        # sb's -> his/her/their
        for pronoun in POSSESSIVE_PRONOUNS:
            variants.append(_join([*prefix, pronoun, *after]))

        # was held accountable
        if prefix_first:
            for participle in past_participles(prefix_first):
                for be in INFLECTION_MAP["be"]:
                    variants.append(_join([be, participle, *prefix_rest, *after]))
                variants.append(_join([participle, *prefix_rest, *after]))

    return [v for v in dict.fromkeys(variants) if v]


def _to_pattern(variant: str) -> str:
    return r"\s+".join(re.escape(segment) for segment in variant.split(" "))


def build_sentence_parts(sentence: str, phrase: str) -> SentenceMaskResult | None:
    """Split a sentence into text and blanks around the target phrase.

    Longer patterns are tried first, so an inflected multi-word match wins
    over a shorter overlapping one. Every occurrence is blanked.

    Args:
        sentence: The example sentence.
        phrase: The phrase to hide.

    Returns:
        The parts and the first matched substring, or None if either input
        is empty or no variant occurs in the sentence.
    """
    if not sentence or not phrase or not phrase.strip():
        return None

    variants = build_answer_variants(phrase)
    if not variants:
        return None

    patterns = sorted((_to_pattern(v) for v in variants), key=len, reverse=True)
    regex = re.compile("(" + "|".join(patterns) + ")", re.IGNORECASE)

    parts: list[SentencePart] = []
    cursor = 0
    matched_variant: str | None = None

    for match in regex.finditer(sentence):
        if match.start() > cursor:
            parts.append(TextPart(value=sentence[cursor : match.start()]))
        text = match.group(0)
        if matched_variant is None:
            matched_variant = text
        blank_length = len(_WHITESPACE_RE.sub("", text)) or len(text)
        parts.append(BlankPart(length=max(blank_length, 1)))
        cursor = match.end()

    if matched_variant is None:
        return None

    if cursor < len(sentence):
        parts.append(TextPart(value=sentence[cursor:]))

    return SentenceMaskResult(parts=parts, matched_variant=matched_variant)


def render_masked(result: SentenceMaskResult, blank_char: str = "_") -> str:
    """Render mask parts back to a display string."""
    return "".join(
        part.value if isinstance(part, TextPart) else blank_char * part.length
        for part in result.parts
    )
