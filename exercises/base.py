"""Shared helpers for reading answers typed at the terminal."""

from models import Question

OPTION_LABELS = "ABCDEF"


def parse_letter_input(user_input: str, max_options: int = 4) -> int | None:
    """Turn an option label ("b") or position ("2") into a 0-based index.

    Returns:
        The index, or None if the input names no option among `max_options`.
    """
    user_input = user_input.strip().upper()

    if len(user_input) == 1 and user_input in OPTION_LABELS:
        index = OPTION_LABELS.index(user_input)
    elif user_input.isdigit():
        index = int(user_input) - 1
    else:
        return None

    if index < 0 or index >= max_options:
        return None

    return index


def option_label(index: int) -> str:
    return OPTION_LABELS[index] if index < len(OPTION_LABELS) else str(index + 1)


def resolve_choice_id(question: Question, user_input: str) -> str | None:
    """Map a typed option label to the id of that choice."""
    choices = question.choices or []
    index = parse_letter_input(user_input, max_options=len(choices))
    if index is None:
        return None
    return choices[index].id
