from rich.console import Console
from rich.style import Style
from rich.text import Text
from rich.theme import Theme

from models import SectionStatus

ACCENT_RED = "#D9534F"
ACCENT_GOLD = "#F0AD4E"
SUCCESS_GREEN = "#5CB85C"
ERROR_RED = "#C9302C"
INFO_BLUE = "#5BC0DE"
MUTED_GRAY = "#8A8F98"
TEXT_WHITE = "#F8F9FA"

# Status colors used for section progress and the report score.
SECTION_STYLES = {
    SectionStatus.READY: Style(color=SUCCESS_GREEN, bold=True),
    SectionStatus.GENERATING: Style(color=ACCENT_GOLD),
    SectionStatus.PENDING: Style(color=MUTED_GRAY),
    SectionStatus.ERROR: Style(color=ERROR_RED, bold=True),
}

DEFAULT_THEME = Theme(
    {
        "error": Style(color=ERROR_RED, bold=True),
        "warning": Style(color=ACCENT_GOLD),
        "muted": Style(color=MUTED_GRAY),
        "blank": Style(color=ACCENT_GOLD, bold=True),
    }
)

CONSOLE = Console(theme=DEFAULT_THEME)


def get_section_style(status: SectionStatus) -> Style:
    return SECTION_STYLES.get(status, Style())


def get_score_style(score: int) -> Style:
    """Green from 80%, gold from 50%, red below."""
    if score >= 80:
        return SECTION_STYLES[SectionStatus.READY]
    elif score >= 50:
        return SECTION_STYLES[SectionStatus.GENERATING]
    else:
        return SECTION_STYLES[SectionStatus.ERROR]


def create_feedback_header(is_correct: bool) -> Text:
    """Header line of the feedback shown after each answer."""
    color = SUCCESS_GREEN if is_correct else ERROR_RED
    header = Text(style=Style(color=color, bold=True))
    header.append("✓ Correct!" if is_correct else "✗ Not quite!")
    return header
