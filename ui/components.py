from rich import box
from rich.align import Align
from rich.columns import Columns
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text

from engine.state import PracticeResult
from engine.tracker import SectionView
from exercises.answer_match import hint_for
from exercises.base import option_label
from exercises.sentence_mask import BlankPart, build_sentence_parts, render_masked
from exercises.wrong_answers import WrongAnswerItem
from models import SECTION_LABELS, Difficulty, InProgressSessionSummary, Question
from ui.styles import (
    ACCENT_GOLD,
    ACCENT_RED,
    ERROR_RED,
    INFO_BLUE,
    MUTED_GRAY,
    SUCCESS_GREEN,
    TEXT_WHITE,
    create_feedback_header,
    get_score_style,
    get_section_style,
)


class QuestionPanel:
    """A styled panel for one choice or cloze question."""

    def __init__(
        self,
        question: Question,
        difficulty: Difficulty | None = None,
        question_number: int = 0,
        total_questions: int = 0,
        retry_mode: bool = False,
    ):
        self.question = question
        self.difficulty = difficulty
        self.question_number = question_number
        self.total_questions = total_questions
        self.retry_mode = retry_mode

    @property
    def progress_percent(self) -> float:
        if self.total_questions <= 0:
            return 0.0
        return min(self.question_number / self.total_questions * 100, 100.0)

    def render(self) -> Panel:
        content = Text()

        if self.total_questions > 0:
            content.append(self._create_progress_bar(), Style(color=MUTED_GRAY))
            content.append("\n")
            content.append(
                f"Question {self.question_number}/{self.total_questions}\n",
                Style(color=MUTED_GRAY),
            )

        content.append(self.question.prompt, Style(color=ACCENT_RED, bold=True))
        content.append("\n\n")

        if self.question.type.is_choice:
            for i, choice in enumerate(self.question.choices or []):
                content.append(f"{option_label(i)}. ", Style(color=ACCENT_GOLD, bold=True))
                content.append(choice.text, Style(color=TEXT_WHITE))
                content.append("\n")
            subtitle = "Type the letter of your answer (or 'q' to quit)"
        else:
            self._append_cloze(content)
            subtitle = "Type the missing word or phrase (or 'q' to quit)"

        title = "Retry round" if self.retry_mode else SECTION_LABELS[self.question.type]
        return Panel(
            Align.left(content),
            title=title,
            subtitle=subtitle,
            border_style=ACCENT_GOLD if self.retry_mode else ACCENT_RED,
            box=box.HEAVY,
            padding=(1, 2),
        )

    def _append_cloze(self, content: Text) -> None:
        sentence = self.question.sentence
        mask = (
            build_sentence_parts(sentence, self.question.correct_answer or "")
            if sentence
            else None
        )
        if mask is not None:
            for part in mask.parts:
                if isinstance(part, BlankPart):
                    content.append("_" * part.length, Style(color=ACCENT_GOLD, bold=True))
                else:
                    content.append(part.value, Style(color=TEXT_WHITE))
            content.append("\n")
        elif sentence:
            content.append(sentence, Style(color=TEXT_WHITE))
            content.append("\n")

        if self.question.translation:
            content.append(self.question.translation, Style(color=MUTED_GRAY))
            content.append("\n")

        hint = hint_for(self.question.correct_answer, self.difficulty)
        if hint:
            content.append("\nHint: ", Style(color=MUTED_GRAY))
            content.append(hint, Style(color=INFO_BLUE))

    def _create_progress_bar(self) -> str:
        """Create a text-based progress bar."""
        width = 30
        filled = int(width * self.progress_percent / 100)
        remaining = width - filled
        bar = "█" * filled + "░" * remaining
        return f"[{bar}] {self.progress_percent:.0f}%"

    def __rich__(self) -> Panel:
        return self.render()


class FeedbackPanel:
    """A styled panel for displaying answer feedback."""

    def __init__(
        self,
        is_correct: bool,
        correct_answer: str,
        user_answer: str = "",
        explanation: str | None = None,
    ):
        self.is_correct = is_correct
        self.correct_answer = correct_answer
        self.user_answer = user_answer
        self.explanation = explanation

    def render(self) -> Panel:
        content = Text()

        content.append(create_feedback_header(self.is_correct))
        content.append("\n")
        if not self.is_correct:
            if self.user_answer:
                content.append(
                    f"You answered: {self.user_answer}\n", Style(color=MUTED_GRAY)
                )

        content.append("\n")
        content.append("Correct answer: ", Style(color=MUTED_GRAY))
        content.append(self.correct_answer, Style(color=SUCCESS_GREEN, bold=True))

        if self.explanation:
            content.append("\n\n")
            content.append("Explanation:\n", Style(color=ACCENT_GOLD, bold=True))
            content.append(self.explanation, Style(color=TEXT_WHITE))

        return Panel(
            Align.left(content),
            title="Result",
            border_style=SUCCESS_GREEN if self.is_correct else ERROR_RED,
            box=box.HEAVY,
            padding=(1, 2),
        )

    def __rich__(self) -> Panel:
        return self.render()


class SectionProgress:
    """One capsule per section showing its generation status."""

    STATUS_TEXT = {
        "pending": "waiting",
        "generating": "generating…",
        "ready": "ready",
        "error": "failed",
    }

    def __init__(self, views: list[SectionView]):
        self.views = views

    def render(self) -> Columns:
        capsules = []
        for view in self.views:
            text = Text()
            text.append(f"{view.label}\n", Style(color=TEXT_WHITE))
            text.append(
                self.STATUS_TEXT.get(view.status.value, view.status.value),
                get_section_style(view.status),
            )
            if view.count:
                text.append(f"  {view.count} questions", Style(color=MUTED_GRAY))
            if view.error:
                text.append(f"\n{view.error}", Style(color=ERROR_RED))
            capsules.append(Panel(text, box=box.ROUNDED, border_style=MUTED_GRAY))
        return Columns(capsules, equal=True, expand=True)

    def __rich__(self) -> Columns:
        return self.render()


class WaitingPanel:
    """Shown while the next questions are still being generated."""

    def __init__(self, section_label: str | None, error: str | None = None):
        self.section_label = section_label
        self.error = error

    def render(self) -> Panel:
        content = Text()
        label = self.section_label or "the next section"
        content.append(f"Preparing {label}…\n", Style(color=ACCENT_GOLD))
        content.append(
            "Your answers are saved. The quiz continues as soon as the questions arrive.",
            Style(color=MUTED_GRAY),
        )
        if self.error:
            content.append(f"\n\n{self.error}", Style(color=ERROR_RED))
        return Panel(
            Align.left(content),
            title="Generating questions",
            border_style=ACCENT_GOLD,
            box=box.HEAVY,
            padding=(1, 2),
        )

    def __rich__(self) -> Panel:
        return self.render()


class ReportPanel:
    """Score, analysis and recommendations of a finished round."""

    def __init__(self, result: PracticeResult, retry_mode: bool = False):
        self.result = result
        self.retry_mode = retry_mode

    def render(self) -> Panel:
        score = Text()
        score.append(f"{self.result.score}%", get_score_style(self.result.score))

        stats = Table(show_header=False, border_style=MUTED_GRAY, box=box.SIMPLE)
        stats.add_column("Label", style=Style(color=MUTED_GRAY))
        stats.add_column("Value", justify="right")
        stats.add_row("Score", score)
        if self.result.incorrect_words:
            stats.add_row(
                "To review",
                Text(", ".join(self.result.incorrect_words), style=Style(color=ERROR_RED)),
            )

        content = Text()
        content.append(
            "Retry round complete!\n\n" if self.retry_mode else "Practice complete!\n\n",
            Style(color=ACCENT_RED, bold=True),
        )
        content.append(self.result.analysis.report, Style(color=TEXT_WHITE))
        for recommendation in self.result.analysis.recommendations:
            content.append(f"\n• {recommendation}", Style(color=INFO_BLUE))

        return Panel(
            Columns([Align.left(content), Align.center(stats)], padding=(0, 2)),
            title="Report",
            border_style=ACCENT_GOLD,
            box=box.HEAVY,
            padding=(1, 2),
        )

    def __rich__(self) -> Panel:
        return self.render()


def question_summary(question: Question) -> str:
    """One-line text for a question; cloze questions show the masked sentence."""
    if question.sentence and not question.type.is_choice:
        mask = build_sentence_parts(question.sentence, question.correct_answer or "")
        if mask is not None:
            return render_masked(mask)
    return question.prompt


class WrongAnswerTable:
    """The questions answered wrong, with both answers."""

    def __init__(self, items: list[WrongAnswerItem]):
        self.items = items

    def render(self) -> Panel:
        table = Table(
            show_header=True,
            header_style=Style(color=ACCENT_RED, bold=True),
            border_style=MUTED_GRAY,
            row_styles=[Style(), Style(dim=True)],
            box=box.HEAVY,
        )
        table.add_column("Word", style=Style(color=ACCENT_RED, bold=True))
        table.add_column("Question", style=Style(color=TEXT_WHITE))
        table.add_column("Your answer", style=Style(color=ERROR_RED))
        table.add_column("Correct answer", style=Style(color=SUCCESS_GREEN))

        for item in self.items:
            table.add_row(
                item.question.word,
                question_summary(item.question),
                item.user_answer or "—",
                item.correct_answer,
            )

        return Panel(
            Align.center(table),
            title="Wrong answers",
            border_style=ACCENT_GOLD,
            box=box.HEAVY,
            padding=(1, 1),
        )

    def __rich__(self) -> Panel:
        return self.render()


class SessionsTable:
    """In-progress sessions that can be resumed."""

    def __init__(self, sessions: list[InProgressSessionSummary]):
        self.sessions = sessions

    def render(self) -> Panel:
        if not self.sessions:
            return Panel(
                Text("No practice in progress.", style=MUTED_GRAY),
                title="In progress",
                border_style=MUTED_GRAY,
            )

        table = Table(
            show_header=True,
            header_style=Style(color=ACCENT_RED, bold=True),
            border_style=MUTED_GRAY,
            box=box.HEAVY,
        )
        table.add_column("ID", style=Style(color=ACCENT_GOLD))
        table.add_column("Difficulty")
        table.add_column("Words", justify="right")
        table.add_column("Progress", justify="right")
        table.add_column("Updated", style=Style(color=MUTED_GRAY))

        for session in self.sessions:
            table.add_row(
                session.id,
                session.difficulty.value,
                str(session.word_count),
                f"{session.answered_count}/{session.total_questions}",
                session.updated_at,
            )

        return Panel(Align.center(table), title="In progress", border_style=ACCENT_GOLD)

    def __rich__(self) -> Panel:
        return self.render()
