import asyncio
import time

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from engine import EnginePhase, PollerStatus, QuizRuntime
from errors import AnswerValidationError
from exercises.base import resolve_choice_id
from exercises.wrong_answers import extract_wrong_answers
from models import SECTION_LABELS, Question
from ui.components import (
    FeedbackPanel,
    QuestionPanel,
    ReportPanel,
    SectionProgress,
    WaitingPanel,
    WrongAnswerTable,
)
from ui.styles import ACCENT_GOLD, ERROR_RED, MUTED_GRAY

WAIT_REFRESH_SECONDS = 1.0


class QuizUI:
    """Terminal front-end driving a QuizRuntime."""

    def __init__(self, runtime: QuizRuntime, console: Console | None = None):
        self.runtime = runtime
        self.console = console or Console()
        self._shown_warning: str | None = None

    async def ask(self, prompt: str) -> str:
        """Read a line without blocking the event loop."""
        answer = await asyncio.to_thread(
            self.console.input, Text(prompt, style=f"bold {MUTED_GRAY}")
        )
        return answer.strip()

    async def confirm(self, prompt: str) -> bool:
        answer = await self.ask(f"{prompt} [y/N] ")
        return answer.lower() in ("y", "yes")

    async def run(self) -> None:
        """Run the practice until the learner quits or finishes."""
        engine = self.runtime.engine

        while True:
            self._show_warning()
            state = self.runtime.state
            if state.poller.status == PollerStatus.STOPPED and state.poller.error:
                self.show_error(state.poller.error)
                return

            phase = engine.phase
            if phase == EnginePhase.ANSWERING:
                question = engine.current_question
                if question is None:
                    if engine.awaiting_finalize:
                        await engine.finalize()
                        continue
                    self.show_error("There are no questions to answer")
                    return
                if not await self._answer(question):
                    self.show_quit_message()
                    return

            elif phase == EnginePhase.PENDING_ADVANCE:
                if not await self._wait_for_questions():
                    self.show_quit_message()
                    return

            elif phase == EnginePhase.FINALIZING:
                if state.finalize_error:
                    self.show_error(state.finalize_error)
                    if (await self.ask("Press Enter to try again, or 'q' to quit: ")).lower() == "q":
                        self.show_quit_message()
                        return
                    await engine.finalize()
                else:
                    with self.console.status("Building your report…"):
                        await engine.wait_for_question()

            else:
                if not await self._show_report():
                    return

    async def _answer(self, question: Question) -> bool:
        engine = self.runtime.engine
        state = self.runtime.state

        self.console.print(
            QuestionPanel(
                question,
                difficulty=state.difficulty,
                question_number=engine.index + 1,
                total_questions=(
                    len(engine.queue) if state.is_retry_mode else self.runtime.tracker.progress_target
                ),
                retry_mode=state.is_retry_mode,
            )
        )
        self.console.print()

        started = time.monotonic()
        while True:
            raw = await self.ask("Your answer: ")
            if raw.lower() == "q":
                return False

            elapsed_ms = int((time.monotonic() - started) * 1000)
            if question.type.is_choice:
                choice_id = resolve_choice_id(question, raw)
                if choice_id is None:
                    self.console.print(Text("Please enter one of the option letters\n", style=ERROR_RED))
                    continue
                record = engine.build_answer(choice_id=choice_id, elapsed_ms=elapsed_ms)
                user_answer = question.choice_text(choice_id)
                correct_answer = question.choice_text(question.correct_choice_id)
            else:
                record = engine.build_answer(user_input=raw, elapsed_ms=elapsed_ms)
                user_answer = raw
                correct_answer = question.correct_answer or ""

            try:
                if state.is_retry_mode:
                    await self.runtime.retry.submit_answer(record)
                else:
                    await engine.submit_answer(record)
            except AnswerValidationError as e:
                self.console.print(Text(f"{e.message}\n", style=ERROR_RED))
                continue
            break

        self.console.print(
            FeedbackPanel(
                is_correct=record.correct,
                correct_answer=correct_answer,
                user_answer=user_answer,
                explanation=question.explanation or None,
            )
        )
        self.console.print()
        return True

    async def _wait_for_questions(self) -> bool:
        """Wait in the pending state; offer a retry if the section failed."""
        runtime = self.runtime
        engine = runtime.engine
        tracker = runtime.tracker

        waiting = tracker.waiting_section(engine.index)
        self.console.print(SectionProgress(tracker.section_views()))
        self.console.print(
            WaitingPanel(
                SECTION_LABELS.get(waiting) if waiting else None,
                runtime.state.poller.error,
            )
        )

        while engine.phase == EnginePhase.PENDING_ADVANCE:
            views = {v.type: v for v in tracker.section_views()}
            failed = views.get(waiting) if waiting else None
            if failed is not None and failed.can_retry:
                self.show_error(failed.error or f"{failed.label} failed to generate")
                if not await self.confirm(f"Retry {failed.label}?"):
                    return False
                if not await runtime.retry_section(failed.type) and runtime.state.error:
                    self.show_error(runtime.state.error)
                continue
            if runtime.state.poller.status == PollerStatus.STOPPED and runtime.state.poller.error:
                return True

            with self.console.status("Waiting for the next questions…"):
                try:
                    await asyncio.wait_for(
                        engine.wait_for_question(), timeout=WAIT_REFRESH_SECONDS
                    )
                except asyncio.TimeoutError:
                    pass
            self._show_warning()
        return True

    async def _show_report(self) -> bool:
        """Show the result and offer a retry round. False means finished."""
        runtime = self.runtime
        state = runtime.state
        retry = runtime.retry

        if retry.last_round_result is not None and not state.is_retry_mode:
            self.console.print(ReportPanel(retry.last_round_result, retry_mode=True))
            retry.last_round_result = None
            return False
        if state.last_result is not None:
            self.console.print(ReportPanel(state.last_result, retry_mode=state.is_retry_mode))

        if state.is_retry_mode:
            items = extract_wrong_answers(state.retry_answers, state.retry_questions)
        else:
            items = extract_wrong_answers(state.answers, runtime.tracker.queue)
        if not items:
            return False

        self.console.print(WrongAnswerTable(items))
        if await self.confirm("Practice the wrong answers again?"):
            if state.is_retry_mode:
                retry.continue_retry()
            else:
                retry.start()
            return True

        if state.is_retry_mode:
            retry.exit()
        return False

    def _show_warning(self) -> None:
        warning = self.runtime.state.warning
        if warning is not None and warning.id != self._shown_warning:
            self._shown_warning = warning.id
            self.console.print(Text(f"⚠ {warning.message}", style=ACCENT_GOLD))

    def show_error(self, message: str) -> None:
        """Display an error message."""
        self.console.print(
            Panel(
                Text(f"Error: {message}", style=ERROR_RED),
                title="Error",
                border_style=ERROR_RED,
            )
        )

    def show_quit_message(self) -> None:
        self.console.print()
        self.console.print(
            Text("Goodbye! Resume this practice later with 'vocab-quiz resume'.", style=MUTED_GRAY)
        )
