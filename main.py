import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from config import Settings, get_settings
from engine import QuizRuntime
from errors import QuizError, get_error_message
from models import Difficulty
from storage import get_progress_store
from ui import QuizUI, SessionsTable
from ui.styles import CONSOLE

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def read_words(args: argparse.Namespace) -> list[str]:
    """Collect words from positional arguments and/or a word-list file."""
    words = list(args.words or [])
    if args.file:
        text = Path(args.file).read_text(encoding="utf-8")
        words.extend(line.strip() for line in text.splitlines())
    return list(dict.fromkeys(w for w in words if w))


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with subcommands."""
    parser = argparse.ArgumentParser(description="Vocabulary quiz practice")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: from VOCAB_QUIZ_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    practice_parser = subparsers.add_parser("practice", help="Start a new practice")
    practice_parser.add_argument("words", nargs="*", help="Words to practice")
    practice_parser.add_argument(
        "--file",
        "-f",
        help="Text file with one word or phrase per line",
    )
    practice_parser.add_argument(
        "--difficulty",
        "-d",
        choices=[d.value for d in Difficulty],
        default=Difficulty.INTERMEDIATE.value,
        help="Difficulty (default: intermediate)",
    )
    practice_parser.add_argument(
        "--per-type",
        type=int,
        default=None,
        help="Questions per section (default: chosen by the generation service)",
    )

    resume_parser = subparsers.add_parser("resume", help="Resume a practice in progress")
    resume_parser.add_argument("session_id", help="Session id (see 'list')")

    subparsers.add_parser("list", help="List practices in progress")

    delete_parser = subparsers.add_parser("delete", help="Delete a stored practice")
    delete_parser.add_argument("session_id", help="Session id (see 'list')")

    return parser


async def run_practice(settings: Settings, args: argparse.Namespace, console: Console) -> int:
    words = read_words(args)
    if not words:
        console.print("[error]No words given.[/error] Pass words or --file.")
        return 2

    runtime = QuizRuntime.from_settings(settings)
    ui = QuizUI(runtime, console)
    try:
        with console.status(f"Generating questions for {len(words)} words…"):
            await runtime.start_practice(words, Difficulty(args.difficulty), args.per_type)
        await ui.run()
    finally:
        await runtime.shutdown()
    return 0


async def run_resume(settings: Settings, args: argparse.Namespace, console: Console) -> int:
    runtime = QuizRuntime.from_settings(settings)
    ui = QuizUI(runtime, console)
    try:
        await runtime.resume(args.session_id)
        await ui.run()
    finally:
        await runtime.shutdown()
    return 0


def run_list(settings: Settings, console: Console) -> int:
    store = get_progress_store(settings)
    console.print(SessionsTable(store.list_in_progress()))
    return 0


def run_delete(settings: Settings, args: argparse.Namespace, console: Console) -> int:
    store = get_progress_store(settings)
    if store.delete(args.session_id):
        console.print(f"Deleted {args.session_id}")
    else:
        console.print(f"No session {args.session_id}")
    return 0


def main():
    """Main entry point with CLI routing."""
    parser = create_parser()
    args = parser.parse_args()
    settings = get_settings()
    setup_logging(args.log_level or settings.log_level)
    console = CONSOLE

    try:
        if args.command == "practice":
            code = asyncio.run(run_practice(settings, args, console))
        elif args.command == "resume":
            code = asyncio.run(run_resume(settings, args, console))
        elif args.command == "list":
            code = run_list(settings, console)
        elif args.command == "delete":
            code = run_delete(settings, args, console)
        else:
            parser.print_help()
            code = 0
    except (QuizError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        message = get_error_message(e, "Something went wrong")
        console.print(f"[error]Error:[/error] {message}")
        code = 1
    except KeyboardInterrupt:
        code = 130

    sys.exit(code)


if __name__ == "__main__":
    main()
