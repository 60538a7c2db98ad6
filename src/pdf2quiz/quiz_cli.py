"""``pdf2quiz quiz``: upload a document, generate questions and take the quiz."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from .client import BackendClient
from .controller import FormController, QuizForm
from .core.logging import configure_logger, get_logger
from .core.settings import SettingsError, SettingsOverrides, load_settings
from .models import Level, QuestionType
from .view.console import run_console_quiz
from .view.quiz import QuizApp

_LOGGER = get_logger("quiz")


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pdf2quiz quiz",
        description="Turn a PDF, DOCX or TXT document into an interactive quiz.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("file", type=Path, help="Document to quiz yourself on")
    p.add_argument("--count", type=int, default=5, help="Number of questions")
    p.add_argument(
        "--level",
        choices=[level.value for level in Level],
        default=Level.EASY.value,
    )
    p.add_argument(
        "--type",
        dest="question_type",
        choices=[kind.value for kind in QuestionType],
        default=QuestionType.MCQ.value,
    )
    p.add_argument("--custom", default="", help="Extra instruction for the AI")
    p.add_argument(
        "--timer",
        type=int,
        default=0,
        help="Time limit in minutes (0 = untimed)",
    )
    p.add_argument(
        "--export-dir",
        type=Path,
        help="Where answer-key PDFs are saved (default: workspace exports/)",
    )
    p.add_argument("--backend-url", help="Backend base URL")
    p.add_argument(
        "--plain",
        action="store_true",
        help="Use the Rich console prompt instead of the Textual UI",
    )
    p.add_argument("--config", type=Path, help="Path to pdf2quiz.toml")
    p.add_argument("--workspace", type=Path, help="Workspace root override")
    p.add_argument("--log-level", help="Logging level for the log file")
    p.add_argument("--verbose", action="store_true", help="Also log to stderr")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        loaded = load_settings(
            config_path=args.config,
            workspace_path=args.workspace,
            overrides=SettingsOverrides(
                backend_url=args.backend_url, log_level=args.log_level
            ),
        )
    except SettingsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    settings = loaded.settings
    configure_logger(
        log_dir=loaded.layout.path_for("logs"),
        level=settings.log_level,
        verbose=args.verbose,
        filename="quiz.log",
    )
    form = QuizForm(
        count=args.count,
        level=Level(args.level),
        type=QuestionType(args.question_type),
        custom=args.custom,
        timed=args.timer > 0,
        timer=args.timer,
    )
    export_dir = args.export_dir or loaded.layout.path_for("exports")
    console = Console()

    with BackendClient(
        settings.backend_url, timeout=settings.client_timeout
    ) as backend:
        controller = FormController(backend, form=form)
        with console.status(f"Uploading {args.file.name}..."):
            uploaded = controller.select_file(args.file)
        if not uploaded:
            console.print(f"[red]{controller.error}[/]")
            return 1
        with console.status("Generating questions..."):
            session = controller.submit()
        if session is None:
            console.print(f"[red]{controller.error}[/]")
            return 1

    _LOGGER.info(
        "quiz ready",
        extra={"file_name": controller.file_name, "plain": args.plain},
    )
    if args.plain:
        run_console_quiz(
            session,
            console,
            lambda: console.input("> "),
            file_name=controller.file_name,
            export_dir=export_dir,
        )
    else:
        QuizApp(
            session, file_name=controller.file_name, export_dir=export_dir
        ).run()
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
