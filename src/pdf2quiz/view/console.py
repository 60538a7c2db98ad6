"""Rich console rendition of a quiz session.

The plain front end walks the questions one at a time, reading commands from
an ``input_provider`` so tests can script a whole attempt. There is no
background timer here: before every prompt the loop advances the session by
the whole seconds a ``clock`` reports as elapsed, which is enough to enforce
the countdown between keystrokes. ``download`` saves the answer key at any
point. After submission the summary is rendered and the user may retake the
quiz or quit.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Literal, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..export import ExportError, export_quiz
from ..models import Question
from ..session import QuizSession, format_time

InputProvider = Callable[[], str]
Clock = Callable[[], float]
Exporter = Callable[[Sequence[Question], Optional[str], Path], Path]

CHOICE_KEYS = "ABCD"


@dataclass(frozen=True)
class ConsoleCommand:
    """Normalized user command parsed from console input."""

    type: Literal[
        "next", "prev", "submit", "quit", "select", "retake", "download"
    ]
    choice: Optional[int] = None


def parse_command(raw: Optional[str]) -> Optional[ConsoleCommand]:
    """Parse raw user input into a structured command."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"n", "next"}:
        return ConsoleCommand("next")
    if lowered in {"p", "prev", "previous"}:
        return ConsoleCommand("prev")
    if lowered in {"s", "submit"}:
        return ConsoleCommand("submit")
    if lowered in {"q", "quit", "exit"}:
        return ConsoleCommand("quit")
    if lowered in {"r", "retake"}:
        return ConsoleCommand("retake")
    if lowered in {"download", "pdf"}:
        return ConsoleCommand("download")
    if len(text) == 1:
        key = text.upper()
        if key in CHOICE_KEYS:
            return ConsoleCommand("select", CHOICE_KEYS.index(key))
        if key.isdigit() and 1 <= int(key) <= len(CHOICE_KEYS):
            return ConsoleCommand("select", int(key) - 1)
    return None


class _Countdown:
    """Feed whole elapsed seconds from ``clock`` into ``session.tick``."""

    def __init__(self, session: QuizSession, clock: Clock) -> None:
        self._session = session
        self._clock = clock
        self._last = clock()

    def advance(self) -> None:
        now = self._clock()
        elapsed = int(now - self._last)
        if elapsed <= 0:
            return
        self._last += elapsed
        for _ in range(elapsed):
            if self._session.tick() or self._session.submitted:
                break


def run_console_quiz(
    session: QuizSession,
    console: Console,
    input_provider: InputProvider,
    *,
    file_name: Optional[str] = None,
    export_dir: Path = Path("."),
    exporter: Exporter = export_quiz,
    clock: Clock = time.monotonic,
) -> QuizSession:
    """Run attempts until the user quits; return the last session."""

    if not session.questions:
        console.print("[yellow]No questions to show.[/]")
        return session

    while True:
        _run_attempt(
            session,
            console,
            input_provider,
            clock,
            file_name=file_name,
            export_dir=export_dir,
            exporter=exporter,
        )
        if not session.submitted:
            return session
        render_summary(console, session)
        action = _after_submit(
            session,
            console,
            input_provider,
            file_name=file_name,
            export_dir=export_dir,
            exporter=exporter,
        )
        if action != "retake":
            return session
        session = session.retake()


def _run_attempt(
    session: QuizSession,
    console: Console,
    input_provider: InputProvider,
    clock: Clock,
    *,
    file_name: Optional[str],
    export_dir: Path,
    exporter: Exporter,
) -> None:
    countdown = _Countdown(session, clock)
    index = 0
    while not session.submitted:
        render_question(console, session, index)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            session.close()
            return
        countdown.advance()
        if session.submitted:
            console.print("[bold red]Time's up! Your quiz was submitted.[/]")
            return
        command = parse_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "select" and command.choice is not None:
            options = session.questions[index].options
            session.select_answer(index, options[command.choice])
            console.print(f"Selected [bold]{options[command.choice]}[/].")
        elif command.type == "next":
            index = min(index + 1, session.total - 1)
        elif command.type == "prev":
            index = max(index - 1, 0)
        elif command.type == "submit":
            session.submit()
        elif command.type == "quit":
            console.print(
                "\n[bold yellow]Ending session without submission.[/]"
            )
            session.close()
            return
        elif command.type == "download":
            _save_answer_key(session, console, file_name, export_dir, exporter)
        else:
            console.print("[red]Submit the quiz first.[/]")


def _after_submit(
    session: QuizSession,
    console: Console,
    input_provider: InputProvider,
    *,
    file_name: Optional[str],
    export_dir: Path,
    exporter: Exporter,
) -> str:
    while True:
        console.print(
            Text(
                "Commands: r (retake), download (answer key PDF), q (quit)",
                style="dim",
            )
        )
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            return "quit"
        command = parse_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "retake":
            return "retake"
        if command.type == "quit":
            return "quit"
        if command.type == "download":
            _save_answer_key(session, console, file_name, export_dir, exporter)
            continue
        console.print("[red]The quiz has already been submitted.[/]")


def _save_answer_key(
    session: QuizSession,
    console: Console,
    file_name: Optional[str],
    export_dir: Path,
    exporter: Exporter,
) -> Optional[Path]:
    try:
        path = exporter(session.questions, file_name, export_dir)
    except (ExportError, OSError) as exc:
        console.print(f"[red]Download failed: {exc}[/]")
        return None
    console.print(f"Saved [bold]{path}[/]")
    return path


def render_question(console: Console, session: QuizSession, index: int) -> None:
    question = session.questions[index]
    header = Text.assemble(
        (f"Question {index + 1}", "bold cyan"),
        (f" / {session.total}", "dim"),
    )
    if session.is_timed:
        header.append(
            f"  {format_time(session.time_remaining_seconds)}", style="bold red"
        )
    console.print()
    console.rule(header)
    console.print(Text(question.question, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Option")
    selected = session.user_answers[index]
    for key, option in zip(CHOICE_KEYS, question.options):
        row = Text(("• " if option == selected else "  ") + option)
        if option == selected:
            row.stylize("bold green")
        table.add_row(key, row)
    console.print(table)
    console.print(
        Text(
            f"Answered {session.answered_count()}/{session.total} | "
            "Commands: A-D, n (next), p (prev), submit, download, quit",
            style="dim",
        )
    )


def render_summary(console: Console, session: QuizSession) -> None:
    console.print()
    console.rule(Text("Quiz Summary", style="bold magenta"))
    if session.auto_submitted:
        console.print("[bold red]Time's up![/]")
    console.print(
        Text(
            f"You scored {session.score} out of {session.total}",
            style="bold",
        )
    )

    table = Table(title="Responses", box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right")
    table.add_column("Question", overflow="fold")
    table.add_column("Your answer")
    table.add_column("Correct answer")
    table.add_column("Result", justify="center")
    for result in session.results():
        table.add_row(
            str(result.index + 1),
            result.question.question,
            result.selected or "-",
            result.answer,
            "✅" if result.is_correct else "❌",
        )
    console.print(table)
