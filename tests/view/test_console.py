from __future__ import annotations

import io

import pytest
from rich.console import Console

from fixtures import make_question

from pdf2quiz.export import ExportError
from pdf2quiz.session import QuizSession
from pdf2quiz.view import console as cv


def _console():
    return Console(file=io.StringIO(), width=120, color_system=None)


def _output(console: Console) -> str:
    return console.file.getvalue()  # type: ignore[attr-defined]


def _inputs(*values):
    queue = list(values)

    def provider():
        if not queue:
            raise EOFError
        return queue.pop(0)

    return provider


def _questions():
    return [
        make_question("2+2?", ("3", "4", "5", "6"), "4"),
        make_question("Capital of France?", ("Rome", "Paris", "Oslo", "Bern"), "Paris"),
    ]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("n", cv.ConsoleCommand("next")),
        ("prev", cv.ConsoleCommand("prev")),
        ("S", cv.ConsoleCommand("submit")),
        ("exit", cv.ConsoleCommand("quit")),
        ("r", cv.ConsoleCommand("retake")),
        ("download", cv.ConsoleCommand("download")),
        ("b", cv.ConsoleCommand("select", 1)),
        ("D", cv.ConsoleCommand("select", 3)),
        ("3", cv.ConsoleCommand("select", 2)),
        ("9", None),
        ("", None),
        (None, None),
        ("hello", None),
    ],
)
def test_parse_command(raw, expected):
    assert cv.parse_command(raw) == expected


def test_full_attempt_scores_and_renders_summary():
    console = _console()
    session = QuizSession(_questions())

    result = cv.run_console_quiz(
        session,
        console,
        _inputs("b", "n", "b", "zzz", "submit", "q"),
        clock=lambda: 0.0,
    )

    assert result is session
    assert session.score == 2
    out = _output(console)
    assert "Unrecognized command" in out
    assert "You scored 2 out of 2" in out


def test_timer_expiry_auto_submits_between_prompts():
    console = _console()
    session = QuizSession(_questions(), timer_duration_seconds=5)
    times = iter([0.0, 2.0, 10.0])

    cv.run_console_quiz(
        session,
        console,
        _inputs("b", "b", "q"),
        clock=lambda: next(times),
    )

    assert session.auto_submitted
    assert session.time_remaining_seconds == 0
    assert session.user_answers == ("4", None)
    assert session.score == 1
    assert "Time's up!" in _output(console)


def test_retake_and_download_after_submit(tmp_path):
    console = _console()
    exported = []

    def exporter(questions, file_name, out_dir):
        exported.append(file_name)
        return out_dir / "notes.pdf"

    first = QuizSession(_questions())
    last = cv.run_console_quiz(
        first,
        console,
        _inputs("submit", "download", "a", "r", "quit"),
        file_name="notes.pdf",
        export_dir=tmp_path,
        exporter=exporter,
        clock=lambda: 0.0,
    )

    assert exported == ["notes.pdf"]
    assert last is not first
    assert not last.submitted
    out = _output(console)
    assert "Saved" in out
    assert "already been submitted" in out
    assert "Ending session without submission" in out


def test_download_failure_is_reported():
    console = _console()

    def exporter(*_args):
        raise ExportError("WeasyPrint is required.")

    cv.run_console_quiz(
        QuizSession(_questions()),
        console,
        _inputs("s", "download", "q"),
        exporter=exporter,
        clock=lambda: 0.0,
    )

    assert "Download failed" in _output(console)


def test_interrupted_attempt_is_not_submitted():
    session = QuizSession(_questions())

    cv.run_console_quiz(session, _console(), _inputs(), clock=lambda: 0.0)

    assert not session.submitted


def test_empty_session():
    console = _console()
    session = QuizSession([])

    assert cv.run_console_quiz(session, console, _inputs()) is session
    assert "No questions" in _output(console)


def test_download_before_submit_keeps_attempt_open(tmp_path):
    console = _console()
    exported = []

    def exporter(questions, file_name, out_dir):
        exported.append(len(questions))
        return out_dir / "quiz_results.pdf"

    session = QuizSession(_questions())
    cv.run_console_quiz(
        session,
        console,
        _inputs("b", "pdf", "q"),
        export_dir=tmp_path,
        exporter=exporter,
        clock=lambda: 0.0,
    )

    assert exported == [2]
    assert not session.submitted
    assert session.user_answers == ("4", None)
    assert "Saved" in _output(console)
