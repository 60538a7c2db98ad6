from __future__ import annotations

from types import SimpleNamespace

import pytest
from textual.css.query import NoMatches

from fixtures import make_question

from pdf2quiz.export import ExportError
from pdf2quiz.session import QuizSession
from pdf2quiz.view import quiz as qv


class StubContainer:
    def __init__(self, *_, **kwargs):
        self.id = kwargs.get("id")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        return False


class StubStatic:
    def __init__(self, text: str = "", id: str | None = None):
        self.text = text
        self.id = id

    def update(self, new: str) -> None:
        self.text = new


class StubButton:
    def __init__(self, label: str, id: str | None = None):
        self.label = label
        self.id = id
        self.classes: set[str] = set()

    def set_class(self, add: bool, name: str) -> None:
        if add:
            self.classes.add(name)
        else:
            self.classes.discard(name)


class StubHandle:
    def __init__(self) -> None:
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


def _questions():
    return [
        make_question("2+2?", ("3", "4", "5", "6"), "4"),
        make_question("1+1?", ("1", "2", "3", "4"), "2"),
    ]


@pytest.fixture
def stub_widgets(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(qv, "Static", StubStatic)
    monkeypatch.setattr(qv, "Button", StubButton)
    monkeypatch.setattr(qv, "Vertical", StubContainer)
    monkeypatch.setattr(qv, "VerticalScroll", StubContainer)
    monkeypatch.setattr(qv, "Horizontal", StubContainer)


def _mounted(monkeypatch, session, **kwargs):
    app = qv.QuizApp(session, **kwargs)
    widgets = {f"#{w.id}": w for w in app.compose()}

    def query_one(selector, _kind):
        try:
            return widgets[selector]
        except KeyError:
            raise NoMatches(selector) from None

    monkeypatch.setattr(app, "query_one", query_one)
    return app, widgets


def test_choice_id_round_trip():
    assert qv.parse_choice_id(qv.choice_id(3, 1)) == (3, 1)
    assert qv.parse_choice_id("submit") is None
    assert qv.parse_choice_id("choice-x-1") is None


def test_compose_empty(stub_widgets):
    rendered = list(qv.QuizApp(QuizSession([])).compose())

    assert rendered[0].text == "No questions."


def test_compose_lists_questions_and_controls(stub_widgets):
    session = QuizSession(_questions(), timer_duration_seconds=90)
    ids = [w.id for w in qv.QuizApp(session, file_name="notes.pdf").compose()]

    assert "choice-1-3" in ids
    assert {"submit", "retake", "download", "status", "timer"} <= set(ids)


def test_choose_and_submit_update_widgets(stub_widgets, monkeypatch):
    session = QuizSession(_questions())
    app, widgets = _mounted(monkeypatch, session)

    assert app.choose(0, 1)
    assert "selected" in widgets["#choice-0-1"].classes
    assert widgets["#status"].text == "Answered: 1/2"

    app.choose(1, 0)
    assert app.submit_quiz() == 1

    assert widgets["#status"].text == "You scored 1 out of 2"
    assert widgets["#feedback-0"].text == "Correct."
    assert widgets["#feedback-1"].text.startswith("Incorrect.")
    assert "correct" in widgets["#choice-1-1"].classes
    assert "wrong" in widgets["#choice-1-0"].classes
    assert not app.choose(0, 0)
    assert "locked" in widgets["#message"].text


def test_retake_requires_submission_then_resets(stub_widgets, monkeypatch):
    session = QuizSession(_questions())
    app, widgets = _mounted(monkeypatch, session)
    app.choose(0, 1)

    assert not app.retake_quiz()
    app.submit_quiz()
    assert app.retake_quiz()

    assert app.session is not session
    assert app.session.user_answers == (None, None)
    assert widgets["#feedback-0"].text == ""
    assert "selected" not in widgets["#choice-0-1"].classes


def test_timer_ticks_through_set_interval(stub_widgets, monkeypatch):
    session = QuizSession(_questions(), timer_duration_seconds=2)
    app, widgets = _mounted(monkeypatch, session)
    scheduled = []
    handle = StubHandle()

    def fake_set_interval(interval, callback):
        scheduled.append((interval, callback))
        return handle

    monkeypatch.setattr(app, "set_interval", fake_set_interval)
    app.on_mount()

    interval, tick = scheduled[0]
    assert interval == 1.0
    tick()
    assert widgets["#timer"].text == "Time left: 00:01"
    tick()

    assert session.auto_submitted
    assert handle.stopped
    assert widgets["#status"].text.startswith("Time's up!")


def test_download_uses_exporter(stub_widgets, monkeypatch, tmp_path):
    calls = []

    def exporter(questions, file_name, out_dir):
        calls.append((len(questions), file_name, out_dir))
        return out_dir / "notes.pdf"

    app, widgets = _mounted(
        monkeypatch,
        QuizSession(_questions()),
        file_name="notes.pdf",
        export_dir=tmp_path,
        exporter=exporter,
    )

    assert app.download() == tmp_path / "notes.pdf"
    assert not app.session.submitted
    app.submit_quiz()
    assert app.download() == tmp_path / "notes.pdf"
    assert calls == [(2, "notes.pdf", tmp_path)] * 2
    assert widgets["#message"].text.startswith("Saved")


def test_download_failure_is_reported(stub_widgets, monkeypatch):
    def exporter(*_args):
        raise ExportError("WeasyPrint is required.")

    app, widgets = _mounted(
        monkeypatch, QuizSession(_questions()), exporter=exporter
    )
    app.submit_quiz()

    assert app.download() is None
    assert "WeasyPrint" in widgets["#message"].text


def test_button_dispatch(stub_widgets, monkeypatch):
    app, _ = _mounted(
        monkeypatch,
        QuizSession(_questions()),
        exporter=lambda questions, file_name, out_dir: out_dir / "quiz.pdf",
    )

    def press(button_id):
        app.on_button_pressed(SimpleNamespace(button=SimpleNamespace(id=button_id)))

    press("choice-0-1")
    assert app.session.user_answers[0] == "4"
    press("submit")
    assert app.session.submitted
    press("download")
    press("retake")
    assert not app.session.submitted


def test_status_and_feedback_text():
    session = QuizSession(_questions())
    assert qv.timer_text(session) == ""
    session.submit()
    results = session.results()

    assert qv.feedback_text(results[0]).startswith("Not answered.")
    assert qv.status_text(session) == "You scored 0 out of 2"
