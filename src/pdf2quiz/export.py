"""Answer-key PDF export (WeasyPrint backend).

Layout is computed up front in millimetres on an A4 page: the title, each
numbered question followed by its indented options, then an ``Answers:``
section. Long lines are wrapped to a fixed column width and a new page starts
once the vertical cursor passes the page-height threshold. The computed pages
are rendered to absolutely positioned HTML through Jinja2 and handed to
WeasyPrint, so the output only depends on the question list and the display
name, never on a user's submitted answers.
"""

from __future__ import annotations

import textwrap
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence

from jinja2 import Environment

from .core.logging import get_logger
from .models import Question

__all__ = [
    "ExportError",
    "TextLine",
    "layout_pages",
    "render_html",
    "render",
    "export_filename",
    "export_quiz",
]

PAGE_WIDTH_MM = 210
PAGE_HEIGHT_MM = 297
PAGE_BREAK_Y_MM = 270
PAGE_TOP_MM = 10
LEFT_MM = 10
OPTION_LEFT_MM = 14

TITLE_SIZE = 14
ANSWER_SIZE = 12
QUESTION_LINE_MM = 7
OPTION_LINE_MM = 6
ANSWER_LINE_MM = 6
QUESTION_GAP_MM = 6
ANSWERS_GAP_MM = 10
ANSWERS_HEADER_MM = 8

WRAP_COLUMNS = 90
OPTION_WRAP_COLUMNS = 88

_LOGGER = get_logger("export")


class ExportError(RuntimeError):
    """Raised when the PDF cannot be produced."""


@dataclass(frozen=True)
class TextLine:
    x_mm: float
    y_mm: float
    text: str
    size: int


@dataclass
class _Cursor:
    pages: List[List[TextLine]] = field(default_factory=lambda: [[]])
    y: float = 20

    def break_if_needed(self) -> None:
        if self.y > PAGE_BREAK_Y_MM:
            self.pages.append([])
            self.y = PAGE_TOP_MM

    def place(
        self, text: str, *, x: float, width: int, step: float, size: int
    ) -> None:
        wrapped = textwrap.wrap(text, width=width) or [""]
        for offset, line in enumerate(wrapped):
            self.pages[-1].append(
                TextLine(x_mm=x, y_mm=self.y + offset * step, text=line, size=size)
            )
        self.y += len(wrapped) * step


def layout_pages(
    questions: Sequence[Question], file_name: Optional[str]
) -> List[List[TextLine]]:
    """Return positioned text lines grouped by page."""

    cursor = _Cursor()
    title = f"{file_name or 'Generated'} quiz with answers:"
    cursor.pages[0].append(
        TextLine(x_mm=LEFT_MM, y_mm=PAGE_TOP_MM, text=title, size=TITLE_SIZE)
    )

    for number, question in enumerate(questions, start=1):
        cursor.break_if_needed()
        cursor.place(
            f"{number}. {question.question}",
            x=LEFT_MM,
            width=WRAP_COLUMNS,
            step=QUESTION_LINE_MM,
            size=TITLE_SIZE,
        )
        for option in question.options:
            cursor.break_if_needed()
            cursor.place(
                f"- {option}",
                x=OPTION_LEFT_MM,
                width=OPTION_WRAP_COLUMNS,
                step=OPTION_LINE_MM,
                size=TITLE_SIZE,
            )
        cursor.y += QUESTION_GAP_MM
        cursor.break_if_needed()

    cursor.y += ANSWERS_GAP_MM
    cursor.break_if_needed()
    cursor.pages[-1].append(
        TextLine(x_mm=LEFT_MM, y_mm=cursor.y, text="Answers:", size=ANSWER_SIZE)
    )
    cursor.y += ANSWERS_HEADER_MM

    for number, question in enumerate(questions, start=1):
        cursor.break_if_needed()
        cursor.place(
            f"{number}. {question.answer}",
            x=LEFT_MM,
            width=WRAP_COLUMNS,
            step=ANSWER_LINE_MM,
            size=ANSWER_SIZE,
        )
    return cursor.pages


_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{{ title }}</title>
  <style>
    @page { size: A4 portrait; margin: 0; }
    body { margin: 0; font-family: 'DejaVu Sans', 'Liberation Sans', sans-serif; color: #111; }
    .page { position: relative; width: {{ width }}mm; height: {{ height }}mm; overflow: hidden; page-break-after: always; }
    .page:last-child { page-break-after: auto; }
    .line { position: absolute; white-space: pre; line-height: 1; }
  </style>
</head>
<body>
{% for page in pages %}
  <section class="page">
  {% for line in page %}
    <div class="line" style="left: {{ line.x_mm }}mm; top: {{ line.y_mm }}mm; font-size: {{ line.size }}pt;">{{ line.text }}</div>
  {% endfor %}
  </section>
{% endfor %}
</body>
</html>
"""


def render_html(questions: Sequence[Question], file_name: Optional[str]) -> str:
    pages = layout_pages(questions, file_name)
    template = Environment(autoescape=True).from_string(_PAGE_TEMPLATE)
    return template.render(
        title=f"{file_name or 'Generated'} quiz",
        pages=pages,
        width=PAGE_WIDTH_MM,
        height=PAGE_HEIGHT_MM,
    )


def render(questions: Sequence[Question], file_name: Optional[str]) -> bytes:
    """Render the answer-key document for ``questions`` as PDF bytes."""

    html_cls = _load_weasyprint()
    document = html_cls(string=render_html(questions, file_name), base_url=".")
    pdf = document.write_pdf()
    if not isinstance(pdf, (bytes, bytearray)):
        raise ExportError("PDF renderer returned no data.")
    return bytes(pdf)


def export_filename(file_name: Optional[str]) -> str:
    stem = Path(file_name).stem if file_name else ""
    return f"{stem or 'quiz_results'}.pdf"


def export_quiz(
    questions: Sequence[Question],
    file_name: Optional[str],
    out_dir: Path,
) -> Path:
    """Write the answer-key PDF into ``out_dir`` and return its path."""

    target = out_dir / export_filename(file_name)
    data = render(questions, file_name)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    _LOGGER.info(
        "quiz exported",
        extra={"path": str(target), "questions": len(questions)},
    )
    return target


def _load_weasyprint() -> Any:
    try:
        from weasyprint import HTML
    except (ImportError, OSError) as exc:
        raise ExportError(
            "WeasyPrint is required. Install system libraries (Cairo, Pango) "
            "and the 'weasyprint' package."
        ) from exc
    return HTML
