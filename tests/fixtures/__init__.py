"""Shared testing fixtures and stubs for the pdf2quiz test suite."""

from .openai import OpenAIStub, OpenAIStubFactory  # noqa: F401
from .quiz import make_question, question_payload  # noqa: F401
from .weasyprint import HTMLStub  # noqa: F401

__all__ = [
    "HTMLStub",
    "OpenAIStub",
    "OpenAIStubFactory",
    "make_question",
    "question_payload",
]
