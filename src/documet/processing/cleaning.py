"""
Text Cleaning

Normalisation applied once to a section's content before it is split into
subsections. Line structure is preserved because the splitters rely on
blank lines and line starts to find entry boundaries.
"""

from __future__ import annotations

import re

_BULLET_GLYPHS = re.compile(r"[•●▪▫◦■□➢►✓]")
_LIST_MARKER = re.compile(r"^[ \t]*[-*•][ \t]*", re.MULTILINE)
_EMAIL = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
_PHONE = re.compile(r"(?:\+?\d{1,2}[ .-]?)?\(?\b\d{3}\)?[ .-]?\d{3}[ .-]?\d{4}\b")
_URL = re.compile(r"(?:https?://|www\.)[^\s]+")
_REPEATED = (
    (re.compile(r"!{2,}"), "!"),
    (re.compile(r"\?{2,}"), "?"),
    (re.compile(r"\.{2,}"), "."),
)
_HORIZONTAL_SPACE = re.compile(r"[ \t\f\v ]+")
_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")
_ANY_WHITESPACE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """
    Strip contact details, links and list decoration from ``text``.

    Runs of horizontal whitespace collapse to one space and runs of blank
    lines collapse to a single blank line; newlines themselves survive.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _URL.sub("", text)
    text = _EMAIL.sub("", text)
    text = _PHONE.sub("", text)
    text = _LIST_MARKER.sub("", text)
    text = _BULLET_GLYPHS.sub("", text)

    for pattern, replacement in _REPEATED:
        text = pattern.sub(replacement, text)

    lines = [_HORIZONTAL_SPACE.sub(" ", line).strip() for line in text.split("\n")]
    text = "\n".join(lines)
    text = _EXCESS_BLANK_LINES.sub("\n\n", text)

    return text.strip()


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) to a single space."""
    return _ANY_WHITESPACE.sub(" ", text).strip()
