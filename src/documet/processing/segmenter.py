"""
Section Segmenter

Splits raw document text into named sections. Two heuristics are provided:

- ``segment``: generic paragraph-density heuristic. Short title-case
  paragraphs (or title-case first lines) open a new section.
- ``segment_by_headings``: keyword heuristic for resume-shaped documents.
  Lines that look like a conventional heading ("Experience", "Skills", ...)
  cut the text into sections. Falls back to ``segment`` when no heading is
  found.

Both are pure and deterministic: the same text always yields the same
sections, in source order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple


MIN_PARAGRAPH_LENGTH = 20
SHORT_DOCUMENT_PARAGRAPHS = 3
HEADER_MAX_LENGTH = 50
MIN_SECTION_LENGTH = 30

DEFAULT_SECTION_NAME = "Main Content"
INITIAL_SECTION_NAME = "Introduction"
PRE_HEADING_SECTION_NAME = "Other"

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_TITLE_CASE = re.compile(r"^[A-Z][A-Za-z ]{2,}$")


@dataclass(frozen=True)
class Segment:
    """A named region of a document's text."""

    name: str
    content: str


# ---------------------------------------------------------------------
# Keyword headings (resume-shaped documents)
# ---------------------------------------------------------------------

# Ordered (label, pattern) pairs. A heading line is short and starts with
# the keyword. Anything after it must open with punctuation ("Skills: Go",
# "EXPERIENCE & LEADERSHIP") so prose such as "Experience with Go" never cuts.
HEADING_PATTERNS: Tuple[Tuple[str, re.Pattern], ...] = (
    ("Summary", re.compile(
        r"^\W*(?:professional\s+)?(?:summary|highlights|profile|objective|about(?:\s+me)?)\s*(?P<tail>[^\w\s].*)?$",
        re.IGNORECASE,
    )),
    ("Skills", re.compile(
        r"^\W*(?:technical\s+|core\s+|key\s+)?(?:skills|competencies)(?:\s*&\s*\w+)?\s*(?P<tail>[^\w\s].*)?$",
        re.IGNORECASE,
    )),
    ("Experience", re.compile(
        r"^\W*(?:(?:work|professional|relevant)\s+)?(?:experience|employment(?:\s+history)?)\s*(?P<tail>[^\w\s].*)?$",
        re.IGNORECASE,
    )),
    ("Projects", re.compile(
        r"^\W*(?:(?:technical|personal|selected)\s+)?(?:projects|portfolio)\s*(?P<tail>[^\w\s].*)?$",
        re.IGNORECASE,
    )),
    ("Education", re.compile(
        r"^\W*(?:education|academic\s+background)\s*(?P<tail>[^\w\s].*)?$",
        re.IGNORECASE,
    )),
    ("Certifications", re.compile(
        r"^\W*(?:certifications?|certificates|licenses?(?:\s*&\s*certifications)?)\s*(?P<tail>[^\w\s].*)?$",
        re.IGNORECASE,
    )),
)


def _split_paragraphs(text: str) -> List[str]:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


def _is_header(line: str) -> bool:
    line = line.strip()
    return len(line) < HEADER_MAX_LENGTH and bool(_TITLE_CASE.match(line))


def _finalize(sections: Sequence[Segment]) -> List[Segment]:
    return [s for s in sections if len(s.content) >= MIN_SECTION_LENGTH]


def segment(text: str) -> List[Segment]:
    """
    Split ``text`` into sections using paragraph structure.

    Documents with at most ``SHORT_DOCUMENT_PARAGRAPHS`` significant
    paragraphs are returned whole as a single ``DEFAULT_SECTION_NAME``
    section.
    """
    paragraphs = _split_paragraphs(text)
    significant = [p for p in paragraphs if len(p) >= MIN_PARAGRAPH_LENGTH]

    if len(significant) <= SHORT_DOCUMENT_PARAGRAPHS:
        return [Segment(DEFAULT_SECTION_NAME, "\n\n".join(paragraphs))]

    sections: List[Segment] = []
    current_name = INITIAL_SECTION_NAME
    current: List[str] = []

    def flush() -> None:
        if current:
            sections.append(Segment(current_name, "\n\n".join(current)))
            current.clear()

    for paragraph in paragraphs:
        if _is_header(paragraph):
            flush()
            current_name = paragraph
            continue

        first_line, _, body = paragraph.partition("\n")
        if body.strip() and _is_header(first_line):
            flush()
            current_name = first_line.strip()
            current.append(body.strip())
            continue

        if len(paragraph) < MIN_PARAGRAPH_LENGTH:
            continue

        current.append(paragraph)

    flush()
    return _finalize(sections)


def _match_heading(line: str, seen: set) -> Optional[Tuple[str, str]]:
    """
    Return ``(label, inline_content)`` when ``line`` is a heading.

    Text after a colon on the heading line ("Skills: Python, Go") is the
    first line of the section; any other trailing text is part of the
    heading itself.
    """
    stripped = line.strip()
    if not stripped or len(stripped) > HEADER_MAX_LENGTH:
        return None

    for label, pattern in HEADING_PATTERNS:
        if label in seen:
            continue
        match = pattern.match(stripped)
        if match:
            tail = (match.group("tail") or "").strip()
            inline = tail[1:].strip() if tail.startswith(":") else ""
            return label, inline
    return None


def segment_by_headings(text: str) -> List[Segment]:
    """
    Split ``text`` at conventional resume headings.

    Each heading keyword cuts at most once (its first matching line); all
    lines up to the next cut belong to that heading's section. Text before
    the first heading is labelled ``PRE_HEADING_SECTION_NAME``.
    """
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")

    cuts: List[Tuple[int, str, str]] = []
    seen: set = set()
    for i, line in enumerate(lines):
        heading = _match_heading(line, seen)
        if heading is not None:
            label, inline = heading
            seen.add(label)
            cuts.append((i, label, inline))

    if not cuts:
        return segment(text)

    sections: List[Segment] = []
    start, name = 0, PRE_HEADING_SECTION_NAME
    for index, label, inline in cuts:
        if index > start:
            sections.append(Segment(name, "\n".join(lines[start:index]).strip()))
        # The heading line is replaced by whatever content it carried inline
        lines[index] = inline
        start, name = index, label

    sections.append(Segment(name, "\n".join(lines[start:]).strip()))

    return _finalize(sections)


def segment_document(text: str, kind: str = "document") -> List[Segment]:
    """Pick the segmentation heuristic for a document kind."""
    if kind == "resume":
        return segment_by_headings(text)
    return segment(text)
