"""
Subsection Splitter

Decomposes a section's content into embeddable entries. The behaviour is
chosen once per section from a closed set of section kinds:

    EXPERIENCE | PROJECTS | EDUCATION | SKILLS | GENERIC

Structured kinds run a prioritised chain of pattern families over the
cleaned content. A family claims the spans it matches; later families
cannot claim text an earlier family already owns, so no text is counted
twice. When no family matches anywhere, a deterministic paragraph or line
fallback is used instead.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Sequence, Tuple

from .cleaning import clean_text, normalize_whitespace


MIN_GAP_LENGTH = 20
MIN_PARAGRAPH_ENTRY_LENGTH = 30
MIN_EDUCATION_LINE_LENGTH = 20
MIN_SKILL_LENGTH = 3


@dataclass(frozen=True)
class Entry:
    """One subsection produced from a section."""

    title: str
    content: str


# ---------------------------------------------------------------------
# Section kinds
# ---------------------------------------------------------------------

class SectionKind(str, Enum):
    EXPERIENCE = "experience"
    PROJECTS = "projects"
    EDUCATION = "education"
    SKILLS = "skills"
    GENERIC = "generic"


_KIND_NAMES: Dict[SectionKind, FrozenSet[str]] = {
    SectionKind.EXPERIENCE: frozenset({
        "experience",
        "work experience",
        "professional experience",
        "employment",
        "employment history",
    }),
    SectionKind.PROJECTS: frozenset({
        "projects",
        "technical projects",
        "portfolio",
    }),
    SectionKind.EDUCATION: frozenset({
        "education",
        "academic background",
    }),
    SectionKind.SKILLS: frozenset({
        "skills",
        "technical skills",
        "competencies",
    }),
}


def resolve_kind(section_name: str) -> SectionKind:
    """Map a free-text section name onto its splitting kind."""
    key = normalize_whitespace(section_name).lower().rstrip(":")
    for kind, names in _KIND_NAMES.items():
        if key in names:
            return kind
    return SectionKind.GENERIC


# ---------------------------------------------------------------------
# Pattern families
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class PatternFamily:
    """A regular expression plus the rule turning a match into an entry."""

    name: str
    pattern: re.Pattern
    build: Callable[[re.Match], Entry]


def _group(match: re.Match, index: int) -> str:
    return normalize_whitespace(match.group(index) or "")


def _role_entry(company: str, position: str, date: str) -> Entry:
    company = company or "Unknown Company"
    position = position or "Unknown Position"
    title = f"{position} at {company}"
    content = f"{title} ({date})" if date else title
    return Entry(title, content)


def _degree_entry(degree: str, institution: str, year: str) -> Entry:
    degree = degree or "Unknown Degree"
    institution = institution or "Unknown Institution"
    title = f"{degree} from {institution}"
    content = f"{title} ({year})" if year else title
    return Entry(title, content)


def _project_entry(name: str, description: str) -> Entry:
    name = name or "Unknown Project"
    return Entry(name, f"{name}: {description}")


EXPERIENCE_FAMILIES: Tuple[PatternFamily, ...] = (
    # Company - Position (Date)
    PatternFamily(
        "company-position-date",
        re.compile(r"([A-Z][A-Za-z&. ]+?)[ \t]*[-–—|][ \t]*([A-Z][A-Za-z ]+?)[ \t]*\(([^)\n]+)\)"),
        lambda m: _role_entry(_group(m, 1), _group(m, 2), _group(m, 3)),
    ),
    # Position at Company (Date)
    PatternFamily(
        "position-at-company-date",
        re.compile(r"([A-Z][A-Za-z ]+?)[ \t]+at[ \t]+([A-Z][A-Za-z&. ]+?)[ \t]*\(([^)\n]+)\)"),
        lambda m: _role_entry(_group(m, 2), _group(m, 1), _group(m, 3)),
    ),
    # Company, Position, Date
    PatternFamily(
        "company-comma-position-comma-date",
        re.compile(
            r"^([A-Z][A-Za-z&. ]+?),[ \t]*([A-Za-z ]+?),[ \t]*([^,\n]*(?:\d{4}|[Pp]resent)[^,\n]*)$",
            re.MULTILINE,
        ),
        lambda m: _role_entry(_group(m, 1), _group(m, 2), _group(m, 3)),
    ),
)

PROJECT_FAMILIES: Tuple[PatternFamily, ...] = (
    # Project Name - Description.
    PatternFamily(
        "name-dash-description",
        re.compile(r"([A-Z][A-Za-z0-9 ]+?)[ \t]*[-–—][ \t]*([^.!?\n]+[.!?])"),
        lambda m: _project_entry(_group(m, 1), _group(m, 2)),
    ),
    # Project Name: Description.
    PatternFamily(
        "name-colon-description",
        re.compile(r"([A-Z][A-Za-z0-9 ]+?)[ \t]*:[ \t]*([^.!?\n]+[.!?])"),
        lambda m: _project_entry(_group(m, 1), _group(m, 2)),
    ),
)

EDUCATION_FAMILIES: Tuple[PatternFamily, ...] = (
    # Degree, Institution (Year)
    PatternFamily(
        "degree-institution-year",
        re.compile(r"([A-Z][A-Za-z. ]+?),[ \t]*([A-Z][A-Za-z&. ]+?)[ \t]*\(([^)\n]+)\)"),
        lambda m: _degree_entry(_group(m, 1), _group(m, 2), _group(m, 3)),
    ),
    # Institution - Degree (Year)
    PatternFamily(
        "institution-degree-year",
        re.compile(r"([A-Z][A-Za-z&. ]+?)[ \t]*[-–—][ \t]*([A-Z][A-Za-z. ]+?)[ \t]*\(([^)\n]+)\)"),
        lambda m: _degree_entry(_group(m, 2), _group(m, 1), _group(m, 3)),
    ),
)


def _claim_spans(
    content: str,
    families: Sequence[PatternFamily],
) -> List[Tuple[int, int, Entry]]:
    """
    Run every family in priority order and keep the non-overlapping matches.

    Returns (start, end, entry) triples sorted by position in ``content``.
    """
    claimed: List[Tuple[int, int, Entry]] = []

    for family in families:
        for match in family.pattern.finditer(content):
            start, end = match.span()
            if any(start < c_end and c_start < end for c_start, c_end, _ in claimed):
                continue
            claimed.append((start, end, family.build(match)))

    claimed.sort(key=lambda item: item[0])
    return claimed


def _structured_split(
    content: str,
    families: Sequence[PatternFamily],
    gap_title: str,
    remainder_title: str,
) -> List[Entry]:
    claimed = _claim_spans(content, families)
    if not claimed:
        return []

    entries: List[Entry] = []
    cursor = 0

    for start, end, entry in claimed:
        gap = content[cursor:start].strip()
        if len(gap) > MIN_GAP_LENGTH:
            entries.append(Entry(gap_title, gap))
        entries.append(entry)
        cursor = end

    remainder = content[cursor:].strip()
    if len(remainder) > MIN_GAP_LENGTH:
        entries.append(Entry(remainder_title, remainder))

    return entries


def _paragraph_split(content: str, title_prefix: str) -> List[Entry]:
    paragraphs = [
        p.strip()
        for p in re.split(r"\n\s*\n", content)
        if len(p.strip()) >= MIN_PARAGRAPH_ENTRY_LENGTH
    ]
    return [
        Entry(f"{title_prefix} {i + 1}", paragraph)
        for i, paragraph in enumerate(paragraphs)
    ]


# ---------------------------------------------------------------------
# Kind splitters
# ---------------------------------------------------------------------

def split_experience(section_name: str, content: str) -> List[Entry]:
    entries = _structured_split(
        content, EXPERIENCE_FAMILIES, "Previous Role", "Additional Experience"
    )
    return entries or _paragraph_split(content, "Experience Entry")


def split_projects(section_name: str, content: str) -> List[Entry]:
    entries = _structured_split(
        content, PROJECT_FAMILIES, "Previous Project", "Additional Projects"
    )
    return entries or _paragraph_split(content, "Project")


def split_education(section_name: str, content: str) -> List[Entry]:
    entries = _structured_split(
        content, EDUCATION_FAMILIES, "Previous Education", "Additional Education"
    )
    if entries:
        return entries

    lines = [
        line.strip()
        for line in content.split("\n")
        if len(line.strip()) > MIN_EDUCATION_LINE_LENGTH
    ]
    return [Entry(f"Education Entry {i + 1}", line) for i, line in enumerate(lines)]


SKILL_CATEGORIES: Tuple[Tuple[str, re.Pattern], ...] = (
    ("Technical Skills", re.compile(r"technical|programming|coding|software|development", re.IGNORECASE)),
    ("Soft Skills", re.compile(r"soft|communication|leadership|teamwork|management", re.IGNORECASE)),
    ("Languages", re.compile(r"language|bilingual|fluent|speak", re.IGNORECASE)),
    ("Tools & Technologies", re.compile(r"tool|technolog|framework|platform", re.IGNORECASE)),
)

_SKILL_SEPARATORS = re.compile(r"[,;]")
_CATEGORY_HEADER_MAX_LENGTH = 40


def _is_category(text: str) -> bool:
    return any(pattern.search(text) for _, pattern in SKILL_CATEGORIES)


def _skill_items(text: str) -> List[str]:
    return [
        item.strip()
        for item in _SKILL_SEPARATORS.split(text)
        if len(item.strip()) >= MIN_SKILL_LENGTH
    ]


def split_skills(section_name: str, content: str) -> List[Entry]:
    if not _is_category(content):
        items = _skill_items(content.replace("\n", ","))
        return [Entry("Skills", ", ".join(items))] if items else []

    entries: List[Entry] = []
    category = "General Skills"
    skills: List[str] = []

    def flush() -> None:
        if skills:
            entries.append(Entry(category, ", ".join(skills)))
            skills.clear()

    for raw_line in content.split("\n"):
        line = raw_line.strip()
        if not line:
            continue

        head, colon, tail = line.partition(":")
        if colon and len(head) <= _CATEGORY_HEADER_MAX_LENGTH and _is_category(head):
            flush()
            category = head.strip()
            skills.extend(_skill_items(tail))
            continue

        if (
            len(line) <= _CATEGORY_HEADER_MAX_LENGTH
            and "," not in line
            and _is_category(line)
        ):
            flush()
            category = line
            continue

        skills.extend(_skill_items(line))

    flush()
    return entries


def split_generic(section_name: str, content: str) -> List[Entry]:
    return [Entry(section_name, content)] if content else []


_SPLITTERS: Dict[SectionKind, Callable[[str, str], List[Entry]]] = {
    SectionKind.EXPERIENCE: split_experience,
    SectionKind.PROJECTS: split_projects,
    SectionKind.EDUCATION: split_education,
    SectionKind.SKILLS: split_skills,
    SectionKind.GENERIC: split_generic,
}


def split(section_name: str, content: str) -> List[Entry]:
    """
    Split one section into titled entries.

    The content is cleaned once here, before dispatch on the section kind.
    """
    kind = resolve_kind(section_name)
    return _SPLITTERS[kind](section_name, clean_text(content))
