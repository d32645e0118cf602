"""
Subsection splitting tests, one class per section kind.
"""

import pytest

from documet.processing.cleaning import clean_text, normalize_whitespace
from documet.processing.splitter import Entry, SectionKind, resolve_kind, split


@pytest.mark.parametrize(
    "name,kind",
    [
        ("Experience", SectionKind.EXPERIENCE),
        ("Work Experience:", SectionKind.EXPERIENCE),
        ("  SKILLS ", SectionKind.SKILLS),
        ("Technical Projects", SectionKind.PROJECTS),
        ("education", SectionKind.EDUCATION),
        ("Hobbies", SectionKind.GENERIC),
        ("Main Content", SectionKind.GENERIC),
    ],
)
def test_resolve_kind(name, kind):
    assert resolve_kind(name) is kind


class TestExperience:

    def test_roles_and_gaps(self):
        content = (
            "Acme Corp - Software Engineer (2020 - Present)\n"
            "Built payment APIs in Python for millions of users.\n\n"
            "Globex - Junior Developer (2018 - 2020)\n"
            "Maintained internal tooling and CI pipelines."
        )
        entries = split("Experience", content)

        assert [e.title for e in entries] == [
            "Software Engineer at Acme Corp",
            "Previous Role",
            "Junior Developer at Globex",
            "Additional Experience",
        ]
        assert entries[0].content == "Software Engineer at Acme Corp (2020 - Present)"
        assert entries[1].content == "Built payment APIs in Python for millions of users."

    def test_position_at_company(self):
        entries = split("Experience", "Senior Engineer at Initech (2015 - 2018)")

        assert entries == [
            Entry("Senior Engineer at Initech", "Senior Engineer at Initech (2015 - 2018)")
        ]

    def test_comma_separated_role(self):
        entries = split("Experience", "Umbrella, Data Analyst, Jan 2012 - Dec 2014")

        assert entries[0].title == "Data Analyst at Umbrella"
        assert entries[0].content.endswith("(Jan 2012 - Dec 2014)")

    def test_paragraph_fallback(self):
        content = (
            "worked on many different things over a long career.\n\n"
            "also mentored several junior engineers in the team.\n\n"
            "short"
        )
        entries = split("Experience", content)

        assert [e.title for e in entries] == ["Experience Entry 1", "Experience Entry 2"]


class TestProjects:

    def test_dash_and_colon_projects(self):
        content = (
            "Documet - A document question answering service.\n"
            "Tracker: Personal finance tracker with charts."
        )
        entries = split("Projects", content)

        assert entries == [
            Entry("Documet", "Documet: A document question answering service."),
            Entry("Tracker", "Tracker: Personal finance tracker with charts."),
        ]


class TestEducation:

    def test_degree_institution_year(self):
        entries = split("Education", "Bachelor of Science, State University (2016)")

        assert entries == [
            Entry(
                "Bachelor of Science from State University",
                "Bachelor of Science from State University (2016)",
            )
        ]

    def test_line_fallback(self):
        entries = split("Education", "studied computer science for four years\nshort line")

        assert entries == [Entry("Education Entry 1", "studied computer science for four years")]


class TestSkills:

    def test_flat_list(self):
        entries = split("Skills", "Python, Go, SQL\nDocker; Kubernetes")

        assert entries == [Entry("Skills", "Python, SQL, Docker, Kubernetes")]

    def test_categories(self):
        content = "Programming: Python, Java, Rust\nSoft Skills: Leadership, Communication"
        entries = split("Skills", content)

        assert entries == [
            Entry("Programming", "Python, Java, Rust"),
            Entry("Soft Skills", "Leadership, Communication"),
        ]


class TestGeneric:

    def test_whole_section_is_one_entry(self):
        entries = split("Introduction", "Hello   world\n\n\n\nBye")

        assert entries == [Entry("Introduction", "Hello world\n\nBye")]

    def test_empty_section_has_no_entries(self):
        assert split("Introduction", "   ") == []


class TestCleaning:

    def test_contact_details_removed(self):
        text = "Reach me at jane@example.com or 555-123-4567, see https://example.com/cv"
        cleaned = clean_text(text)

        assert "@" not in cleaned
        assert "555" not in cleaned
        assert "http" not in cleaned

    def test_bullets_and_repeated_punctuation(self):
        cleaned = clean_text("• Shipped it!!!\n- Really??\n* Done...")

        assert cleaned == "Shipped it!\nReally?\nDone."

    def test_normalize_whitespace(self):
        assert normalize_whitespace("  a \n\t b  ") == "a b"
