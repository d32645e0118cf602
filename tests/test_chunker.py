import math

import pytest

from documet.processing.chunker import Chunk, chunk_subsection, chunk_text


@pytest.mark.parametrize("length,max_size", [(1, 1), (10, 3), (5999, 6000), (6000, 6000), (6001, 6000), (20000, 7)])
def test_chunks_reassemble_to_input(length, max_size):
    text = "".join(chr(ord("a") + i % 26) for i in range(length))
    pieces = chunk_text(text, max_size)

    assert "".join(pieces) == text
    assert all(len(p) <= max_size for p in pieces)
    assert len(pieces) == math.ceil(length / max_size)


def test_short_text_is_single_piece():
    assert chunk_text("hello", 6000) == ["hello"]


def test_empty_text_has_no_pieces():
    assert chunk_text("", 10) == []


@pytest.mark.parametrize("max_size", [0, -5])
def test_non_positive_max_size_rejected(max_size):
    with pytest.raises(ValueError):
        chunk_text("abc", max_size)


def test_long_subsection_split_into_titled_parts():
    content = "x" * 15000
    chunks = chunk_subsection("X", content, 6000)

    assert [len(c.content) for c in chunks] == [6000, 6000, 3000]
    assert [c.title for c in chunks] == ["X - Part 1", "X - Part 2", "X - Part 3"]


def test_single_piece_keeps_title():
    assert chunk_subsection("Skills", "Python, SQL", 6000) == [Chunk("Skills", "Python, SQL")]
