"""
Chunker

Enforces the embedding input budget on subsection content. Pieces are hard
character cuts: no overlap, no sentence awareness, and their concatenation
is exactly the input.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Chunk:
    """An embeddable piece of a subsection."""

    title: str
    content: str


def chunk_text(text: str, max_size: int) -> List[str]:
    """
    Cut ``text`` into ``ceil(len(text) / max_size)`` ordered pieces.

    Raises
    ------
    ValueError
        If ``max_size`` is not positive.
    """
    if max_size <= 0:
        raise ValueError(f"max_size must be positive; got {max_size}")

    if not text:
        return []

    if len(text) <= max_size:
        return [text]

    count = math.ceil(len(text) / max_size)
    return [text[i * max_size:(i + 1) * max_size] for i in range(count)]


def chunk_subsection(title: str, content: str, max_size: int) -> List[Chunk]:
    """
    Chunk a subsection, suffixing titles with `` - Part N`` when it splits.
    """
    pieces = chunk_text(content, max_size)
    if len(pieces) == 1:
        return [Chunk(title, pieces[0])]

    return [
        Chunk(f"{title} - Part {i + 1}", piece)
        for i, piece in enumerate(pieces)
    ]
