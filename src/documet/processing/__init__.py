"""
Text Processing Package

Pure, deterministic transformations from extracted document text to
embeddable chunks: cleaning, section segmentation, subsection splitting and
size-bounded chunking.
"""

from .chunker import Chunk, chunk_text, chunk_subsection
from .cleaning import clean_text, normalize_whitespace
from .segmenter import Segment, segment, segment_by_headings, segment_document
from .splitter import Entry, SectionKind, resolve_kind, split

__all__ = [
    "Chunk",
    "chunk_text",
    "chunk_subsection",
    "clean_text",
    "normalize_whitespace",
    "Segment",
    "segment",
    "segment_by_headings",
    "segment_document",
    "Entry",
    "SectionKind",
    "resolve_kind",
    "split",
]
