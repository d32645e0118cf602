"""
Ingestion Service

Upload -> text -> Document -> Sections -> Subsections (+ vector records).

Only a failure to extract text or to create the Document row aborts the
upload. Everything after that is best-effort per chunk: the report carries
the counts so callers can tell a fully indexed document from a degraded one.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional

from ..db.models import Document
from ..db.repository import DocumentRepository
from ..extraction.extractor import extract_text
from ..processing.segmenter import segment_document
from ..processing.splitter import split
from .indexer import EmbeddingIndexer

logger = logging.getLogger("documet.ingestion")

DOCUMENT_KINDS = ("document", "resume")

_SLUG_UNSAFE = re.compile(r"[^a-z0-9]+")


@dataclass
class IngestionReport:
    document: Document
    sections: int = 0
    chunks_indexed: int = 0
    chunks_failed: int = 0
    vectors_failed: int = 0

    @property
    def degraded(self) -> bool:
        return self.chunks_failed > 0 or self.vectors_failed > 0


def make_slug(file_name: Optional[str]) -> str:
    """
    Public share slug: a slugified file stem plus a random suffix.
    """
    stem = PurePath(file_name).stem if file_name else ""
    base = _SLUG_UNSAFE.sub("-", stem.lower()).strip("-")[:60]
    suffix = uuid.uuid4().hex[:8]
    return f"{base}-{suffix}" if base else suffix


class IngestionService:
    """
    Sequential per-document ingestion pipeline.
    """

    def __init__(self, repository: DocumentRepository, indexer: EmbeddingIndexer) -> None:
        self._repository = repository
        self._indexer = indexer

    async def ingest_upload(
        self,
        data: bytes,
        mime_type: str,
        user_id: str,
        file_name: Optional[str] = None,
        kind: str = "document",
    ) -> IngestionReport:
        """
        Extract text from an uploaded file and ingest it.

        Raises
        ------
        UnsupportedInputError
            If the file type cannot be converted to text.
        """
        text = extract_text(data, mime_type)
        return await self.ingest_text(text, user_id, file_name=file_name, kind=kind)

    async def ingest_text(
        self,
        text: str,
        user_id: str,
        file_name: Optional[str] = None,
        kind: str = "document",
    ) -> IngestionReport:
        if kind not in DOCUMENT_KINDS:
            raise ValueError(f"Unknown document kind: {kind!r}")

        document = await self._repository.create_document(
            user_id=user_id,
            text=text,
            slug=make_slug(file_name),
            kind=kind,
            file_name=file_name,
        )
        # The Document must survive any later chunk failure
        await self._repository.commit()

        report = IngestionReport(document=document)
        chunk_index = 0

        for segment in segment_document(text, kind):
            section = await self._repository.create_section(document.id, segment.name)
            report.sections += 1

            for entry in split(segment.name, segment.content):
                outcome = await self._indexer.index(
                    document,
                    section,
                    entry.title,
                    entry.content,
                    first_chunk_index=chunk_index,
                )
                chunk_index += outcome.chunks_total
                report.chunks_indexed += len(outcome.subsections)
                report.chunks_failed += outcome.chunks_failed
                report.vectors_failed += outcome.vectors_failed

            await self._repository.commit()

        logger.info(
            "Ingested document %s for %s: %d sections, %d chunks indexed, "
            "%d chunks failed, %d vectors failed",
            document.id,
            user_id,
            report.sections,
            report.chunks_indexed,
            report.chunks_failed,
            report.vectors_failed,
        )
        return report
