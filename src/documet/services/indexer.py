"""
Embedding Indexer

Turns one subsection into persisted, retrievable chunks.

For each chunk the indexer embeds the text, writes a Subsection row to the
relational store and then upserts a vector record into the owner's
namespace. The relational write is authoritative: a vector failure is
logged and counted but never undoes it. Chunk failures are isolated from
their siblings.

`reindex_document` rebuilds a document's vector records from its
relational Subsections and is the recovery path for any divergence.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from ..config import settings
from ..core.errors import EmbeddingError, VectorStoreError
from ..db.models import Document, Section, Subsection
from ..db.repository import DocumentRepository
from ..db.vector_store import VectorStore, VectorEntry
from ..embeddings.embedder import Embedder
from ..processing.chunker import Chunk, chunk_subsection
from ..tenants import namespace_for
from .retriever import coerce_embedding

logger = logging.getLogger("documet.indexer")


@dataclass
class IndexOutcome:
    """Result of indexing one subsection."""

    subsections: List[Subsection] = field(default_factory=list)
    chunks_total: int = 0
    chunks_failed: int = 0
    vectors_failed: int = 0


@dataclass
class ReindexOutcome:
    """Result of rebuilding a document's vector records."""

    vectors_deleted: int = 0
    vectors_written: int = 0
    reembedded: int = 0
    skipped: int = 0


def vector_metadata(
    document: Document,
    section_name: str,
    title: str,
    text: str,
    chunk_index: int,
) -> dict:
    return {
        "document_id": str(document.id),
        "user_id": document.user_id,
        "section_name": section_name,
        "title": title,
        "text": text,
        "chunk_index": chunk_index,
    }


class EmbeddingIndexer:
    """
    Chunk, embed and persist subsections into both stores.
    """

    def __init__(
        self,
        repository: DocumentRepository,
        vector_store: VectorStore,
        embedder: Embedder,
        max_chunk_size: Optional[int] = None,
        concurrency: Optional[int] = None,
    ) -> None:
        self._repository = repository
        self._vector_store = vector_store
        self._embedder = embedder
        self._max_chunk_size = max_chunk_size or settings.max_chunk_size
        self._semaphore = asyncio.Semaphore(concurrency or settings.embedding_concurrency)

    # ------------------------------------------------------------------
    # Ingestion path
    # ------------------------------------------------------------------

    async def index(
        self,
        document: Document,
        section: Section,
        title: str,
        content: str,
        first_chunk_index: int = 0,
    ) -> IndexOutcome:
        """
        Index one subsection.

        Parameters
        ----------
        document : Document
            Owning document; its user id selects the vector namespace.
        section : Section
            Parent section, already persisted.
        title, content : str
            Subsection text, chunked to the embedding budget.
        first_chunk_index : int
            Document-wide position assigned to the first chunk.

        Returns
        -------
        IndexOutcome
            Persisted Subsections and failure counts. ``chunks_total`` is
            the number of chunk indices consumed.
        """
        chunks = chunk_subsection(title, content, self._max_chunk_size)
        outcome = IndexOutcome(chunks_total=len(chunks))
        if not chunks:
            return outcome

        embeddings = await asyncio.gather(
            *(self._embed_chunk(document, chunk) for chunk in chunks)
        )

        entries: List[VectorEntry] = []
        for offset, (chunk, embedding) in enumerate(zip(chunks, embeddings)):
            if embedding is None:
                outcome.chunks_failed += 1
                continue

            chunk_index = first_chunk_index + offset
            try:
                subsection = await self._repository.add_subsection(
                    section_id=section.id,
                    title=chunk.title,
                    content=chunk.content,
                    embedding=embedding,
                    chunk_index=chunk_index,
                )
            except SQLAlchemyError:
                logger.exception(
                    "Failed to persist chunk %d of document %s", chunk_index, document.id
                )
                outcome.chunks_failed += 1
                continue

            outcome.subsections.append(subsection)
            entries.append(
                VectorEntry(
                    id=subsection.id,
                    document_id=document.id,
                    values=embedding,
                    metadata=vector_metadata(
                        document, section.name, chunk.title, chunk.content, chunk_index
                    ),
                )
            )

        outcome.vectors_failed = await self._upsert(document, entries)
        return outcome

    async def _embed_chunk(self, document: Document, chunk: Chunk) -> Optional[List[float]]:
        async with self._semaphore:
            try:
                return await self._embedder.embed_one(chunk.content)
            except EmbeddingError as exc:
                logger.warning(
                    "Skipping chunk %r of document %s: %s", chunk.title, document.id, exc
                )
                return None

    async def _upsert(self, document: Document, entries: List[VectorEntry]) -> int:
        """
        Write vector records; returns how many could not be written.
        """
        if not entries:
            return 0

        try:
            await self._vector_store.upsert(namespace_for(document.user_id), entries)
            await self._vector_store.commit()
        except VectorStoreError as exc:
            logger.error(
                "Vector upsert failed for document %s (%d records); "
                "relational rows kept, reindex to reconcile: %s",
                document.id,
                len(entries),
                exc,
            )
            return len(entries)

        return 0

    # ------------------------------------------------------------------
    # Reconciliation path
    # ------------------------------------------------------------------

    async def reindex_document(self, document: Document) -> ReindexOutcome:
        """
        Recompute every vector record of a document from the relational store.

        Stored embeddings that cannot be parsed are re-embedded from the
        Subsection content and written back. Vector-store failures
        propagate: this is an explicit recovery operation.
        """
        namespace = namespace_for(document.user_id)
        outcome = ReindexOutcome()

        stored = await self._repository.list_subsections(document.id)
        outcome.vectors_deleted = await self._vector_store.delete_document(namespace, document.id)

        entries: List[VectorEntry] = []
        repaired: List[Tuple[object, List[float]]] = []

        for chunk in stored:
            values = coerce_embedding(chunk.embedding)
            if not values:
                try:
                    values = await self._embedder.embed_one(chunk.content)
                except EmbeddingError as exc:
                    logger.warning(
                        "Cannot re-embed subsection %s of document %s: %s",
                        chunk.subsection_id,
                        document.id,
                        exc,
                    )
                    outcome.skipped += 1
                    continue
                repaired.append((chunk.subsection_id, values))
                outcome.reembedded += 1

            entries.append(
                VectorEntry(
                    id=chunk.subsection_id,
                    document_id=document.id,
                    values=values,
                    metadata=vector_metadata(
                        document, chunk.section_name, chunk.title, chunk.content, chunk.chunk_index
                    ),
                )
            )

        for subsection_id, values in repaired:
            await self._repository.update_embedding(subsection_id, values)

        outcome.vectors_written = await self._vector_store.upsert(namespace, entries)
        await self._vector_store.commit()

        logger.info(
            "Reindexed document %s: %d deleted, %d written, %d re-embedded, %d skipped",
            document.id,
            outcome.vectors_deleted,
            outcome.vectors_written,
            outcome.reembedded,
            outcome.skipped,
        )
        return outcome
