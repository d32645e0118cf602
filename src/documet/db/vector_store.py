"""
Vector Store

PostgreSQL + pgvector based vector index, partitioned by namespace.

Every record is keyed by the id of the Subsection it mirrors and carries
the owning document id so a document's vectors can be enumerated and
deleted without touching the relational store.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import VectorStoreError
from .models import VectorRecord

logger = logging.getLogger("documet.vector_store")


@dataclass(frozen=True)
class VectorEntry:
    """A record to upsert into the index."""

    id: uuid.UUID
    document_id: uuid.UUID
    values: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class VectorMatch:
    """A query hit: record id, owning document, similarity and metadata."""

    id: uuid.UUID
    document_id: uuid.UUID
    score: float
    metadata: Dict[str, Any]


class VectorStore:
    """
    PostgreSQL-backed vector index using pgvector for similarity search.

    All failures surface as VectorStoreError so callers can decide whether
    the failure is fatal for their operation.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize with an async database session.

        Parameters
        ----------
        session : AsyncSession
            Session dedicated to the vector index; never shared with the
            relational store.
        """
        self._session = session

    async def commit(self) -> None:
        try:
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise VectorStoreError(f"Vector commit failed: {exc}") from exc

    async def upsert(self, namespace: str, entries: List[VectorEntry]) -> int:
        """
        Insert or replace records in ``namespace``.

        Returns
        -------
        int
            Number of records written.
        """
        if not entries:
            return 0

        try:
            for entry in entries:
                record = VectorRecord(
                    id=entry.id,
                    namespace=namespace,
                    document_id=entry.document_id,
                    metadata_=dict(entry.metadata),
                    embedding=entry.values,
                )
                await self._session.merge(record)
            await self._session.flush()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise VectorStoreError(f"Vector upsert failed: {exc}") from exc

        return len(entries)

    async def query(
        self,
        namespace: str,
        vector: List[float],
        top_k: int = 10,
        document_id: Optional[uuid.UUID] = None,
    ) -> List[VectorMatch]:
        """
        Return up to ``top_k`` records nearest to ``vector`` by cosine.

        Parameters
        ----------
        namespace : str
            Partition to search.
        vector : List[float]
            Query embedding.
        top_k : int
            Maximum number of matches.
        document_id : Optional[uuid.UUID]
            If provided, restrict matches to records of this document.
        """
        cosine_distance = VectorRecord.embedding.cosine_distance(vector)

        stmt = (
            select(
                VectorRecord.id,
                VectorRecord.document_id,
                VectorRecord.metadata_,
                (1 - cosine_distance).label("score"),
            )
            .where(VectorRecord.namespace == namespace)
            .order_by(cosine_distance)
            .limit(top_k)
        )

        if document_id is not None:
            stmt = stmt.where(VectorRecord.document_id == document_id)

        try:
            result = await self._session.execute(stmt)
            rows = result.all()
        except SQLAlchemyError as exc:
            raise VectorStoreError(f"Vector query failed: {exc}") from exc

        return [
            VectorMatch(
                id=row.id,
                document_id=row.document_id,
                score=float(row.score),
                metadata=row.metadata_ or {},
            )
            for row in rows
        ]

    async def find_ids_by_document(
        self, namespace: str, document_id: uuid.UUID
    ) -> List[uuid.UUID]:
        stmt = select(VectorRecord.id).where(
            VectorRecord.namespace == namespace,
            VectorRecord.document_id == document_id,
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise VectorStoreError(f"Vector lookup failed: {exc}") from exc
        return [row[0] for row in result.all()]

    async def delete_by_ids(self, namespace: str, ids: List[uuid.UUID]) -> int:
        """
        Remove records by id within a namespace.

        Returns the number of deleted rows.
        """
        if not ids:
            return 0

        stmt = delete(VectorRecord).where(
            VectorRecord.namespace == namespace,
            VectorRecord.id.in_(ids),
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise VectorStoreError(f"Vector delete failed: {exc}") from exc
        return result.rowcount or 0

    async def delete_document(self, namespace: str, document_id: uuid.UUID) -> int:
        """
        Enumerate a document's records and delete them.
        """
        ids = await self.find_ids_by_document(namespace, document_id)
        deleted = await self.delete_by_ids(namespace, ids)
        logger.debug(
            "Deleted %d vectors for document %s in %s", deleted, document_id, namespace
        )
        return deleted
