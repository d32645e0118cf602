"""
Document Lifecycle

Ownership checks, sharing, deletion and vector reconciliation.

Deletion order is fixed: the relational delete commits first and is
authoritative. Vector cleanup runs afterwards as a separate best-effort
step; a failure there is logged and reported, never reversed.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional

from ..cache.store import ResponseCache
from ..config import settings
from ..core.errors import AccessDeniedError, NotFoundError, VectorStoreError
from ..db.models import Document
from ..db.repository import DocumentRepository
from ..db.vector_store import VectorStore
from ..tenants import namespace_for
from .indexer import EmbeddingIndexer, ReindexOutcome

logger = logging.getLogger("documet.documents")


@dataclass
class DeleteReport:
    document_id: uuid.UUID
    vectors_deleted: int = 0
    vector_error: Optional[str] = None

    @property
    def vectors_reconciled(self) -> bool:
        return self.vector_error is None


class DocumentService:
    def __init__(
        self,
        repository: DocumentRepository,
        vector_store: VectorStore,
        indexer: Optional[EmbeddingIndexer] = None,
        cache: Optional[ResponseCache] = None,
    ) -> None:
        self._repository = repository
        self._vector_store = vector_store
        self._indexer = indexer
        self._cache = cache

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def get_owned(self, document_id: uuid.UUID, user_id: str) -> Document:
        """
        Raises
        ------
        NotFoundError
            If the document does not exist.
        AccessDeniedError
            If it belongs to someone else.
        """
        document = await self._repository.get_document(document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")
        if document.user_id != user_id:
            raise AccessDeniedError("You do not have access to this document")
        return document

    async def get_shared(self, slug: str) -> Document:
        document = await self._repository.get_document_by_slug(slug)
        if document is None:
            raise NotFoundError(f"No shared document for '{slug}'")
        return document

    async def list_for_user(self, user_id: str) -> List[Document]:
        return await self._repository.list_documents(user_id)

    def share_link(self, document: Document) -> str:
        return f"{settings.public_base_url.rstrip('/')}/shared/{document.slug}"

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def delete(self, document_id: uuid.UUID, user_id: str) -> DeleteReport:
        document = await self.get_owned(document_id, user_id)
        namespace = namespace_for(document.user_id)

        await self._repository.delete_document(document.id)
        await self._repository.commit()

        if self._cache is not None:
            self._cache.discard(document.id)

        report = DeleteReport(document_id=document.id)
        try:
            report.vectors_deleted = await self._vector_store.delete_document(
                namespace, document.id
            )
            await self._vector_store.commit()
        except VectorStoreError as exc:
            logger.error(
                "Vector cleanup failed for deleted document %s in %s; "
                "orphaned records need reconciliation: %s",
                document.id,
                namespace,
                exc,
            )
            report.vector_error = str(exc)

        logger.info(
            "Deleted document %s (%d vectors removed)", document.id, report.vectors_deleted
        )
        return report

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def rebuild_vectors(self, document_id: uuid.UUID, user_id: str) -> ReindexOutcome:
        """
        Recompute the document's vector records from its Subsections.
        """
        if self._indexer is None:
            raise RuntimeError("DocumentService was built without an indexer")

        document = await self.get_owned(document_id, user_id)
        outcome = await self._indexer.reindex_document(document)
        await self._repository.commit()
        return outcome
