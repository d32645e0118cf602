"""
Document Repository

Relational persistence for Documents, Sections and Subsections.

All writes happen inside the caller's session and are flushed, not
committed; the request-scoped session dependency commits on success.
Subsection inserts run in a SAVEPOINT so one failing chunk does not abort
its siblings.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Document, Section, Subsection


@dataclass(frozen=True)
class StoredChunk:
    """A Subsection joined with the name of its Section."""

    subsection_id: uuid.UUID
    section_name: str
    title: str
    content: str
    embedding: Any
    chunk_index: int


class DocumentRepository:
    """
    CRUD over the Document -> Section -> Subsection hierarchy.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def commit(self) -> None:
        await self._session.commit()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(
        self,
        user_id: str,
        text: str,
        slug: str,
        kind: str = "document",
        file_name: Optional[str] = None,
        storage_url: Optional[str] = None,
    ) -> Document:
        document = Document(
            id=uuid.uuid4(),
            user_id=user_id,
            text=text,
            slug=slug,
            kind=kind,
            file_name=file_name,
            storage_url=storage_url,
        )
        self._session.add(document)
        await self._session.flush()
        return document

    async def get_document(self, document_id: uuid.UUID) -> Optional[Document]:
        return await self._session.get(Document, document_id)

    async def get_document_by_slug(self, slug: str) -> Optional[Document]:
        result = await self._session.execute(
            select(Document).where(Document.slug == slug)
        )
        return result.scalar_one_or_none()

    async def list_documents(self, user_id: str) -> List[Document]:
        result = await self._session.execute(
            select(Document)
            .where(Document.user_id == user_id)
            .order_by(Document.created_at.desc())
        )
        return list(result.scalars().all())

    async def delete_document(self, document_id: uuid.UUID) -> bool:
        """
        Delete a Document; the database cascades to its children.

        Returns True if a row was removed.
        """
        result = await self._session.execute(
            delete(Document).where(Document.id == document_id)
        )
        await self._session.flush()
        return (result.rowcount or 0) > 0

    # ------------------------------------------------------------------
    # Sections & Subsections
    # ------------------------------------------------------------------

    async def create_section(self, document_id: uuid.UUID, name: str) -> Section:
        section = Section(id=uuid.uuid4(), document_id=document_id, name=name)
        self._session.add(section)
        await self._session.flush()
        return section

    async def add_subsection(
        self,
        section_id: uuid.UUID,
        title: str,
        content: str,
        embedding: List[float],
        chunk_index: int,
    ) -> Subsection:
        subsection = Subsection(
            id=uuid.uuid4(),
            section_id=section_id,
            title=title,
            content=content,
            embedding=embedding,
            chunk_index=chunk_index,
        )
        async with self._session.begin_nested():
            self._session.add(subsection)
            await self._session.flush()
        return subsection

    async def update_embedding(
        self, subsection_id: uuid.UUID, embedding: List[float]
    ) -> None:
        subsection = await self._session.get(Subsection, subsection_id)
        if subsection is None:
            return
        subsection.embedding = embedding
        await self._session.flush()

    async def list_subsections(self, document_id: uuid.UUID) -> List[StoredChunk]:
        """
        Return every Subsection of a Document in ingestion order.
        """
        stmt = (
            select(
                Subsection.id,
                Section.name,
                Subsection.title,
                Subsection.content,
                Subsection.embedding,
                Subsection.chunk_index,
            )
            .join(Section, Subsection.section_id == Section.id)
            .where(Section.document_id == document_id)
            .order_by(Subsection.chunk_index, Subsection.created_at)
        )
        result = await self._session.execute(stmt)

        return [
            StoredChunk(
                subsection_id=row[0],
                section_name=row[1],
                title=row[2],
                content=row[3],
                embedding=row[4],
                chunk_index=row[5],
            )
            for row in result.all()
        ]
