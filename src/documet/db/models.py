"""
SQLAlchemy Models

Defines the database schema for:
- Documents, their Sections and Subsections (the relational store)
- Vector records (the pgvector-backed vector index)

Subsection embeddings are stored as JSONB so the relational copy stays
readable even when the vector index is unavailable. Vector records are a
derived projection of Subsections and may transiently diverge from them.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional, List

from sqlalchemy import (
    Column,
    String,
    Integer,
    Text,
    DateTime,
    ForeignKey,
    Index,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from pgvector.sqlalchemy import Vector

from ..config import settings


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ---------------------------------------------------------------------
# Document Model
# ---------------------------------------------------------------------

class Document(Base):
    """
    One uploaded artifact owned by a single user.

    Deleting a Document cascades to its Sections and their Subsections.
    """
    __tablename__ = "document"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False, default="document")  # document | resume
    file_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    storage_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    sections: Mapped[List["Section"]] = relationship(
        "Section",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Section.created_at",
    )


# ---------------------------------------------------------------------
# Section Model
# ---------------------------------------------------------------------

class Section(Base):
    """
    A named region of a Document's text.
    """
    __tablename__ = "section"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("document.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    document: Mapped["Document"] = relationship("Document", back_populates="sections")
    subsections: Mapped[List["Subsection"]] = relationship(
        "Subsection",
        back_populates="section",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Subsection.chunk_index",
    )

    __table_args__ = (
        Index("idx_section_document", "document_id", "created_at"),
    )


# ---------------------------------------------------------------------
# Subsection Model
# ---------------------------------------------------------------------

class Subsection(Base):
    """
    The atomic retrievable and embeddable unit.

    `embedding` is written once together with `content` and never
    recomputed on read.
    """
    __tablename__ = "subsection"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    section_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("section.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    embedding: Mapped[Any] = mapped_column(JSONB, nullable=False)
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    section: Mapped["Section"] = relationship("Section", back_populates="subsections")

    __table_args__ = (
        Index("idx_subsection_section", "section_id", "chunk_index"),
    )


# ---------------------------------------------------------------------
# Vector Record Model (vector index)
# ---------------------------------------------------------------------

class VectorRecord(Base):
    """
    Vector-index projection of a Subsection, keyed by the Subsection id.

    Uses pgvector for similarity search. Records are partitioned by
    namespace (one per user) and are not foreign-keyed to the relational
    tables: the two stores are reconciled, not joined.
    """
    __tablename__ = "vector_record"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    namespace: Mapped[str] = mapped_column(String(80), nullable=False)
    document_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    metadata_: Mapped[dict] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    # pgvector column sized for the configured embedding model
    embedding = Column(Vector(settings.embedding_dimensions), nullable=False)

    __table_args__ = (
        Index("idx_vector_namespace_document", "namespace", "document_id"),
    )
