"""
Database Package

Provides SQLAlchemy async session management, model definitions and the
two stores: the relational document repository and the pgvector index.
"""

from .session import get_async_session, get_vector_session, async_engine, AsyncSessionLocal
from .models import Base, Document, Section, Subsection, VectorRecord
from .repository import DocumentRepository, StoredChunk
from .vector_store import VectorStore, VectorEntry, VectorMatch

__all__ = [
    "get_async_session",
    "get_vector_session",
    "async_engine",
    "AsyncSessionLocal",
    "Base",
    "Document",
    "Section",
    "Subsection",
    "VectorRecord",
    "DocumentRepository",
    "StoredChunk",
    "VectorStore",
    "VectorEntry",
    "VectorMatch",
]
