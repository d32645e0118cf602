"""
Shared test fixtures.

Required secrets are seeded before anything imports `documet.config`, and
the two stores are replaced by in-memory fakes that mimic the public
surface of DocumentRepository and VectorStore.
"""

import os

os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ.setdefault("JWT_SECRET", "test-secret-for-documet-must-be-long-enough")

import time
import uuid
from datetime import datetime, timezone, timedelta
from typing import Dict, List, Optional, Set
from unittest.mock import AsyncMock

import jwt
import pytest
from sqlalchemy.exc import SQLAlchemyError

from documet.config import settings
from documet.core.errors import VectorStoreError
from documet.db.models import Document, Section, Subsection
from documet.db.repository import StoredChunk
from documet.db.vector_store import VectorEntry, VectorMatch
from documet.embeddings.embedder import Embedder
from documet.llm.client import LLMClient
from documet.services.retriever import cosine_similarity


# ---------------------------------------------------------------------
# In-memory relational store
# ---------------------------------------------------------------------

class FakeRepository:
    """Dict-backed stand-in for DocumentRepository with cascade delete."""

    def __init__(self) -> None:
        self.documents: Dict[uuid.UUID, Document] = {}
        self.sections: Dict[uuid.UUID, Section] = {}
        self.subsections: Dict[uuid.UUID, Subsection] = {}
        self.fail_titles: Set[str] = set()
        self.commits = 0
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    async def commit(self) -> None:
        self.commits += 1

    async def create_document(
        self, user_id, text, slug, kind="document", file_name=None, storage_url=None
    ) -> Document:
        document = Document(
            id=uuid.uuid4(),
            user_id=user_id,
            text=text,
            slug=slug,
            kind=kind,
            file_name=file_name,
            storage_url=storage_url,
            created_at=self._tick(),
        )
        self.documents[document.id] = document
        return document

    async def get_document(self, document_id) -> Optional[Document]:
        return self.documents.get(document_id)

    async def get_document_by_slug(self, slug) -> Optional[Document]:
        return next((d for d in self.documents.values() if d.slug == slug), None)

    async def list_documents(self, user_id) -> List[Document]:
        rows = [d for d in self.documents.values() if d.user_id == user_id]
        return sorted(rows, key=lambda d: d.created_at, reverse=True)

    async def delete_document(self, document_id) -> bool:
        if self.documents.pop(document_id, None) is None:
            return False
        section_ids = {s.id for s in self.sections.values() if s.document_id == document_id}
        for section_id in section_ids:
            del self.sections[section_id]
        for sub_id in [s.id for s in self.subsections.values() if s.section_id in section_ids]:
            del self.subsections[sub_id]
        return True

    async def create_section(self, document_id, name) -> Section:
        section = Section(
            id=uuid.uuid4(), document_id=document_id, name=name, created_at=self._tick()
        )
        self.sections[section.id] = section
        return section

    async def add_subsection(self, section_id, title, content, embedding, chunk_index) -> Subsection:
        if title in self.fail_titles:
            raise SQLAlchemyError(f"insert failed for {title}")
        subsection = Subsection(
            id=uuid.uuid4(),
            section_id=section_id,
            title=title,
            content=content,
            embedding=embedding,
            chunk_index=chunk_index,
            created_at=self._tick(),
        )
        self.subsections[subsection.id] = subsection
        return subsection

    async def update_embedding(self, subsection_id, embedding) -> None:
        if subsection_id in self.subsections:
            self.subsections[subsection_id].embedding = embedding

    async def list_subsections(self, document_id) -> List[StoredChunk]:
        rows = []
        for sub in self.subsections.values():
            section = self.sections[sub.section_id]
            if section.document_id != document_id:
                continue
            rows.append(
                StoredChunk(
                    subsection_id=sub.id,
                    section_name=section.name,
                    title=sub.title,
                    content=sub.content,
                    embedding=sub.embedding,
                    chunk_index=sub.chunk_index,
                )
            )
        return sorted(rows, key=lambda r: r.chunk_index)

    def subsection_count(self, document_id) -> int:
        return sum(
            1
            for sub in self.subsections.values()
            if self.sections[sub.section_id].document_id == document_id
        )


# ---------------------------------------------------------------------
# In-memory vector index
# ---------------------------------------------------------------------

class FakeVectorStore:
    """Namespace-partitioned dict with brute-force cosine queries."""

    def __init__(self) -> None:
        self.records: Dict[str, Dict[uuid.UUID, VectorEntry]] = {}
        self.fail_upsert = False
        self.fail_query = False
        self.fail_delete = False
        self.commits = 0

    async def commit(self) -> None:
        self.commits += 1

    async def upsert(self, namespace, entries) -> int:
        if self.fail_upsert:
            raise VectorStoreError("upsert unavailable")
        bucket = self.records.setdefault(namespace, {})
        for entry in entries:
            bucket[entry.id] = entry
        return len(entries)

    async def query(self, namespace, vector, top_k=10, document_id=None) -> List[VectorMatch]:
        if self.fail_query:
            raise VectorStoreError("query unavailable")
        matches = [
            VectorMatch(
                id=entry.id,
                document_id=entry.document_id,
                score=cosine_similarity(vector, entry.values),
                metadata=dict(entry.metadata),
            )
            for entry in self.records.get(namespace, {}).values()
            if document_id is None or entry.document_id == document_id
        ]
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[:top_k]

    async def find_ids_by_document(self, namespace, document_id) -> List[uuid.UUID]:
        if self.fail_delete:
            raise VectorStoreError("lookup unavailable")
        return [
            entry.id
            for entry in self.records.get(namespace, {}).values()
            if entry.document_id == document_id
        ]

    async def delete_by_ids(self, namespace, ids) -> int:
        if self.fail_delete:
            raise VectorStoreError("delete unavailable")
        bucket = self.records.get(namespace, {})
        removed = 0
        for record_id in ids:
            if bucket.pop(record_id, None) is not None:
                removed += 1
        return removed

    async def delete_document(self, namespace, document_id) -> int:
        ids = await self.find_ids_by_document(namespace, document_id)
        return await self.delete_by_ids(namespace, ids)

    def count(self, namespace: str, document_id: uuid.UUID) -> int:
        return sum(
            1 for e in self.records.get(namespace, {}).values() if e.document_id == document_id
        )


# ---------------------------------------------------------------------
# Embedding helpers
# ---------------------------------------------------------------------

VOCABULARY = ["skill", "python", "company", "engineer", "degree", "project", "current", "role"]


def keyword_vector(text: str) -> List[float]:
    """Bag-of-keywords embedding; a constant bias keeps the norm non-zero."""
    lowered = text.lower()
    return [float(lowered.count(word)) for word in VOCABULARY] + [0.1]


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def vector_store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture
def embedder():
    mock = AsyncMock(spec=Embedder)
    mock.embed_one.side_effect = keyword_vector
    mock.embed.side_effect = lambda texts, batch_size=20: [keyword_vector(t) for t in texts]
    return mock


@pytest.fixture
def llm():
    mock = AsyncMock(spec=LLMClient)
    mock.complete.return_value = "A grounded answer."
    return mock


# ---------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------

def make_token(user_id: str = "alice", expired: bool = False, secret: Optional[str] = None) -> str:
    now = int(time.time())
    payload = {"sub": user_id, "iat": now, "exp": now - 10 if expired else now + 3600}
    return jwt.encode(
        payload,
        secret or settings.jwt_secret.get_secret_value(),
        algorithm=settings.jwt_algo,
    )


@pytest.fixture
def auth_headers():
    def _headers(user_id: str = "alice") -> dict:
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _headers


@pytest.fixture
def token_factory():
    return make_token
