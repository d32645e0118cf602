"""
Request-scoped dependency wiring.

Long-lived clients (embedder, completion client, response cache) are built
once in the application lifespan and stored on ``app.state``. Stores and
services are built per request around their own database sessions.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache.store import ResponseCache
from ..db.repository import DocumentRepository
from ..db.session import get_async_session, get_vector_session
from ..db.vector_store import VectorStore
from ..embeddings.embedder import Embedder
from ..llm.client import LLMClient
from ..services.composer import AnswerComposer
from ..services.documents import DocumentService
from ..services.indexer import EmbeddingIndexer
from ..services.ingestion import IngestionService
from ..services.retriever import Retriever


# ---------------------------------------------------------------------
# Long-lived clients
# ---------------------------------------------------------------------

def get_embedder(request: Request) -> Embedder:
    return request.app.state.embedder


def get_llm_client(request: Request) -> LLMClient:
    return request.app.state.llm


def get_response_cache(request: Request) -> ResponseCache:
    return request.app.state.cache


# ---------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------

def get_repository(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> DocumentRepository:
    return DocumentRepository(session)


def get_vector_store(
    session: Annotated[AsyncSession, Depends(get_vector_session)],
) -> VectorStore:
    return VectorStore(session)


# ---------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------

def get_indexer(
    repository: Annotated[DocumentRepository, Depends(get_repository)],
    vector_store: Annotated[VectorStore, Depends(get_vector_store)],
    embedder: Annotated[Embedder, Depends(get_embedder)],
) -> EmbeddingIndexer:
    return EmbeddingIndexer(repository, vector_store, embedder)


def get_ingestion_service(
    repository: Annotated[DocumentRepository, Depends(get_repository)],
    indexer: Annotated[EmbeddingIndexer, Depends(get_indexer)],
) -> IngestionService:
    return IngestionService(repository, indexer)


def get_retriever(
    repository: Annotated[DocumentRepository, Depends(get_repository)],
    vector_store: Annotated[VectorStore, Depends(get_vector_store)],
    embedder: Annotated[Embedder, Depends(get_embedder)],
) -> Retriever:
    return Retriever(repository, vector_store, embedder)


def get_composer(
    llm: Annotated[LLMClient, Depends(get_llm_client)],
    cache: Annotated[ResponseCache, Depends(get_response_cache)],
) -> AnswerComposer:
    return AnswerComposer(llm, cache)


def get_document_service(
    repository: Annotated[DocumentRepository, Depends(get_repository)],
    vector_store: Annotated[VectorStore, Depends(get_vector_store)],
    indexer: Annotated[EmbeddingIndexer, Depends(get_indexer)],
    cache: Annotated[ResponseCache, Depends(get_response_cache)],
) -> DocumentService:
    return DocumentService(repository, vector_store, indexer=indexer, cache=cache)
