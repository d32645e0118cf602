"""
API Models

Pydantic models used for request/response validation across the document,
question-answering and sharing endpoints.

Design Goals
------------
- Strong typing
- Safe defaults (no shared mutable state)
- Explicit response contracts for OpenAPI generation
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional, Literal

from pydantic import BaseModel, Field, ConfigDict


# ---------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------

class DocumentSummary(BaseModel):
    """
    Listing view of a Document (no full text).
    """
    id: uuid.UUID
    slug: str
    kind: Literal["document", "resume"]
    file_name: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(extra="forbid", from_attributes=True)


class SharedDocumentResponse(BaseModel):
    """
    Public view of a shared Document.
    """
    slug: str
    kind: Literal["document", "resume"]
    file_name: Optional[str] = None
    text: str

    model_config = ConfigDict(extra="forbid", from_attributes=True)


class IngestionResponse(BaseModel):
    document: DocumentSummary
    sections: int = Field(..., ge=0)
    chunks_indexed: int = Field(..., ge=0)
    chunks_failed: int = Field(..., ge=0)
    vectors_failed: int = Field(..., ge=0)
    degraded: bool

    model_config = ConfigDict(extra="forbid")


class DeleteResponse(BaseModel):
    status: Literal["deleted"] = "deleted"
    document_id: uuid.UUID
    vectors_deleted: int = Field(..., ge=0)
    vectors_reconciled: bool
    vector_error: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ReindexResponse(BaseModel):
    document_id: uuid.UUID
    vectors_deleted: int = Field(..., ge=0)
    vectors_written: int = Field(..., ge=0)
    reembedded: int = Field(..., ge=0)
    skipped: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid")


class ShareLinkResponse(BaseModel):
    slug: str
    url: str

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Question answering
# ---------------------------------------------------------------------

class QuestionRequest(BaseModel):
    """
    A question about one document.
    """
    question: str = Field(..., min_length=1, max_length=2000)
    k: Optional[int] = Field(default=None, ge=1, le=50)
    strategy: Literal["cosine", "vector"] = "cosine"

    model_config = ConfigDict(extra="forbid")


class RetrievedChunk(BaseModel):
    section: str
    title: str
    content: str
    score: float

    model_config = ConfigDict(extra="forbid")


class AnswerResponse(BaseModel):
    question: str
    answer: str
    cited_sections: List[str] = Field(default_factory=list)
    confidence: float
    chunks: List[RetrievedChunk] = Field(default_factory=list)
    document_name: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class OverviewResponse(BaseModel):
    summary: str
    questions: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class QuestionsResponse(BaseModel):
    questions: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    embedding_model: str
    chat_model: str

    model_config = ConfigDict(extra="forbid")
