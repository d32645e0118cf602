"""
Document Routes

This module exposes endpoints for:
- Uploading a document or resume (extraction + ingestion)
- Listing the caller's documents
- Deleting a document from both stores
- Rebuilding a document's vector records
- Producing a public share link
"""

import uuid
from typing import Annotated, List, Literal

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from .models import (
    DeleteResponse,
    DocumentSummary,
    IngestionResponse,
    ReindexResponse,
    ShareLinkResponse,
)
from .dependencies import get_document_service, get_ingestion_service
from ..auth.models import UserContext
from ..auth.security import get_current_user
from ..services.documents import DocumentService
from ..services.ingestion import IngestionService

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post(
    "",
    response_model=IngestionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload and ingest a document",
)
async def upload_document(
    user: Annotated[UserContext, Depends(get_current_user)],
    ingestion: Annotated[IngestionService, Depends(get_ingestion_service)],
    file: Annotated[UploadFile, File(...)],
    kind: Annotated[Literal["document", "resume"], Form()] = "document",
) -> IngestionResponse:
    """
    Extract text from the upload and index it.

    Workflow
    --------
    1. Extract text (unsupported types are rejected with 415).
    2. Create the Document row.
    3. Segment, split, chunk, embed and persist every subsection.

    Per-chunk failures do not fail the upload; they are reported in the
    `chunks_failed` / `vectors_failed` counters.
    """
    data = await file.read()
    report = await ingestion.ingest_upload(
        data,
        file.content_type or "",
        user.user_id,
        file_name=file.filename,
        kind=kind,
    )

    return IngestionResponse(
        document=DocumentSummary.model_validate(report.document),
        sections=report.sections,
        chunks_indexed=report.chunks_indexed,
        chunks_failed=report.chunks_failed,
        vectors_failed=report.vectors_failed,
        degraded=report.degraded,
    )


@router.get(
    "",
    response_model=List[DocumentSummary],
    summary="List the caller's documents",
)
async def list_documents(
    user: Annotated[UserContext, Depends(get_current_user)],
    documents: Annotated[DocumentService, Depends(get_document_service)],
) -> List[DocumentSummary]:
    rows = await documents.list_for_user(user.user_id)
    return [DocumentSummary.model_validate(row) for row in rows]


@router.delete(
    "/{document_id}",
    response_model=DeleteResponse,
    summary="Delete a document and its vector records",
)
async def delete_document(
    document_id: uuid.UUID,
    user: Annotated[UserContext, Depends(get_current_user)],
    documents: Annotated[DocumentService, Depends(get_document_service)],
) -> DeleteResponse:
    """
    The relational delete always stands. If vector cleanup fails the
    response still reports success, with `vectors_reconciled=false`.
    """
    report = await documents.delete(document_id, user.user_id)

    return DeleteResponse(
        document_id=report.document_id,
        vectors_deleted=report.vectors_deleted,
        vectors_reconciled=report.vectors_reconciled,
        vector_error=report.vector_error,
    )


@router.post(
    "/{document_id}/reindex",
    response_model=ReindexResponse,
    summary="Rebuild vector records from stored subsections",
)
async def reindex_document(
    document_id: uuid.UUID,
    user: Annotated[UserContext, Depends(get_current_user)],
    documents: Annotated[DocumentService, Depends(get_document_service)],
) -> ReindexResponse:
    outcome = await documents.rebuild_vectors(document_id, user.user_id)

    return ReindexResponse(
        document_id=document_id,
        vectors_deleted=outcome.vectors_deleted,
        vectors_written=outcome.vectors_written,
        reembedded=outcome.reembedded,
        skipped=outcome.skipped,
    )


@router.get(
    "/{document_id}/share",
    response_model=ShareLinkResponse,
    summary="Get the public share link of a document",
)
async def share_document(
    document_id: uuid.UUID,
    user: Annotated[UserContext, Depends(get_current_user)],
    documents: Annotated[DocumentService, Depends(get_document_service)],
) -> ShareLinkResponse:
    document = await documents.get_owned(document_id, user.user_id)
    return ShareLinkResponse(slug=document.slug, url=documents.share_link(document))
