"""
Public Share Routes

Anyone holding a document's slug can read it and ask questions about it.
No bearer token is required.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from .models import AnswerResponse, QuestionRequest, SharedDocumentResponse
from .dependencies import get_composer, get_document_service, get_retriever
from .qa_routes import answer_question
from ..services.composer import AnswerComposer
from ..services.documents import DocumentService
from ..services.retriever import Retriever

router = APIRouter(prefix="/shared", tags=["shared"])


@router.get(
    "/{slug}",
    response_model=SharedDocumentResponse,
    summary="View a shared document",
)
async def get_shared_document(
    slug: str,
    documents: Annotated[DocumentService, Depends(get_document_service)],
) -> SharedDocumentResponse:
    document = await documents.get_shared(slug)
    return SharedDocumentResponse.model_validate(document)


@router.post(
    "/{slug}/qa",
    response_model=AnswerResponse,
    summary="Ask a question about a shared document",
)
async def ask_shared_question(
    slug: str,
    req: QuestionRequest,
    documents: Annotated[DocumentService, Depends(get_document_service)],
    retriever: Annotated[Retriever, Depends(get_retriever)],
    composer: Annotated[AnswerComposer, Depends(get_composer)],
) -> AnswerResponse:
    document = await documents.get_shared(slug)
    return await answer_question(document, req, retriever, composer)
