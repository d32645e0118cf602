"""
Question-Answering Routes

Owner-only endpoints for asking questions about a document and for
generating its summary and suggested questions.
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends

from .models import (
    AnswerResponse,
    OverviewResponse,
    QuestionRequest,
    QuestionsResponse,
    RetrievedChunk,
)
from .dependencies import get_composer, get_document_service, get_retriever
from ..auth.models import UserContext
from ..auth.security import get_current_user
from ..core.errors import EmbeddingError
from ..db.models import Document
from ..services.composer import AnswerComposer
from ..services.documents import DocumentService
from ..services.retriever import Retriever

logger = logging.getLogger("documet.api.qa")

router = APIRouter(prefix="/documents", tags=["qa"])


async def answer_question(
    document: Document,
    req: QuestionRequest,
    retriever: Retriever,
    composer: AnswerComposer,
) -> AnswerResponse:
    """
    Retrieve, then compose. Shared by the owner and public share routes.

    If the question cannot be embedded the answer degrades to the
    no-context reply instead of failing the request.
    """
    try:
        scored = await retriever.retrieve(
            document,
            req.question,
            k=req.k,
            strategy=req.strategy,
        )
    except EmbeddingError as exc:
        logger.warning("Question embedding failed for document %s: %s", document.id, exc)
        scored = []
    answer = await composer.compose(req.question, scored, document)

    return AnswerResponse(
        question=req.question,
        answer=answer.answer_text,
        cited_sections=answer.cited_sections,
        confidence=answer.confidence,
        chunks=[
            RetrievedChunk(
                section=s.section_name,
                title=s.title,
                content=s.content,
                score=s.score,
            )
            for s in scored
        ],
        document_name=document.file_name,
    )


@router.post(
    "/{document_id}/qa",
    response_model=AnswerResponse,
    summary="Ask a question about a document",
)
async def ask_question(
    document_id: uuid.UUID,
    req: QuestionRequest,
    user: Annotated[UserContext, Depends(get_current_user)],
    documents: Annotated[DocumentService, Depends(get_document_service)],
    retriever: Annotated[Retriever, Depends(get_retriever)],
    composer: Annotated[AnswerComposer, Depends(get_composer)],
) -> AnswerResponse:
    document = await documents.get_owned(document_id, user.user_id)
    return await answer_question(document, req, retriever, composer)


@router.post(
    "/{document_id}/summary",
    response_model=OverviewResponse,
    summary="Summarise a document",
)
async def summarize_document(
    document_id: uuid.UUID,
    user: Annotated[UserContext, Depends(get_current_user)],
    documents: Annotated[DocumentService, Depends(get_document_service)],
    composer: Annotated[AnswerComposer, Depends(get_composer)],
) -> OverviewResponse:
    document = await documents.get_owned(document_id, user.user_id)
    overview = await composer.summarize(document)
    return OverviewResponse(summary=overview.summary, questions=overview.questions)


@router.post(
    "/{document_id}/questions",
    response_model=QuestionsResponse,
    summary="Suggest questions about a document",
)
async def suggest_questions(
    document_id: uuid.UUID,
    user: Annotated[UserContext, Depends(get_current_user)],
    documents: Annotated[DocumentService, Depends(get_document_service)],
    composer: Annotated[AnswerComposer, Depends(get_composer)],
) -> QuestionsResponse:
    document = await documents.get_owned(document_id, user.user_id)
    questions = await composer.suggest_questions(document)
    return QuestionsResponse(questions=questions)
