from fastapi import APIRouter

from .models import HealthResponse
from ..config import settings

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(
        embedding_model=settings.embedding_model,
        chat_model=settings.chat_model,
    )
