"""
Domain Errors and Global Error Handling

This module defines the exception hierarchy raised by the ingestion and
question-answering core, and the FastAPI handlers that render them.

Design Goals
------------
- Never leak internal exception details to clients
- Always return deterministic, machine-readable error responses
- Log full stack traces internally for debugging
- Keep the domain errors framework-agnostic (only the handlers know FastAPI)
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("documet.errors")


# ---------------------------------------------------------------------
# Domain Exceptions
# ---------------------------------------------------------------------

class DocumetError(Exception):
    """Base class for all expected failures of the document core."""

    code: str = "error"
    status_code: int = 400


class NotFoundError(DocumetError):
    """A document, section or subsection does not exist."""

    code = "not_found"
    status_code = 404


class AccessDeniedError(DocumetError):
    """The requester does not own the resource and it is not shared."""

    code = "access_denied"
    status_code = 403


class UnsupportedInputError(DocumetError):
    """The uploaded file type cannot be converted to text."""

    code = "unsupported_input"
    status_code = 415


class ExternalServiceError(DocumetError):
    """An embedding, completion or vector-store call failed or timed out."""

    code = "external_service_failure"
    status_code = 502


class EmbeddingError(ExternalServiceError):
    """Raised when embedding generation fails."""


class CompletionError(ExternalServiceError):
    """Raised when the completion model call fails."""


class VectorStoreError(ExternalServiceError):
    """Raised when the vector index rejects a read or write."""


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def domain_exception_handler(
    request: Request,
    exc: DocumetError,
) -> JSONResponse:
    """
    Render an expected domain failure.

    NotFound / AccessDenied / UnsupportedInput are terminal for the request
    and are returned immediately with their own status code.
    """
    if exc.status_code >= 500:
        logger.error(
            "Request %s %s failed: %s",
            request.method,
            request.url.path,
            exc,
        )

    payload: Dict[str, Any] = {
        "error": exc.code,
        "detail": str(exc) or exc.code,
    }

    return JSONResponse(
        status_code=exc.status_code,
        content=payload,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.

    Parameters
    ----------
    request : Request
        The incoming HTTP request that triggered the exception.

    exc : Exception
        The uncaught exception instance.

    Returns
    -------
    JSONResponse
        A JSON 500 response with a minimal error payload.
    """

    # Log full traceback internally (never returned to client)
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )
