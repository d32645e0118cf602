"""
Multi-Tenant Vector Namespaces

Every user's vector records live in their own namespace of the vector index
so that a query can never surface another tenant's chunks.

Architecture
------------
- Each user is identified by the `sub` claim of their bearer token
- The namespace for a user is `user_{user_id}`
- All vector-store reads, writes and deletes are scoped by namespace

Security
--------
- user ids are validated before being turned into a namespace
- Only alphanumeric characters, hyphens, and underscores allowed
- Maximum 64 characters
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, ValidationError, field_validator


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

USER_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")
NAMESPACE_PREFIX = "user_"


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class InvalidTenantError(ValueError):
    """Raised when a user id is missing or malformed."""


# ---------------------------------------------------------------------
# Tenant Context Model
# ---------------------------------------------------------------------

class TenantContext(BaseModel):
    """
    Represents an isolated vector-index tenant.
    """

    user_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Identifier of the user owning the namespace.",
    )

    @field_validator("user_id", mode="before")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        if not v or not isinstance(v, str):
            raise InvalidTenantError("user_id is required")

        v = v.strip()

        if not USER_ID_PATTERN.match(v):
            raise InvalidTenantError(
                f"Invalid user_id '{v}': must be 1-64 alphanumeric chars, hyphens, or underscores"
            )

        return v

    @property
    def namespace(self) -> str:
        return f"{NAMESPACE_PREFIX}{self.user_id}"


def namespace_for(user_id: str) -> str:
    """
    Return the vector-index namespace for a user.

    Raises
    ------
    InvalidTenantError
        If user_id is invalid.
    """
    try:
        return TenantContext(user_id=user_id).namespace
    except ValidationError as exc:
        raise InvalidTenantError(f"Invalid user_id {user_id!r}") from exc
