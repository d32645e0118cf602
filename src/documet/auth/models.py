"""
Authentication Models
"""

from pydantic import BaseModel, Field, ConfigDict


class UserContext(BaseModel):
    """
    Authenticated caller derived from a verified bearer token.

    The user id doubles as the tenant key for the vector index.
    """

    user_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Identifier carried in the token's `sub` claim.",
    )

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )
