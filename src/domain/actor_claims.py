"""Actor token claims models for JWT authentication.

This module defines the structure of the JWT claims identifying the acting
user of a request, providing type safety and validation through Pydantic
models.
"""

from datetime import UTC, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.domain.constants import UserRole


class ActorTokenClaims(BaseModel):
    """JWT claims for actor access tokens.

    Attributes:
        sub: UUID of the acting user
        organization_id: Tenant of the acting user
        department_id: Department of the acting user
        role: Role of the acting user
        is_platform_user: Whether the actor belongs to the platform organization
        exp: Token expiration timestamp
        iat: Token issued at timestamp
        type: Token type identifier (always "actor_access")
    """

    sub: UUID = Field(..., description="UUID of the acting user")
    organization_id: UUID = Field(..., description="Organization of the acting user")
    department_id: UUID = Field(..., description="Department of the acting user")
    role: UserRole = Field(..., description="Role of the acting user")
    is_platform_user: bool = Field(default=False)
    exp: datetime = Field(..., description="Token expiration time")
    iat: datetime = Field(..., description="Token issued at time")
    type: Literal["actor_access"] = Field(default="actor_access")

    @field_validator("sub", "organization_id", "department_id", mode="before")
    @classmethod
    def validate_uuid(cls, v: UUID | str) -> UUID:
        """Accept UUIDs in their string form."""
        if isinstance(v, str):
            return UUID(v)
        return v

    @property
    def user_id(self) -> UUID:
        return self.sub

    def to_jwt_payload(self) -> dict[str, str | int | bool]:
        """Convert claims to JWT payload format (Unix timestamps, string UUIDs)."""
        return {
            "sub": str(self.sub),
            "organization_id": str(self.organization_id),
            "department_id": str(self.department_id),
            "role": self.role.value,
            "is_platform_user": self.is_platform_user,
            "exp": int(self.exp.timestamp()),
            "iat": int(self.iat.timestamp()),
            "type": self.type,
        }

    @classmethod
    def from_jwt_payload(cls, payload: dict[str, object]) -> "ActorTokenClaims":
        """Create claims from a decoded JWT payload."""
        return cls(
            sub=str(payload["sub"]),  # type: ignore[arg-type]
            organization_id=str(payload["organization_id"]),  # type: ignore[arg-type]
            department_id=str(payload["department_id"]),  # type: ignore[arg-type]
            role=str(payload["role"]),  # type: ignore[arg-type]
            is_platform_user=bool(payload.get("is_platform_user", False)),
            exp=datetime.fromtimestamp(float(payload["exp"]), UTC),  # type: ignore[arg-type]
            iat=datetime.fromtimestamp(float(payload["iat"]), UTC),  # type: ignore[arg-type]
            type=str(payload.get("type", "actor_access")),  # type: ignore[arg-type]
        )
