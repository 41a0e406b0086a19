"""Common API dependencies for actor authentication."""

from typing import Annotated

from authlib.jose.errors import ExpiredTokenError, JoseError
from fastapi import Depends, Header, HTTPException, status
from pydantic import ValidationError
from structlog import get_logger

from src.domain.actor_claims import ActorTokenClaims
from src.infrastructure.config import Settings, get_settings
from src.presentation.schemas.error import ErrorDetail
from src.utils.actor_auth import decode_actor_token


logger = get_logger(__name__)


def _unauthorized(code: str, message: str, details: dict[str, str] | None = None) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=ErrorDetail(code=code, message=message, details=details).model_dump(),
    )


async def get_actor(
    x_actor_token: Annotated[str | None, Header()] = None,
    settings: Annotated[Settings, Depends(get_settings)] = None,  # type: ignore[assignment]
) -> ActorTokenClaims:
    """Identify the acting user from the X-Actor-Token header (JWT with ES256).

    Every lifecycle operation is performed on behalf of an actor: the token
    carries the user id, organization, department, role and platform flag
    used for authorization and tenant isolation.

    Args:
        x_actor_token: JWT token identifying the acting user
        settings: Application settings with JWT keys and algorithm

    Returns:
        Validated actor claims

    Raises:
        401: If the token is missing, expired, badly signed or malformed

    Example:
        ```python
        curl -H "X-Actor-Token: eyJhbGc..." -X DELETE /api/v1/entities/vendors/{id}
        ```
    """
    if not x_actor_token:
        logger.warning("actor_token_missing", message="No X-Actor-Token provided")
        raise _unauthorized("ACTOR_TOKEN_MISSING", "Actor token is required")

    if settings is None:
        settings = get_settings()

    try:
        claims = decode_actor_token(x_actor_token, settings)
    except ExpiredTokenError:
        logger.warning("actor_token_expired", message="X-Actor-Token has expired")
        raise _unauthorized("ACTOR_TOKEN_EXPIRED", "Actor token has expired") from None
    except JoseError as e:
        error_msg = str(e).lower()
        if "expired" in error_msg:
            logger.warning("actor_token_expired", message="X-Actor-Token has expired")
            raise _unauthorized("ACTOR_TOKEN_EXPIRED", "Actor token has expired") from None
        if "signature" in error_msg:
            logger.warning(
                "actor_token_invalid_signature",
                message="X-Actor-Token has invalid signature",
            )
            raise _unauthorized(
                "ACTOR_TOKEN_INVALID_SIGNATURE", "Invalid actor token signature"
            ) from None
        logger.warning("actor_token_invalid", error=str(e))
        raise _unauthorized("ACTOR_TOKEN_MALFORMED", "Malformed actor token") from None
    except (ValueError, ValidationError, KeyError) as e:
        # Missing or invalid claims
        logger.warning("actor_token_claims_invalid", error=str(e))
        raise _unauthorized(
            "ACTOR_TOKEN_INVALID_CLAIMS", "Invalid actor token claims", {"error": str(e)}
        ) from None

    logger.debug(
        "actor_identified",
        user_id=str(claims.user_id),
        organization_id=str(claims.organization_id),
        role=str(claims.role),
    )
    return claims
