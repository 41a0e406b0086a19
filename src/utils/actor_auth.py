"""Actor authentication utilities using JWT with ES256.

Every lifecycle request carries an actor token identifying the acting user:
its id, organization, department, role and platform membership. Tokens are
signed with an EC key (ES256 by default) so verifiers only need the public
key.
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID

from authlib.jose import JoseError, JsonWebToken
from structlog import get_logger

from src.domain.actor_claims import ActorTokenClaims
from src.domain.constants import UserRole
from src.infrastructure.config import Settings, get_settings


logger = get_logger(__name__)


def create_actor_token(
    user_id: UUID,
    organization_id: UUID,
    department_id: UUID,
    role: UserRole,
    is_platform_user: bool = False,
    expires_delta: timedelta | None = None,
    settings: Settings | None = None,
) -> str:
    """Create a signed actor token.

    Args:
        user_id: Acting user
        organization_id: Tenant of the acting user
        department_id: Department of the acting user
        role: Role of the acting user
        is_platform_user: Whether the user belongs to the platform organization
        expires_delta: Token lifetime (defaults to access_token_expire_minutes)
        settings: Optional settings instance. If not provided, uses get_settings()

    Returns:
        Encoded JWT token string

    Example:
        ```python
        token = create_actor_token(user.id, user.organization_id, user.department_id, user.role)
        headers = {"X-Actor-Token": token}
        ```
    """
    if settings is None:
        settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    now = datetime.now(UTC)
    claims = ActorTokenClaims(
        sub=user_id,
        organization_id=organization_id,
        department_id=department_id,
        role=role,
        is_platform_user=is_platform_user,
        exp=now + expires_delta,
        iat=now,
    )

    jwt_instance = JsonWebToken([settings.jwt_algorithm])
    header = {"alg": settings.jwt_algorithm}
    private_key = settings.get_jwt_private_key()
    token_bytes = jwt_instance.encode(header, claims.to_jwt_payload(), private_key)
    token = token_bytes.decode("utf-8") if isinstance(token_bytes, bytes) else token_bytes

    logger.debug(
        "actor_token_created",
        user_id=str(user_id),
        organization_id=str(organization_id),
        expires_in_minutes=expires_delta.total_seconds() / 60,
    )
    return token


def decode_actor_token(token: str, settings: Settings | None = None) -> ActorTokenClaims:
    """Decode and validate an actor token.

    Args:
        token: The JWT token string to decode
        settings: Optional settings instance. If not provided, uses get_settings()

    Returns:
        Validated ActorTokenClaims

    Raises:
        JoseError: If the token is expired, malformed or badly signed,
            or is not an actor token
        ValueError: If the claims are invalid
    """
    if settings is None:
        settings = get_settings()

    jwt_instance = JsonWebToken([settings.jwt_algorithm])
    payload = jwt_instance.decode(token, settings.get_jwt_public_key())

    exp_timestamp = payload.get("exp")
    if isinstance(exp_timestamp, int | float) and datetime.now(UTC).timestamp() >= exp_timestamp:
        raise JoseError("Signature has expired")
    if payload.get("type") != "actor_access":
        raise JoseError("Not an actor access token")

    claims = ActorTokenClaims.from_jwt_payload(dict(payload))
    logger.debug(
        "actor_token_decoded",
        user_id=str(claims.user_id),
        organization_id=str(claims.organization_id),
    )
    return claims
