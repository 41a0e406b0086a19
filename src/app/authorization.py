"""Role-based authorization for lifecycle operations.

Permissions are looked up in a matrix: resource -> role -> context -> ops.
Contexts, from narrowest to broadest:

- ``own``: the actor owns the record
- ``own_dept``: the record belongs to the actor's department
- ``cross_dept``: the record belongs to another department of the actor's organization
- ``cross_org``: the record belongs to another organization (platform users only)

A narrower context also grants what the broader ones within the same
organization grant: an Admin allowed to delete anything in its department
may delete its own records too.
"""

from collections.abc import Mapping
from typing import Any

from src.domain.actor_claims import ActorTokenClaims
from src.domain.constants import UserRole
from src.domain.interfaces import AuthorizationScope, IAuthorizer
from src.infrastructure.logging.config import get_logger


logger = get_logger(__name__)

READ = "read"
DELETE = "delete"
RESTORE = "restore"
ALL_OPS = frozenset({READ, DELETE, RESTORE})
READ_ONLY = frozenset({READ})

Permissions = Mapping[str, frozenset[str]]

# Applies to every resource without its own entry
DEFAULT_PERMISSIONS: Mapping[UserRole, Permissions] = {
    UserRole.SUPER_ADMIN: {"cross_org": ALL_OPS, "cross_dept": ALL_OPS},
    UserRole.ADMIN: {"own_dept": ALL_OPS, "cross_dept": READ_ONLY},
    UserRole.MANAGER: {"own": ALL_OPS, "own_dept": READ_ONLY},
    UserRole.USER: {"own": ALL_OPS, "own_dept": READ_ONLY},
}

AUTHORIZATION_MATRIX: Mapping[str, Mapping[UserRole, Permissions]] = {
    "Organization": {
        UserRole.SUPER_ADMIN: {"cross_org": ALL_OPS, "cross_dept": READ_ONLY},
        UserRole.ADMIN: {"cross_dept": READ_ONLY},
        UserRole.MANAGER: {"cross_dept": READ_ONLY},
        UserRole.USER: {"cross_dept": READ_ONLY},
    },
    "Department": {
        UserRole.SUPER_ADMIN: {"cross_org": ALL_OPS, "cross_dept": ALL_OPS},
        UserRole.ADMIN: {"cross_dept": READ_ONLY},
        UserRole.MANAGER: {"own_dept": READ_ONLY},
        UserRole.USER: {"own_dept": READ_ONLY},
    },
    "User": {
        UserRole.SUPER_ADMIN: {"cross_org": ALL_OPS, "cross_dept": ALL_OPS},
        UserRole.ADMIN: {"own_dept": ALL_OPS, "cross_dept": READ_ONLY},
        UserRole.MANAGER: {"own_dept": READ_ONLY},
        UserRole.USER: {"own_dept": READ_ONLY},
    },
}

# Context -> contexts whose grants it inherits
_WIDENING = {
    "own": ("own", "own_dept", "cross_dept"),
    "own_dept": ("own_dept", "cross_dept"),
    "cross_dept": ("cross_dept",),
    "cross_org": ("cross_org",),
}


def resolve_context(actor: ActorTokenClaims, scope: AuthorizationScope) -> str:
    """Narrowest context relating ``actor`` to the record described by ``scope``."""
    if scope.organization_id != actor.organization_id:
        return "cross_org"
    if scope.owner_id is not None and scope.owner_id == actor.user_id:
        return "own"
    if scope.department_id is not None and scope.department_id == actor.department_id:
        return "own_dept"
    return "cross_dept"


class RoleMatrixAuthorizer(IAuthorizer):
    """Authorizer backed by :data:`AUTHORIZATION_MATRIX`."""

    def __init__(
        self,
        matrix: Mapping[str, Mapping[UserRole, Permissions]] = AUTHORIZATION_MATRIX,
        default: Mapping[UserRole, Permissions] = DEFAULT_PERMISSIONS,
    ) -> None:
        self._matrix = matrix
        self._default = default

    def permissions_for(self, resource_type: str, role: UserRole) -> Permissions:
        return self._matrix.get(resource_type, self._default).get(role, {})

    def can_perform(
        self,
        actor: Any,
        resource_type: str,
        operation: str,
        scope: AuthorizationScope,
    ) -> bool:
        context = resolve_context(actor, scope)
        if context == "cross_org" and not actor.is_platform_user:
            return False
        permissions = self.permissions_for(resource_type, actor.role)
        allowed = any(operation in permissions.get(ctx, ()) for ctx in _WIDENING[context])
        if not allowed:
            logger.info(
                "authorization_denied",
                actor_id=str(actor.user_id),
                role=str(actor.role),
                resource_type=resource_type,
                operation=operation,
                context=context,
            )
        return allowed
