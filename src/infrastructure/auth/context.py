from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping
from uuid import UUID

from src.application.errors import AuthError, PermissionDenied
from src.domain.value_objects.role import Role

ORGANIZATION_CLAIM = "org"
ROLE_CLAIM = "role"


@dataclass(slots=True)
class AuthContext:
    user_id: UUID
    organization_id: UUID
    role: Role
    claims: dict[str, Any]

    def require_roles(self, allowed: Iterable[Role]) -> None:
        if self.role not in set(allowed):
            raise PermissionDenied("Role not allowed for this action")


def context_from_claims(claims: Mapping[str, Any]) -> AuthContext:
    """Build the request context from verified token claims.

    Tokens are issued by the external identity service and carry the user in
    `sub`, the organization in `org` and the role in `role`.
    """
    try:
        user_id = UUID(str(claims["sub"]))
    except (KeyError, ValueError) as exc:
        raise AuthError("Invalid subject in token") from exc
    try:
        organization_id = UUID(str(claims[ORGANIZATION_CLAIM]))
    except (KeyError, ValueError) as exc:
        raise AuthError("Token is not bound to an organization") from exc
    return AuthContext(
        user_id=user_id,
        organization_id=organization_id,
        role=Role.from_claim(claims.get(ROLE_CLAIM)),
        claims=dict(claims),
    )
