"""
Role sets for route protection and the role check applied to them.
"""
from typing import Iterable, Tuple

from .exceptions import AuthenticationError, AuthorizationError
from .security import UserRole

RoleSet = Tuple[UserRole, ...]

# Each route declares one of these explicitly
ADMIN_ONLY: RoleSet = (UserRole.ADMIN,)
ADMIN_OR_DOCTOR: RoleSet = (UserRole.ADMIN, UserRole.DOCTOR)
ANY_ROLE: RoleSet = (UserRole.ADMIN, UserRole.DOCTOR, UserRole.PATIENT)


def _role_value(role) -> str:
    return role.value if isinstance(role, UserRole) else str(role)


def authorize(user, allowed_roles: Iterable[UserRole]):
    """Return ``user`` if its current role is one of ``allowed_roles``.

    Raises ``AuthenticationError`` when there is no user at all and
    ``AuthorizationError`` (listing the accepted roles) when the role is not
    allowed.
    """
    if user is None:
        raise AuthenticationError("Authentication required")

    accepted = [_role_value(role) for role in allowed_roles]
    if _role_value(user.role) not in accepted:
        raise AuthorizationError(
            f"Access denied. Required role: {' or '.join(accepted)}",
            required_roles=accepted,
        )
    return user
