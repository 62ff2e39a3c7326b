from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from typing import Iterable, Optional

from ..core.database import get_db
from ..core.exceptions import AuthenticationError, TokenRejection
from ..core.permissions import ADMIN_ONLY, ADMIN_OR_DOCTOR, ANY_ROLE, authorize
from ..core.security import PasswordHasher, TokenPayload, TokenService, UserRole
from ..models.user import User
from ..services.identity_service import IdentityResolver

# Missing headers are reported by get_current_user_token, not by HTTPBearer
security = HTTPBearer(auto_error=False)


def get_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


async def get_current_user_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token_service: TokenService = Depends(get_token_service),
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required", reason=TokenRejection.MISSING)

    return token_service.verify(credentials.credentials)


def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db),
) -> User:
    """Get current authenticated user from database."""
    return IdentityResolver(db).resolve(token_payload)


# Role-based access control dependencies
def require_role(allowed_roles: Iterable[UserRole]):
    """Create a dependency that requires one of ``allowed_roles``.

    The check uses the role stored on the user right now, not the role
    captured in the token when it was issued.
    """
    allowed_roles = tuple(allowed_roles)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        return authorize(current_user, allowed_roles)

    return role_checker


get_admin_user = require_role(ADMIN_ONLY)
get_doctor_user = require_role(ADMIN_OR_DOCTOR)
get_member_user = require_role(ANY_ROLE)
