from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import PasswordHasher, TokenService
from ...api.deps import get_current_user, get_hasher, get_token_service
from ...services.auth_service import AuthService
from ...schemas.auth import (
    UserLogin, UserRegister, ChangePassword, UserResponse,
    AuthData, AuthResponse, UserEnvelope
)
from ...models.user import User

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_auth_service(
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
    token_service: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(db, hasher, token_service)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Register a new user and return a token for immediate use."""
    user, token = auth_service.register_user(user_data)
    return AuthResponse(
        message="User registered successfully",
        data=AuthData(user=UserResponse.model_validate(user), token=token),
    )


@router.post("/login", response_model=AuthResponse)
def login(
    login_data: UserLogin,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Authenticate user and return an access token."""
    user, token = auth_service.authenticate_user(login_data)
    return AuthResponse(
        message="Login successful",
        data=AuthData(user=UserResponse.model_validate(user), token=token),
    )


@router.get("/profile", response_model=UserEnvelope)
def get_profile(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return UserEnvelope(data=UserResponse.model_validate(current_user))


@router.post("/change-password")
def change_password(
    password_data: ChangePassword,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Change user password."""
    auth_service.change_password(current_user, password_data)
    return {"success": True, "message": "Password changed successfully"}
