from sqlalchemy.orm import Session
from typing import Tuple
import logging

from ..core.exceptions import AuthenticationError, ValidationError
from ..core.security import PasswordHasher, TokenService, UserRole
from ..models.user import User
from ..schemas.auth import UserLogin, UserRegister, ChangePassword
from .user_service import ensure_available, normalize_email, save_user, set_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"

# Roles a visitor may pick for themselves
SELF_SERVICE_ROLES = (UserRole.PATIENT, UserRole.DOCTOR)


class AuthService:
    def __init__(self, db: Session, hasher: PasswordHasher, token_service: TokenService):
        self.db = db
        self.hasher = hasher
        self.token_service = token_service

    def register_user(self, user_data: UserRegister) -> Tuple[User, str]:
        """Register a new user and log them in."""
        if not user_data.username or not user_data.email or not user_data.password:
            raise ValidationError("Username, email, and password are required")

        role = user_data.role or UserRole.PATIENT
        if role not in SELF_SERVICE_ROLES:
            raise ValidationError("Role must be either doctor or patient")

        ensure_available(self.db, username=user_data.username, email=user_data.email)

        new_user = User(
            username=user_data.username,
            email=user_data.email,
            password_hash=self.hasher.hash(user_data.password),
            role=role,
        )
        save_user(self.db, new_user)
        logger.info(f"Registered user {new_user.id} ({new_user.role.value})")

        return new_user, self.token_service.issue(new_user)

    def authenticate_user(self, login_data: UserLogin) -> Tuple[User, str]:
        """Authenticate user and return a token."""
        if not login_data.email or not login_data.password:
            raise ValidationError("Email and password are required")

        # Registration stores addresses the way EmailStr normalizes them
        email = normalize_email(login_data.email)
        user = self.db.query(User).filter(User.email == email).first() if email else None
        if not user:
            logger.info("Login failed: unknown email")
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not self.hasher.verify(login_data.password, user.password_hash):
            logger.info(f"Login failed: wrong password for user {user.id}")
            raise AuthenticationError(INVALID_CREDENTIALS)

        return user, self.token_service.issue(user)

    def change_password(self, user: User, password_data: ChangePassword) -> User:
        if not self.hasher.verify(password_data.current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")

        set_password(self.hasher, user, password_data.new_password)
        return save_user(self.db, user)
