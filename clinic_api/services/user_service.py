from pydantic import EmailStr, TypeAdapter, ValidationError as PydanticValidationError
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Dict, List, Optional
import logging

from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.security import PasswordHasher, UserRole
from ..models.user import User
from ..schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)

# Roles an administrator may hand out when creating an account
ASSIGNABLE_ROLES = (UserRole.DOCTOR, UserRole.PATIENT)

_email_adapter = TypeAdapter(EmailStr)


def normalize_email(email: str) -> Optional[str]:
    """Return ``email`` in the form stored at registration, or None if it is not an address."""
    try:
        return _email_adapter.validate_python(email)
    except PydanticValidationError:
        return None


def ensure_available(
    db: Session,
    username: Optional[str] = None,
    email: Optional[str] = None,
    exclude_id: Optional[str] = None,
) -> None:
    """Raise ``ConflictError`` naming the first unique field already taken."""
    for field, value in (("username", username), ("email", email)):
        if value is None:
            continue
        query = db.query(User).filter(getattr(User, field) == value)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ConflictError(field)


def save_user(db: Session, user: User) -> User:
    """Commit ``user``, translating unique constraint violations."""
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        detail = str(exc.orig).lower()
        field = "username" if "username" in detail else "email" if "email" in detail else "user"
        raise ConflictError(field) from exc
    db.refresh(user)
    return user


def set_password(hasher: PasswordHasher, user: User, new_password: Optional[str]) -> bool:
    """Hash and store ``new_password`` on ``user``.

    Only an absent value counts as unchanged; returns whether the hasher ran.
    """
    if new_password is None:
        return False
    user.password_hash = hasher.hash(new_password)
    return True


class UserService:
    """Administrative user management."""

    def __init__(self, db: Session, hasher: PasswordHasher):
        self.db = db
        self.hasher = hasher

    def get_user(self, user_id: str) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_users(self) -> List[User]:
        return self.db.query(User).order_by(User.created_at.desc()).all()

    def role_statistics(self) -> Dict[str, int]:
        counts = dict(
            self.db.query(User.role, func.count(User.id)).group_by(User.role).all()
        )
        return {
            "totalUsers": sum(counts.values()),
            "adminCount": counts.get(UserRole.ADMIN, 0),
            "doctorCount": counts.get(UserRole.DOCTOR, 0),
            "patientCount": counts.get(UserRole.PATIENT, 0),
        }

    def create_user(self, user_data: UserCreate) -> User:
        if user_data.role not in ASSIGNABLE_ROLES:
            raise ValidationError("Role must be either doctor or patient")

        ensure_available(self.db, username=user_data.username, email=user_data.email)

        user = User(
            username=user_data.username,
            email=user_data.email,
            password_hash=self.hasher.hash(user_data.password),
            role=user_data.role,
        )
        save_user(self.db, user)
        logger.info(f"Admin created user {user.id} with role {user.role.value}")
        return user

    def update_user(self, user_id: str, user_data: UserUpdate) -> User:
        user = self.get_user(user_id)
        changes = user_data.model_dump(exclude_unset=True)

        ensure_available(
            self.db,
            username=changes.get("username"),
            email=changes.get("email"),
            exclude_id=user.id,
        )

        for field in ("username", "email"):
            if changes.get(field) is not None:
                setattr(user, field, changes[field])

        new_role = changes.get("role")
        if new_role is not None and new_role != user.role:
            logger.info(f"Role of user {user.id} changed from {user.role.value} to {new_role.value}")
            user.role = new_role

        set_password(self.hasher, user, changes.get("password"))
        return save_user(self.db, user)

    def delete_user(self, acting_user: User, user_id: str) -> None:
        if str(user_id) == str(acting_user.id):
            raise AuthorizationError("Cannot delete your own account")

        user = self.get_user(user_id)
        self.db.delete(user)
        self.db.commit()
        logger.info(f"User {user_id} deleted by {acting_user.id}")

    def bootstrap_admin(self, username: str, email: Optional[str], password: Optional[str]) -> Optional[User]:
        """Create the first admin account when none exists yet."""
        if not email or not password:
            return None
        if self.db.query(User).filter(User.role == UserRole.ADMIN).first():
            logger.info("Admin account already present, skipping bootstrap")
            return None

        email = normalize_email(email) or email
        ensure_available(self.db, username=username, email=email)
        admin = User(
            username=username,
            email=email,
            password_hash=self.hasher.hash(password),
            role=UserRole.ADMIN,
        )
        save_user(self.db, admin)
        logger.info(f"Bootstrap admin created: {admin.email}")
        return admin
