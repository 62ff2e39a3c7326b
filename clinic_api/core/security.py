from datetime import datetime, timedelta, timezone
from typing import Optional
from enum import Enum
import logging
import re

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError as PydanticValidationError

from .exceptions import AuthenticationError, TokenRejection, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_BCRYPT_ROUNDS = 10
DEFAULT_TOKEN_LIFETIME = timedelta(days=7)

# bcrypt ignores everything past this many bytes
MAX_PASSWORD_BYTES = 72

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$")
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


class UserRole(str, Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"


class TokenPayload(BaseModel):
    sub: str
    email: Optional[str] = None
    role: Optional[str] = None
    iat: Optional[int] = None
    exp: int


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def parse_duration(value: str) -> timedelta:
    """Parse lifetimes like ``"7d"``, ``"12h"``, ``"30m"`` or ``"3600"`` (seconds)."""
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


# Password hashing
class PasswordHasher:
    """Salted bcrypt hashing with a fixed cost factor."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    def hash(self, password: str) -> str:
        """Generate password hash."""
        if password_too_long(password):
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return self._context.hash(password)

    def verify(self, plain_password: str, hashed_password: Optional[str]) -> bool:
        """Verify a plain password against its hash.

        A stored value that is not a recognisable bcrypt hash never matches, and
        neither does a password longer than bcrypt can tell apart.
        """
        if not plain_password or not hashed_password or password_too_long(plain_password):
            return False
        try:
            return self._context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            logger.warning("Stored password hash could not be identified")
            return False


# JWT utilities
class TokenService:
    """Issues and verifies signed, time-limited bearer tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expires_delta: timedelta = DEFAULT_TOKEN_LIFETIME,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_delta = expires_delta

    def issue(self, user) -> str:
        """Create a token carrying the user's id, email and role."""
        issued_at = datetime.now(timezone.utc)
        role = user.role.value if isinstance(user.role, UserRole) else user.role
        to_encode = {
            "sub": str(user.id),
            "email": user.email,
            "role": role,
            "iat": issued_at,
            "exp": issued_at + self.expires_delta,
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenPayload:
        """Verify and decode a token.

        Raises ``AuthenticationError`` whose ``reason`` tells an expired token
        apart from one that is malformed or wrongly signed.
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise AuthenticationError("Token expired", reason=TokenRejection.EXPIRED)
        except JWTError:
            raise AuthenticationError("Invalid token", reason=TokenRejection.MALFORMED)

        try:
            return TokenPayload(**payload)
        except PydanticValidationError:
            raise AuthenticationError("Invalid token", reason=TokenRejection.MALFORMED)
