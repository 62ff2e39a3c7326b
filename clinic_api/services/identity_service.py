from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundError
from ..core.security import TokenPayload
from ..models.user import User


class IdentityResolver:
    """Loads the live user behind a verified token."""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, token_payload: TokenPayload) -> User:
        user = self.db.query(User).filter(User.id == token_payload.sub).first()
        if not user:
            raise NotFoundError("Invalid token - user not found")
        return user
