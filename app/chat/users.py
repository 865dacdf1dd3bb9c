"""User lookup used by the chat core."""

from dataclasses import dataclass
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from app.models.user import User


@dataclass(frozen=True)
class UserProfile:
    id: int
    display_name: str
    role: str


class UserDirectory(Protocol):
    def get_profile(self, db: Session, user_id: int) -> Optional[UserProfile]:
        ...


class SqlUserDirectory:
    """Reads profiles from the ``users`` table on every call (no caching)."""

    def get_profile(self, db: Session, user_id: int) -> Optional[UserProfile]:
        user = (
            db.query(User)
            .filter(User.id == user_id, User.is_active.is_(True))
            .first()
        )
        if not user:
            return None
        return UserProfile(id=user.id, display_name=user.display_name, role=user.role)
