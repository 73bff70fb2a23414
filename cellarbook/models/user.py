"""User document model for authentication."""

from datetime import datetime, timezone
from typing import Optional

from beanie import Document, Indexed
from pydantic import Field


class User(Document):
    """User document model for authentication.

    Fields:
    - id: ObjectId primary key (from Document)
    - email: unique email, used as the login name
    - hashed_password: argon2 password hash
    - is_active: account active status
    - is_superuser: admin status (may refresh the catalog)
    - full_name: optional display name
    - created_at, updated_at, last_login: timestamps
    """

    email: Indexed(str, unique=True)
    hashed_password: str
    is_active: bool = True
    is_superuser: bool = False
    full_name: Optional[str] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_login: Optional[datetime] = None

    class Settings:
        name = "users"

    @property
    def is_admin(self) -> bool:
        """Alias for is_superuser."""
        return self.is_superuser

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, is_active={self.is_active})>"
