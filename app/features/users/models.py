"""
User model.

Users are provisioned from the identity provider on first login. The
``is_super_admin`` flag bypasses the role-assignment graph entirely.
"""
from datetime import datetime
from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """
    User model representing authenticated platform users.
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Identity provider user ID (links the bearer token subject to this row)
    appwrite_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    # Not every identity has an email; unique only among those that do
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Status flags
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_super_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    last_login_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Loaded explicitly with selectinload() where needed; never implicitly
    role_assignments: Mapped[list["RoleAssignment"]] = relationship(  # type: ignore
        "RoleAssignment",
        foreign_keys="RoleAssignment.user_id",
        back_populates="user",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r}, super_admin={self.is_super_admin})>"
