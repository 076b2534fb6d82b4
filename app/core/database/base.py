"""
SQLAlchemy declarative base and shared column mixins.

Every feature model (users, properties, permissions) inherits from Base so
that a single metadata object can create the whole schema.
"""
from datetime import datetime
from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Usage:
        from app.core.database.base import Base

        class Property(Base):
            __tablename__ = "properties"

            id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    """
    pass


class TimestampMixin:
    """Adds server-maintained created_at and updated_at columns."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
