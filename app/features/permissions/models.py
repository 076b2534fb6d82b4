"""
Permission catalog, roles, and role assignments.

- Permissions form a fixed catalog of ``module.action`` keys.
- Roles bundle permission keys (many-to-many). System roles are immutable.
- Role assignments bind a user to a role, either globally (``property_id``
  is NULL) or for a single property. Assignments are deactivated, never
  deleted.
"""
import enum
from sqlalchemy import (
    String, ForeignKey, Table, Column, Text, Boolean, Integer, Enum as SQLEnum, UniqueConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin


# Role-Permission relationship
role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", Integer, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)


class PermissionScope(str, enum.Enum):
    """Where a permission is meaningful. Display only; not used for authorization."""
    GLOBAL = "GLOBAL"
    PROPERTY = "PROPERTY"


class Permission(Base, TimestampMixin):
    """
    A single capability in the catalog, e.g. ``expense.view``.

    ``module`` groups keys for display and carries no authorization meaning.
    """
    __tablename__ = "permissions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    module: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    scope: Mapped[PermissionScope] = mapped_column(
        SQLEnum(PermissionScope),
        default=PermissionScope.PROPERTY,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Permission(id={self.id}, key={self.key!r}, module={self.module})>"


class Role(Base, TimestampMixin):
    """
    Named bundle of permissions.

    System roles are seeded and cannot be edited or deleted through the API.
    """
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_system: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    permissions: Mapped[list["Permission"]] = relationship(
        "Permission",
        secondary=role_permissions,
        lazy="selectin",
        order_by="Permission.key",
    )

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name!r}, system={self.is_system})>"


class RoleAssignment(Base, TimestampMixin):
    """
    Grants a role to a user, globally or for one property.

    A NULL ``property_id`` is a global grant: it applies to every property and
    to checks that carry no property context.
    """
    __tablename__ = "user_role_assignments"
    __table_args__ = (
        UniqueConstraint("user_id", "role_id", "property_id", name="uq_user_role_property"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role_id: Mapped[int] = mapped_column(
        ForeignKey("roles.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    # NULL = global assignment
    property_id: Mapped[int | None] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), nullable=True, index=True
    )
    assigned_by_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    user: Mapped["User"] = relationship(  # type: ignore
        "User",
        foreign_keys=[user_id],
        back_populates="role_assignments",
        lazy="raise",
    )
    role: Mapped["Role"] = relationship("Role", lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<RoleAssignment(id={self.id}, user={self.user_id}, role={self.role_id}, "
            f"property={self.property_id}, active={self.is_active})>"
        )
