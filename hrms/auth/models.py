"""Auth ORM model: User (login account linked to an employee profile)."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.constants import UserRole, enum_values
from hrms.database import Base

if TYPE_CHECKING:
    from hrms.employees.models import Employee


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        sa.Enum(UserRole, name="user_role", values_callable=enum_values),
        nullable=False,
        default=UserRole.staff,
    )
    employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id", ondelete="SET NULL"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime, nullable=False, default=datetime.now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime, nullable=False, default=datetime.now, onupdate=datetime.now,
    )

    # Relationships
    employee: Mapped[Optional["Employee"]] = relationship(back_populates="user")

    def __repr__(self) -> str:
        return f"<User {self.email!r} ({self.role.value})>"
