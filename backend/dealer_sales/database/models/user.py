"""
User model with role management.

Users are created by the external identity provider; this service only reads
them to resolve customers, staff capability and display fields.
"""

import enum
from typing import Optional

from sqlalchemy import Enum as SQLEnum, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from dealer_sales.database.base import AuditedModel


class UserRole(str, enum.Enum):
    """User role enumeration for role-based access control."""

    CUSTOMER = "customer"
    DEALER_STAFF = "dealer_staff"
    DEALER_MANAGER = "dealer_manager"

    @classmethod
    def from_string(cls, value: str) -> "UserRole":
        """
        Convert string to UserRole enum.

        Raises:
            ValueError: If value is not a valid role
        """
        try:
            return cls[value.upper()]
        except KeyError:
            raise ValueError(f"Invalid role: {value}")

    @property
    def is_staff(self) -> bool:
        return self in (UserRole.DEALER_STAFF, UserRole.DEALER_MANAGER)


class User(AuditedModel):
    """
    Dealership user: a customer or a member of staff.

    Attributes:
        email: Unique email address
        full_name: Display name
        phone_number: Contact phone number
        role: Role governing staff capability
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="User email address",
    )

    full_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        comment="User full name",
    )

    phone_number: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="User phone number",
    )

    role: Mapped[UserRole] = mapped_column(
        SQLEnum(
            UserRole,
            name="user_role",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=UserRole.CUSTOMER,
        comment="User role for access control",
    )

    __table_args__ = (
        Index("ix_users_role", "role"),
        {"comment": "Dealership customers and staff"},
    )

    @property
    def is_staff(self) -> bool:
        """Staff capability: dealer staff or dealer manager."""
        return self.role.is_staff

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"
