"""Profile model for Learnd.

One row per signed-in user. The role drives the legacy permission mapping
and the subscription tier drives feature gates and usage limits (see
learnd.tiers).
"""

from __future__ import annotations

import enum

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from learnd.database.models.base import Base, TimestampMixin


class UserRole(str, enum.Enum):
    admin = "admin"
    power_user = "power_user"
    basic_user = "basic_user"


class SubscriptionTier(str, enum.Enum):
    """Paid plan levels, in ascending order."""

    free = "free"
    team = "team"
    business = "business"
    enterprise = "enterprise"


class Profile(TimestampMixin, Base):
    """A Learnd user.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        email: Unique sign-in address.
        role: admin, power_user or basic_user.
        subscription_tier: free, team, business or enterprise.
        first_name: Optional given name.
        last_name: Optional family name.
    """

    __tablename__ = "profiles"

    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    role: Mapped[str] = mapped_column(
        Text,
        default=UserRole.basic_user.value,
        nullable=False,
    )
    subscription_tier: Mapped[str | None] = mapped_column(
        Text,
        default=SubscriptionTier.free.value,
        nullable=True,
    )
    first_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_name: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def display_name(self) -> str:
        parts = [part for part in (self.first_name, self.last_name) if part]
        return " ".join(parts) if parts else self.email
