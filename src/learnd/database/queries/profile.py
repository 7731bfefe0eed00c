"""Profile query functions for Learnd.

Provides async functions for creating, reading and updating Profile
records. Profiles are the identity every other query is scoped to.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnd.database.models.profile import Profile, SubscriptionTier, UserRole

logger = structlog.get_logger(__name__)


async def create_profile(
    session: AsyncSession,
    email: str,
    role: str = UserRole.basic_user.value,
    subscription_tier: str | None = SubscriptionTier.free.value,
    first_name: str | None = None,
    last_name: str | None = None,
) -> Profile:
    """Create a new profile.

    Args:
        session: Active async database session.
        email: Unique sign-in address.
        role: admin, power_user or basic_user.
        subscription_tier: free, team, business or enterprise.
        first_name: Optional given name.
        last_name: Optional family name.

    Returns:
        The newly created Profile instance.

    Raises:
        ValueError: If role or subscription tier is not recognized, or the
            email is already registered.
    """
    if role not in {r.value for r in UserRole}:
        raise ValueError(f"Unknown role: {role}")
    if subscription_tier is not None and subscription_tier not in {t.value for t in SubscriptionTier}:
        raise ValueError(f"Unknown subscription tier: {subscription_tier}")
    if await get_profile_by_email(session, email) is not None:
        raise ValueError(f"Profile with email {email} already exists")

    profile = Profile(
        email=email,
        role=role,
        subscription_tier=subscription_tier,
        first_name=first_name,
        last_name=last_name,
    )
    session.add(profile)
    await session.commit()
    await session.refresh(profile)

    logger.info(
        "profile_created",
        profile_id=str(profile.id),
        role=role,
        subscription_tier=subscription_tier,
    )

    return profile


async def get_profile(session: AsyncSession, profile_id: UUID) -> Profile | None:
    """Retrieve a profile by ID.

    Returns:
        The Profile instance if found, None otherwise.
    """
    stmt = select(Profile).where(Profile.id == profile_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_profile_by_email(session: AsyncSession, email: str) -> Profile | None:
    stmt = select(Profile).where(Profile.email == email)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def update_profile(
    session: AsyncSession,
    profile_id: UUID,
    role: str | None = None,
    subscription_tier: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
) -> Profile:
    """Update a profile's role, plan or name.

    Only non-None arguments are applied.

    Raises:
        ValueError: If the profile is not found or a value is not recognized.
    """
    profile = await get_profile(session, profile_id)
    if profile is None:
        raise ValueError(f"Profile {profile_id} not found")

    if role is not None:
        if role not in {r.value for r in UserRole}:
            raise ValueError(f"Unknown role: {role}")
        profile.role = role
    if subscription_tier is not None:
        if subscription_tier not in {t.value for t in SubscriptionTier}:
            raise ValueError(f"Unknown subscription tier: {subscription_tier}")
        profile.subscription_tier = subscription_tier
    if first_name is not None:
        profile.first_name = first_name
    if last_name is not None:
        profile.last_name = last_name

    await session.commit()
    await session.refresh(profile)

    logger.info(
        "profile_updated",
        profile_id=str(profile_id),
        role=profile.role,
        subscription_tier=profile.subscription_tier,
    )

    return profile
