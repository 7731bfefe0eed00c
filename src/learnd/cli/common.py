"""Helpers shared by the CLI command groups."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from learnd.database.models import Profile
from learnd.database.queries.profile import get_profile, get_profile_by_email


async def resolve_profile(session: AsyncSession, reference: str) -> Profile:
    """Find a profile by UUID or email.

    Raises:
        ValueError: If no profile matches.
    """
    try:
        profile = await get_profile(session, UUID(reference))
    except ValueError:
        profile = await get_profile_by_email(session, reference)
    if profile is None:
        raise ValueError(f"Profile {reference} not found")
    return profile


def parse_uuid(value: str, what: str = "ID") -> UUID:
    try:
        return UUID(value)
    except ValueError as e:
        raise ValueError(f"Invalid {what}: {value}") from e
