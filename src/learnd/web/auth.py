"""Request identity and feature gates for the Learnd API.

Authentication happens upstream; the service trusts a header (configured
by ``auth.user_header``, X-User-ID by default) carrying the signed-in
profile's UUID. Every data route depends on get_current_profile and scopes
its queries to the returned profile.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import Depends, HTTPException, Request

from learnd.database.models import Profile
from learnd.database.queries.profile import get_profile
from learnd.logging import bind_user_context, get_logger
from learnd.tiers import (
    UsageMetrics,
    can_export,
    check_limitation,
    tier_access_for_profile,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from learnd.config import LearndConfig
    from learnd.notifications import StatusChangeNotifier

logger = get_logger(__name__)


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Dependency that retrieves session factory from app state."""
    return request.app.state.session_factory  # type: ignore[no-any-return]


def get_config(request: Request) -> LearndConfig:
    return request.app.state.config  # type: ignore[no-any-return]


def get_notifier(request: Request) -> StatusChangeNotifier | None:
    return getattr(request.app.state, "notifier", None)


async def get_current_profile(
    request: Request,
    session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
        get_session_factory
    ),
) -> Profile:
    """Resolve the signed-in profile from the identity header.

    Raises:
        HTTPException: 401 if the header is missing, malformed or names an
            unknown profile.
    """
    header = request.app.state.config.auth.user_header
    raw = request.headers.get(header)
    if not raw:
        logger.info("identity_missing", header=header)
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        profile_id = UUID(raw)
    except ValueError:
        logger.warning("identity_malformed", header=header)
        raise HTTPException(status_code=401, detail="Not authenticated") from None

    async with session_factory() as session:
        profile = await get_profile(session, profile_id)

    if profile is None:
        logger.warning("identity_unknown", profile_id=str(profile_id))
        raise HTTPException(status_code=401, detail="Not authenticated")

    bind_user_context(str(profile.id), subscription_tier=profile.subscription_tier)
    return profile


def require_export(profile: Profile = Depends(get_current_profile)) -> Profile:  # noqa: B008
    """Gate a route on export permission (role or plan).

    Raises:
        HTTPException: 403 with the upgrade prompt.
    """
    if not can_export(profile):
        limitation = check_limitation(
            "exports",
            UsageMetrics.for_tier(profile.subscription_tier),
            profile.subscription_tier,
        )
        logger.info("export_denied", tier=profile.subscription_tier, role=profile.role)
        raise HTTPException(
            status_code=403,
            detail=f"{limitation.message}. {limitation.upgrade_prompt}",
        )
    return profile


def require_advanced_analytics(
    profile: Profile = Depends(get_current_profile),  # noqa: B008
) -> Profile:
    """Gate a route on the business plan or above.

    Raises:
        HTTPException: 403 with the upgrade prompt.
    """
    if not tier_access_for_profile(profile).can_access_advanced_analytics:
        logger.info("advanced_analytics_denied", tier=profile.subscription_tier)
        raise HTTPException(
            status_code=403,
            detail=(
                "Advanced analytics are available for Business plans and above. "
                "Upgrade to unlock trends and outlier detection"
            ),
        )
    return profile
