"""Profile, permission and usage endpoints for the signed-in user.

- ``GET /me`` profile with role permissions, plan access and plan features
- ``GET /me/usage`` usage against plan quotas, limitations and upgrade hint
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from learnd.database.models import Profile
from learnd.database.queries.lesson import count_lessons
from learnd.logging import get_logger
from learnd.tiers import (
    TierAccess,
    TierFeatures,
    UpgradeOpportunity,
    UsageLimitation,
    UsageMetrics,
    UserPermissions,
    check_limitation,
    get_role_tier_display_name,
    get_tier_display_name,
    get_tier_features,
    get_upgrade_opportunity,
    permissions_for_profile,
    tier_access_for_profile,
)
from learnd.web.auth import get_current_profile, get_session_factory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)

LIMITATION_KINDS = ("lessons", "exports", "ai", "dashboards", "data_retention")


class ProfileResponse(BaseModel):
    id: UUID
    email: str
    display_name: str
    role: str
    subscription_tier: str | None

    model_config = {"from_attributes": True}


class MeResponse(BaseModel):
    """Everything the UI needs to gate features for the caller."""

    profile: ProfileResponse
    permissions: UserPermissions
    role_tier_name: str
    tier_access: TierAccess
    tier_name: str
    features: TierFeatures


class UsageResponse(BaseModel):
    usage: UsageMetrics
    lessons_percentage: int
    limitations: dict[str, UsageLimitation]
    upgrade_opportunity: UpgradeOpportunity | None


def create_me_router() -> APIRouter:
    """Create the profile router.

    Routes:
        GET /me - Profile, permissions and plan features
        GET /me/usage - Usage metrics and upgrade opportunity
    """
    router = APIRouter(prefix="/me", tags=["profile"])

    @router.get("", response_model=MeResponse)
    async def get_me(profile: Profile = Depends(get_current_profile)) -> dict[str, Any]:  # noqa: B008
        permissions = permissions_for_profile(profile)
        return {
            "profile": ProfileResponse.model_validate(profile),
            "permissions": permissions,
            "role_tier_name": get_role_tier_display_name(permissions.tier),
            "tier_access": tier_access_for_profile(profile),
            "tier_name": get_tier_display_name(profile.subscription_tier),
            "features": get_tier_features(profile.subscription_tier),
        }

    @router.get("/usage", response_model=UsageResponse)
    async def get_usage(
        profile: Profile = Depends(get_current_profile),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        async with session_factory() as session:
            lessons_used = await count_lessons(session, profile.id)

        tier = profile.subscription_tier
        usage = UsageMetrics.for_tier(tier, lessons_used=lessons_used)
        opportunity = get_upgrade_opportunity(usage, tier)

        logger.debug(
            "usage_checked",
            lessons_used=lessons_used,
            upgrade_trigger=opportunity.trigger if opportunity else None,
        )

        return {
            "usage": usage,
            "lessons_percentage": usage.lessons_percentage,
            "limitations": {kind: check_limitation(kind, usage, tier) for kind in LIMITATION_KINDS},
            "upgrade_opportunity": opportunity,
        }

    return router
