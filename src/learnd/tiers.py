"""Role permissions, subscription tiers and usage limits for Learnd.

Two independent gates decide what a user may do:

- The legacy role (admin, power_user, basic_user) maps onto a permission
  tier (admin, paid, free) that grants export and premium access.
- The subscription tier (free < team < business < enterprise) unlocks
  exports, advanced analytics, custom dashboards and AI features, and sets
  the usage limits checked by check_limitation.

Everything here is a pure function of the profile (or tier) passed in.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

TIER_HIERARCHY: tuple[str, ...] = ("free", "team", "business", "enterprise")
UNLIMITED = -1

LimitationType = Literal["lessons", "exports", "ai", "dashboards", "data_retention"]


class UserPermissions(BaseModel):
    """Permissions derived from a profile's role.

    Attributes:
        tier: free, paid or admin
        can_export: Export functionality access
        can_access_premium_features: General premium feature access
        is_loading: True while the profile is still being resolved
    """

    tier: Literal["free", "paid", "admin"] = "free"
    can_export: bool = False
    can_access_premium_features: bool = False
    is_loading: bool = False


class TierAccess(BaseModel):
    """Feature access derived from a profile's subscription tier."""

    tier: str | None = "free"
    can_access_exports: bool = False
    can_access_advanced_analytics: bool = False
    can_access_custom_dashboards: bool = False
    can_access_ai: bool = False
    is_loading: bool = False


class TierFeatures(BaseModel):
    """Feature flags and seat limits for a plan. None limits mean unlimited."""

    exports: bool
    advanced_analytics: bool
    custom_dashboards: bool
    ai_features: bool
    max_users: int | None = None
    max_dashboards: int | None = None


class TierLimits(BaseModel):
    """Usage quotas for a plan. -1 means unlimited."""

    lessons_limit: int
    data_retention_days: int
    export_limit: int
    ai_queries_limit: int
    dashboards_limit: int


class UsageMetrics(BaseModel):
    """Current consumption against the plan's quotas."""

    lessons_used: int = Field(default=0, ge=0)
    lessons_limit: int = 25
    data_retention_days: int = 90
    export_count: int = Field(default=0, ge=0)
    export_limit: int = 0
    ai_queries_used: int = Field(default=0, ge=0)
    ai_queries_limit: int = 0
    dashboards_used: int = Field(default=0, ge=0)
    dashboards_limit: int = 3

    @property
    def lessons_percentage(self) -> int:
        if self.lessons_limit <= 0:
            return 0
        return round(self.lessons_used / self.lessons_limit * 100)

    @classmethod
    def for_tier(cls, tier: str | None, **usage: int) -> UsageMetrics:
        """Build metrics with the quotas of ``tier`` filled in."""
        limits = get_tier_limits(tier)
        return cls(
            lessons_limit=limits.lessons_limit,
            data_retention_days=limits.data_retention_days,
            export_limit=limits.export_limit,
            ai_queries_limit=limits.ai_queries_limit,
            dashboards_limit=limits.dashboards_limit,
            **usage,
        )


class UsageLimitation(BaseModel):
    type: str
    is_blocked: bool
    message: str
    upgrade_prompt: str


class UpgradeOpportunity(BaseModel):
    trigger: str
    message: str
    urgency: Literal["low", "medium", "high"]
    suggested_tier: str


def _profile_value(profile: Any, name: str) -> Any:
    if profile is None:
        return None
    if isinstance(profile, dict):
        return profile.get(name)
    return getattr(profile, name, None)


def permissions_for_profile(profile: Any, loading: bool = False) -> UserPermissions:
    """Map a profile's role onto its permission tier.

    Args:
        profile: Profile object or mapping with a ``role``; None when signed out.
        loading: True while the profile is still being fetched.

    Returns:
        UserPermissions. Unknown roles get the free tier.
    """
    if loading:
        return UserPermissions(is_loading=True)
    if profile is None:
        return UserPermissions()

    role = _profile_value(profile, "role")
    if role == "admin":
        return UserPermissions(tier="admin", can_export=True, can_access_premium_features=True)
    if role == "power_user":
        return UserPermissions(tier="paid", can_export=True, can_access_premium_features=True)
    return UserPermissions()


def meets_minimum_tier(current: str | None, required: str) -> bool:
    """Return True if ``current`` is at or above ``required``.

    A missing tier counts as free; an unrecognized tier meets nothing.
    """
    current = current or "free"
    if current not in TIER_HIERARCHY:
        return False
    return TIER_HIERARCHY.index(current) >= TIER_HIERARCHY.index(required)


def tier_access_for_profile(profile: Any, loading: bool = False) -> TierAccess:
    """Evaluate subscription-based feature access for a profile."""
    if loading:
        return TierAccess(tier=None, is_loading=True)
    if profile is None:
        return TierAccess()

    tier = _profile_value(profile, "subscription_tier") or "free"
    return TierAccess(
        tier=tier,
        can_access_exports=meets_minimum_tier(tier, "team"),
        can_access_advanced_analytics=meets_minimum_tier(tier, "business"),
        can_access_custom_dashboards=meets_minimum_tier(tier, "business"),
        can_access_ai=meets_minimum_tier(tier, "enterprise"),
    )


def can_export(profile: Any) -> bool:
    """Exports are allowed when either the role or the plan grants them."""
    return (
        permissions_for_profile(profile).can_export
        or tier_access_for_profile(profile).can_access_exports
    )


def get_role_tier_display_name(tier: str | None) -> str:
    return {"free": "Free", "paid": "Power User", "admin": "Admin"}.get(tier or "", "Free")


def get_tier_display_name(tier: str | None) -> str:
    return {
        "free": "Free",
        "team": "Team",
        "business": "Business",
        "enterprise": "Enterprise",
    }.get(tier or "", "Free")


def get_tier_features(tier: str | None) -> TierFeatures:
    """Feature flags and seat limits for a plan (unknown plans get free)."""
    if tier == "team":
        return TierFeatures(
            exports=True,
            advanced_analytics=False,
            custom_dashboards=False,
            ai_features=False,
            max_users=10,
            max_dashboards=5,
        )
    if tier == "business":
        return TierFeatures(
            exports=True,
            advanced_analytics=True,
            custom_dashboards=True,
            ai_features=False,
            max_users=50,
            max_dashboards=25,
        )
    if tier == "enterprise":
        return TierFeatures(
            exports=True,
            advanced_analytics=True,
            custom_dashboards=True,
            ai_features=True,
        )
    return TierFeatures(
        exports=False,
        advanced_analytics=False,
        custom_dashboards=False,
        ai_features=False,
        max_users=1,
        max_dashboards=3,
    )


_TIER_LIMITS: dict[str, TierLimits] = {
    "free": TierLimits(
        lessons_limit=25,
        data_retention_days=90,
        export_limit=0,
        ai_queries_limit=0,
        dashboards_limit=3,
    ),
    "team": TierLimits(
        lessons_limit=500,
        data_retention_days=365,
        export_limit=50,
        ai_queries_limit=50,
        dashboards_limit=10,
    ),
    "business": TierLimits(
        lessons_limit=2000,
        data_retention_days=1095,
        export_limit=200,
        ai_queries_limit=200,
        dashboards_limit=50,
    ),
    "enterprise": TierLimits(
        lessons_limit=UNLIMITED,
        data_retention_days=UNLIMITED,
        export_limit=UNLIMITED,
        ai_queries_limit=UNLIMITED,
        dashboards_limit=UNLIMITED,
    ),
}


def get_tier_limits(tier: str | None) -> TierLimits:
    """Usage quotas for a plan (unknown plans get free)."""
    return _TIER_LIMITS.get(tier or "free", _TIER_LIMITS["free"])


def _is_free(tier: str | None) -> bool:
    return tier is None or tier == "free"


def check_limitation(kind: LimitationType, usage: UsageMetrics, tier: str | None) -> UsageLimitation:
    """Check whether a feature is blocked by the plan's quotas.

    Args:
        kind: lessons, exports, ai, dashboards or data_retention.
        usage: Current consumption.
        tier: Subscription tier (None counts as free).

    Returns:
        UsageLimitation with a user-facing message and upgrade prompt.
        Data retention never blocks; it only limits history.
    """
    if kind == "lessons":
        blocked = usage.lessons_limit > 0 and usage.lessons_used >= usage.lessons_limit
        return UsageLimitation(
            type=kind,
            is_blocked=blocked,
            message=(
                f"You've reached your limit of {usage.lessons_limit} lessons"
                if blocked
                else f"{usage.lessons_used} of {usage.lessons_limit} lessons used"
            ),
            upgrade_prompt="Upgrade to capture unlimited project insights",
        )

    if kind == "exports":
        blocked = _is_free(tier)
        return UsageLimitation(
            type=kind,
            is_blocked=blocked,
            message=(
                "Export features are available for Team plans and above"
                if blocked
                else f"{usage.export_count} of {usage.export_limit} exports used this month"
            ),
            upgrade_prompt="Upgrade to unlock powerful export capabilities",
        )

    if kind == "ai":
        blocked = _is_free(tier)
        return UsageLimitation(
            type=kind,
            is_blocked=blocked,
            message=(
                "AI-powered insights are available for Team plans and above"
                if blocked
                else f"{usage.ai_queries_used} of {usage.ai_queries_limit} AI queries used"
            ),
            upgrade_prompt="Upgrade to unlock AI-powered analysis",
        )

    if kind == "dashboards":
        blocked = (
            usage.dashboards_limit != UNLIMITED
            and usage.dashboards_used >= usage.dashboards_limit
        )
        return UsageLimitation(
            type=kind,
            is_blocked=blocked,
            message=(
                f"You've reached your limit of {usage.dashboards_limit} dashboards"
                if blocked
                else f"{usage.dashboards_used} of {usage.dashboards_limit} dashboards used"
            ),
            upgrade_prompt="Upgrade for unlimited custom dashboards",
        )

    if kind == "data_retention":
        return UsageLimitation(
            type=kind,
            is_blocked=False,
            message=(
                f"Data is retained for {usage.data_retention_days} days on free plan"
                if _is_free(tier)
                else "Unlimited data retention"
            ),
            upgrade_prompt="Upgrade for extended data retention and historical analysis",
        )

    raise ValueError(f"Unknown limitation type: {kind}")


def get_upgrade_opportunity(usage: UsageMetrics, tier: str | None) -> UpgradeOpportunity | None:
    """Suggest an upgrade when a free user approaches their quotas.

    Returns:
        An UpgradeOpportunity, or None for paid plans and comfortable usage.
    """
    if not _is_free(tier):
        return None

    percentage = usage.lessons_percentage
    if percentage >= 80:
        return UpgradeOpportunity(
            trigger="lessons_limit_approaching",
            message=f"You're at {percentage}% of your lesson limit",
            urgency="high" if percentage >= 95 else "medium",
            suggested_tier="team",
        )

    if usage.data_retention_days == 90 and usage.lessons_used > 15:
        return UpgradeOpportunity(
            trigger="data_retention_concern",
            message="Your older insights will be automatically removed after 90 days",
            urgency="low",
            suggested_tier="team",
        )

    return None
