"""Guided product tour for Learnd.

The tour walks a new user through six steps, each tied to a dashboard page:

    welcome -> overview -> projects -> insights -> reports -> complete

OnboardingProgress is the step state machine; it is persisted per profile
(see learnd.database.queries.onboarding) and loaded with the demo
portfolio from learnd.sample_data. The tour catalog lists, for each step,
the tooltips to show in order of preference; resolve_tour_step picks the
first one whose target element is present on the page.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)

ONBOARDING_STEPS: tuple[str, ...] = (
    "welcome",
    "overview",
    "projects",
    "insights",
    "reports",
    "complete",
)

STEP_PATHS: dict[str, str] = {
    "welcome": "/?onboarding=true",
    "overview": "/overview?onboarding=true",
    "projects": "/projects?onboarding=true",
    "insights": "/insights?onboarding=true",
    "reports": "/reports?onboarding=true",
    "complete": "/?onboarding=complete",
}

InteractionType = Literal["ai_click", "completion", "page_visit"]


class UnknownStepError(ValueError):
    """Raised for a step name outside ONBOARDING_STEPS."""

    def __init__(self, step: str):
        self.step = step
        super().__init__(f"Unknown onboarding step: {step}")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_step(step: str) -> str:
    if step not in ONBOARDING_STEPS:
        raise UnknownStepError(step)
    return step


class OnboardingProgress(BaseModel):
    """Tour state for one user.

    Attributes:
        current_step: Step being shown, None once the tour is dismissed
        completed_steps: Steps finished, in completion order, without duplicates
        sample_data_loaded: Whether the demo portfolio is shown
        started_at: When the tour began
        ai_clicks: AI prompt interactions
        completions: Completion interactions (explicit step completions included)
        pages_visited: Distinct paths visited during the tour
    """

    current_step: str | None = "welcome"
    completed_steps: list[str] = Field(default_factory=list)
    sample_data_loaded: bool = False
    started_at: datetime = Field(default_factory=_utcnow)
    ai_clicks: int = 0
    completions: int = 0
    pages_visited: list[str] = Field(default_factory=list)

    @property
    def is_finished(self) -> bool:
        return self.current_step == "complete"

    @property
    def current_path(self) -> str | None:
        if self.current_step is None:
            return None
        return STEP_PATHS.get(self.current_step)

    def _mark_completed(self, step: str) -> None:
        if step not in self.completed_steps:
            self.completed_steps.append(step)

    def next_step(self) -> str | None:
        """Complete the current step and advance; stays put on the last step."""
        if self.current_step not in ONBOARDING_STEPS:
            return self.current_step
        index = ONBOARDING_STEPS.index(self.current_step)
        if index + 1 < len(ONBOARDING_STEPS):
            self._mark_completed(self.current_step)
            self.current_step = ONBOARDING_STEPS[index + 1]
        return self.current_step

    def previous_step(self) -> str | None:
        """Go back one step; stays put on the first step."""
        if self.current_step not in ONBOARDING_STEPS:
            return self.current_step
        index = ONBOARDING_STEPS.index(self.current_step)
        if index > 0:
            self.current_step = ONBOARDING_STEPS[index - 1]
        return self.current_step

    def complete_step(self, step: str) -> None:
        """Mark ``step`` completed and count the completion.

        Raises:
            UnknownStepError: If the step doesn't exist.
        """
        self._mark_completed(_check_step(step))
        self.completions += 1

    def go_to_step(self, step: str) -> str:
        """Jump to ``step`` and return the page path it lives on.

        Raises:
            UnknownStepError: If the step doesn't exist.
        """
        self.current_step = _check_step(step)
        return STEP_PATHS[step]

    def track_interaction(self, kind: InteractionType, data: str | None = None) -> None:
        """Record a tour interaction. Page visits are deduplicated by path."""
        if kind == "ai_click":
            self.ai_clicks += 1
        elif kind == "completion":
            self.completions += 1
        elif kind == "page_visit":
            if data and data not in self.pages_visited:
                self.pages_visited.append(data)
        else:
            raise ValueError(f"Unknown interaction type: {kind}")

    def reset(self) -> None:
        """Restart the tour from the welcome step with sample data loaded."""
        fresh = OnboardingProgress(sample_data_loaded=True)
        for name in type(self).model_fields:
            setattr(self, name, getattr(fresh, name))


class TourTooltip(BaseModel):
    """One tooltip in the guided tour.

    A tooltip without a target is anchored to the page and always shown.
    """

    target: str | None
    title: str
    description: str
    cta_text: str
    skip_text: str | None = None
    position: Literal["top", "bottom", "left", "right"] = "bottom"
    interactive: bool = False
    tooltip_type: Literal["default", "interactive", "warning", "success"] = "default"


TOUR_CATALOG: dict[str, list[TourTooltip]] = {
    "welcome": [],
    "overview": [
        TourTooltip(
            target='[data-onboarding="key-insights"]',
            title="Your Portfolio Intelligence Hub",
            description=(
                "These insights analyze your entire portfolio to surface critical "
                "patterns and opportunities you might miss."
            ),
            cta_text="View AI Insights",
            skip_text="Skip",
            position="bottom",
        ),
        TourTooltip(
            target='[data-onboarding="ai-insight-card"]',
            title="Discover Portfolio Patterns",
            description="Open this insight to see the budget pattern found in your tech projects.",
            cta_text="Click to Explore",
            skip_text="Skip Demo",
            position="right",
            interactive=True,
            tooltip_type="interactive",
        ),
        TourTooltip(
            target='[data-onboarding="project-kpis"]',
            title="Portfolio Health at a Glance",
            description="These key metrics show your portfolio's health, satisfaction and delivery rate.",
            cta_text="Explore Projects",
            position="top",
        ),
    ],
    "projects": [
        TourTooltip(
            target='[data-testid="project-card"]',
            title="Smart Health Indicators",
            description=(
                "Each project shows a health status calculated from satisfaction, "
                "budget, timeline and scope."
            ),
            cta_text="See At-Risk Analysis",
            position="left",
        ),
        TourTooltip(
            target='[data-health="at-risk"]',
            title="At-Risk Project Detected",
            description="This project shows warning signs: budget overrun and scope changes.",
            cta_text="Analyze Further",
            skip_text="Continue",
            position="right",
            tooltip_type="warning",
        ),
    ],
    "insights": [
        TourTooltip(
            target='[data-testid="ai-insights"]',
            title="Advanced AI Analytics",
            description="Trends, predicted risks and recommended actions across your portfolio.",
            cta_text="Try Analysis",
            position="bottom",
            interactive=True,
            tooltip_type="interactive",
        ),
        TourTooltip(
            target='[data-testid="metrics"]',
            title="Predictive Intelligence",
            description="These metrics forecast project outcomes before issues occur.",
            cta_text="Explore Reports",
            position="top",
        ),
    ],
    "reports": [
        TourTooltip(
            target='[data-testid="reports"]',
            title="Professional Reporting",
            description="Generate executive summaries, client reports and portfolio analyses with one click.",
            cta_text="Generate Sample Report",
            position="bottom",
            interactive=True,
            tooltip_type="interactive",
        ),
        TourTooltip(
            target=None,
            title="Excellent Work!",
            description="Tour completed! You're ready to use Learnd's portfolio intelligence features.",
            cta_text="Continue",
            tooltip_type="success",
        ),
    ],
    "complete": [],
}


class TourResolution(BaseModel):
    """What the tour should do on the current page.

    Attributes:
        tooltip: Tooltip to show, if any
        advance: True when the step has tooltips but none can be anchored,
            so the tour should move on
    """

    step: str
    tooltip: TourTooltip | None = None
    advance: bool = False


def resolve_tour_step(step: str, present_targets: set[str] | frozenset[str]) -> TourResolution:
    """Pick the first tooltip of ``step`` whose target is on the page.

    Raises:
        UnknownStepError: If the step doesn't exist.
    """
    tooltips = TOUR_CATALOG[_check_step(step)]
    for tooltip in tooltips:
        if tooltip.target is None or tooltip.target in present_targets:
            return TourResolution(step=step, tooltip=tooltip)
    if tooltips:
        logger.debug("tour_targets_missing", step=step)
        return TourResolution(step=step, advance=True)
    return TourResolution(step=step)
