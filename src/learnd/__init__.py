"""Learnd - Project lessons-learned tracking.

This package records project outcomes (satisfaction, budget and timeline
status, scope changes), classifies project health, aggregates portfolio
analytics, and serves exports, reports and a guided onboarding tour over a
FastAPI service backed by PostgreSQL.
"""

__version__ = "0.1.0"
