"""Web layer for Learnd: FastAPI application, identity, middleware and routes."""

from learnd.web.app import create_app

__all__ = ["create_app"]
