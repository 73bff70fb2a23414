"""API routers for Cellarbook."""

from cellarbook.routers import auth, bottles, catalog

__all__ = ["auth", "bottles", "catalog"]
