"""Catalog module - universities and programs (read-only)."""

from .router import router

__all__ = ["router"]
