"""Authorization policy - the single place where access decisions are made."""

from .policy import Action, Resource, can, require

__all__ = ["Action", "Resource", "can", "require"]
