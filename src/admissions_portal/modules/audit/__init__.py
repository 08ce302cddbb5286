"""
Audit Module

Append-only log of administrative mutations. Entries are written in the same
transaction as the change they describe and exposed read-only to admins at
GET /api/admin/audit-logs.
"""

from .router import router

__all__ = ["router"]
