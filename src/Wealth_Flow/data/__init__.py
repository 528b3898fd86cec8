"""Persistence layer for Wealth Flow.

Re-exports the main public API: Database for connection management,
Repository for typed query operations.
"""

from Wealth_Flow.data.database import Database
from Wealth_Flow.data.repository import Repository

__all__ = ["Database", "Repository"]
