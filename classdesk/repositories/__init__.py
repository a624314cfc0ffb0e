# classdesk/repositories/__init__.py
"""
Repository layer for classdesk.

Repositories own every query; services own transactions and rules.
"""

from .base_repository import BaseRepository
from .factory import RepositoryFactory

__all__ = ["BaseRepository", "RepositoryFactory"]
