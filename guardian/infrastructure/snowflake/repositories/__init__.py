"""
Repository pattern implementations for Snowflake.

Repositories translate between domain models and database representations.
"""

from .analyses import AnalysisRepository, AnalysisRepositoryError
from .users import UserRepository

__all__ = ["AnalysisRepository", "AnalysisRepositoryError", "UserRepository"]
