# Repository pattern: abstract data access (SOLID - Dependency Inversion)

from app.db.repositories.user_repository import UserCriteria, UserRepository

__all__ = ["UserRepository", "UserCriteria"]
