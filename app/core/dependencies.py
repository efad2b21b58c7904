"""
FastAPI dependencies - wiring of session, repository and service (SOLID: Dependency Inversion).
Challenge: Routes receive a ready service; tests swap the session via get_db override.
"""

from typing import Annotated

from fastapi import Depends

from app.db.repositories.user_repository import UserRepository
from app.db.session import DbSession
from app.services.user_service import UserService


def get_user_service(session: DbSession) -> UserService:
    """Factory for service with repository injection."""
    return UserService(UserRepository(session))


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
