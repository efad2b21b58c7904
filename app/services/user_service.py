"""
User service - business rules for user accounts (SOLID: Single Responsibility).
Challenge: Uniqueness of email/username, not-found handling, keep controllers thin.
Design: Every write is one scoped transaction (check-then-write); lookups are pass-through.
"""

import logging
from datetime import datetime, timezone

from app.core.exceptions import DuplicateUserError, UserNotFoundError, ValidationError
from app.db.models.user import User
from app.db.repositories.user_repository import UserCriteria, UserRepository
from app.db.session import transaction
from app.schemas.user import normalize_email

module_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserService:
    """Handles all user use cases. Raises domain errors; never builds HTTP responses."""

    def __init__(self, repo: UserRepository, logger: logging.Logger | None = None):
        self.repo = repo
        self.log = logger or module_logger

    # --- writes ---

    async def create_user(self, candidate: User) -> User:
        """Persist a new user after uniqueness checks. Stamps both timestamps with one value."""
        self.log.debug(
            "Starting user creation for username=%s email=%s", candidate.username, candidate.email
        )
        async with transaction(self.repo.session):
            if await self.repo.exists_by_email(candidate.email):
                self.log.warning("Duplicate email on create: %s", candidate.email)
                raise DuplicateUserError.with_email(candidate.email)
            if await self.repo.exists_by_username(candidate.username):
                self.log.warning("Duplicate username on create: %s", candidate.username)
                raise DuplicateUserError.with_username(candidate.username)

            now = _utcnow()
            candidate.created_at = now
            candidate.updated_at = now
            user = await self.repo.save(candidate)

        self.log.info("User created: id=%s username=%s", user.id, user.username)
        return user

    async def update_user(self, user_id: int, changes: User) -> User:
        """Overwrite name, email and username. The stored password is never touched."""
        self.log.debug("Starting user update for id=%s", user_id)
        async with transaction(self.repo.session):
            existing = await self.repo.get_by_id(user_id)
            if existing is None:
                self.log.warning("Update of missing user id=%s", user_id)
                raise UserNotFoundError.with_id(user_id)

            # Only a changed value can collide; keeping your own email/username is fine
            if existing.email != changes.email and await self.repo.exists_by_email(changes.email):
                self.log.warning("Duplicate email on update id=%s email=%s", user_id, changes.email)
                raise DuplicateUserError.with_email(changes.email)
            if existing.username != changes.username and await self.repo.exists_by_username(
                changes.username
            ):
                self.log.warning(
                    "Duplicate username on update id=%s username=%s", user_id, changes.username
                )
                raise DuplicateUserError.with_username(changes.username)

            existing.first_name = changes.first_name
            existing.last_name = changes.last_name
            existing.email = changes.email
            existing.username = changes.username
            existing.updated_at = _utcnow()
            user = await self.repo.save(existing)

        self.log.info("User updated: id=%s username=%s", user.id, user.username)
        return user

    async def delete_user(self, user_id: int) -> None:
        self.log.debug("Starting user deletion for id=%s", user_id)
        async with transaction(self.repo.session):
            if not await self.repo.exists_by_id(user_id):
                self.log.warning("Delete of missing user id=%s", user_id)
                raise UserNotFoundError.with_id(user_id)
            await self.repo.delete_by_id(user_id)
        self.log.info("User deleted: id=%s", user_id)

    # --- optional lookups (absence is not an error here) ---

    async def find_user_by_id(self, user_id: int) -> User | None:
        return await self.repo.get_by_id(user_id)

    async def find_user_by_email(self, email: str) -> User | None:
        return await self.repo.get_by_email(normalize_email(email))

    async def find_user_by_username(self, username: str) -> User | None:
        return await self.repo.get_by_username(username)

    # --- required lookups (absence raises) ---

    async def get_user(self, user_id: int) -> User:
        user = await self.find_user_by_id(user_id)
        if user is None:
            raise UserNotFoundError.with_id(user_id)
        return user

    async def get_user_by_email(self, email: str) -> User:
        user = await self.find_user_by_email(email)
        if user is None:
            raise UserNotFoundError.with_email(email)
        return user

    async def get_user_by_username(self, username: str) -> User:
        user = await self.find_user_by_username(username)
        if user is None:
            raise UserNotFoundError.with_username(username)
        return user

    # --- queries ---

    async def get_all_users(self) -> list[User]:
        return await self.repo.get_all()

    async def user_exists_by_email(self, email: str) -> bool:
        return await self.repo.exists_by_email(normalize_email(email))

    async def user_exists_by_username(self, username: str) -> bool:
        return await self.repo.exists_by_username(username)

    async def get_total_user_count(self) -> int:
        return await self.repo.count()

    async def find_users_by_first_name(self, first_name: str) -> list[User]:
        return await self.repo.find_by_first_name_ignore_case(first_name)

    async def find_users_by_last_name(self, last_name: str) -> list[User]:
        return await self.repo.find_by_last_name_ignore_case(last_name)

    async def count_users_by_first_name(self, first_name: str) -> int:
        return await self.repo.count_by_first_name(first_name)

    async def search_users(self, criteria: UserCriteria) -> list[User]:
        """Filtered listing. Rejects an inverted creation-date range."""
        if (
            criteria.created_from is not None
            and criteria.created_to is not None
            and criteria.created_from > criteria.created_to
        ):
            raise ValidationError.invalid_input(
                "createdFrom", f"{criteria.created_from.isoformat()} is after createdTo"
            )
        return await self.repo.find(criteria)
