"""
User repository - encapsulates all user data access (SOLID: Single Responsibility).
Challenge: Keep queries in one place for optimization and reuse.
Design: Named finders delegate to one criteria-driven query builder.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import ColumnElement, exists, func, select

from app.db.models.user import User
from app.db.repositories.base_repository import BaseRepository


def _to_utc(value: datetime | None) -> datetime | None:
    """Naive values are read as UTC; aware values are converted."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class UserCriteria:
    """Search filter. Unset fields add no condition; set fields are ANDed."""

    first_name: str | None = None
    last_name: str | None = None
    username_contains: str | None = None
    email_domain: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None

    def __post_init__(self):
        # Timestamps are stored in UTC; SQLite compares them as wall-clock text
        self.created_from = _to_utc(self.created_from)
        self.created_to = _to_utc(self.created_to)
        # Stored domains are lowercase (email normalization)
        if self.email_domain is not None:
            self.email_domain = self.email_domain.lower()

    def conditions(self) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        # Name matching ignores case; username/email uniqueness does not
        if self.first_name is not None:
            clauses.append(func.lower(User.first_name) == self.first_name.lower())
        if self.last_name is not None:
            clauses.append(func.lower(User.last_name) == self.last_name.lower())
        if self.username_contains is not None:
            clauses.append(User.username.contains(self.username_contains, autoescape=True))
        if self.email_domain is not None:
            clauses.append(User.email.endswith(self.email_domain, autoescape=True))
        if self.created_from is not None:
            clauses.append(User.created_at >= self.created_from)
        if self.created_to is not None:
            clauses.append(User.created_at <= self.created_to)
        return clauses


class UserRepository(BaseRepository[User]):
    """User-specific queries. No business validation happens here."""

    def __init__(self, session):
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        return bool(await self.session.scalar(select(exists().where(User.email == email))))

    async def exists_by_username(self, username: str) -> bool:
        return bool(await self.session.scalar(select(exists().where(User.username == username))))

    async def find(self, criteria: UserCriteria) -> list[User]:
        """Users matching every set criterion, ordered by id."""
        stmt = select(User).where(*criteria.conditions()).order_by(User.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_by_first_name_ignore_case(self, first_name: str) -> list[User]:
        return await self.find(UserCriteria(first_name=first_name))

    async def find_by_last_name_ignore_case(self, last_name: str) -> list[User]:
        return await self.find(UserCriteria(last_name=last_name))

    async def find_by_username_containing(self, fragment: str) -> list[User]:
        """Substring match; % and _ in the fragment are matched literally."""
        return await self.find(UserCriteria(username_contains=fragment))

    async def find_by_email_domain(self, domain: str) -> list[User]:
        return await self.find(UserCriteria(email_domain=domain))

    async def find_created_after(self, since: datetime) -> list[User]:
        return await self.find(UserCriteria(created_from=since))

    async def find_created_between(self, start: datetime, end: datetime) -> list[User]:
        return await self.find(UserCriteria(created_from=start, created_to=end))

    async def count_by_first_name(self, first_name: str) -> int:
        """Exact (case-sensitive) first-name count."""
        stmt = select(func.count()).select_from(User).where(User.first_name == first_name)
        return await self.session.scalar(stmt) or 0
