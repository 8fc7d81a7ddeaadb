"""
User repository.

Stores user accounts in process memory. Usernames and emails are unique,
compared case-insensitively. Accounts do not survive a restart.
"""

import asyncio
from typing import Dict, List, Optional

import structlog

from practice_api.src.models.auth import Role, UserRecord
from shared.models import new_object_id, utc_now

logger = structlog.get_logger(__name__)


class DuplicateUserError(ValueError):
    """Raised when a username or email is already registered."""

    def __init__(self, field: str, value: str):
        super().__init__(f"User with this {field} already exists")
        self.field = field
        self.value = value


class UserRepository:
    """Repository for user accounts."""

    def __init__(self):
        self._users: Dict[str, UserRecord] = {}
        self._lock = asyncio.Lock()

    async def create_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        roles: Optional[List[str]] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        job_title: Optional[str] = None,
        is_active: bool = True,
    ) -> UserRecord:
        """
        Create a new user.

        Args:
            username: Unique username
            email: Unique email address
            password_hash: bcrypt hash of the password
            roles: Role names (defaults to ``["user"]``)
            first_name: Given name
            last_name: Family name
            job_title: Job title
            is_active: Whether the account may log in

        Returns:
            Created user

        Raises:
            DuplicateUserError: If the username or email is taken
        """
        async with self._lock:
            if self._find("username", username):
                raise DuplicateUserError("username", username)
            if self._find("email", email):
                raise DuplicateUserError("email", email)

            user = UserRecord(
                id=new_object_id(),
                username=username,
                email=email,
                password_hash=password_hash,
                first_name=first_name,
                last_name=last_name,
                job_title=job_title,
                roles=roles or [Role.USER.value],
                is_active=is_active,
            )
            self._users[user.id] = user

        logger.info("user_created", user_id=user.id, username=username, roles=user.roles)
        return user

    def _find(self, field: str, value: str) -> Optional[UserRecord]:
        needle = value.lower()
        for user in self._users.values():
            if getattr(user, field).lower() == needle:
                return user
        return None

    async def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        user = self._users.get(user_id)
        if user is None:
            logger.debug("user_not_found", user_id=user_id)
        return user

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return self._find("username", username)

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        return self._find("email", email)

    async def get_user_by_login(self, identifier: str) -> Optional[UserRecord]:
        """Look up by username, then by email."""
        return self._find("username", identifier) or self._find("email", identifier)

    async def update_user(self, user_id: str, **changes) -> Optional[UserRecord]:
        """
        Update user fields.

        Args:
            user_id: User ID
            **changes: Field values to replace (``roles``, ``is_active``,
                ``last_login``, ...)

        Returns:
            Updated user or None if not found
        """
        async with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            changes["updated_at"] = utc_now()
            updated = user.model_copy(update=changes)
            self._users[user_id] = updated

        logger.debug("user_updated", user_id=user_id, fields=sorted(changes))
        return updated

    async def record_login(self, user_id: str) -> Optional[UserRecord]:
        return await self.update_user(user_id, last_login=utc_now())

    async def list_users(self) -> List[UserRecord]:
        return sorted(self._users.values(), key=lambda user: user.created_at)

    async def count_users(self, is_active: Optional[bool] = None) -> int:
        if is_active is None:
            return len(self._users)
        return sum(1 for user in self._users.values() if user.is_active == is_active)
