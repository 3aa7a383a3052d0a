"""User and refresh token repositories.

Repositories work on a session opened through a tenant's ``ScopedHandle``,
so every statement here is already confined to that tenant's namespace.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lawdesk.modules.users.models import RefreshToken, User


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, user: User) -> User:
        """Create a new user.

        Args:
            user: User instance to create

        Returns:
            The created user with ID and server defaults populated
        """
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Get a user by ID."""
        return await self.session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email address (case-insensitive).

        Args:
            email: The user's email

        Returns:
            User if found, None otherwise
        """
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_paginated(self, page: int = 1, page_size: int = 20) -> tuple[list[User], int]:
        """List users with pagination.

        Args:
            page: Page number (1-indexed)
            page_size: Number of items per page

        Returns:
            Tuple of (users list, total count)
        """
        # Count total
        count_result = await self.session.execute(select(func.count()).select_from(User))
        total = count_result.scalar_one()

        # Get paginated results
        offset = (page - 1) * page_size
        stmt = select(User).order_by(User.created_at.desc()).offset(offset).limit(page_size)
        result = await self.session.execute(stmt)
        users = list(result.scalars().all())

        return users, total

    async def count(self) -> int:
        """Count all users of the namespace."""
        result = await self.session.execute(select(func.count()).select_from(User))
        return result.scalar_one()

    async def touch_last_login(self, user: User) -> None:
        """Record a successful login."""
        user.last_login = func.now()
        await self.session.flush()
        await self.session.refresh(user)


class RefreshTokenRepository:
    """Repository for RefreshToken database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, token: RefreshToken) -> RefreshToken:
        """Persist a newly issued refresh token."""
        self.session.add(token)
        await self.session.flush()
        return token

    async def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        """Get a refresh token record by hash, whatever its state.

        Args:
            token_hash: Keyed hash of the token

        Returns:
            RefreshToken if found, None otherwise
        """
        stmt = select(RefreshToken).where(RefreshToken.token_hash == token_hash)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def consume(self, token_hash: str) -> UUID | None:
        """Atomically deactivate an active, unexpired token.

        A single conditional update: of any number of concurrent callers
        presenting the same token, at most one gets a row back.

        Args:
            token_hash: Keyed hash of the token

        Returns:
            The owning user's id, or None if nothing was consumed
        """
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.token_hash == token_hash,
                RefreshToken.is_active.is_(True),
                RefreshToken.expires_at > func.now(),
            )
            .values(is_active=False, revoked_reason="rotated")
            .returning(RefreshToken.user_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def revoke(self, token_hash: str, reason: str, user_id: UUID | None = None) -> int:
        """Deactivate one token if it is still active.

        Args:
            token_hash: Keyed hash of the token
            reason: Recorded revocation reason
            user_id: Only revoke the token if it belongs to this user

        Returns:
            Number of tokens revoked (0 or 1)
        """
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.token_hash == token_hash,
                RefreshToken.is_active.is_(True),
            )
            .values(is_active=False, revoked_reason=reason)
            .execution_options(synchronize_session=False)
        )
        if user_id is not None:
            stmt = stmt.where(RefreshToken.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.rowcount

    async def revoke_all_for_user(self, user_id: UUID, reason: str) -> int:
        """Deactivate every active token of a user.

        Args:
            user_id: The user's UUID
            reason: Recorded revocation reason

        Returns:
            Number of tokens revoked
        """
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.user_id == user_id,
                RefreshToken.is_active.is_(True),
            )
            .values(is_active=False, revoked_reason=reason)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def cleanup_expired(self, before: datetime) -> int:
        """Delete tokens that expired before ``before``.

        Rotated tokens are kept until they expire so that replays are still
        recognized as reuse.

        Args:
            before: Cutoff time

        Returns:
            Number of tokens deleted
        """
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.expires_at < before)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount
