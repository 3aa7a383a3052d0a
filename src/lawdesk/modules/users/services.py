"""User service for business logic."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from lawdesk.api.dependencies import Registry
from lawdesk.core.auth.backend import hash_credential
from lawdesk.core.auth.dependencies import TenantHandle
from lawdesk.core.errors import ConflictError, NotFoundError, PlanLimitError
from lawdesk.core.tenancy.registry import normalize_email
from lawdesk.modules.users.models import User
from lawdesk.modules.users.repos import UserRepository
from lawdesk.modules.users.schemas import UserCreate


logger = structlog.get_logger()


class UserService:
    """Service for user management within the caller's tenant.

    Every operation runs through the tenant handle bound by the access gate,
    so it can only see the caller's namespace.
    """

    def __init__(self, handle: TenantHandle, registry: Registry) -> None:
        self.handle = handle
        self.registry = registry

    async def create_user(self, data: UserCreate) -> User:
        """Create a user in the caller's tenant.

        The tenant row stays locked until the transaction ends, so concurrent
        creations cannot exceed the plan's user limit.

        Args:
            data: User creation data

        Returns:
            The created user

        Raises:
            ConflictError: If the email is already used in this tenant
            PlanLimitError: If the tenant already has its maximum of users
        """
        email = normalize_email(data.email)
        password_hash = hash_credential(data.secret)

        async with self.handle.session() as session:
            tenant = await self.registry.lock_for_update(self.handle.tenant_id, session)
            if tenant is None:
                raise NotFoundError(
                    "Tenant not found",
                    resource="tenant",
                    resource_id=str(self.handle.tenant_id),
                )

            repo = UserRepository(session)
            if await repo.get_by_email(email):
                raise ConflictError(
                    "Email already registered",
                    error_code="EMAIL_EXISTS",
                    details={"email": email},
                )

            if await repo.count() >= tenant.max_users:
                raise PlanLimitError(
                    "User limit of the current plan reached",
                    details={"max_users": tenant.max_users},
                )

            user = await repo.create(
                User(
                    email=email,
                    password_hash=password_hash,
                    name=data.name.strip(),
                    phone=data.phone,
                    account_tier=data.account_tier.value,
                )
            )
            await self.registry.add_member(tenant.id, user.id, email, session=session)

        logger.info("user_created", tenant_id=str(tenant.id), new_user_id=str(user.id))
        return user

    async def get_user(self, user_id: UUID) -> User:
        """Get a user of the caller's tenant.

        Raises:
            NotFoundError: If the user does not exist in this tenant
        """
        async with self.handle.session() as session:
            user = await UserRepository(session).get_by_id(user_id)

        if user is None:
            raise NotFoundError("User not found", resource="user", resource_id=str(user_id))
        return user

    async def list_users(self, page: int = 1, page_size: int = 20) -> tuple[list[User], int]:
        """List users of the caller's tenant.

        Returns:
            Tuple of (users list, total count)
        """
        async with self.handle.session() as session:
            return await UserRepository(session).list_paginated(page, page_size)


# Type alias for dependency injection
UserSvc = Annotated[UserService, Depends(UserService)]
