"""User and refresh token models.

Both tables live inside each tenant namespace.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lawdesk.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_IPV6_LENGTH,
    MAX_NAME_LENGTH,
    MAX_USER_AGENT_LENGTH,
    SHA256_HEX_LENGTH,
)
from lawdesk.core.database.base import (
    AuditMixin,
    CreatedAtMixin,
    TenantBase,
    TimestampMixin,
    UUIDMixin,
    one_of,
)
from lawdesk.core.permissions.tiers import AccountTier


REVOKED_REASONS = ("rotated", "logout", "reuse_detected", "expired")


class User(TenantBase, UUIDMixin, TimestampMixin, AuditMixin):
    """A person who can authenticate within one tenant.

    Attributes:
        email: Unique email address within the namespace
        password_hash: Bcrypt hash of the secret
        name: Display name
        phone: Optional phone number
        account_tier: basic, intermediate or managerial
        is_active: Whether the user can log in
        must_change_password: Force a secret change on next login
        last_login: Last successful login
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "account_tier IN ('basic', 'intermediate', 'managerial')",
            name="ck_users_account_tier",
        ),
    )

    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    phone: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    account_tier: Mapped[str] = mapped_column(
        String(20),
        default=AccountTier.BASIC.value,
        server_default=AccountTier.BASIC.value,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default="true",
        nullable=False,
    )
    must_change_password: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="false",
        nullable=False,
    )
    last_login: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @property
    def tier(self) -> AccountTier:
        return AccountTier(self.account_tier)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, account_tier={self.account_tier})>"


class RefreshToken(TenantBase, UUIDMixin, CreatedAtMixin):
    """Persisted record of an issued refresh token.

    Only a keyed hash of the token is stored. A token is usable while
    ``is_active`` is true and ``expires_at`` is in the future; once revoked
    it never becomes active again.

    Attributes:
        user_id: The user this token belongs to
        token_hash: HMAC-SHA256 of the opaque token
        expires_at: When the token expires
        is_active: Whether the token can still be exchanged
        revoked_reason: Why the token was deactivated
        user_agent: The client user agent that obtained the token
        ip_address: The IP address that obtained the token
    """

    __tablename__ = "refresh_tokens"
    __table_args__ = (
        CheckConstraint(
            one_of("revoked_reason", REVOKED_REASONS, nullable=True),
            name="ck_refresh_tokens_revoked_reason",
        ),
    )

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash: Mapped[str] = mapped_column(
        String(SHA256_HEX_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default="true",
        nullable=False,
    )
    revoked_reason: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )
    user_agent: Mapped[str | None] = mapped_column(
        String(MAX_USER_AGENT_LENGTH),
        nullable=True,
    )
    ip_address: Mapped[str | None] = mapped_column(
        String(MAX_IPV6_LENGTH),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<RefreshToken(id={self.id}, user_id={self.user_id}, is_active={self.is_active})>"
