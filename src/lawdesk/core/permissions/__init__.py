"""Account tiers used for access gating."""

from lawdesk.core.permissions.tiers import ACCOUNT_TIERS, AccountTier


__all__ = ["ACCOUNT_TIERS", "AccountTier"]
