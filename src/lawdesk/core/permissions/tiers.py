"""Account tiers and their ordering."""

from enum import Enum


class AccountTier(str, Enum):
    """Role level of a user within its tenant.

    Tiers are totally ordered: basic < intermediate < managerial.
    """

    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    MANAGERIAL = "managerial"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)

    def at_least(self, other: "AccountTier") -> bool:
        """Check whether this tier is ``other`` or above."""
        return self.rank >= other.rank

    @classmethod
    def from_minimum(cls, minimum: "AccountTier") -> list["AccountTier"]:
        """All tiers at or above ``minimum``, lowest first."""
        return [tier for tier in _TIER_ORDER if tier.at_least(minimum)]


_TIER_ORDER = (AccountTier.BASIC, AccountTier.INTERMEDIATE, AccountTier.MANAGERIAL)

ACCOUNT_TIERS = tuple(tier.value for tier in _TIER_ORDER)
