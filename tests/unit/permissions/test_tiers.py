"""Unit tests for account tiers."""

import pytest

from lawdesk.core.permissions.tiers import ACCOUNT_TIERS, AccountTier


class TestAccountTier:
    """Tests for the AccountTier ordering."""

    def test_values(self):
        """Tiers should serialize to their lowercase names, lowest first."""
        assert ACCOUNT_TIERS == ("basic", "intermediate", "managerial")

    def test_ordering(self):
        """basic < intermediate < managerial."""
        assert AccountTier.BASIC.rank < AccountTier.INTERMEDIATE.rank < AccountTier.MANAGERIAL.rank

    @pytest.mark.parametrize(
        ("tier", "other", "expected"),
        [
            (AccountTier.MANAGERIAL, AccountTier.BASIC, True),
            (AccountTier.INTERMEDIATE, AccountTier.INTERMEDIATE, True),
            (AccountTier.BASIC, AccountTier.INTERMEDIATE, False),
            (AccountTier.INTERMEDIATE, AccountTier.MANAGERIAL, False),
        ],
    )
    def test_at_least(self, tier: AccountTier, other: AccountTier, expected: bool):
        """at_least should compare by rank."""
        assert tier.at_least(other) is expected

    def test_from_minimum(self):
        """from_minimum should list the tier and every tier above it."""
        assert AccountTier.from_minimum(AccountTier.INTERMEDIATE) == [
            AccountTier.INTERMEDIATE,
            AccountTier.MANAGERIAL,
        ]
        assert AccountTier.from_minimum(AccountTier.BASIC) == list(AccountTier)

    def test_parse_from_string(self):
        """Tiers should parse from their stored value."""
        assert AccountTier("managerial") is AccountTier.MANAGERIAL
        with pytest.raises(ValueError):
            AccountTier("admin")
