"""Cash-flow factories for tests."""

import datetime as dt
from decimal import Decimal
from uuid import uuid4

from polyfactory.factories.pydantic_factory import ModelFactory

from lawdesk.modules.cash_flow.schemas import TransactionCreate


class TransactionCreateFactory(ModelFactory[TransactionCreate]):
    """Factory for transaction payloads with no cross-table references."""

    __model__ = TransactionCreate

    @classmethod
    def type(cls) -> str:
        return "income"

    @classmethod
    def amount(cls) -> Decimal:
        return Decimal("1500.00")

    @classmethod
    def category_id(cls) -> str:
        return "fees"

    @classmethod
    def description(cls) -> str:
        return f"Retainer {uuid4().hex[:6]}"

    @classmethod
    def date(cls) -> dt.date:
        return dt.date(2026, 10, 1)

    @classmethod
    def payment_method(cls) -> str:
        return "pix"

    @classmethod
    def status(cls) -> str:
        return "confirmed"

    @classmethod
    def project_id(cls) -> None:
        return None

    @classmethod
    def client_id(cls) -> None:
        return None

    @classmethod
    def tags(cls) -> list[str]:
        return ["retainer"]

    @classmethod
    def notes(cls) -> None:
        return None

    @classmethod
    def is_recurring(cls) -> bool:
        return False

    @classmethod
    def recurring_frequency(cls) -> None:
        return None
