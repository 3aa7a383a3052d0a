"""Pydantic schemas for cash-flow transactions."""

import datetime as dt
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import Field, field_validator

from lawdesk.core.schemas import CamelModel


TransactionType = Literal["income", "expense"]
TransactionStatus = Literal["pending", "confirmed", "cancelled"]
RecurringFrequency = Literal["monthly", "quarterly", "yearly"]


class TransactionCreate(CamelModel):
    """Schema for recording a transaction."""

    type: TransactionType
    amount: Decimal = Field(..., max_digits=15, decimal_places=2)
    category_id: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    date: dt.date
    payment_method: str | None = Field(None, max_length=50)
    status: TransactionStatus = "confirmed"
    project_id: UUID | None = None
    client_id: UUID | None = None
    tags: list[str] | None = None
    notes: str | None = None
    is_recurring: bool = False
    recurring_frequency: RecurringFrequency | None = None


class TransactionUpdate(CamelModel):
    """Schema for changing a transaction. Only the fields sent are applied."""

    type: TransactionType | None = None
    amount: Decimal | None = Field(None, max_digits=15, decimal_places=2)
    category_id: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, min_length=1, max_length=500)
    date: dt.date | None = None
    payment_method: str | None = Field(None, max_length=50)
    status: TransactionStatus | None = None
    project_id: UUID | None = None
    client_id: UUID | None = None
    tags: list[str] | None = None
    notes: str | None = None
    is_recurring: bool | None = None
    recurring_frequency: RecurringFrequency | None = None

    @field_validator(
        "type", "amount", "category_id", "description", "date", "status", "is_recurring"
    )
    @classmethod
    def reject_null(cls, v: object) -> object:
        """Required columns may be omitted but never cleared."""
        if v is None:
            raise ValueError("This field cannot be null")
        return v


class TransactionResponse(CamelModel):
    """Schema for transaction response data."""

    id: UUID
    type: str
    amount: Decimal
    category_id: str
    description: str
    date: dt.date
    payment_method: str | None = None
    status: str
    project_id: UUID | None = None
    client_id: UUID | None = None
    tags: list[str] | None = None
    notes: str | None = None
    is_recurring: bool
    recurring_frequency: str | None = None
    created_by: str | None = None
    last_modified_by: str | None = None
    created_at: dt.datetime
    updated_at: dt.datetime
