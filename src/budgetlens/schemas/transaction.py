"""Transaction input schemas and categorization workflow results."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


class TransactionCreate(BaseModel):
    """A transaction handed to the engine for categorization and storage.

    Amounts are in minor units (cents), negative for debits.
    """

    txn_date: date = Field(..., description="Transaction date")
    description: str = Field(..., description="Raw bank description")
    amount: int = Field(..., description="Signed amount in cents (negative = expense)")
    transaction_type: str | None = Field(None, description="Bank-assigned transaction type")
    category: str | None = Field(None, description="Known category; inferred when missing")
    source: str = Field("import", description="'import' or 'manual'")

    @field_validator("description")
    @classmethod
    def description_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Description cannot be empty")
        return v.strip()

    @classmethod
    def from_decimal(
        cls,
        txn_date: date,
        description: str,
        amount_decimal: Decimal,
        transaction_type: str | None = None,
    ) -> "TransactionCreate":
        """Create from decimal amount (e.g., -12.34 -> -1234 cents)."""
        return cls(
            txn_date=txn_date,
            description=description,
            amount=int(amount_decimal * 100),
            transaction_type=transaction_type,
        )


class RecategorizeResult(BaseModel):
    """Outcome of a full recategorization pass."""

    updated: int = Field(description="Transactions whose category changed")
    total: int = Field(description="Transactions examined, pinned ones included")


class LearnResult(BaseModel):
    """Outcome of learning from every manual correction."""

    rules_created: int = Field(description="Corrections that produced or refreshed a rule")
    transactions_updated: int = Field(description="Unedited transactions reclassified afterwards")
