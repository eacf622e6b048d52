"""Transaction model representing a single imported or manually added bank line."""
from datetime import date

from sqlalchemy import BigInteger, Boolean, Date, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from budgetlens.models.base import BaseModel


class Transaction(BaseModel):
    """Bank transaction.

    `amount` is in minor units (cents) and signed: negative for debits
    (expenses), positive for credits (income).
    """

    __tablename__ = "transactions"

    txn_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    transaction_type: Mapped[str | None] = mapped_column("type", String(50), nullable=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    category: Mapped[str] = mapped_column(String(64), default="other", nullable=False, index=True)
    is_manually_edited: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    source: Mapped[str] = mapped_column(String(20), default="import", nullable=False)

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, description={self.description!r}, amount={self.amount})>"
