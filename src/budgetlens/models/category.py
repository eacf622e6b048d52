"""Category model: the income/expense taxonomy transactions are sorted into."""

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from budgetlens.models.base import Base, TimestampMixin


class Category(TimestampMixin, Base):
    """A spending or income category.

    Identified by a stable slug (e.g. "food-grocery") rather than a UUID so
    rules and the built-in pattern table can reference it directly.
    """

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_income: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, is_income={self.is_income})>"
