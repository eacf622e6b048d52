"""User-defined categorization rules.

Rules are created by the rule learner (from manual corrections) or
explicitly by the user, and are evaluated before the built-in pattern table.
"""

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from budgetlens.models.base import BaseModel


class CategorizationRule(BaseModel):
    """Pattern -> category mapping with a priority (higher wins)."""

    __tablename__ = "categorization_rules"

    category_id: Mapped[str] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )
    # Regular expression, matched case-insensitively
    pattern: Mapped[str] = mapped_column(String(500), nullable=False)
    field: Mapped[str] = mapped_column(String(20), default="description", nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("ix_rules_priority_created", "priority", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<CategorizationRule(id={self.id}, pattern={self.pattern!r}, "
            f"category_id={self.category_id}, priority={self.priority})>"
        )
