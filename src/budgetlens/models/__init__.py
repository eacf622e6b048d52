"""Database models."""
from budgetlens.models.category import Category
from budgetlens.models.rule import CategorizationRule
from budgetlens.models.transaction import Transaction

__all__ = ["Category", "CategorizationRule", "Transaction"]
