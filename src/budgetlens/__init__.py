"""budgetlens: transaction categorization and rule learning for a personal finance dashboard."""

__version__ = "0.1.0"
