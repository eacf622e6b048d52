"""Transaction categorization and rule learning.

Categorization is local and deterministic: user rules first, then the
built-in pattern table, then the fallback category. Manual corrections are
turned into new rules and can be propagated to the stored history.
"""

from .categorizer import CategorizerCache, TransactionCategorizer
from .keywords import create_pattern, extract_keywords
from .learning import RuleLearner
from .patterns import detect_type
from .reapply import BulkReapplier

__all__ = [
    "BulkReapplier",
    "CategorizerCache",
    "RuleLearner",
    "TransactionCategorizer",
    "create_pattern",
    "detect_type",
    "extract_keywords",
]
