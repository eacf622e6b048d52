"""Built-in category patterns for French retail banking.

The pattern table is the fallback used when no user rule matches. It is
static and never persisted; users refine it by creating rules, or replace it
wholesale with a YAML file (see `load_pattern_table`).
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

import yaml

from budgetlens.core.exceptions import PatternTableError

logger = logging.getLogger(__name__)

FALLBACK_CATEGORY = "other"

# Categories that are income, not expenses.
INCOME_CATEGORIES: frozenset[str] = frozenset(
    {"salary", "transfer-in", "refund", "caf", "compte-a-compte"}
)

# (id, display name, is_income), in display order.
DEFAULT_CATEGORIES: list[tuple[str, str, bool]] = [
    ("food-grocery", "Courses", False),
    ("food-restaurant", "Restaurants", False),
    ("transport", "Transport", False),
    ("abonnements", "Abonnements", False),
    ("entertainment", "Loisirs", False),
    ("amazon", "Amazon", False),
    ("shopping", "Shopping", False),
    ("housing", "Logement", False),
    ("telecom", "Télécom", False),
    ("health", "Santé", False),
    ("bank-fees", "Frais bancaires", False),
    ("salary", "Salaire", True),
    ("caf", "CAF", True),
    ("compte-a-compte", "Compte à compte", True),
    ("transfer-in", "Virements reçus", True),
    ("refund", "Remboursements", True),
    ("transfer-out", "Virements émis", False),
    ("internal", "Prélèvements", False),
    (FALLBACK_CATEGORY, "Autre", False),
]

PatternTable = list[tuple[str, list[re.Pattern[str]]]]


def _compile(*sources: str) -> list[re.Pattern[str]]:
    return [re.compile(s, re.IGNORECASE) for s in sources]


# Ordering matters: earlier categories win.
DEFAULT_PATTERNS: PatternTable = [
    ("food-grocery", _compile(
        r"carrefour|leclerc|auchan|lidl|aldi|intermarche|super\s*u",
        r"monoprix|franprix|casino|picard|bio\s*c\s*bon|naturalia",
        r"match|cora|geant|hyper|magasin",
    )),
    ("food-restaurant", _compile(
        r"mcdonald|burger\s*king|kfc|pizza|sushi|restaurant|brasserie",
        r"uber\s*eats|deliveroo|just\s*eat|frichti",
        r"cafe|bistro|bar|snack|kebab|thai|chinois|japonais",
    )),
    ("transport", _compile(
        r"sncf|ratp|uber|bolt|taxi|vtc|blablacar",
        r"essence|total|shell|bp|esso|station|carburant",
        r"parking|autoroute|peage|vinci|sanef",
        r"velib|lime|bird|tier|trottinette",
    )),
    ("abonnements", _compile(
        r"netflix",
        r"nintendo",
        r"apple\.com|itunes|apple\s*(tv|music|one)",
        r"spotify|deezer",
        r"disney\s*\+|disney\s*plus",
        r"euro\s*disney",
        r"bouygues",
        r"orange|sfr|free|sosh|red\s*by",
    )),
    ("entertainment", _compile(
        r"youtube\s*premium",
        r"cinema|pathe|gaumont|ugc|mk2|theatre|concert|spectacle",
        r"playstation|xbox|steam|gaming|jeux",
        r"fnac\s*spectacle|ticketmaster|billeterie",
    )),
    ("amazon", _compile(
        r"amazon",
        r"amzn",
        r"\bamz\b",
        r"amz\s*digital",
        r"amz\s*mktp",
    )),
    ("shopping", _compile(
        r"fnac|darty|boulanger|cdiscount",
        r"zalando|asos|vinted|leboncoin|vestiaire",
        r"zara|h&m|uniqlo|decathlon|go\s*sport",
        r"ikea|leroy\s*merlin|castorama|bricorama",
    )),
    ("housing", _compile(
        r"edf|engie|electricite|gaz|energie",
        r"loyer|bailleur|immobilier|syndic|copropriete",
        r"assurance\s*hab|maif|macif|matmut|axa",
        r"eau|veolia|suez",
        r"victorias?\s*keys?",
    )),
    ("telecom", _compile(
        r"mobile|forfait|internet|fibre|box",
    )),
    ("health", _compile(
        r"pharmacie|medecin|docteur|hopital|clinique",
        r"mutuelle|sante|cpam|ameli|secu",
        r"dentiste|ophtalmo|kine|osteo",
    )),
    ("bank-fees", _compile(
        r"frais\s*bancaire|commission|agios|interets",
        r"cotisation\s*carte|assurance\s*carte",
    )),
    ("salary", _compile(
        r"salaire|paie|remuneration",
        r"vir\s*(inst\s*)?.*employeur",
        r"bulletin|fiche\s*de\s*paie",
        r"packom",
    )),
    ("caf", _compile(
        r"\bcaf\b",
        r"allocations?\s*familiales?",
    )),
    ("compte-a-compte", _compile(
        r"faveur\s*de\s*(m\.|mr|mme|mlle)?\s*wirth",
    )),
    ("transfer-in", _compile(
        r"virement\s*(en\s*)?(votre\s*)?faveur",
        r"vir(ement)?\s*(inst\s*)?(de|recu)",
        r"vir\s*inst.*\bde\b",
        r"mangopay|vinted|leboncoin|ebay",
        r"wero",
    )),
    ("refund", _compile(
        r"remboursement|avoir|credit|retrocession",
        r"c\.?p\.?a\.?m|cpam|ameli|secu",
    )),
    ("transfer-out", _compile(
        r"vir(ement)?\s*(inst\s*)?(vers|emis|pour)",
    )),
    ("internal", _compile(
        r"prelevement|prlv",
        r"cotisation|adhesion",
    )),
]


# Checked in order; first match wins.
_TYPE_RULES: list[tuple[str, re.Pattern[str]]] = [
    ("PAIEMENT_CARTE", re.compile(r"cb\s*\*|carte\s*\*|paiement\s*carte", re.IGNORECASE)),
    ("VIREMENT_RECU", re.compile(r"vir(ement)?\s*(inst\s*)?(de|recu|faveur)", re.IGNORECASE)),
    ("VIREMENT_EMIS", re.compile(r"vir(ement)?\s*(inst\s*)?(vers|emis|pour)", re.IGNORECASE)),
    ("PRELEVEMENT", re.compile(r"prlv|prelevement", re.IGNORECASE)),
    ("AVOIR", re.compile(r"avoir|credit|remboursement", re.IGNORECASE)),
    ("COTISATION", re.compile(r"cotisation|adhesion", re.IGNORECASE)),
]

UNKNOWN_TYPE = "AUTRE"


def detect_type(description: str | None) -> str:
    """Infer the bank transaction type from a description.

    Returns:
        One of PAIEMENT_CARTE, VIREMENT_RECU, VIREMENT_EMIS, PRELEVEMENT,
        AVOIR, COTISATION or AUTRE.
    """
    text = (description or "").lower()
    for txn_type, pattern in _TYPE_RULES:
        if pattern.search(text):
            return txn_type
    return UNKNOWN_TYPE


def _invalid(path: str | Path, reason: str, **context) -> PatternTableError:
    logger.error("Invalid pattern file: %s", reason, extra={"path": str(path), **context})
    return PatternTableError("CONFIG_001", {"path": str(path), "reason": reason, **context})


def load_pattern_table(path: str | Path) -> PatternTable:
    """Load a pattern table from YAML.

    Expected layout (order is preserved and significant)::

        categories:
          - id: food-grocery
            patterns:
              - "carrefour|leclerc"

    Patterns that fail to compile are skipped with a warning.

    Raises:
        PatternTableError: If the file cannot be read or parsed, or an entry
            is not a mapping with a string `id` and a list of string `patterns`.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    except OSError as e:
        raise _invalid(path, "unreadable file", error=str(e)) from e
    except yaml.YAMLError as e:
        raise _invalid(path, "not valid YAML", error=str(e)) from e

    if not isinstance(config, dict):
        raise _invalid(path, "top level must be a mapping")
    entries = config.get("categories") or []
    if not isinstance(entries, list):
        raise _invalid(path, "'categories' must be a list")

    table: PatternTable = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise _invalid(path, "category entry must be a mapping", position=position)
        category_id = entry.get("id")
        if not isinstance(category_id, str) or not category_id.strip():
            raise _invalid(path, "category entry needs a string 'id'", position=position)
        sources = entry.get("patterns") or []
        # A bare string would be iterated character by character
        if not isinstance(sources, list) or not all(isinstance(s, str) for s in sources):
            raise _invalid(path, "'patterns' must be a list of strings", category_id=category_id)

        compiled = []
        for source in sources:
            if not source.strip():
                logger.warning("Skipping empty pattern for %s", category_id)
                continue
            try:
                compiled.append(re.compile(source, re.IGNORECASE))
            except re.error as e:
                logger.warning("Skipping invalid pattern %r for %s: %s", source, category_id, e)
        table.append((category_id.strip(), compiled))

    logger.info("Loaded pattern table", extra={"path": str(path), "categories": len(table)})
    return table
