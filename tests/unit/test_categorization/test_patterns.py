from pathlib import Path

import pytest

from budgetlens.categorization.patterns import (
    DEFAULT_CATEGORIES,
    DEFAULT_PATTERNS,
    INCOME_CATEGORIES,
    detect_type,
    load_pattern_table,
)
from budgetlens.core.exceptions import PatternTableError


def test_detect_type_card_payment() -> None:
    assert detect_type("CB* CARREFOUR MARKET REIMS") == "PAIEMENT_CARTE"


def test_detect_type_incoming_transfer() -> None:
    assert detect_type("VIR INST DE MATHILDE LE CERF") == "VIREMENT_RECU"


def test_detect_type_outgoing_transfer() -> None:
    assert detect_type("VIREMENT VERS LIVRET A") == "VIREMENT_EMIS"


def test_detect_type_direct_debit() -> None:
    assert detect_type("PRLV SEPA NETFLIX INTERNATIONAL") == "PRELEVEMENT"


def test_detect_type_credit_note() -> None:
    assert detect_type("AVOIR AMAZON EU") == "AVOIR"


def test_detect_type_fee() -> None:
    assert detect_type("COTISATION CARTE VISA") == "COTISATION"


def test_detect_type_unknown() -> None:
    assert detect_type("RETRAIT DAB") == "AUTRE"
    assert detect_type(None) == "AUTRE"


def test_pattern_table_targets_known_categories() -> None:
    known = {cid for cid, _, _ in DEFAULT_CATEGORIES}
    assert {cid for cid, _ in DEFAULT_PATTERNS} <= known


def test_income_categories_match_defaults() -> None:
    assert {cid for cid, _, is_income in DEFAULT_CATEGORIES if is_income} == INCOME_CATEGORIES


def test_default_patterns_are_case_insensitive() -> None:
    _, patterns = DEFAULT_PATTERNS[0]
    assert patterns[0].search("CARREFOUR")
    assert patterns[0].search("carrefour")


def test_load_pattern_table_preserves_order(tmp_path: Path) -> None:
    path = tmp_path / "patterns.yaml"
    path.write_text(
        "categories:\n"
        "  - id: coffee\n"
        "    patterns:\n"
        "      - 'starbucks|columbus'\n"
        "  - id: books\n"
        "    patterns:\n"
        "      - 'gibert'\n"
        "      - 'librairie'\n",
        encoding="utf-8",
    )

    table = load_pattern_table(path)

    assert [cid for cid, _ in table] == ["coffee", "books"]
    assert len(table[1][1]) == 2
    assert table[0][1][0].search("STARBUCKS PARIS")


def test_load_pattern_table_skips_invalid_regex(tmp_path: Path) -> None:
    path = tmp_path / "patterns.yaml"
    path.write_text(
        "categories:\n"
        "  - id: coffee\n"
        "    patterns:\n"
        "      - '(unclosed'\n"
        "      - 'starbucks'\n",
        encoding="utf-8",
    )

    table = load_pattern_table(path)

    assert len(table) == 1
    assert [p.pattern for p in table[0][1]] == ["starbucks"]


def test_load_pattern_table_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_pattern_table(path) == []


def test_load_pattern_table_missing_file(tmp_path: Path) -> None:
    with pytest.raises(PatternTableError) as exc_info:
        load_pattern_table(tmp_path / "missing.yaml")
    assert exc_info.value.error_code == "CONFIG_001"


def test_load_pattern_table_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("categories: [unclosed\n", encoding="utf-8")
    with pytest.raises(PatternTableError):
        load_pattern_table(path)


def test_load_pattern_table_rejects_string_patterns(tmp_path: Path) -> None:
    """A scalar instead of a list must not become one pattern per character."""
    path = tmp_path / "patterns.yaml"
    path.write_text(
        "categories:\n"
        "  - id: coffee\n"
        "    patterns: starbucks\n",
        encoding="utf-8",
    )
    with pytest.raises(PatternTableError) as exc_info:
        load_pattern_table(path)
    assert exc_info.value.details["category_id"] == "coffee"


def test_load_pattern_table_rejects_missing_id(tmp_path: Path) -> None:
    path = tmp_path / "patterns.yaml"
    path.write_text(
        "categories:\n"
        "  - patterns:\n"
        "      - 'starbucks'\n",
        encoding="utf-8",
    )
    with pytest.raises(PatternTableError) as exc_info:
        load_pattern_table(path)
    assert exc_info.value.details["position"] == 0


def test_load_pattern_table_rejects_non_mapping_entry(tmp_path: Path) -> None:
    path = tmp_path / "patterns.yaml"
    path.write_text("categories:\n  - coffee\n", encoding="utf-8")
    with pytest.raises(PatternTableError):
        load_pattern_table(path)


def test_load_pattern_table_rejects_categories_mapping(tmp_path: Path) -> None:
    path = tmp_path / "patterns.yaml"
    path.write_text("categories:\n  coffee: starbucks\n", encoding="utf-8")
    with pytest.raises(PatternTableError):
        load_pattern_table(path)


def test_load_pattern_table_skips_empty_pattern(tmp_path: Path) -> None:
    path = tmp_path / "patterns.yaml"
    path.write_text(
        "categories:\n"
        "  - id: coffee\n"
        "    patterns:\n"
        "      - ''\n"
        "      - 'starbucks'\n",
        encoding="utf-8",
    )

    table = load_pattern_table(path)

    assert [p.pattern for p in table[0][1]] == ["starbucks"]
    assert not any(p.search("CB CARREFOUR REIMS") for p in table[0][1])
