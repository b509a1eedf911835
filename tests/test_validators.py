"""Tests for the shared validation helpers"""

import pytest

from guidedtours.shared.validators import (
    format_category_list,
    normalize_category_names,
    parse_category_list,
    validate_email,
)


class TestValidateEmail:
    def test_lowercases_and_strips(self):
        assert validate_email("  Giulia.Bianchi@Example.COM ") == "giulia.bianchi@example.com"

    def test_rejects_malformed(self):
        with pytest.raises(ValueError):
            validate_email("not-an-email")


class TestCategoryLists:
    def test_normalize_drops_blanks_and_duplicates(self):
        assert normalize_category_names([" STORICA", "storica", "", "LABBAMBINI"]) == [
            "STORICA",
            "LABBAMBINI",
        ]

    def test_non_strings_are_skipped(self):
        assert normalize_category_names(["STORICA", 3, None]) == ["STORICA"]

    def test_parse_and_format(self):
        assert parse_category_list("STORICA, SCIENTIFICA,") == ["STORICA", "SCIENTIFICA"]
        assert parse_category_list(None) == []
        assert format_category_list(["STORICA", "SCIENTIFICA"]) == "STORICA, SCIENTIFICA"
