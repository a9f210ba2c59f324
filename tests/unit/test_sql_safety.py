"""
Unit tests for identifier validation and quoting
"""

import pytest

from utils.sql_safety import (
    quote_identifier,
    quote_literal,
    quote_table,
    split_table_identifier,
    validate_identifier,
    validate_integer_param,
)


class TestValidateIdentifier:
    """Test validate_identifier"""

    @pytest.mark.parametrize("name", ["price", "Order Total", "näme", "a-b", "x.y"])
    def test_accepts_printable_names(self, name):
        validate_identifier(name)

    @pytest.mark.parametrize(
        "name, message",
        [
            ("", "cannot be empty"),
            (" price", "whitespace"),
            ("price\n", "whitespace"),
            ("pri\x00ce", "control characters"),
            ("a:b", "reserved"),
            ("a;b", "reserved"),
        ],
    )
    def test_rejects_invalid_names(self, name, message):
        with pytest.raises(ValueError, match=message):
            validate_identifier(name)

    def test_kind_appears_in_message(self):
        with pytest.raises(ValueError, match="table identifier"):
            validate_identifier("", kind="table")


class TestTableIdentifiers:
    """Test split_table_identifier and quote_table"""

    def test_split(self):
        assert split_table_identifier("sales.orders") == ("sales", "orders")

    @pytest.mark.parametrize("table", ["orders", "a.b.c", "sales.", ".orders"])
    def test_split_rejects_malformed(self, table):
        with pytest.raises(ValueError):
            split_table_identifier(table)

    def test_quote_table(self):
        assert quote_table("sales.orders") == '"sales"."orders"'


class TestQuoting:
    """Test identifier and literal quoting"""

    def test_quote_identifier(self):
        assert quote_identifier("price") == '"price"'

    def test_quote_identifier_doubles_embedded_quotes(self):
        assert quote_identifier('odd"name') == '"odd""name"'

    def test_quote_literal_doubles_single_quotes(self):
        assert quote_literal("o'brien") == "'o''brien'"


class TestValidateIntegerParam:
    """Test validate_integer_param"""

    def test_accepts_valid_value(self):
        validate_integer_param(5, "max_workers", min_value=1)

    @pytest.mark.parametrize("value", [0, -3])
    def test_rejects_below_minimum(self, value):
        with pytest.raises(ValueError, match="max_workers"):
            validate_integer_param(value, "max_workers", min_value=1)

    @pytest.mark.parametrize("value", ["5", 2.0, True])
    def test_rejects_non_integers(self, value):
        with pytest.raises(ValueError, match="Must be an integer"):
            validate_integer_param(value, "size_ceiling")
