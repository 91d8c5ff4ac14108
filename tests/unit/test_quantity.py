"""Tests for Kubernetes quantity parsing."""

from decimal import Decimal

import pytest

from manilint.k8s.quantity import parse_quantity


class TestParseQuantity:
    """Tests for parse_quantity()."""

    @pytest.mark.parametrize("raw, expected", [
        ("500m", Decimal("0.5")),
        ("1", Decimal(1)),
        ("1.5", Decimal("1.5")),
        ("128Mi", Decimal(128 * 2 ** 20)),
        ("1Gi", Decimal(2 ** 30)),
        ("1G", Decimal(10 ** 9)),
        ("2k", Decimal(2000)),
        ("1e3", Decimal(1000)),
        ("100u", Decimal("0.0001")),
    ])
    def test_string_quantities(self, raw, expected):
        """Test suffixed and plain quantities."""
        assert parse_quantity(raw) == expected

    def test_numbers(self):
        """Test that YAML numbers are accepted as-is."""
        assert parse_quantity(2) == Decimal(2)
        assert parse_quantity(0.25) == Decimal("0.25")

    def test_binary_larger_than_decimal(self):
        """Test that Mi and M are distinct units."""
        assert parse_quantity("1Mi") > parse_quantity("1M")

    @pytest.mark.parametrize("raw", ["", "abc", "10 Mi", "1.2.3", "Mi", "5mb", True, None])
    def test_invalid(self, raw):
        """Test that malformed quantities raise ValueError."""
        with pytest.raises(ValueError):
            parse_quantity(raw)
