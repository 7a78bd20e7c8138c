"""Tests for invoice totals (invoice_kernel/domain/totals.py)."""

from decimal import Decimal

import pytest

from invoice_kernel.domain.totals import compute_totals, parse_tax_rate
from invoice_kernel.domain.values import Money
from invoice_kernel.exceptions import InvalidAmountError
from tests.factories import make_item


class TestComputeTotals:
    def test_ten_percent_of_one_hundred(self):
        totals = compute_totals([make_item(quantity="1", rate="100.00")], "10")
        assert str(totals.subtotal) == "100.00"
        assert str(totals.tax_amount) == "10.00"
        assert str(totals.total) == "110.00"

    def test_subtotal_is_sum_of_amounts(self):
        items = [
            make_item(quantity="3", rate="33.33"),
            make_item(quantity="0.5", rate="19.99"),
        ]
        totals = compute_totals(items, 0)
        # 99.99 + 10.00 (9.995 rounded half up)
        assert str(totals.subtotal) == "109.99"
        assert totals.tax_amount == Money.zero()
        assert totals.total == totals.subtotal

    def test_tax_rounds_half_up(self):
        totals = compute_totals([make_item(quantity="1", rate="0.10")], "5")
        assert str(totals.tax_amount) == "0.01"
        assert str(totals.total) == "0.11"

    def test_total_is_subtotal_plus_tax(self):
        totals = compute_totals([make_item(quantity="7", rate="13.37")], "8.875")
        assert totals.total == totals.subtotal + totals.tax_amount

    def test_no_items_gives_zero(self):
        totals = compute_totals([], "10")
        assert totals.total.is_zero

    def test_hundred_percent(self):
        totals = compute_totals([make_item(quantity="1", rate="50")], "100")
        assert str(totals.total) == "100.00"

    @pytest.mark.parametrize("rate", ["-0.01", "100.01", "abc"])
    def test_invalid_rate(self, rate):
        with pytest.raises(InvalidAmountError):
            compute_totals([make_item()], rate)


class TestParseTaxRate:
    def test_quantizes(self):
        assert parse_tax_rate("7.255") == Decimal("7.26")

    def test_accepts_bounds(self):
        assert parse_tax_rate(0) == Decimal("0.00")
        assert parse_tax_rate("100") == Decimal("100.00")

    def test_out_of_range_message(self):
        with pytest.raises(InvalidAmountError) as exc_info:
            parse_tax_rate("101")
        assert exc_info.value.field == "tax_rate"
        assert exc_info.value.reason == "Tax rate must be between 0 and 100"
