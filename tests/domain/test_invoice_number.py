"""Tests for the INV-YYYYMM-XXXX format helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from invoice_kernel.domain.invoice_number import (
    MAX_SEQUENCE,
    format_number,
    parse_sequence,
    partition_prefix,
)


class TestPartitionPrefix:
    def test_utc_year_month(self):
        assert partition_prefix(datetime(2024, 3, 9, tzinfo=timezone.utc)) == "INV-202403-"

    def test_converted_to_utc(self):
        # 23:30 on Jan 31 at UTC-5 is already February in UTC
        local = datetime(2024, 1, 31, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert partition_prefix(local) == "INV-202402-"


class TestFormatNumber:
    def test_zero_padded(self):
        assert format_number("INV-202401-", 1) == "INV-202401-0001"

    def test_max(self):
        assert format_number("INV-202401-", MAX_SEQUENCE) == "INV-202401-9999"

    @pytest.mark.parametrize("sequence", [0, -1, MAX_SEQUENCE + 1])
    def test_out_of_range(self, sequence):
        with pytest.raises(ValueError):
            format_number("INV-202401-", sequence)


class TestParseSequence:
    def test_round_trip(self):
        assert parse_sequence(format_number("INV-202401-", 42)) == 42

    @pytest.mark.parametrize(
        "number", ["INV-202401-1", "INV-2024-0001", "XYZ-202401-0001", "INV-202401-00012"]
    )
    def test_malformed(self, number):
        with pytest.raises(ValueError):
            parse_sequence(number)
