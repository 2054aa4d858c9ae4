"""
Unit tests for currency/date formatting and Brazilian number parsing.
"""

import pytest
from datetime import datetime
from decimal import Decimal

from proposal_manager.utils.formatters import (
    EM_DASH, format_brl, format_fee_cell, date_br_long, parse_timestamp, optional_text
)
from proposal_manager.utils.number_format import parse_br_number


class TestFormatBrl:

    def test_two_decimals_comma_separator(self):
        assert format_brl(150) == 'R$ 150,00'
        assert format_brl(Decimal('99.9')) == 'R$ 99,90'

    def test_no_thousands_grouping(self):
        assert format_brl(Decimal('1500')) == 'R$ 1500,00'
        assert format_brl('1234567.891') == 'R$ 1234567,89'

    def test_none_is_zero(self):
        assert format_brl(None) == 'R$ 0,00'

    def test_invalid_value(self):
        with pytest.raises(ValueError):
            format_brl('abc')


class TestFormatFeeCell:

    def test_zero_renders_dash(self):
        assert format_fee_cell(0) == EM_DASH
        assert format_fee_cell(Decimal('0.00')) == EM_DASH
        assert format_fee_cell(None) == EM_DASH

    def test_positive_renders_currency(self):
        assert format_fee_cell('49.5') == 'R$ 49,50'


class TestDates:

    def test_date_br_long_iso_string(self):
        assert date_br_long('2025-03-07T10:00:00Z') == '07 de março de 2025'

    def test_date_br_long_datetime(self):
        assert date_br_long(datetime(2024, 12, 25, 8, 30)) == '25 de dezembro de 2024'

    def test_date_br_long_invalid(self):
        with pytest.raises(ValueError):
            date_br_long('not-a-date')
        with pytest.raises(ValueError):
            date_br_long(None)

    def test_parse_timestamp_with_offset(self):
        parsed = parse_timestamp('2025-01-31T23:59:00+00:00')
        assert (parsed.year, parsed.month, parsed.day) == (2025, 1, 31)


class TestOptionalText:

    def test_blank_becomes_none(self):
        assert optional_text('   ') is None
        assert optional_text(None) is None
        assert optional_text('  Acme ') == 'Acme'


class TestParseBrNumber:

    @pytest.mark.parametrize('raw, expected', [
        ('1.234,56', Decimal('1234.56')),
        ('10,5', Decimal('10.5')),
        ('10.5', Decimal('10.5')),
        ('20', Decimal('20')),
        (15, Decimal('15')),
        (12.5, Decimal('12.5')),
    ])
    def test_accepted_formats(self, raw, expected):
        assert parse_br_number(raw) == expected

    @pytest.mark.parametrize('raw', ['', '   ', 'abc', '1,2,3', None, True, '-5', -1])
    def test_rejected_values(self, raw):
        with pytest.raises(ValueError):
            parse_br_number(raw)
