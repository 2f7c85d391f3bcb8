"""
Unit tests for query parameter validation.
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.errors import ValidationError
from service_proxy.app.domain.params import parse_delay, parse_page


class TestParsePage:
    """Test cases for parse_page."""

    @pytest.mark.parametrize("raw", [None, "null", ""])
    def test_no_page(self, raw):
        """Absent, 'null' and empty mean no page."""
        assert parse_page(raw) is None

    @pytest.mark.parametrize("raw,expected", [("0", 0), ("1", 1), ("42", 42)])
    def test_valid_page(self, raw, expected):
        """Non-negative integers are accepted."""
        assert parse_page(raw) == expected

    @pytest.mark.parametrize("raw", ["-1", "abc", "1.5", "2abc", "NULL", "٣"])
    def test_invalid_page(self, raw):
        """Everything else is rejected with a 400."""
        with pytest.raises(ValidationError) as exc_info:
            parse_page(raw)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Invalid page parameter."


class TestParseDelay:
    """Test cases for parse_delay."""

    def test_absent(self):
        assert parse_delay(None) is None

    def test_valid(self):
        assert parse_delay("250") == 250
        assert parse_delay("0") == 0

    @pytest.mark.parametrize("raw", ["-5", "soon", "", "null"])
    def test_invalid(self, raw):
        """Delay has no 'no value' spelling; anything non-numeric is a 400."""
        with pytest.raises(ValidationError) as exc_info:
            parse_delay(raw)

        assert exc_info.value.message == "Invalid delay parameter."
