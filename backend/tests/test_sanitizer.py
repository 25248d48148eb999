"""Tests for llm.sanitizer: raw values must never survive sanitization."""

from __future__ import annotations

import re

import pytest

from llm.sanitizer import Sanitizer


@pytest.fixture
def sanitizer() -> Sanitizer:
    return Sanitizer()


class TestSanitize:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("", "[EMPTY]"),
            ("   ", "[EMPTY]"),
            ("rahul@example.com", "[EMAIL: format valid]"),
            ("2345 6789 0123", "[AADHAAR: 12 digits]"),
            ("234567890123", "[AADHAAR: 12 digits]"),
            ("ABCDE1234F", "[PAN: format valid]"),
            ("4111 1111 1111 1111", "[CARD: 16 digits]"),
            ("192.168.1.1", "[IP: v4]"),
            ("+91 9876543210", "[PHONE: 12 digits]"),
            ("9876543210", "[PHONE: 10 digits]"),
            ("15/08/1990", "[DATE: format detected]"),
            ("1990-08-15", "[DATE: format detected]"),
            ("12345", "[NUMERIC: 5 digits]"),
            ("Rahul Kumar", "[TEXT: 2 words]"),
            ("Rahul", "[TEXT: 5 chars]"),
            ("Flat 4B, MG Road", "[MIXED: 16 chars, 4 words]"),
        ],
    )
    def test_descriptor(self, sanitizer: Sanitizer, value: str, expected: str):
        assert sanitizer.sanitize(value) == expected

    def test_surrounding_whitespace_is_ignored(self, sanitizer: Sanitizer):
        assert sanitizer.sanitize("  rahul@example.com \n") == "[EMAIL: format valid]"

    def test_email_wins_over_later_classifiers(self, sanitizer: Sanitizer):
        # digits-only local part would otherwise look numeric-ish
        assert sanitizer.sanitize("12345@example.com") == "[EMAIL: format valid]"

    def test_aadhaar_checked_before_generic_numeric(self, sanitizer: Sanitizer):
        assert sanitizer.sanitize("111122223333") == "[AADHAAR: 12 digits]"

    def test_invalid_ip_octet_is_not_an_ip(self, sanitizer: Sanitizer):
        assert sanitizer.sanitize("999.1.1.1") != "[IP: v4]"


class TestPrivacy:
    @pytest.mark.parametrize(
        "value",
        [
            "rahul@example.com",
            "Rahul Kumar",
            "ABCDE1234F",
            "2345 6789 0123",
            "Flat 4B, MG Road",
            "secret-token-xyz",
            "12345",
        ],
    )
    def test_output_contains_only_labels_and_counts(self, sanitizer: Sanitizer, value: str):
        out = sanitizer.sanitize(value)
        assert re.fullmatch(r"\[[A-Z]+(: [a-z0-9 ,]+)?\]", out)
        # no token of the raw value leaks into the descriptor
        for token in re.split(r"[\s@.,\-]+", value):
            if len(token) >= 3 and not token.isdigit():
                assert token not in out

    def test_sanitize_samples_preserves_order(self, sanitizer: Sanitizer):
        out = sanitizer.sanitize_samples(["a@b.com", "", "Rahul"])
        assert out == ["[EMAIL: format valid]", "[EMPTY]", "[TEXT: 5 chars]"]
