"""
Unit tests for hostname normalization.
"""

import pytest

from hetzner_console_core.utils.hostname_utils import is_valid_hostname, normalize_hostname


class TestNormalizeHostname:
    """Test normalize_hostname."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("My Server_01", "my-server-01"),
            ("  Web-1  ", "web-1"),
            ("--web--1--", "web-1"),
            ("api..example.com", "api.example.com"),
            ("db@@@primary", "db-primary"),
            ("Über Host", "ber-host"),
            (".hidden.", "hidden"),
        ],
    )
    def test_normalizes_free_text(self, raw, expected):
        """Test the documented normalization steps."""
        assert normalize_hostname(raw) == expected

    @pytest.mark.parametrize("name", ["web-1", "api.example.com", "a", "x1.y2.z3"])
    def test_idempotent_on_valid_names(self, name):
        """Test that valid hostnames pass through unchanged."""
        assert normalize_hostname(name) == name
        assert normalize_hostname(normalize_hostname(name)) == name

    def test_only_invalid_characters_becomes_empty(self):
        """Test that nothing survives when there is no alphanumeric character."""
        assert normalize_hostname("!!!") == ""


class TestIsValidHostname:
    """Test is_valid_hostname."""

    def test_accepts_max_length(self):
        """Test a 63 character name is accepted."""
        assert is_valid_hostname("a" * 63)

    def test_rejects_over_max_length(self):
        """Test a 64 character name is rejected."""
        assert not is_valid_hostname("a" * 64)

    @pytest.mark.parametrize("name", ["", "a.-b", "-a", "a-", "UPPER", "under_score"])
    def test_rejects_invalid_names(self, name):
        """Test names outside the hostname pattern."""
        assert not is_valid_hostname(name)

    def test_normalized_label_with_dash_after_dot_is_invalid(self):
        """Test that normalization alone does not guarantee validity."""
        normalized = normalize_hostname("a.-b")
        assert normalized == "a.-b"
        assert not is_valid_hostname(normalized)
