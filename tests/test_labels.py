"""
Tests for label string parsing.
"""

import pytest

from gatekeeper.labels import parse_labels


class TestParseLabels:
    """Permissive parsing of label strings."""

    def test_json_list(self):
        assert parse_labels('["bug", "ui"]') == ["bug", "ui"]

    def test_comma_separated(self):
        assert parse_labels("bug, ui ,  needs triage") == ["bug", "ui", "needs triage"]

    def test_empty_tokens_discarded(self):
        assert parse_labels("bug,, ,ui,") == ["bug", "ui"]

    @pytest.mark.parametrize("raw", [None, ""])
    def test_missing_value_is_empty(self, raw):
        assert parse_labels(raw) == []

    def test_malformed_json_falls_back_to_split(self):
        assert parse_labels('["bug", "ui"') == ['["bug"', '"ui"']

    def test_json_scalar_falls_back_to_split(self):
        """A number parses as JSON but is not a list."""
        assert parse_labels("42") == ["42"]

    def test_only_separators_yields_nothing(self):
        assert parse_labels(" , , ") == []

    @pytest.mark.parametrize(
        "names",
        [
            ["bug"],
            ["bug", "enhancement"],
            ["good first issue", "help wanted", "ui"],
        ],
    )
    def test_comma_join_round_trips(self, names):
        """Joining trimmed names with commas parses back to the same names in order."""
        assert parse_labels(",".join(names)) == names
        assert parse_labels(", ".join(names)) == names
