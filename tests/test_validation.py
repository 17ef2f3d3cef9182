"""Tests for postal code validation."""

from __future__ import annotations

import pytest

from zipweather_core.validation import is_valid_zipcode


class TestIsValidZipcode:
    """Tests for is_valid_zipcode()."""

    @pytest.mark.parametrize("zipcode", ["01001000", "29902555", "99999999"])
    def test_accepts_eight_digits(self, zipcode: str) -> None:
        assert is_valid_zipcode(zipcode)

    @pytest.mark.parametrize(
        "zipcode",
        [
            "",
            "0100100",
            "010010000",
            "01001-000",
            "0100100a",
            " 01001000",
            "01001000\n",
            "０１００１０００",  # full-width digits
        ],
    )
    def test_rejects_malformed(self, zipcode: str) -> None:
        assert not is_valid_zipcode(zipcode)

    @pytest.mark.parametrize("zipcode", [None, 1001000, ["01001000"]])
    def test_rejects_non_strings(self, zipcode: object) -> None:
        assert not is_valid_zipcode(zipcode)
