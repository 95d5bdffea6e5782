"""Tests for token serialization."""

import pytest
from geocover.exceptions import InvalidTokenError
from geocover.tokens import (
    cell_id_to_token,
    token_to_cell_id,
    parse_token,
    is_valid_cell_id,
)


class TestCellIdToToken:
    """Tests for cell id -> token formatting."""

    def test_padded_to_sixteen_digits(self):
        """Test small ids keep their leading zeros."""
        assert cell_id_to_token(266) == "000000000000010a"

    def test_trailing_zeros_stripped(self):
        """Test coarse ids lose their trailing zero digits."""
        assert cell_id_to_token(0x80855C0000000000) == "80855c"

    def test_face_cells(self):
        """Test the six level-0 tokens."""
        tokens = [cell_id_to_token((face << 61) | (1 << 60)) for face in range(6)]
        assert tokens == ["1", "3", "5", "7", "9", "b"]

    def test_lowercase(self):
        """Test tokens use lowercase hex."""
        token = cell_id_to_token(0xABCDEF0000000000)
        assert token == token.lower()


class TestTokenToCellId:
    """Tests for token parsing."""

    def test_parse(self):
        """Test a token parses back to its id."""
        assert token_to_cell_id("80855c") == 0x80855C0000000000

    def test_uppercase_accepted(self):
        """Test uppercase hex digits parse to the same id."""
        assert token_to_cell_id("80855C") == token_to_cell_id("80855c")

    def test_round_trip(self):
        """Test id -> token -> id for a leaf id."""
        cell_id = 0x89C25A31A5A6E8A3
        assert token_to_cell_id(cell_id_to_token(cell_id)) == cell_id

    def test_empty(self):
        """Test that an empty token is rejected."""
        with pytest.raises(InvalidTokenError, match="empty"):
            token_to_cell_id("")

    @pytest.mark.parametrize("token", [
        "xyz",
        "0x1",
        "+1",
        "-1",
        " 1",
        "1 ",
        "1_0",
        "12345678901234567",  # 17 characters
    ])
    def test_malformed(self, token):
        """Test that non-hex and over-long tokens are rejected."""
        with pytest.raises(InvalidTokenError):
            token_to_cell_id(token)

    @pytest.mark.parametrize("token", [
        "0",                  # zero id
        "f",                  # face 7
        "e",                  # face 7
        "2",                  # sentinel at an odd bit
        "000000000000010a",   # sentinel at an odd bit
    ])
    def test_not_a_cell(self, token):
        """Test well-formed hex that does not describe a cell is rejected."""
        with pytest.raises(InvalidTokenError, match="valid cell"):
            token_to_cell_id(token)

    def test_is_value_error(self):
        """Test token errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            token_to_cell_id("not a token")


class TestParseToken:
    """Tests for the non-raising parser."""

    def test_valid(self):
        """Test a valid token returns its id."""
        assert parse_token("1") == 1 << 60

    @pytest.mark.parametrize("token", ["", "zz", "0", "f", "0x1"])
    def test_invalid_returns_none(self, token):
        """Test invalid tokens return None."""
        assert parse_token(token) is None


class TestIsValidCellId:
    """Tests for cell id validation."""

    def test_valid_ids(self):
        """Test face cells and a leaf are valid."""
        assert is_valid_cell_id(1 << 60)
        assert is_valid_cell_id((5 << 61) | (1 << 60))
        assert is_valid_cell_id(0x89C25A31A5A6E8A3)

    def test_out_of_range(self):
        """Test zero, negative and oversized ids are invalid."""
        assert not is_valid_cell_id(0)
        assert not is_valid_cell_id(-1)
        assert not is_valid_cell_id(1 << 64)
