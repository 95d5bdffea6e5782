"""
Token serialization for cell ids.

A token is the cell id written as 16 lowercase hex digits with the trailing
zeros removed. Since every bit below the sentinel is zero, coarse cells get
short tokens:

    0x89c2590000000000 (level 10) -> "89c259"

Padding a token back to 16 digits and parsing it as hex reproduces the id.
"""

from typing import Optional

from .exceptions import InvalidTokenError
from .hilbert import POS_BITS


TOKEN_LENGTH = 16
NUM_FACES = 6

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

# Bits at even positions; a valid sentinel is always one of these
_EVEN_BITS_MASK = 0x5555555555555555


def is_valid_cell_id(cell_id: int) -> bool:
    """
    Check that a cell id has a face in [0, 6) and a sentinel at an even position.

    Args:
        cell_id: Candidate id

    Returns:
        True if cell_id is a well-formed cell id
    """
    if cell_id <= 0 or cell_id >= 1 << 64:
        return False
    if cell_id >> POS_BITS >= NUM_FACES:
        return False
    return (cell_id & -cell_id & _EVEN_BITS_MASK) != 0


def cell_id_to_token(cell_id: int) -> str:
    return format(cell_id, "016x").rstrip("0")


def _is_hex_token(token: str) -> bool:
    return 0 < len(token) <= TOKEN_LENGTH and all(c in _HEX_DIGITS for c in token)


def parse_token(token: str) -> Optional[int]:
    """
    Parse a token, returning None instead of raising when it is not a valid cell.

    int(..., 16) alone would also accept "0x" prefixes, signs, underscores
    and surrounding whitespace, so the characters are checked first.
    """
    if not token or not _is_hex_token(token):
        return None
    cell_id = int(token.ljust(TOKEN_LENGTH, "0"), 16)
    return cell_id if is_valid_cell_id(cell_id) else None


def token_to_cell_id(token: str) -> int:
    """
    Parse a token back into its cell id.

    Args:
        token: 1-16 hexadecimal characters

    Returns:
        The cell id

    Raises:
        InvalidTokenError: If the token is empty, too long, not hexadecimal,
            or does not describe a valid cell
    """
    if not token:
        raise InvalidTokenError("Cell token cannot be empty")

    if not _is_hex_token(token):
        raise InvalidTokenError(
            f"Invalid cell token {token!r}. Tokens must be 1-{TOKEN_LENGTH} "
            "character hexadecimal strings (0-9, a-f)."
        )

    cell_id = parse_token(token)
    if cell_id is None:
        raise InvalidTokenError(f"Token {token!r} does not describe a valid cell")

    return cell_id
