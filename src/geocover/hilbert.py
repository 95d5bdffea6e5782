"""
Hilbert-curve packing of (face, i, j) into 64-bit cell ids.

Cell id layout, most significant bit first:

    [3 bits face][2 bits per level x 30 levels][1 sentinel bit]

A cell at level L keeps the first 2*L position bits, sets the bit at
position 2*(30 - L) as its sentinel, and leaves every bit below it zero.

Within a face the curve is walked with orientation tracking: each quadrant
may be swapped (i and j exchanged) and/or inverted (traversed backwards)
relative to its parent. The walk is table driven, consuming four levels
(8 bits of i and j together) per step.
"""

from typing import List, Tuple

from .exceptions import LevelOutOfRangeError
from .projection import MAX_LEVEL


SWAP_MASK = 0x01
INVERT_MASK = 0x02
LOOKUP_BITS = 4  # levels consumed per table step

FACE_BITS = 3
POS_BITS = 2 * MAX_LEVEL + 1

# Orientation change applied when descending into sub-position 0..3
POS_TO_ORIENTATION = (SWAP_MASK, 0, 0, INVERT_MASK | SWAP_MASK)

# For each orientation, the (i << 1 | j) quadrant visited at sub-position 0..3
POS_TO_IJ = (
    (0, 1, 3, 2),  # canonical
    (0, 2, 3, 1),  # swapped
    (3, 2, 0, 1),  # inverted
    (3, 1, 0, 2),  # swapped and inverted
)


def _init_lookup_cell(
    level: int,
    i: int,
    j: int,
    orig_orientation: int,
    pos: int,
    orientation: int,
    lookup_pos: List[int],
    lookup_ij: List[int],
) -> None:
    """
    Fill both lookup tables for every 4-level sub-path starting at orig_orientation.

    lookup_pos maps [4 bits i][4 bits j][2 bits orientation] to
    [8 bits position][2 bits resulting orientation]; lookup_ij is its inverse.
    """
    if level == LOOKUP_BITS:
        ij = (i << LOOKUP_BITS) + j
        lookup_pos[(ij << 2) + orig_orientation] = (pos << 2) + orientation
        lookup_ij[(pos << 2) + orig_orientation] = (ij << 2) + orientation
        return

    level += 1
    i <<= 1
    j <<= 1
    pos <<= 2
    for sub_pos in range(4):
        ij_index = POS_TO_IJ[orientation][sub_pos]
        _init_lookup_cell(
            level,
            i + (ij_index >> 1),
            j + (ij_index & 1),
            orig_orientation,
            pos + sub_pos,
            orientation ^ POS_TO_ORIENTATION[sub_pos],
            lookup_pos,
            lookup_ij,
        )


def build_lookup_tables() -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    """
    Build the position and ij lookup tables.

    Returns:
        Tuple of (lookup_pos, lookup_ij), each with 1024 entries
    """
    size = 1 << (2 * LOOKUP_BITS + 2)
    lookup_pos = [0] * size
    lookup_ij = [0] * size
    for orientation in (0, SWAP_MASK, INVERT_MASK, SWAP_MASK | INVERT_MASK):
        _init_lookup_cell(0, 0, 0, orientation, 0, orientation, lookup_pos, lookup_ij)
    return tuple(lookup_pos), tuple(lookup_ij)


LOOKUP_POS, LOOKUP_IJ = build_lookup_tables()


def lowest_on_bit_for_level(level: int) -> int:
    """Sentinel bit of a cell at the given level."""
    return 1 << (2 * (MAX_LEVEL - level))


def lowest_on_bit(cell_id: int) -> int:
    return cell_id & -cell_id


def level_of(cell_id: int) -> int:
    """
    Level encoded by the sentinel bit of a cell id.

    The sentinel of a level-L cell sits at bit 2*(30 - L), so the level is
    30 minus half the number of trailing zeros.
    """
    trailing_zeros = lowest_on_bit(cell_id).bit_length() - 1
    return MAX_LEVEL - (trailing_zeros >> 1)


def face_of(cell_id: int) -> int:
    return cell_id >> POS_BITS


def face_ij_to_cell_id(face: int, i: int, j: int, level: int) -> int:
    """
    Pack face and leaf indices into a cell id at the given level.

    Args:
        face: Cube face (0-5)
        i: Leaf i index in [0, 2^30)
        j: Leaf j index in [0, 2^30)
        level: Target level (0-30)

    Returns:
        Cell id as a non-negative int below 2^64
    """
    if level < 0 or level > MAX_LEVEL:
        raise LevelOutOfRangeError(level, MAX_LEVEL)

    n = face << (POS_BITS - 1)

    # Odd faces start in the swapped orientation so every face is right-handed
    bits = face & SWAP_MASK
    mask = (1 << LOOKUP_BITS) - 1

    for k in range(7, -1, -1):
        bits += ((i >> (k * LOOKUP_BITS)) & mask) << (LOOKUP_BITS + 2)
        bits += ((j >> (k * LOOKUP_BITS)) & mask) << 2
        bits = LOOKUP_POS[bits]
        n |= (bits >> 2) << (k * 2 * LOOKUP_BITS)
        bits &= SWAP_MASK | INVERT_MASK

    cell_id = n * 2 + 1

    if level < MAX_LEVEL:
        lsb = lowest_on_bit_for_level(level)
        cell_id = (cell_id & -lsb) | lsb

    return cell_id


def cell_id_to_face_ij(cell_id: int) -> Tuple[int, int, int, int]:
    """
    Unpack a cell id into face, leaf indices and level.

    For a non-leaf cell the returned (i, j) is a leaf next to the cell
    center; see projection.ij_to_st_center.

    Returns:
        Tuple of (face, i, j, level)
    """
    face = face_of(cell_id)
    level = level_of(cell_id)

    bits = face & SWAP_MASK
    i = 0
    j = 0

    for k in range(7, -1, -1):
        # 30 levels = 2 + 7 * 4, so the first step only carries two levels
        nbits = MAX_LEVEL - 7 * LOOKUP_BITS if k == 7 else LOOKUP_BITS
        position = (cell_id >> (k * 2 * LOOKUP_BITS + 1)) & ((1 << (2 * nbits)) - 1)
        bits += position << 2
        bits = LOOKUP_IJ[bits]
        i += (bits >> (LOOKUP_BITS + 2)) << (k * LOOKUP_BITS)
        j += ((bits >> 2) & ((1 << LOOKUP_BITS) - 1)) << (k * LOOKUP_BITS)
        bits &= SWAP_MASK | INVERT_MASK

    return face, i, j, level
