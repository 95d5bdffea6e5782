"""
Cell value type.

A Cell wraps a token together with its level and lat/lon bounds, and derives
its parent, children and neighbors.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

from . import codec
from .exceptions import InvalidCellOperationError
from .geo import GeoBoundingBox, GeoLocation
from .hilbert import level_of, lowest_on_bit
from .projection import MAX_LEVEL
from .tokens import cell_id_to_token, parse_token, token_to_cell_id


DEFAULT_LEVEL = 16


def _bounds_box(token: str) -> GeoBoundingBox:
    """
    Cell bounds as a non-wrapping box.

    Raw bounds that wrap the antimeridian (min_lon > max_lon, only the
    level-0 face 3) widen to every longitude.
    """
    min_lat, max_lat, min_lon, max_lon = codec.decode_bounds(token)
    if min_lon > max_lon:
        min_lon, max_lon = -180.0, 180.0
    return GeoBoundingBox(
        GeoLocation(min_lat, min_lon),
        GeoLocation(max_lat, max_lon),
    )


@dataclass(frozen=True)
class Cell:
    """
    A cell of the cube-face hierarchy.

    Build instances with from_token(), from_location() or try_from_token().
    """

    token: str
    level: int
    bounds: GeoBoundingBox

    @classmethod
    def _from_cell_id(cls, cell_id: int) -> Cell:
        token = cell_id_to_token(cell_id)
        return cls(token, level_of(cell_id), _bounds_box(token))

    @classmethod
    def from_token(cls, token: str) -> Cell:
        """
        Create a cell from its token.

        The stored token is the canonical lowercase form.

        Raises:
            InvalidTokenError: If the token is empty or malformed
        """
        return cls._from_cell_id(token_to_cell_id(token))

    @classmethod
    def try_from_token(cls, token: str) -> Optional[Cell]:
        """Like from_token(), but returns None when the token is not a valid cell."""
        cell_id = parse_token(token)
        if cell_id is None:
            return None
        return cls._from_cell_id(cell_id)

    @classmethod
    def from_location(cls, location: GeoLocation, level: int) -> Cell:
        """
        Create the cell containing a location.

        Args:
            location: Point to encode
            level: Cell level (0-30)

        Raises:
            LevelOutOfRangeError: If level is outside [0, 30]
        """
        token = codec.encode(location.latitude, location.longitude, level)
        return cls(token, level, _bounds_box(token))

    @property
    def cell_id(self) -> int:
        return token_to_cell_id(self.token)

    @property
    def center(self) -> GeoLocation:
        lat, lon = codec.decode(self.token)
        return GeoLocation(lat, lon)

    def parent(self) -> Cell:
        """
        The enclosing cell one level up.

        Found by re-encoding this cell's center at level - 1.

        Raises:
            InvalidCellOperationError: If this is a level-0 cell
        """
        if self.level == 0:
            raise InvalidCellOperationError("Cannot get parent for a cell with level 0")

        return Cell.from_location(self.center, self.level - 1)

    def children(self) -> List[Cell]:
        """
        The four cells one level down, in Hilbert order.

        Each child id moves the sentinel two bits down and writes the child
        index into the two bits it vacated. A candidate that does not parse
        as a valid cell is left out of the result.

        Raises:
            InvalidCellOperationError: If this is a level-30 cell
        """
        if self.level >= MAX_LEVEL:
            raise InvalidCellOperationError(
                f"Cannot get children for a cell with level {MAX_LEVEL} (maximum precision)"
            )

        cell_id = self.cell_id
        lsb = lowest_on_bit(cell_id)
        child_lsb = lsb >> 2
        without_sentinel = cell_id ^ lsb

        candidates = [
            Cell.try_from_token(
                cell_id_to_token(without_sentinel | (index * child_lsb * 2) | child_lsb)
            )
            for index in range(4)
        ]
        return [child for child in candidates if child is not None]

    def neighbors(self) -> List[Cell]:
        """The eight same-level cells around this one (SW, S, SE, W, E, NW, N, NE)."""
        return [Cell.from_token(token) for token in codec.get_neighbors(self.token)]

    def __str__(self) -> str:
        return self.token


def location_to_token(location: GeoLocation, level: int = DEFAULT_LEVEL) -> str:
    return codec.encode(location.latitude, location.longitude, level)


def location_from_token(token: str) -> GeoLocation:
    """Center of the cell named by a token."""
    lat, lon = codec.decode(token)
    return GeoLocation(lat, lon)


def location_to_cell(location: GeoLocation, level: int = DEFAULT_LEVEL) -> Cell:
    return Cell.from_location(location, level)
