"""
geocover: Hierarchical cube-face cell tokens and region coverings.

This package encodes WGS84 (lat, lon) coordinates into sortable hexadecimal
cell tokens on a Hilbert-ordered cube-face hierarchy, and computes bounded,
distance-ordered sets of tokens covering a radius or bounding-box query, for
use as range-query keys in an ordered key-value store.
"""

__version__ = "0.1.0"

from .geo import GeoLocation, GeoBoundingBox
from .codec import encode, decode, decode_bounds, get_neighbors
from .tokens import cell_id_to_token, token_to_cell_id, is_valid_cell_id
from .cell import Cell, location_to_token, location_from_token, location_to_cell
from .covering import (
    CellCoverer,
    CoveringConfig,
    CoveringStats,
    estimate_cell_count,
    get_cells_for_radius,
    get_cells_for_bounding_box,
    DEFAULT_MAX_CELLS,
    ABSOLUTE_MAX_CELLS,
)
from .exceptions import (
    GeocoverError,
    LevelOutOfRangeError,
    InvalidTokenError,
    InvalidCellOperationError,
    CoveringTooLargeError,
)

__all__ = [
    "GeoLocation",
    "GeoBoundingBox",
    "encode",
    "decode",
    "decode_bounds",
    "get_neighbors",
    "cell_id_to_token",
    "token_to_cell_id",
    "is_valid_cell_id",
    "Cell",
    "location_to_token",
    "location_from_token",
    "location_to_cell",
    "CellCoverer",
    "CoveringConfig",
    "CoveringStats",
    "estimate_cell_count",
    "get_cells_for_radius",
    "get_cells_for_bounding_box",
    "DEFAULT_MAX_CELLS",
    "ABSOLUTE_MAX_CELLS",
    "GeocoverError",
    "LevelOutOfRangeError",
    "InvalidTokenError",
    "InvalidCellOperationError",
    "CoveringTooLargeError",
]
