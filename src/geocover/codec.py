"""
Cell codec: (lat, lon, level) <-> token, plus cell bounds and neighbors.

encode() runs a point through projection (sphere -> face -> uv -> st -> ij)
and hilbert packing; decode() runs the inverse from the cell center.
"""

from typing import List, Tuple

from .exceptions import LevelOutOfRangeError
from .hilbert import cell_id_to_face_ij, face_ij_to_cell_id
from .projection import (
    MAX_LEVEL,
    MAX_SIZE,
    POLE_FACE_MIN_LAT,
    face_uv_to_xyz,
    ij_to_st_center,
    lat_lon_to_xyz,
    st_to_ij,
    st_to_uv,
    uv_to_st,
    xyz_to_face,
    xyz_to_face_uv,
    xyz_to_lat_lon,
)
from .tokens import cell_id_to_token, token_to_cell_id


Bounds = Tuple[float, float, float, float]

# Level-0 rectangles as (min_lat, max_lat, min_lon, max_lon).
# Face 3 straddles the antimeridian, so its min_lon is greater than its max_lon.
FACE_BOUNDS: Tuple[Bounds, ...] = (
    (-45.0, 45.0, -45.0, 45.0),
    (-45.0, 45.0, 45.0, 135.0),
    (POLE_FACE_MIN_LAT, 90.0, -180.0, 180.0),
    (-45.0, 45.0, 135.0, -135.0),
    (-45.0, 45.0, -135.0, -45.0),
    (-90.0, -POLE_FACE_MIN_LAT, -180.0, 180.0),
)

# A cell whose extreme corner latitude passes this is treated as touching the pole
POLE_LATITUDE_THRESHOLD = 89.9

# (di, dj) multipliers for the eight neighbors: SW, S, SE, W, E, NW, N, NE
NEIGHBOR_OFFSETS = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1), (0, 1),
    (1, -1), (1, 0), (1, 1),
)


def validate_level(level: int) -> None:
    if level < 0 or level > MAX_LEVEL:
        raise LevelOutOfRangeError(level, MAX_LEVEL)


def encode_cell_id(lat: float, lon: float, level: int) -> int:
    """Cell id of the level-`level` cell containing (lat, lon)."""
    validate_level(level)

    x, y, z = lat_lon_to_xyz(lat, lon)
    face = xyz_to_face(x, y, z)
    u, v = xyz_to_face_uv(face, x, y, z)
    i, j = st_to_ij(uv_to_st(u), uv_to_st(v))

    return face_ij_to_cell_id(face, i, j, level)


def encode(lat: float, lon: float, level: int) -> str:
    """
    Encode a location into a cell token.

    Args:
        lat: Latitude in degrees [-90, 90]
        lon: Longitude in degrees [-180, 180]
        level: Cell level (0-30); higher is finer

    Returns:
        Token of the cell containing the location

    Raises:
        LevelOutOfRangeError: If level is outside [0, 30]
    """
    return cell_id_to_token(encode_cell_id(lat, lon, level))


def decode_cell_id(cell_id: int) -> Tuple[float, float]:
    face, i, j, level = cell_id_to_face_ij(cell_id)
    s, t = ij_to_st_center(i, j, level, cell_id)
    x, y, z = face_uv_to_xyz(face, st_to_uv(s), st_to_uv(t))
    return xyz_to_lat_lon(x, y, z)


def decode(token: str) -> Tuple[float, float]:
    """
    Decode a token to the (lat, lon) of its cell center.

    Raises:
        InvalidTokenError: If the token is empty or malformed
    """
    return decode_cell_id(token_to_cell_id(token))


def _cell_corners(face: int, i: int, j: int, level: int) -> List[Tuple[float, float]]:
    """(lat, lon) of the cell corners in SW, SE, NE, NW order."""
    cell_size = 1 << (MAX_LEVEL - level)

    # Doubled coordinates of the cell edges, in [-MAX_SIZE, MAX_SIZE]
    si_lo = (i & -cell_size) * 2 - MAX_SIZE
    si_hi = si_lo + cell_size * 2
    ti_lo = (j & -cell_size) * 2 - MAX_SIZE
    ti_hi = ti_lo + cell_size * 2

    scale = 1.0 / MAX_SIZE
    u_lo = st_to_uv(scale * si_lo)
    u_hi = st_to_uv(scale * si_hi)
    v_lo = st_to_uv(scale * ti_lo)
    v_hi = st_to_uv(scale * ti_hi)

    return [
        xyz_to_lat_lon(*face_uv_to_xyz(face, u, v))
        for u, v in ((u_lo, v_lo), (u_hi, v_lo), (u_hi, v_hi), (u_lo, v_hi))
    ]


def decode_cell_id_bounds(cell_id: int) -> Bounds:
    face, i, j, level = cell_id_to_face_ij(cell_id)

    if level == 0:
        return FACE_BOUNDS[face]

    corners = _cell_corners(face, i, j, level)
    lats = [lat for lat, _ in corners]
    lons = [lon for _, lon in corners]

    min_lat = min(lats)
    max_lat = max(lats)

    touches_north_pole = face == 2 and max_lat > POLE_LATITUDE_THRESHOLD
    touches_south_pole = face == 5 and min_lat < -POLE_LATITUDE_THRESHOLD
    if touches_north_pole or touches_south_pole:
        return min_lat, max_lat, -180.0, 180.0

    # A cell straddling the antimeridian has corners on both sides of it.
    # Its bounds widen to every longitude: approximate, but never too small.
    for k in range(4):
        if abs(lons[k] - lons[(k + 1) % 4]) > 180.0:
            return min_lat, max_lat, -180.0, 180.0

    return min_lat, max_lat, min(lons), max(lons)


def decode_bounds(token: str) -> Bounds:
    """
    Compute the lat/lon rectangle around a cell.

    Level-0 cells return fixed face rectangles; face 3 wraps the
    antimeridian (min_lon > max_lon). Finer cells are bounded by their four
    corners, except that cells touching a pole or straddling the
    antimeridian report the full longitude range.

    Args:
        token: Cell token

    Returns:
        Tuple of (min_lat, max_lat, min_lon, max_lon)

    Raises:
        InvalidTokenError: If the token is empty or malformed
    """
    return decode_cell_id_bounds(token_to_cell_id(token))


def _wrap_face_ij(face: int, i: int, j: int, level: int) -> int:
    """
    Cell id for leaf indices that fall off the edge of `face`.

    The indices are clamped to the leaf just past the edge, projected back
    onto the sphere, and re-quantized on whichever face that point belongs
    to. Adjacent faces are rotated relative to each other, so the indices
    cannot simply be carried across.
    """
    i = max(-1, min(MAX_SIZE, i))
    j = max(-1, min(MAX_SIZE, j))

    scale = 1.0 / MAX_SIZE
    s = scale * ((i << 1) + 1 - MAX_SIZE)
    t = scale * ((j << 1) + 1 - MAX_SIZE)

    x, y, z = face_uv_to_xyz(face, st_to_uv(s), st_to_uv(t))
    new_face = xyz_to_face(x, y, z)
    new_u, new_v = xyz_to_face_uv(new_face, x, y, z)
    new_i, new_j = st_to_ij(uv_to_st(new_u), uv_to_st(new_v))

    return face_ij_to_cell_id(new_face, new_i, new_j, level)


def neighbor_cell_ids(cell_id: int) -> List[int]:
    face, i, j, level = cell_id_to_face_ij(cell_id)
    size = 1 << (MAX_LEVEL - level)

    neighbors = []
    for di, dj in NEIGHBOR_OFFSETS:
        ni = i + di * size
        nj = j + dj * size
        if 0 <= ni < MAX_SIZE and 0 <= nj < MAX_SIZE:
            neighbors.append(face_ij_to_cell_id(face, ni, nj, level))
        else:
            neighbors.append(_wrap_face_ij(face, ni, nj, level))
    return neighbors


def get_neighbors(token: str) -> List[str]:
    """
    Tokens of the eight same-level cells around a cell.

    Returned in the order SW, S, SE, W, E, NW, N, NE of the cell's own face
    grid. Near a cube corner two entries can name the same cell.

    Raises:
        InvalidTokenError: If the token is empty or malformed
    """
    return [cell_id_to_token(n) for n in neighbor_cell_ids(token_to_cell_id(token))]
