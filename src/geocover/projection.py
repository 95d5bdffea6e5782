"""
Projection between WGS84 coordinates and cube-face integer grid indices.

A point travels through four coordinate systems:

- (lat, lon) in degrees
- (x, y, z) on the unit sphere
- (face, u, v): the face of the circumscribing cube the point projects onto,
  and its position on that face with u, v in [-1, 1]
- (s, t): a quadratic warp of (u, v), also in [-1, 1], which evens out cell
  areas between the face centers and the face edges

(s, t) is quantized to (i, j) in [0, 2^30) per axis, the leaf-cell grid.

The quadratic warp and the rounding in st_to_ij must stay exactly as they are:
stored tokens depend on them bit for bit.
"""

from typing import Tuple
import math


MAX_LEVEL = 30
MAX_SIZE = 1 << MAX_LEVEL  # leaf cells per face axis

# Latitude of the +Z / -Z face corners: asin(sqrt(1/3))
POLE_FACE_MIN_LAT = 35.264389682754654


def degrees_to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


def radians_to_degrees(radians: float) -> float:
    return radians * 180.0 / math.pi


def lat_lon_to_xyz(lat: float, lon: float) -> Tuple[float, float, float]:
    """
    Convert degrees to a point on the unit sphere.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees

    Returns:
        Tuple of (x, y, z)
    """
    lat_rad = degrees_to_radians(lat)
    lon_rad = degrees_to_radians(lon)

    cos_lat = math.cos(lat_rad)
    x = math.cos(lon_rad) * cos_lat
    y = math.sin(lon_rad) * cos_lat
    z = math.sin(lat_rad)

    return x, y, z


def xyz_to_lat_lon(x: float, y: float, z: float) -> Tuple[float, float]:
    """
    Convert a point in space to (lat, lon) degrees.

    atan2 is used for latitude since asin loses precision near the poles;
    atan2(0, 0) is 0, so the poles themselves come out at longitude 0 or 180.
    """
    lat = radians_to_degrees(math.atan2(z, math.sqrt(x * x + y * y)))
    lon = radians_to_degrees(math.atan2(y, x))
    return lat, lon


def xyz_to_face(x: float, y: float, z: float) -> int:
    """
    Pick the cube face a point projects onto.

    Faces 0, 1, 2 are +X, +Y, +Z; faces 3, 4, 5 are -X, -Y, -Z.
    """
    abs_x = abs(x)
    abs_y = abs(y)
    abs_z = abs(z)

    if abs_x > abs_y and abs_x > abs_z:
        return 0 if x > 0 else 3
    if abs_y > abs_z:
        return 1 if y > 0 else 4
    return 2 if z > 0 else 5


def xyz_to_face_uv(face: int, x: float, y: float, z: float) -> Tuple[float, float]:
    """
    Project a point onto the plane of the given face.

    Args:
        face: Cube face (0-5)
        x, y, z: Point coordinates; need not be unit length

    Returns:
        Tuple of (u, v), in [-1, 1] when face is the point's own face
    """
    if face == 0:
        return y / x, z / x
    elif face == 1:
        return -x / y, z / y
    elif face == 2:
        return -x / z, -y / z
    elif face == 3:
        return z / x, y / x
    elif face == 4:
        return z / y, -x / y
    elif face == 5:
        return -y / z, -x / z
    raise ValueError(f"Invalid face: {face}")


def _normalize(x: float, y: float, z: float) -> Tuple[float, float, float]:
    length = math.sqrt(x * x + y * y + z * z)
    return x / length, y / length, z / length


def face_uv_to_xyz(face: int, u: float, v: float) -> Tuple[float, float, float]:
    """Inverse of xyz_to_face_uv, returning a unit-length point."""
    if face == 0:
        return _normalize(1, u, v)
    elif face == 1:
        return _normalize(-u, 1, v)
    elif face == 2:
        return _normalize(-u, -v, 1)
    elif face == 3:
        return _normalize(-1, -v, -u)
    elif face == 4:
        return _normalize(v, -1, -u)
    elif face == 5:
        return _normalize(v, u, -1)
    raise ValueError(f"Invalid face: {face}")


def uv_to_st(u: float) -> float:
    """Quadratic warp from face-plane coordinate to cell-grid coordinate."""
    if u >= 0:
        return math.sqrt(1 + 3 * u) - 1
    else:
        return 1 - math.sqrt(1 - 3 * u)


def st_to_uv(s: float) -> float:
    """Inverse of uv_to_st."""
    if s >= 0:
        return (1.0 / 3.0) * ((1 + s) * (1 + s) - 1)
    else:
        return (1.0 / 3.0) * (1 - (1 - s) * (1 - s))


def st_to_ij(s: float, t: float) -> Tuple[int, int]:
    """
    Quantize (s, t) to leaf-cell grid indices.

    Always quantizes at leaf resolution; the cell level is applied later when
    the indices are packed into a cell id.

    The formula is:
        i = round(m * s + (m - 0.5)), clamped to [0, 2^30 - 1]
    where m = 2^29. round() is Python's round-half-to-even, which is what the
    stored tokens were produced with.
    """
    m = MAX_SIZE // 2
    i = max(0, min(2 * m - 1, round(m * s + (m - 0.5))))
    j = max(0, min(2 * m - 1, round(m * t + (m - 0.5))))
    return i, j


def ij_to_st_center(i: int, j: int, level: int, cell_id: int) -> Tuple[float, float]:
    """
    Convert leaf indices decoded from a cell id to the (s, t) of the cell center.

    Decoding a non-leaf cell id yields one of the two leaf cells nearest its
    center: either (imin + size/2, jmin + size/2) or one less on both axes.
    The low bit of i against bit 2 of the id tells them apart. Working in
    doubled coordinates (si, ti) lets the center land on an integer.

    Args:
        i: Decoded leaf i index
        j: Decoded leaf j index
        level: Cell level
        cell_id: The cell id the indices came from

    Returns:
        Tuple of (s, t) in [-1, 1]
    """
    if level == MAX_LEVEL:
        delta = 1
    elif (i ^ (cell_id >> 2)) & 1:
        delta = 2
    else:
        delta = 0

    si = (i << 1) + delta - MAX_SIZE
    ti = (j << 1) + delta - MAX_SIZE

    scale = 1.0 / MAX_SIZE
    return scale * si, scale * ti
