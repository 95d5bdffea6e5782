"""
Region covering: turn a radius or bounding-box query into a list of cell tokens.

Each token is meant to drive one range query against an ordered key store,
so the number of cells is capped. Before any work is done the cell count is
estimated from the region area and the average cell size at the requested
level; queries that would need more than ABSOLUTE_MAX_CELLS fail fast.

The covering itself is a breadth-first flood fill from the cell containing
the query center, accepting cells whose bounds may intersect the region.
Accepted cells are ranked by distance from the query center, so a paginated
consumer sees the nearest cells first.
"""

from collections import deque
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union
import logging
import math

from . import codec
from .exceptions import CoveringTooLargeError, LevelOutOfRangeError
from .geo import GeoBoundingBox, GeoLocation
from .projection import MAX_LEVEL


logger = logging.getLogger(__name__)

DEFAULT_MAX_CELLS = 100
ABSOLUTE_MAX_CELLS = 500

# Average cell edge at level 0: 0.73 rad * 6371 km
LEVEL_ZERO_CELL_SIZE_KM = 4651.0
KM_PER_DEGREE = 111.0

# Minimum budget for each half of a box split at the antimeridian
MIN_CELLS_PER_SIDE = 10


@dataclass
class CoveringConfig:
    """Configuration for a cell covering."""

    level: int
    """Cell level (0-30) the covering is computed at."""

    max_cells: int = DEFAULT_MAX_CELLS
    """Maximum number of tokens returned."""

    absolute_max_cells: int = ABSOLUTE_MAX_CELLS
    """Hard ceiling on max_cells and on the pre-flight estimate."""

    visited_multiplier: int = 50
    """Flood fill stops after visiting max(max_cells * this, min_visited_cap) cells."""

    min_visited_cap: int = 10000
    """Floor for the visited-cell cap."""

    accepted_multiplier: int = 4
    """Flood fill stops after accepting max_cells * this cells."""

    near_pole_latitude: float = 85.0
    """Centers poleward of this latitude count as polar."""

    polar_level_advisory: int = 14
    """Polar queries finer than this level log a warning."""

    def __post_init__(self):
        if self.level < 0 or self.level > MAX_LEVEL:
            raise LevelOutOfRangeError(self.level, MAX_LEVEL)
        if self.absolute_max_cells < 1:
            raise ValueError("absolute_max_cells must be at least 1")
        if self.max_cells < 1:
            raise ValueError("max_cells must be at least 1")
        if self.max_cells > self.absolute_max_cells:
            raise ValueError(
                f"max_cells cannot exceed {self.absolute_max_cells}. Queries requiring "
                "more cells indicate a system design issue. Consider using a lower level "
                "for wide-area searches, or store coordinates at both a low and a high level."
            )
        if self.visited_multiplier < 1 or self.min_visited_cap < 1:
            raise ValueError("visited cap settings must be at least 1")
        if self.accepted_multiplier < 1:
            raise ValueError("accepted_multiplier must be at least 1")


@dataclass
class CoveringStats:
    """Statistics collected while computing a covering."""

    estimated_cells: int = 0
    regions_searched: int = 0
    cells_visited: int = 0
    cells_accepted: int = 0
    cells_rejected: int = 0
    stopped_at_cap: bool = False


def approximate_cell_size_km(level: int) -> float:
    """
    Average cell edge length in kilometers at a level.

    Level 10 is about 4.5 km, level 16 about 71 m, level 30 about 4 mm.
    """
    return LEVEL_ZERO_CELL_SIZE_KM / math.pow(2, level)


def estimate_cell_count_for_radius(radius_km: float, level: int) -> int:
    """
    Estimate how many cells cover a circle.

    Args:
        radius_km: Circle radius in kilometers
        level: Cell level

    Returns:
        Circle area over cell area, rounded up, at least 1
    """
    cell_size_km = approximate_cell_size_km(level)
    circle_area = math.pi * radius_km * radius_km
    return max(1, math.ceil(circle_area / (cell_size_km * cell_size_km)))


def estimate_cell_count_for_bounding_box(box: GeoBoundingBox, level: int) -> int:
    """
    Estimate how many cells cover a bounding box.

    A box crossing the antimeridian estimates to 1: each of its halves is
    limited by the per-side cell budget and the visited-cell cap instead.
    """
    if box.crosses_date_line():
        return 1

    cell_size_km = approximate_cell_size_km(level)
    south = box.southwest.latitude
    north = box.northeast.latitude
    lat_range_km = (north - south) * KM_PER_DEGREE
    mean_lat = (north + south) / 2.0
    lon_range_km = ((box.northeast.longitude - box.southwest.longitude) *
                    KM_PER_DEGREE * math.cos(mean_lat * math.pi / 180.0))
    box_area = lat_range_km * lon_range_km
    return max(1, math.ceil(box_area / (cell_size_km * cell_size_km)))


def estimate_cell_count(region: Union[GeoBoundingBox, float], level: int) -> int:
    """Estimate cells for a bounding box, or for a circle given its radius in km."""
    if isinstance(region, GeoBoundingBox):
        return estimate_cell_count_for_bounding_box(region, level)
    return estimate_cell_count_for_radius(region, level)


def cell_may_intersect_bounding_box(
    bounds: Tuple[float, float, float, float], box: GeoBoundingBox
) -> bool:
    """
    Conservative overlap test between cell bounds and a query box.

    Args:
        bounds: (min_lat, max_lat, min_lon, max_lon); min_lon > max_lon means
            the cell wraps the antimeridian
        box: Query box, which may itself cross the antimeridian

    Returns:
        False only when the rectangles cannot overlap
    """
    min_lat, max_lat, min_lon, max_lon = bounds
    west = box.southwest.longitude
    east = box.northeast.longitude

    if max_lat < box.southwest.latitude or min_lat > box.northeast.latitude:
        return False

    cell_wraps = min_lon > max_lon
    box_wraps = box.crosses_date_line()

    if not cell_wraps and not box_wraps:
        return not (max_lon < west or min_lon > east)
    if cell_wraps and not box_wraps:
        # cell covers [min_lon, 180] and [-180, max_lon]
        return east >= min_lon or west <= max_lon
    if box_wraps and not cell_wraps:
        # box covers [west, 180] and [-180, east]
        return max_lon >= west or min_lon <= east
    # both contain the antimeridian
    return True


class CellCoverer:
    """
    Computes distance-ranked cell coverings.

    One coverer is configured for a level and cell budget; stats describe
    the most recent call.
    """

    def __init__(self, config: CoveringConfig):
        self.config = config
        self.stats = CoveringStats()

    def cover_radius(self, center: GeoLocation, radius_km: float) -> List[str]:
        """
        Cover a circle.

        Args:
            center: Circle center
            radius_km: Radius in kilometers

        Returns:
            Up to max_cells tokens, nearest to center first

        Raises:
            ValueError: If radius_km is negative
            CoveringTooLargeError: If the estimated cell count exceeds the cap
        """
        if radius_km < 0:
            raise ValueError(f"radius must be non-negative, got {radius_km}")

        self.stats = CoveringStats()
        level = self.config.level

        estimated = estimate_cell_count_for_radius(radius_km, level)
        self.stats.estimated_cells = estimated
        if estimated > self.config.absolute_max_cells:
            raise CoveringTooLargeError(
                f"Query would require approximately {estimated:,} cells "
                f"(radius={radius_km:.1f}km, level={level}, "
                f"cell size≈{approximate_cell_size_km(level):.2f}km). "
                f"Maximum allowed is {self.config.absolute_max_cells}. "
                "Consider: (1) using a lower level (larger cells), (2) reducing the "
                "search radius, or (3) storing coordinates at both a low level (for "
                "wide searches) and a high level (for precise searches).",
                estimated,
            )

        box = GeoBoundingBox.from_center_and_distance_kilometers(center, radius_km)
        return self._cover(box, center)

    def cover_bounding_box(
        self, box: GeoBoundingBox, center: Optional[GeoLocation] = None
    ) -> List[str]:
        """
        Cover a bounding box.

        Args:
            box: Region to cover; may cross the antimeridian
            center: Point to rank cells from (default: box center)

        Returns:
            Up to max_cells tokens, nearest to center first

        Raises:
            CoveringTooLargeError: If the estimated cell count exceeds the cap
        """
        self.stats = CoveringStats()
        return self._cover(box, center if center is not None else box.center)

    def _cover(self, box: GeoBoundingBox, center: GeoLocation) -> List[str]:
        level = self.config.level
        max_cells = self.config.max_cells

        estimated = estimate_cell_count_for_bounding_box(box, level)
        self.stats.estimated_cells = max(self.stats.estimated_cells, estimated)
        if estimated > self.config.absolute_max_cells:
            raise CoveringTooLargeError(
                f"Query would require approximately {estimated:,} cells "
                f"(level={level}, cell size≈{approximate_cell_size_km(level):.2f}km). "
                f"Maximum allowed is {self.config.absolute_max_cells}. "
                "Consider: (1) using a lower level (larger cells), (2) reducing the "
                "bounding box size, or (3) storing coordinates at both a low level (for "
                "wide searches) and a high level (for precise searches).",
                estimated,
            )

        if not box.crosses_date_line():
            return [token for token, _ in self._flood_fill(box, center, max_cells)]

        western, eastern = box.split_at_date_line()
        cells_per_side = max(max_cells // 2, MIN_CELLS_PER_SIDE)
        logger.debug(
            "Splitting %s at the date line, %d cells per side", box, cells_per_side
        )

        seen = set()
        ranked = []
        for half in (western, eastern):
            for token, _ in self._flood_fill(half, half.center, cells_per_side):
                if token in seen:
                    continue
                seen.add(token)
                lat, lon = codec.decode(token)
                ranked.append((token, center.distance_to_kilometers(GeoLocation(lat, lon))))

        ranked.sort(key=lambda item: item[1])
        return [token for token, _ in ranked[:max_cells]]

    def _flood_fill(
        self, box: GeoBoundingBox, center: GeoLocation, max_cells: int
    ) -> List[Tuple[str, float]]:
        """
        Breadth-first search outward from the center cell.

        Args:
            box: Region, not crossing the antimeridian
            center: Seed point and distance origin
            max_cells: Number of cells to return

        Returns:
            List of (token, distance_km), nearest first, at most max_cells long
        """
        config = self.config
        level = config.level

        if center.is_near_pole(config.near_pole_latitude) and level > config.polar_level_advisory:
            logger.warning(
                "Cell covering near pole (lat=%.2f) with level %d may produce excessive "
                "cells. Consider using level %d or lower for polar queries.",
                center.latitude, level, config.polar_level_advisory,
            )
        if box.includes_pole():
            logger.debug("Cell covering includes a pole; using full longitude range")

        visited_cap = max(max_cells * config.visited_multiplier, config.min_visited_cap)
        accepted_cap = max_cells * config.accepted_multiplier

        start = codec.encode(center.latitude, center.longitude, level)
        visited = {start}
        frontier = deque([start])
        accepted: List[Tuple[str, float]] = []
        stopped = False

        while frontier:
            token = frontier.popleft()

            if not cell_may_intersect_bounding_box(codec.decode_bounds(token), box):
                self.stats.cells_rejected += 1
                continue

            lat, lon = codec.decode(token)
            accepted.append((token, center.distance_to_kilometers(GeoLocation(lat, lon))))

            if len(accepted) >= accepted_cap:
                stopped = True
                break

            for neighbor in codec.get_neighbors(token):
                if neighbor not in visited:
                    visited.add(neighbor)
                    frontier.append(neighbor)

            if len(visited) > visited_cap:
                stopped = True
                break

        if stopped:
            self.stats.stopped_at_cap = True
            logger.debug(
                "Flood fill stopped at cap: %d visited, %d accepted", len(visited), len(accepted)
            )

        self.stats.regions_searched += 1
        self.stats.cells_visited += len(visited)
        self.stats.cells_accepted += len(accepted)

        accepted.sort(key=lambda item: item[1])
        return accepted[:max_cells]


def get_cells_for_radius(
    center: GeoLocation,
    radius_kilometers: float,
    level: int,
    max_cells: int = DEFAULT_MAX_CELLS,
) -> List[str]:
    """
    Convenience function to cover a circle.

    Args:
        center: Circle center
        radius_kilometers: Radius in kilometers
        level: Cell level (0-30)
        max_cells: Maximum tokens returned (1-500)

    Returns:
        Tokens sorted by distance from center
    """
    config = CoveringConfig(level=level, max_cells=max_cells)
    return CellCoverer(config).cover_radius(center, radius_kilometers)


def get_cells_for_bounding_box(
    box: GeoBoundingBox,
    level: int,
    max_cells: int = DEFAULT_MAX_CELLS,
) -> List[str]:
    """
    Convenience function to cover a bounding box.

    Returns:
        Tokens sorted by distance from the box center
    """
    config = CoveringConfig(level=level, max_cells=max_cells)
    return CellCoverer(config).cover_bounding_box(box)
