"""Tests for the region covering module."""

import logging

import pytest
from geocover.codec import decode, decode_bounds, encode
from geocover.covering import (
    CellCoverer,
    CoveringConfig,
    CoveringStats,
    approximate_cell_size_km,
    cell_may_intersect_bounding_box,
    estimate_cell_count,
    estimate_cell_count_for_bounding_box,
    estimate_cell_count_for_radius,
    get_cells_for_bounding_box,
    get_cells_for_radius,
)
from geocover.exceptions import CoveringTooLargeError, LevelOutOfRangeError
from geocover.geo import GeoBoundingBox, GeoLocation


SAN_FRANCISCO = GeoLocation(37.7749, -122.4194)


def box(south, west, north, east):
    return GeoBoundingBox(GeoLocation(south, west), GeoLocation(north, east))


def distances_from(center, tokens):
    return [center.distance_to_kilometers(GeoLocation(*decode(token))) for token in tokens]


def covered(tokens, lat, lon, tolerance=1e-3):
    """Check whether any cell's bounds hold the point."""
    for token in tokens:
        min_lat, max_lat, min_lon, max_lon = decode_bounds(token)
        if (min_lat - tolerance <= lat <= max_lat + tolerance and
                min_lon - tolerance <= lon <= max_lon + tolerance):
            return True
    return False


class TestCoveringConfig:
    """Tests for CoveringConfig validation."""

    def test_defaults(self):
        """Test default cell budget and caps."""
        config = CoveringConfig(level=12)
        assert config.max_cells == 100
        assert config.absolute_max_cells == 500

    @pytest.mark.parametrize("level", [-1, 31])
    def test_invalid_level(self, level):
        """Test that levels outside 0-30 are rejected."""
        with pytest.raises(LevelOutOfRangeError):
            CoveringConfig(level=level)

    @pytest.mark.parametrize("max_cells", [0, -5, 501])
    def test_invalid_max_cells(self, max_cells):
        """Test that max_cells outside 1-500 is rejected."""
        with pytest.raises(ValueError):
            CoveringConfig(level=12, max_cells=max_cells)

    def test_max_cells_at_ceiling(self):
        """Test max_cells may equal the absolute ceiling."""
        assert CoveringConfig(level=12, max_cells=500).max_cells == 500

    def test_convenience_validates(self):
        """Test the convenience functions validate their arguments."""
        with pytest.raises(ValueError):
            get_cells_for_radius(SAN_FRANCISCO, 1.0, 12, max_cells=0)
        with pytest.raises(LevelOutOfRangeError):
            get_cells_for_bounding_box(box(0.0, 0.0, 1.0, 1.0), 31)


class TestEstimates:
    """Tests for the pre-flight cell count estimates."""

    def test_cell_size(self):
        """Test average cell sizes halve with each level."""
        assert approximate_cell_size_km(0) == 4651.0
        assert approximate_cell_size_km(10) == pytest.approx(4.542, rel=1e-3)
        assert approximate_cell_size_km(11) == pytest.approx(approximate_cell_size_km(10) / 2)

    def test_radius(self):
        """Test the circle estimate."""
        assert estimate_cell_count_for_radius(10000.0, 30) > 500
        assert estimate_cell_count_for_radius(100.0, 8) == 96
        assert estimate_cell_count_for_radius(0.0, 12) == 1

    def test_bounding_box(self):
        """Test the box estimate scales with area and shrinks toward the poles."""
        equator = estimate_cell_count_for_bounding_box(box(0.0, 0.0, 1.0, 1.0), 8)
        north = estimate_cell_count_for_bounding_box(box(60.0, 0.0, 61.0, 1.0), 8)
        assert equator > north > 0
        assert equator == 38

    def test_date_line_box(self):
        """Test a box crossing the antimeridian estimates to a single cell."""
        assert estimate_cell_count_for_bounding_box(box(10.0, 170.0, 20.0, -170.0), 14) == 1

    def test_dispatch(self):
        """Test estimate_cell_count picks the right estimate."""
        region = box(40.0, -100.0, 41.0, -99.0)
        assert estimate_cell_count(region, 8) == estimate_cell_count_for_bounding_box(region, 8)
        assert estimate_cell_count(5.0, 12) == estimate_cell_count_for_radius(5.0, 12)


class TestCellIntersection:
    """Tests for the cell / box overlap test."""

    def test_ordinary(self):
        """Test boxes and cells that do not wrap."""
        query = box(0.5, 0.5, 2.0, 2.0)
        assert cell_may_intersect_bounding_box((0.0, 1.0, 0.0, 1.0), query)
        assert not cell_may_intersect_bounding_box((0.0, 1.0, 5.0, 6.0), query)
        assert not cell_may_intersect_bounding_box((3.0, 4.0, 0.0, 1.0), query)

    def test_wrapping_cell(self):
        """Test a cell whose bounds wrap the antimeridian."""
        face_three = (-45.0, 45.0, 135.0, -135.0)
        assert cell_may_intersect_bounding_box(face_three, box(0.0, 170.0, 1.0, 175.0))
        assert cell_may_intersect_bounding_box(face_three, box(0.0, -175.0, 1.0, -170.0))
        assert not cell_may_intersect_bounding_box(face_three, box(0.0, 0.0, 1.0, 1.0))

    def test_wrapping_box(self):
        """Test a query box that crosses the antimeridian."""
        query = box(10.0, 170.0, 20.0, -170.0)
        assert cell_may_intersect_bounding_box((12.0, 13.0, 175.0, 176.0), query)
        assert cell_may_intersect_bounding_box((12.0, 13.0, -175.0, -174.0), query)
        assert not cell_may_intersect_bounding_box((12.0, 13.0, 0.0, 1.0), query)

    def test_both_wrap(self):
        """Test a wrapping cell against a wrapping box."""
        query = box(10.0, 170.0, 20.0, -170.0)
        assert cell_may_intersect_bounding_box((-45.0, 45.0, 135.0, -135.0), query)


class TestCoverRadius:
    """Tests for radius coverings."""

    def test_basic(self):
        """Test a city-scale radius query."""
        tokens = get_cells_for_radius(SAN_FRANCISCO, 5.0, 12)
        assert 0 < len(tokens) <= 100
        assert len(set(tokens)) == len(tokens)
        assert all(len(token) == len(tokens[0]) for token in tokens)

    def test_includes_center_cell(self):
        """Test the cell holding the query center is part of the covering."""
        tokens = get_cells_for_radius(SAN_FRANCISCO, 5.0, 12)
        assert encode(SAN_FRANCISCO.latitude, SAN_FRANCISCO.longitude, 12) in tokens[:9]

    def test_sorted_by_distance(self):
        """Test tokens come back nearest first."""
        tokens = get_cells_for_radius(SAN_FRANCISCO, 5.0, 12)
        distances = distances_from(SAN_FRANCISCO, tokens)
        assert distances == sorted(distances)

    def test_max_cells_respected(self):
        """Test the result is truncated to max_cells."""
        tokens = get_cells_for_radius(SAN_FRANCISCO, 5.0, 12, max_cells=10)
        assert len(tokens) == 10

    def test_too_large(self):
        """Test an oversized query fails before any cell is visited."""
        coverer = CellCoverer(CoveringConfig(level=30))
        with pytest.raises(CoveringTooLargeError) as exc_info:
            coverer.cover_radius(SAN_FRANCISCO, 10000.0)

        assert exc_info.value.estimated_cells > 500
        assert "lower level" in str(exc_info.value)
        assert coverer.stats.regions_searched == 0
        assert coverer.stats.cells_visited == 0

    def test_too_large_convenience(self):
        """Test the convenience function raises the same error."""
        with pytest.raises(CoveringTooLargeError):
            get_cells_for_radius(SAN_FRANCISCO, 10000.0, 30, 100)

    def test_negative_radius(self):
        """Test that a negative radius is rejected."""
        with pytest.raises(ValueError):
            get_cells_for_radius(SAN_FRANCISCO, -1.0, 12)

    def test_near_north_pole(self):
        """Test a circle around the pole completes with full-longitude polar cells."""
        tokens = get_cells_for_radius(GeoLocation(89.5, 0.0), 100.0, 8)
        assert tokens

        polar = 0
        for token in tokens:
            min_lat, max_lat, min_lon, max_lon = decode_bounds(token)
            if max_lat > 89.9:
                polar += 1
                assert (min_lon, max_lon) == (-180.0, 180.0)
        assert polar > 0

    def test_across_date_line(self):
        """Test a circle straddling the antimeridian covers both sides."""
        center = GeoLocation(15.0, 179.0)
        tokens = get_cells_for_radius(center, 150.0, 8)
        longitudes = [decode(token)[1] for token in tokens]

        assert len(set(tokens)) == len(tokens)
        assert any(lon > 0 for lon in longitudes)
        assert any(lon < 0 for lon in longitudes)

        distances = distances_from(center, tokens)
        assert distances == sorted(distances)

    def test_polar_warning(self, caplog):
        """Test a fine polar query logs a warning."""
        coverer = CellCoverer(CoveringConfig(level=16, max_cells=10))
        with caplog.at_level(logging.WARNING, logger="geocover.covering"):
            coverer.cover_radius(GeoLocation(86.0, 0.0), 0.1)

        assert any("near pole" in record.getMessage() for record in caplog.records)

    def test_no_polar_warning_at_coarse_level(self, caplog):
        """Test a coarse polar query does not warn."""
        coverer = CellCoverer(CoveringConfig(level=8, max_cells=10))
        with caplog.at_level(logging.WARNING, logger="geocover.covering"):
            coverer.cover_radius(GeoLocation(86.0, 0.0), 10.0)

        assert not caplog.records


class TestCoverBoundingBox:
    """Tests for bounding box coverings."""

    def test_corners_covered(self):
        """Test the union of cell bounds holds every corner of the box."""
        region = box(40.0, -100.0, 41.0, -99.0)
        tokens = get_cells_for_bounding_box(region, 8, max_cells=200)

        assert covered(tokens, 40.0, -100.0)
        assert covered(tokens, 40.0, -99.0)
        assert covered(tokens, 41.0, -100.0)
        assert covered(tokens, 41.0, -99.0)
        assert covered(tokens, 40.5, -99.5)

    def test_sorted_from_box_center(self):
        """Test tokens are ranked by distance from the box center."""
        region = box(40.0, -100.0, 41.0, -99.0)
        tokens = get_cells_for_bounding_box(region, 8, max_cells=200)
        distances = distances_from(region.center, tokens)
        assert distances == sorted(distances)

    def test_custom_center(self):
        """Test ranking from a caller-supplied point."""
        region = box(40.0, -100.0, 41.0, -99.0)
        corner = GeoLocation(40.0, -100.0)
        tokens = CellCoverer(CoveringConfig(level=8, max_cells=200)).cover_bounding_box(
            region, center=corner
        )
        distances = distances_from(corner, tokens)
        assert distances == sorted(distances)
        assert encode(40.0, -100.0, 8) in tokens[:9]

    def test_level_zero(self):
        """Test a small box at level 0 is covered by its face."""
        assert get_cells_for_bounding_box(box(-1.0, -1.0, 1.0, 1.0), 0) == ["1"]

    def test_across_date_line(self):
        """Test a box crossing the antimeridian is covered on both sides."""
        region = box(10.0, 170.0, 20.0, -170.0)
        coverer = CellCoverer(CoveringConfig(level=14, max_cells=100))
        tokens = coverer.cover_bounding_box(region)

        assert 0 < len(tokens) <= 100
        assert len(set(tokens)) == len(tokens)

        longitudes = [decode(token)[1] for token in tokens]
        assert any(lon > 0 for lon in longitudes)
        assert any(lon < 0 for lon in longitudes)

        distances = distances_from(region.center, tokens)
        assert distances == sorted(distances)
        assert coverer.stats.regions_searched == 2

    def test_too_large(self):
        """Test an oversized box fails fast."""
        with pytest.raises(CoveringTooLargeError):
            get_cells_for_bounding_box(box(0.0, 0.0, 10.0, 10.0), 16)


class TestCoveringStats:
    """Tests for covering statistics."""

    def test_defaults(self):
        """Test a fresh stats object is zeroed."""
        stats = CoveringStats()
        assert stats.cells_visited == 0
        assert not stats.stopped_at_cap

    def test_collected(self):
        """Test stats describe the most recent covering."""
        coverer = CellCoverer(CoveringConfig(level=12))
        coverer.cover_radius(SAN_FRANCISCO, 5.0)

        stats = coverer.stats
        assert stats.estimated_cells > 0
        assert stats.regions_searched == 1
        assert stats.cells_accepted > 0
        assert stats.cells_visited >= stats.cells_accepted

    def test_reset_between_calls(self):
        """Test each call starts from fresh stats."""
        coverer = CellCoverer(CoveringConfig(level=12))
        coverer.cover_radius(SAN_FRANCISCO, 5.0)
        coverer.cover_bounding_box(box(37.7, -122.5, 37.8, -122.4))
        assert coverer.stats.regions_searched == 1

    def test_stopped_at_accepted_cap(self):
        """Test the flood fill stops once enough cells are accepted."""
        coverer = CellCoverer(CoveringConfig(level=12, max_cells=5))
        tokens = coverer.cover_radius(SAN_FRANCISCO, 5.0)
        assert len(tokens) == 5
        assert coverer.stats.stopped_at_cap
        assert coverer.stats.cells_accepted == 20
