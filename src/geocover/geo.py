"""
Geographic primitives consumed by the cell covering.

GeoLocation is a validated WGS84 (lat, lon) pair with great-circle distance.
GeoBoundingBox is a southwest/northeast pair. A box whose southwest longitude
is greater than its northeast longitude crosses the antimeridian; such a box
can be split into a western half ending at +180 and an eastern half starting
at -180.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple
import math


EARTH_RADIUS_METERS = 6371000.0
METERS_PER_DEGREE_LAT = 111320.0
METERS_PER_MILE = 1609.344


def _to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


@dataclass(frozen=True)
class GeoLocation:
    """A point on the globe in degrees."""

    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(
                f"Latitude must be between -90 and 90 degrees, got {self.latitude}"
            )
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(
                f"Longitude must be between -180 and 180 degrees, got {self.longitude}"
            )

    def distance_to_meters(self, other: GeoLocation) -> float:
        """
        Great-circle distance using the haversine formula.

        Args:
            other: The location to measure to

        Returns:
            Distance in meters on a sphere of radius 6371 km
        """
        lat1 = _to_radians(self.latitude)
        lat2 = _to_radians(other.latitude)
        dlat = _to_radians(other.latitude - self.latitude)
        dlon = _to_radians(other.longitude - self.longitude)

        a = (math.sin(dlat / 2) * math.sin(dlat / 2) +
             math.cos(lat1) * math.cos(lat2) *
             math.sin(dlon / 2) * math.sin(dlon / 2))
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return EARTH_RADIUS_METERS * c

    def distance_to_kilometers(self, other: GeoLocation) -> float:
        return self.distance_to_meters(other) / 1000.0

    def distance_to_miles(self, other: GeoLocation) -> float:
        return self.distance_to_meters(other) / METERS_PER_MILE

    def is_near_pole(self, threshold_latitude: float = 85.0) -> bool:
        """True when the point lies strictly poleward of the threshold latitude."""
        return abs(self.latitude) > threshold_latitude

    def __str__(self) -> str:
        return f"{self.latitude},{self.longitude}"


@dataclass(frozen=True)
class GeoBoundingBox:
    """
    A latitude/longitude rectangle.

    Latitude is an ordinary closed range. Longitude runs eastward from
    southwest.longitude to northeast.longitude, wrapping through +-180 when
    southwest.longitude > northeast.longitude.
    """

    southwest: GeoLocation
    northeast: GeoLocation

    def __post_init__(self):
        if self.southwest.latitude > self.northeast.latitude:
            raise ValueError(
                "Southwest corner latitude must be less than or equal to "
                f"northeast corner latitude ({self.southwest.latitude} > {self.northeast.latitude})"
            )

    @classmethod
    def from_center_and_distance_meters(
        cls, center: GeoLocation, distance_meters: float
    ) -> GeoBoundingBox:
        """
        Build the box enclosing a circle of the given radius.

        Latitude is clamped at the poles. When the circle reaches a pole, or
        is wider than the globe at its latitude, the box spans every
        longitude. Otherwise an edge past +-180 wraps around, producing a box
        that crosses the antimeridian.

        Args:
            center: Center of the circle
            distance_meters: Radius in meters

        Returns:
            GeoBoundingBox around the circle
        """
        lat_offset = distance_meters / METERS_PER_DEGREE_LAT

        meters_per_degree_lon = METERS_PER_DEGREE_LAT * math.cos(_to_radians(center.latitude))
        if meters_per_degree_lon > 0:
            lon_offset = distance_meters / meters_per_degree_lon
        else:
            lon_offset = 360.0

        sw_lat = max(-90.0, center.latitude - lat_offset)
        ne_lat = min(90.0, center.latitude + lat_offset)

        if sw_lat <= -90.0 or ne_lat >= 90.0 or lon_offset >= 180.0:
            sw_lon, ne_lon = -180.0, 180.0
        else:
            sw_lon = center.longitude - lon_offset
            ne_lon = center.longitude + lon_offset
            if sw_lon < -180.0:
                sw_lon += 360.0
            if ne_lon > 180.0:
                ne_lon -= 360.0

        return cls(GeoLocation(sw_lat, sw_lon), GeoLocation(ne_lat, ne_lon))

    @classmethod
    def from_center_and_distance_kilometers(
        cls, center: GeoLocation, distance_kilometers: float
    ) -> GeoBoundingBox:
        return cls.from_center_and_distance_meters(center, distance_kilometers * 1000.0)

    @classmethod
    def from_center_and_distance_miles(
        cls, center: GeoLocation, distance_miles: float
    ) -> GeoBoundingBox:
        return cls.from_center_and_distance_meters(center, distance_miles * METERS_PER_MILE)

    @property
    def center(self) -> GeoLocation:
        """Midpoint of the box, taken along the eastward longitude span."""
        lat = (self.southwest.latitude + self.northeast.latitude) / 2.0
        if self.crosses_date_line():
            lon = (self.southwest.longitude + self.northeast.longitude + 360.0) / 2.0
            if lon > 180.0:
                lon -= 360.0
        else:
            lon = (self.southwest.longitude + self.northeast.longitude) / 2.0
        return GeoLocation(lat, lon)

    def crosses_date_line(self) -> bool:
        return self.southwest.longitude > self.northeast.longitude

    def split_at_date_line(self) -> Tuple[GeoBoundingBox, GeoBoundingBox]:
        """
        Split a box crossing the antimeridian into its two halves.

        Returns:
            Tuple of (western, eastern) where western ends at +180 and
            eastern starts at -180

        Raises:
            ValueError: If the box does not cross the antimeridian
        """
        if not self.crosses_date_line():
            raise ValueError(f"Bounding box {self} does not cross the date line")

        south = self.southwest.latitude
        north = self.northeast.latitude
        western = GeoBoundingBox(
            GeoLocation(south, self.southwest.longitude),
            GeoLocation(north, 180.0),
        )
        eastern = GeoBoundingBox(
            GeoLocation(south, -180.0),
            GeoLocation(north, self.northeast.longitude),
        )
        return western, eastern

    def includes_pole(self) -> bool:
        return self.northeast.latitude >= 90.0 or self.southwest.latitude <= -90.0

    def contains(self, location: GeoLocation) -> bool:
        """Check if a location lies inside the box (edges inclusive)."""
        if not self.southwest.latitude <= location.latitude <= self.northeast.latitude:
            return False
        if self.crosses_date_line():
            return (location.longitude >= self.southwest.longitude or
                    location.longitude <= self.northeast.longitude)
        return self.southwest.longitude <= location.longitude <= self.northeast.longitude

    def __str__(self) -> str:
        return f"SW: {self.southwest}, NE: {self.northeast}"
