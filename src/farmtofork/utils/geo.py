import math
from dataclasses import dataclass
from typing import Any, Optional

from farmtofork.core.exceptions import ValidationError


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float


@dataclass(frozen=True)
class MapBounds:
    """Visible map rectangle: north-east and south-west corners."""
    ne: LatLng
    sw: LatLng

    def contains(self, lat: float, lng: float) -> bool:
        return (
            self.sw.lat <= lat <= self.ne.lat
            and self.sw.lng <= lng <= self.ne.lng
        )

    def to_dict(self) -> dict:
        return {
            "ne": {"lat": self.ne.lat, "lng": self.ne.lng},
            "sw": {"lat": self.sw.lat, "lng": self.sw.lng},
        }


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def validate_coordinates(lat: Any, lng: Any) -> Optional[LatLng]:
    """Return a LatLng when both values are finite and in range, else None."""
    lat_num = _to_float(lat)
    lng_num = _to_float(lng)
    if lat_num is None or lng_num is None:
        return None
    if abs(lat_num) > 90 or abs(lng_num) > 180:
        return None
    return LatLng(lat_num, lng_num)


def parse_bounds(sw_lat: Any, sw_lng: Any, ne_lat: Any, ne_lng: Any) -> MapBounds:
    sw = validate_coordinates(sw_lat, sw_lng)
    ne = validate_coordinates(ne_lat, ne_lng)
    if sw is None or ne is None:
        raise ValidationError(
            "Invalid map bounds",
            field_errors=[{"field": "bounds", "message": "Coordinates must be finite and within range"}],
        )
    if sw.lat > ne.lat:
        raise ValidationError(
            "Invalid map bounds",
            field_errors=[{"field": "bounds", "message": "South-west latitude must not exceed north-east latitude"}],
        )
    return MapBounds(ne=ne, sw=sw)


def parse_bounds_param(value: str) -> MapBounds:
    """Parse 'sw_lat,sw_lng,ne_lat,ne_lng'."""
    parts = [p.strip() for p in (value or "").split(",")]
    if len(parts) != 4:
        raise ValidationError(
            "Invalid map bounds",
            field_errors=[{"field": "bounds", "message": "Expected sw_lat,sw_lng,ne_lat,ne_lng"}],
        )
    return parse_bounds(*parts)


def is_listing_in_bounds(listing: Any, bounds: Optional[MapBounds]) -> bool:
    """
    Inclusive box test on a listing's coordinates.

    Without bounds every listing matches. A listing whose lat/lng is missing
    or not a real number never matches a bounded search.
    """
    if bounds is None:
        return True

    if isinstance(listing, dict):
        lat, lng = listing.get("lat"), listing.get("lng")
    else:
        lat, lng = getattr(listing, "lat", None), getattr(listing, "lng", None)

    for value in (lat, lng):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if math.isnan(value):
            return False

    return bounds.contains(lat, lng)
