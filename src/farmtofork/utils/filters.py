"""
Explore page filtering.

A filter state maps every key of FILTER_KEYS to the list of selected
values. Within a key the selected values are OR-ed; across keys they are
AND-ed. mapType is carried for the UI only and never filters anything.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional
from urllib.parse import quote, urlencode

from farmtofork.utils.geo import MapBounds, is_listing_in_bounds

FilterState = Dict[str, List[str]]

FILTER_KEYS = (
    "product_type",
    "certifications",
    "purchase_mode",
    "production_method",
    "additional_services",
    "availability",
    "mapType",
)

DISPLAY_ONLY_KEYS = frozenset({"mapType"})

MAX_FILTER_VALUE_LENGTH = 100
_FORBIDDEN_CHARS = ("<", ">", "&")


def is_filter_key(key: str) -> bool:
    return key in FILTER_KEYS


def empty_filters() -> FilterState:
    return {key: [] for key in FILTER_KEYS}


def reset_filters() -> FilterState:
    return empty_filters()


def merge_filters(partial: Optional[Mapping[str, Any]]) -> FilterState:
    """Complete a partial state; missing or None keys become empty lists."""
    partial = partial or {}
    return {key: list(partial.get(key) or []) for key in FILTER_KEYS}


def toggle_filter(filters: Mapping[str, List[str]], key: str, value: str) -> FilterState:
    """Return a new state with value added to key, or removed if present."""
    if not is_filter_key(key):
        raise ValueError(f"Unknown filter key: {key}")

    state = merge_filters(filters)
    current = state[key]
    if value in current:
        state[key] = [v for v in current if v != value]
    else:
        state[key] = current + [value]
    return state


def _listing_value(listing: Any, key: str):
    if isinstance(listing, Mapping):
        return key in listing, listing.get(key)
    return hasattr(listing, key), getattr(listing, key, None)


def _as_list(value: Any) -> list:
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value] if value else []


def has_active_filters(filters: Mapping[str, Any]) -> bool:
    return any(isinstance(v, list) and v for v in filters.values())


def _matches(listing: Any, filters: Mapping[str, Any]) -> bool:
    for key, selected in filters.items():
        if key in DISPLAY_ONLY_KEYS or not isinstance(selected, list) or not selected:
            continue

        present, raw = _listing_value(listing, key)
        if not present:
            return False

        values = _as_list(raw)
        if not values:
            return False

        if not any(choice in values for choice in selected):
            return False
    return True


def apply_filters(
    listings: Iterable[Any],
    filters: Mapping[str, Any],
    bounds: Optional[MapBounds] = None,
) -> list:
    """Keep listings inside bounds that satisfy every active filter key."""
    filtered = [listing for listing in listings if is_listing_in_bounds(listing, bounds)]

    if not has_active_filters(filters):
        return filtered

    return [listing for listing in filtered if _matches(listing, filters)]


def sanitize_filter_value(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None

    trimmed = value.strip()
    if not trimmed or len(trimmed) > MAX_FILTER_VALUE_LENGTH:
        return None
    if any(ch in trimmed for ch in _FORBIDDEN_CHARS):
        return None
    return trimmed


def parse_filter_param(value: Optional[str]) -> List[str]:
    if not value:
        return []
    parts = [part.strip() for part in value.split(",")]
    return [part for part in parts if 0 < len(part) < MAX_FILTER_VALUE_LENGTH]


def filters_from_query(args: Mapping[str, str]) -> FilterState:
    """Build a filter state from query-string arguments."""
    state = empty_filters()
    for key in FILTER_KEYS:
        cleaned = (sanitize_filter_value(v) for v in parse_filter_param(args.get(key)))
        state[key] = [v for v in cleaned if v is not None]
    return state


def filters_to_url_params(filters: Mapping[str, Any]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for key, values in filters.items():
        if not isinstance(values, list) or not values:
            continue
        encoded = [quote(v, safe="") for v in values if isinstance(v, str) and v]
        if encoded:
            params[key] = ",".join(encoded)
    return params


def is_valid_filter_state(obj: Any) -> bool:
    if not isinstance(obj, Mapping):
        return False
    return all(isinstance(obj.get(key), list) for key in FILTER_KEYS)


def calculate_active_filter_count(filters: Mapping[str, Any]) -> int:
    return sum(len(v) for v in filters.values() if isinstance(v, list))


def build_explore_url(
    current_params: Optional[Mapping[str, Any]] = None,
    updates: Optional[Mapping[str, Any]] = None,
) -> str:
    """
    Apply updates to the current explore query string and return the URL.

    None or "" removes a key; any other value is stringified. The
    returnUrlOnly control flag is ignored.
    """
    params: Dict[str, str] = {
        k: str(v) for k, v in (current_params or {}).items() if v not in (None, "")
    }

    for key, value in (updates or {}).items():
        if key == "returnUrlOnly":
            continue
        if value is None or value == "":
            params.pop(key, None)
        else:
            params[key] = str(value).lower() if isinstance(value, bool) else str(value)

    query = urlencode(params)
    return f"/explore?{query}" if query else "/explore"


def create_coordinate_update(lat, lng, zoom=None) -> Dict[str, str]:
    update = {"lat": str(lat), "lng": str(lng)}
    if zoom is not None:
        update["zoom"] = str(zoom)
    return update
