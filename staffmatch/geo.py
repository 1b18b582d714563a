from __future__ import annotations

import math
import re
import unicodedata
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Protocol, Tuple

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LAT = 111.32

_POSTAL_CODE_RE = re.compile(r"\d{4}")


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance in kilometres.
    No rounding here; presentation code rounds.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_between(origin: object, point: object) -> Optional[float]:
    """Distance between two objects exposing latitude/longitude, or None if either lacks them."""
    lat1 = getattr(origin, "latitude", None)
    lon1 = getattr(origin, "longitude", None)
    lat2 = getattr(point, "latitude", None)
    lon2 = getattr(point, "longitude", None)
    if lat1 is None or lon1 is None or lat2 is None or lon2 is None:
        return None
    return haversine_km(lat1, lon1, lat2, lon2)


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, lat: float, lon: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lon <= lon <= self.max_lon


def bounding_box(lat: float, lon: float, radius_km: float) -> BoundingBox:
    """Cheap rectangular pre-filter around a point; always contains the radius circle."""
    lat_delta = radius_km / KM_PER_DEGREE_LAT
    lon_delta = radius_km / (KM_PER_DEGREE_LAT * math.cos(math.radians(lat)))
    return BoundingBox(
        min_lat=lat - lat_delta,
        max_lat=lat + lat_delta,
        min_lon=lon - lon_delta,
        max_lon=lon + lon_delta,
    )


def is_within_radius(
        center_lat: float,
        center_lon: float,
        point_lat: float,
        point_lon: float,
        radius_km: float,
) -> bool:
    return haversine_km(center_lat, center_lon, point_lat, point_lon) <= radius_km


# --- Textual locations ---

def strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_city_key(value: str) -> str:
    t = strip_diacritics(value).lower()
    t = re.sub(r"[()]", " ", t)
    t = re.sub(r",+", " ", t)
    return " ".join(t.split())


def extract_postal_code(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    m = _POSTAL_CODE_RE.search(value)
    return m.group(0) if m else None


class Geocoder(Protocol):
    def resolve(self, text: str) -> Optional[Tuple[float, float]]:
        ...


@dataclass(frozen=True)
class PostalCodeEntry:
    postal_code: str
    name: str
    latitude: float
    longitude: float
    canton: Optional[str] = None


class PostalCodeGeocoder:
    """
    Resolves "8001 Zürich", "8001" or "Zürich" to coordinates from a
    postal code directory. Postal code wins over city name.
    """

    def __init__(self, entries: Iterable[PostalCodeEntry]) -> None:
        self._by_code: Dict[str, PostalCodeEntry] = {}
        self._by_city: Dict[str, PostalCodeEntry] = {}
        for e in entries:
            self._by_code.setdefault(e.postal_code, e)
            key = normalize_city_key(e.name)
            if key:
                self._by_city.setdefault(key, e)

    def resolve(self, text: str) -> Optional[Tuple[float, float]]:
        code = extract_postal_code(text)
        if code and code in self._by_code:
            e = self._by_code[code]
            return e.latitude, e.longitude

        city = normalize_city_key(_POSTAL_CODE_RE.sub(" ", text or ""))
        if city and city in self._by_city:
            e = self._by_city[city]
            return e.latitude, e.longitude
        return None
