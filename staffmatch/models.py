from __future__ import annotations

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from staffmatch.errors import ValidationError


class QualityTag(str, Enum):
    A = "A"  # top
    B = "B"  # ok
    C = "C"  # flop


QUALITY_RANK: Dict[str, int] = {"A": 3, "B": 2, "C": 1}


class ExperienceLevel(str, Enum):
    LESS_THAN_1 = "less_than_1"
    MORE_THAN_1 = "more_than_1"
    MORE_THAN_3 = "more_than_3"
    # Legacy vocabulary still present on older records
    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"


EXPERIENCE_RANK: Dict[str, int] = {
    "less_than_1": 1,
    "junior": 1,
    "more_than_1": 2,
    "mid": 2,
    "more_than_3": 3,
    "senior": 3,
}


class DrivingLicense(str, Enum):
    NONE = "none"
    B = "b"
    BE = "be"
    B_CAR = "b_car"
    BE_CAR = "be_car"


# Which held licenses satisfy a required one.
LICENSE_SATISFIES: Dict[str, Tuple[str, ...]] = {
    "none": ("none", "b", "be", "b_car", "be_car"),
    "b": ("b", "be", "b_car", "be_car"),
    "be": ("be", "be_car"),
    "b_car": ("b_car", "be_car"),
    "be_car": ("be_car",),
}


class Activity(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


# 1 can wait, 2 soon, 3 immediately
URGENCY_LEVELS = (1, 2, 3)


class MatchMode(str, Enum):
    DISTANCE_ONLY = "distance_only"
    POINTS = "points"
    AI = "ai"


def normalize_whitespace(text: Optional[str]) -> str:
    return " ".join((text or "").split()).strip()


def _clean_optional(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    cleaned = normalize_whitespace(text)
    return cleaned or None


def best_quality_rank(tags: Tuple[str, ...]) -> int:
    return max((QUALITY_RANK.get(t, 0) for t in tags), default=0)


def experience_rank(level: Optional[str]) -> int:
    if not level:
        return 0
    return EXPERIENCE_RANK.get(level.strip().lower(), 0)


def license_satisfies(held: Optional[str], required: Optional[str]) -> bool:
    if not required:
        return True
    if not held:
        return False
    return held.strip().lower() in LICENSE_SATISFIES.get(required.strip().lower(), ())


@dataclass(frozen=True)
class CandidateProfile:
    """
    A placement candidate as handed over by the CRM.
    Every location part is independently optional.
    """
    id: str
    first_name: str
    last_name: str

    position_title: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    canton: Optional[str] = None
    street: Optional[str] = None

    quality_tags: Tuple[str, ...] = ()
    quality_note: Optional[str] = None
    experience_level: Optional[str] = None
    driving_license: Optional[str] = None
    activity: Optional[str] = None
    notes: Optional[str] = None
    profile_document_url: Optional[str] = None

    team_id: Optional[str] = None
    claimed_by: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "first_name", normalize_whitespace(self.first_name))
        object.__setattr__(self, "last_name", normalize_whitespace(self.last_name))
        object.__setattr__(self, "position_title", _clean_optional(self.position_title))

        # Uppercase, known, unique, order preserved
        cleaned: List[str] = []
        for t in self.quality_tags or ():
            nt = normalize_whitespace(str(t)).upper()
            if nt in QUALITY_RANK and nt not in cleaned:
                cleaned.append(nt)
        object.__setattr__(self, "quality_tags", tuple(cleaned))

        for name in ("experience_level", "driving_license", "activity"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, normalize_whitespace(str(value)).lower() or None)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def best_quality_rank(self) -> int:
        return best_quality_rank(self.quality_tags)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CandidateProfile":
        cid = _required_id(data, "candidate")
        tags = data.get("quality_tags") or data.get("status_tags") or []
        if not tags and data.get("status"):
            # single legacy quality field
            tags = [data["status"]]
        return cls(
            id=cid,
            first_name=data.get("first_name") or "",
            last_name=data.get("last_name") or "",
            position_title=data.get("position_title"),
            latitude=_optional_float(data, "latitude", cid),
            longitude=_optional_float(data, "longitude", cid),
            postal_code=data.get("postal_code"),
            city=data.get("city"),
            canton=data.get("canton"),
            street=data.get("street"),
            quality_tags=tuple(tags),
            quality_note=data.get("quality_note"),
            experience_level=data.get("experience_level"),
            driving_license=data.get("driving_license"),
            activity=data.get("activity"),
            notes=data.get("notes"),
            profile_document_url=data.get("profile_document_url") or data.get("short_profile_url"),
            team_id=data.get("team_id"),
            claimed_by=data.get("claimed_by"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["quality_tags"] = list(self.quality_tags)
        return d


@dataclass(frozen=True)
class MatchTarget:
    """
    The open role candidates are ranked against: a vacancy, or a company
    contact searched for a specific role.
    """
    id: str
    role: Optional[str] = None

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_text: Optional[str] = None
    radius_km: Optional[float] = None

    min_quality: Optional[str] = None
    min_experience: Optional[str] = None
    driving_license: Optional[str] = None
    urgency: Optional[int] = None  # 1 can wait, 2 soon, 3 immediately

    title: Optional[str] = None
    description: Optional[str] = None
    company_name: Optional[str] = None
    city: Optional[str] = None
    canton: Optional[str] = None
    team_id: Optional[str] = None
    role_catalog: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", _clean_optional(self.role))
        object.__setattr__(self, "location_text", _clean_optional(self.location_text))
        if self.min_quality is not None:
            object.__setattr__(self, "min_quality", normalize_whitespace(self.min_quality).upper() or None)
        for name in ("min_experience", "driving_license"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, normalize_whitespace(value).lower() or None)
        object.__setattr__(
            self,
            "role_catalog",
            tuple(r for r in (normalize_whitespace(x) for x in self.role_catalog or ()) if r),
        )

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def with_coordinates(self, latitude: float, longitude: float) -> "MatchTarget":
        d = asdict(self)
        d["latitude"] = latitude
        d["longitude"] = longitude
        d["role_catalog"] = self.role_catalog
        return MatchTarget(**d)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MatchTarget":
        tid = _required_id(data, "target")
        return cls(
            id=tid,
            role=data.get("role"),
            latitude=_optional_float(data, "latitude", tid),
            longitude=_optional_float(data, "longitude", tid),
            location_text=data.get("location_text") or data.get("location"),
            radius_km=_optional_float(data, "radius_km", tid),
            min_quality=data.get("min_quality"),
            min_experience=data.get("min_experience"),
            driving_license=data.get("driving_license"),
            urgency=_optional_int(data, "urgency", tid),
            title=data.get("title"),
            description=data.get("description"),
            company_name=data.get("company_name"),
            city=data.get("city"),
            canton=data.get("canton"),
            team_id=data.get("team_id"),
            role_catalog=tuple(data.get("role_catalog") or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["role_catalog"] = list(self.role_catalog)
        return d


def _required_id(data: Any, kind: str) -> str:
    if not isinstance(data, Mapping):
        raise ValidationError(f"A {kind} record must be a JSON object, got {type(data).__name__}.")
    raw = data.get("id")
    if raw is None or not str(raw).strip():
        raise ValidationError(f"A {kind} record is missing 'id'.")
    return str(raw).strip()


def _optional_float(data: Mapping[str, Any], key: str, record_id: str) -> Optional[float]:
    value = data.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{key} of '{record_id}' must be a number, got {value!r}.")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} of '{record_id}' must be a number, got {value!r}.") from None


def _optional_int(data: Mapping[str, Any], key: str, record_id: str) -> Optional[int]:
    value = _optional_float(data, key, record_id)
    if value is None:
        return None
    if not value.is_integer():
        raise ValidationError(f"{key} of '{record_id}' must be a whole number, got {data.get(key)!r}.")
    return int(value)
