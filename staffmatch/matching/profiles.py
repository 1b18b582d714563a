"""
Weight profiles for the deterministic scorer.

Each calling context (vacancy AI matching, contact role search, vacancy
auto-suggest, team peers) ranks with the same formula shape but its own
weights, tables, distance curve and hard-filter policy. They are kept as
separate named presets with their historical numbers; none of them is
"the" canonical curve.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Union

from staffmatch.errors import ValidationError


class SortOrder(str, Enum):
    DISTANCE_FIRST = "distance_first"  # distance asc, score desc, name
    SCORE_FIRST = "score_first"        # score desc, distance asc, name


def _frozen(table: Mapping[str, float]) -> Mapping[str, float]:
    return MappingProxyType(dict(table))


@dataclass(frozen=True)
class NoLocationCurve:
    """Distance only orders results; it earns no points."""

    @property
    def max_points(self) -> float:
        return 0.0

    def points(self, distance_km: Optional[float], radius_km: Optional[float]) -> float:
        return 0.0


@dataclass(frozen=True)
class SteppedLocationCurve:
    """
    Inside the target radius: max_points minus the distance (decay capped at
    max_decay). Outside it but under fallback_band_km: flat fallback_points.
    """
    max_points: float = 40.0
    max_decay: float = 30.0
    fallback_band_km: float = 50.0
    fallback_points: float = 20.0

    def points(self, distance_km: Optional[float], radius_km: Optional[float]) -> float:
        if distance_km is None:
            return 0.0
        if radius_km and distance_km <= radius_km:
            return self.max_points - min(self.max_decay, distance_km)
        if distance_km < self.fallback_band_km:
            return self.fallback_points
        return 0.0


@dataclass(frozen=True)
class LinearDecayLocationCurve:
    """
    base_points for being inside the limit, plus closeness_points scaled
    linearly from 1 at the target to 0 at the limit. Beyond the limit: 0.
    The limit is max_distance_km when set, else the target radius.
    """
    base_points: float = 40.0
    closeness_points: float = 10.0
    max_distance_km: Optional[float] = None
    unknown_points: float = 50.0

    @property
    def max_points(self) -> float:
        return self.base_points + self.closeness_points

    def points(self, distance_km: Optional[float], radius_km: Optional[float]) -> float:
        limit = self.max_distance_km or radius_km
        if distance_km is None or not limit:
            return self.unknown_points
        if distance_km > limit:
            return 0.0
        return self.base_points + self.closeness_points * (1.0 - distance_km / limit)


LocationCurve = Union[NoLocationCurve, SteppedLocationCurve, LinearDecayLocationCurve]


@dataclass(frozen=True)
class WeightProfile:
    name: str
    role_match_max: float
    quality_table: Mapping[str, float]
    experience_table: Mapping[str, float]
    location_curve: LocationCurve = field(default_factory=NoLocationCurve)
    docs_bonus: float = 0.0
    notes_bonus: float = 0.0
    hard_filter_on_role_match: bool = False
    # Full role points when the target names no role
    role_match_when_unset: bool = False
    sort_order: SortOrder = SortOrder.SCORE_FIRST
    shortlist_size: int = 10
    result_limit: Optional[int] = 50
    require_document: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "quality_table", _frozen(self.quality_table))
        object.__setattr__(self, "experience_table", _frozen(self.experience_table))

    @property
    def quality_max(self) -> float:
        return max(self.quality_table.values(), default=0.0)

    @property
    def experience_max(self) -> float:
        return max(self.experience_table.values(), default=0.0)

    @property
    def location_max(self) -> float:
        return self.location_curve.max_points

    @property
    def max_total(self) -> float:
        return (
                self.role_match_max
                + self.quality_max
                + self.experience_max
                + self.location_max
                + self.docs_bonus
                + self.notes_bonus
        )


# Vacancy -> AI shortlist pre-ranking: location 40, quality 30, role 20, experience 10.
VACANCY_AI = WeightProfile(
    name="vacancy_ai",
    role_match_max=20.0,
    role_match_when_unset=True,
    quality_table={"A": 30.0, "B": 20.0, "C": 10.0},
    experience_table={"senior": 10.0, "mid": 5.0},
    location_curve=SteppedLocationCurve(max_points=40.0, max_decay=30.0, fallback_band_km=50.0, fallback_points=20.0),
    sort_order=SortOrder.SCORE_FIRST,
    shortlist_size=10,
    result_limit=50,
)

# Contact searched for a role: role 40, quality 30, experience 15, docs 10, notes 5.
CONTACT_POINTS = WeightProfile(
    name="contact_points",
    role_match_max=40.0,
    quality_table={"A": 30.0, "B": 20.0, "C": 10.0},
    experience_table={"more_than_3": 15.0, "more_than_1": 8.0, "less_than_1": 3.0},
    location_curve=NoLocationCurve(),
    docs_bonus=10.0,
    notes_bonus=5.0,
    hard_filter_on_role_match=True,
    sort_order=SortOrder.DISTANCE_FIRST,
    shortlist_size=15,
    result_limit=50,
)

# Vacancy auto-suggest: location dominates with a linear closeness bonus.
VACANCY_SUGGEST = WeightProfile(
    name="vacancy_suggest",
    role_match_max=5.0,
    quality_table={"A": 35.0, "B": 25.0, "C": 15.0},
    experience_table={},
    location_curve=LinearDecayLocationCurve(base_points=40.0, closeness_points=10.0, unknown_points=50.0),
    sort_order=SortOrder.SCORE_FIRST,
    shortlist_size=10,
    result_limit=50,
)

# Peers of a selected candidate inside the same team, nearest first.
TEAM_PEERS = WeightProfile(
    name="team_peers",
    role_match_max=1.0,
    quality_table={"A": 3.0, "B": 2.0, "C": 1.0},
    experience_table={},
    location_curve=NoLocationCurve(),
    hard_filter_on_role_match=True,
    sort_order=SortOrder.DISTANCE_FIRST,
    shortlist_size=10,
    result_limit=None,
    require_document=True,
)

PROFILES: Dict[str, WeightProfile] = {
    p.name: p for p in (VACANCY_AI, CONTACT_POINTS, VACANCY_SUGGEST, TEAM_PEERS)
}

DEFAULT_PROFILE = CONTACT_POINTS.name


def get_profile(name: str) -> WeightProfile:
    try:
        return PROFILES[name]
    except KeyError:
        known = ", ".join(sorted(PROFILES))
        raise ValidationError(f"Unknown weight profile '{name}'. Known profiles: {known}.") from None
