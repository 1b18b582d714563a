from __future__ import annotations

from typing import Any, Callable, Dict, List, Sequence, Tuple

from staffmatch.geo import strip_diacritics
from staffmatch.models import MatchMode
from .profiles import SortOrder, WeightProfile
from .types import RankedCandidate

SortKey = Callable[[RankedCandidate], Any]


def _distance_key(r: RankedCandidate) -> Tuple[int, float]:
    # Unknown distances go last
    if r.distance_km is None:
        return (1, 0.0)
    return (0, r.distance_km)


def _score_key(r: RankedCandidate) -> float:
    return -r.score


def _ai_score_key(r: RankedCandidate) -> float:
    return -(r.ai_score or 0.0)


def _quality_key(r: RankedCandidate) -> int:
    return -r.candidate.best_quality_rank


def _name_key(r: RankedCandidate) -> Tuple[str, str, str, str]:
    c = r.candidate
    last = c.last_name.casefold()
    first = c.first_name.casefold()
    # Accent-insensitive first, then accent-sensitive, then id so ties never depend on input order
    return (strip_diacritics(last), strip_diacritics(first), f"{last} {first}", c.id)


SORT_KEYS: Dict[str, SortKey] = {
    "distance": _distance_key,
    "score": _score_key,
    "ai_score": _ai_score_key,
    "quality": _quality_key,
    "name": _name_key,
}

DISTANCE_FIRST_KEYS = ("distance", "score", "name")
SCORE_FIRST_KEYS = ("score", "distance", "name")


def sort_keys_for(profile: WeightProfile, mode: MatchMode) -> Tuple[str, ...]:
    if mode == MatchMode.DISTANCE_ONLY or profile.sort_order == SortOrder.DISTANCE_FIRST:
        return DISTANCE_FIRST_KEYS
    return SCORE_FIRST_KEYS


def sort_ranked(items: Sequence[RankedCandidate], keys: Sequence[str]) -> List[RankedCandidate]:
    """
    Multi-key sort. "name" is always appended as the final tie-break when
    the caller did not ask for it.
    """
    names = list(keys)
    if "name" not in names:
        names.append("name")
    try:
        funcs = [SORT_KEYS[k] for k in names]
    except KeyError as exc:
        raise ValueError(f"Unknown sort key: {exc.args[0]}") from None
    return sorted(items, key=lambda r: tuple(f(r) for f in funcs))


def truncate(items: Sequence[RankedCandidate], limit: int | None) -> List[RankedCandidate]:
    if limit is None:
        return list(items)
    return list(items[:limit])
