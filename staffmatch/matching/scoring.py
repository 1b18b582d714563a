from __future__ import annotations

from typing import Mapping, Optional, Tuple

from staffmatch.geo import distance_between
from staffmatch.models import CandidateProfile, MatchTarget
from .profiles import LocationCurve, WeightProfile
from .roles import find_best_matching_role, roles_match
from .types import RankedCandidate, ScoreBreakdown


def clamp(x: float, upper: float) -> float:
    return 0.0 if x < 0.0 else (upper if x > upper else x)


def role_match_points(
        position_title: Optional[str],
        target: MatchTarget,
        max_points: float,
        *,
        match_when_unset: bool = False,
) -> Tuple[float, Optional[str]]:
    """
    Binary. With a role catalog the most specific matching catalog role is
    reported alongside the points. A target without role or catalog earns
    max_points only when match_when_unset is set.
    """
    if not (target.role or target.role_catalog):
        return (max_points if match_when_unset else 0.0), None
    if target.role_catalog:
        best = find_best_matching_role(position_title, target.role_catalog)
        return (max_points, best) if best is not None else (0.0, None)
    if roles_match(position_title, target.role):
        return max_points, target.role
    return 0.0, None


def quality_points(tags: Tuple[str, ...], table: Mapping[str, float]) -> float:
    # Best tag wins
    return max((table.get(t, 0.0) for t in tags), default=0.0)


def experience_points(level: Optional[str], table: Mapping[str, float]) -> float:
    if not level:
        return 0.0
    return table.get(level, 0.0)


def location_points(
        curve: LocationCurve,
        distance_km: Optional[float],
        radius_km: Optional[float],
) -> float:
    return curve.points(distance_km, radius_km)


def score_breakdown(
        candidate: CandidateProfile,
        target: MatchTarget,
        profile: WeightProfile,
        distance_km: Optional[float],
) -> Tuple[ScoreBreakdown, Optional[str]]:
    role, matched_role = role_match_points(
        candidate.position_title, target, profile.role_match_max, match_when_unset=profile.role_match_when_unset,
    )
    quality = quality_points(candidate.quality_tags, profile.quality_table)
    experience = experience_points(candidate.experience_level, profile.experience_table)
    location = location_points(profile.location_curve, distance_km, target.radius_km)
    docs = profile.docs_bonus if candidate.profile_document_url else 0.0
    notes = profile.notes_bonus if (candidate.notes or candidate.quality_note) else 0.0

    breakdown = ScoreBreakdown(
        role_match=clamp(role, profile.role_match_max),
        quality=clamp(quality, profile.quality_max),
        experience=clamp(experience, profile.experience_max),
        location=clamp(location, profile.location_max),
        documents_bonus=clamp(docs, profile.docs_bonus),
        notes_bonus=clamp(notes, profile.notes_bonus),
    )
    return breakdown, matched_role


def score_candidate(candidate: CandidateProfile, target: MatchTarget, profile: WeightProfile) -> RankedCandidate:
    """
    Distance plus weighted score for one candidate. Depends on nothing but
    its arguments, so it can run for many candidates in parallel.
    """
    distance_km = distance_between(target, candidate)
    breakdown, matched_role = score_breakdown(candidate, target, profile, distance_km)
    return RankedCandidate(
        candidate=candidate,
        distance_km=distance_km,
        breakdown=breakdown,
        matched_role=matched_role,
    )


def passes_hard_filter(ranked: RankedCandidate, profile: WeightProfile) -> bool:
    if not profile.hard_filter_on_role_match:
        return True
    return ranked.breakdown.role_match > 0.0
