from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from staffmatch.config import MatchOptions
from staffmatch.errors import ValidationError
from staffmatch.models import (
    CandidateProfile,
    DrivingLicense,
    ExperienceLevel,
    MatchMode,
    MatchTarget,
    QualityTag,
    URGENCY_LEVELS,
)
from .assembler import sort_keys_for, sort_ranked, truncate
from .pool import filter_pool
from .profiles import DEFAULT_PROFILE, WeightProfile, get_profile
from .scoring import passes_hard_filter, score_candidate
from .types import RankedCandidate

logger = logging.getLogger(__name__)


def coerce_mode(mode: Any) -> MatchMode:
    if isinstance(mode, MatchMode):
        return mode
    try:
        return MatchMode(str(mode))
    except ValueError:
        known = ", ".join(m.value for m in MatchMode)
        raise ValidationError(f"Unknown match mode '{mode}'. Use one of: {known}.") from None


def resolve_profile(options: MatchOptions) -> WeightProfile:
    return get_profile(options.profile or DEFAULT_PROFILE)


def validate_target(target: MatchTarget, profile: WeightProfile, mode: MatchMode) -> None:
    if not target.id:
        raise ValidationError("Target id is required.")
    if (target.latitude is None) != (target.longitude is None):
        raise ValidationError("Target latitude and longitude must be given together.")
    if target.latitude is not None and not -90.0 <= target.latitude <= 90.0:
        raise ValidationError(f"Target latitude out of range: {target.latitude}")
    if target.longitude is not None and not -180.0 <= target.longitude <= 180.0:
        raise ValidationError(f"Target longitude out of range: {target.longitude}")
    if target.radius_km is not None and target.radius_km <= 0:
        raise ValidationError(f"radius_km must be positive, got {target.radius_km}")
    if target.min_quality and target.min_quality not in {q.value for q in QualityTag}:
        raise ValidationError(f"Unknown min_quality '{target.min_quality}'. Use A, B or C.")
    if target.min_experience and target.min_experience not in {e.value for e in ExperienceLevel}:
        raise ValidationError(f"Unknown min_experience '{target.min_experience}'.")
    if target.driving_license and target.driving_license not in {d.value for d in DrivingLicense}:
        raise ValidationError(f"Unknown driving_license '{target.driving_license}'.")
    if target.urgency is not None and target.urgency not in URGENCY_LEVELS:
        raise ValidationError(f"urgency must be 1, 2 or 3, got {target.urgency!r}")
    if mode == MatchMode.DISTANCE_ONLY:
        if not target.has_coordinates:
            raise ValidationError("distance_only mode needs target coordinates.")
    elif profile.hard_filter_on_role_match and not (target.role or target.role_catalog):
        raise ValidationError(f"A role is required for profile '{profile.name}'.")


def score_pool(
        candidates: Sequence[CandidateProfile],
        target: MatchTarget,
        profile: WeightProfile,
        *,
        parallel_threshold: int,
        max_workers: Optional[int] = None,
) -> List[RankedCandidate]:
    """Score every candidate; output order matches input order."""
    if len(candidates) < parallel_threshold:
        return [score_candidate(c, target, profile) for c in candidates]
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="staffmatch-score") as pool:
        return list(pool.map(lambda c: score_candidate(c, target, profile), candidates))


def deterministic_ranking(
        target: MatchTarget,
        pool: Sequence[CandidateProfile],
        profile: WeightProfile,
        mode: MatchMode,
        options: MatchOptions,
        *,
        assigned_ids: Optional[Iterable[str]] = None,
) -> Tuple[List[RankedCandidate], int]:
    """
    filter -> score -> hard filter -> sort -> truncate.
    Returns (ranking, eligible_count). Assumes inputs were validated.
    """
    eligible = filter_pool(pool, target, profile, options, assigned_ids=assigned_ids)
    scored = score_pool(eligible, target, profile, parallel_threshold=options.parallel_scoring_threshold)

    # distance_only never filters on role
    if mode != MatchMode.DISTANCE_ONLY:
        scored = [r for r in scored if passes_hard_filter(r, profile)]

    ordered = sort_ranked(scored, sort_keys_for(profile, mode))
    limit = options.result_limit if options.result_limit is not None else profile.result_limit
    ranked = truncate(ordered, limit)

    logger.debug(
        "Deterministic ranking (target=%s, profile=%s, mode=%s): %d eligible, %d scored, %d returned",
        target.id, profile.name, mode.value, len(eligible), len(scored), len(ranked),
    )
    return ranked, len(eligible)


def rank_candidates(
        target: MatchTarget,
        pool: Iterable[CandidateProfile],
        *,
        mode: Any = MatchMode.POINTS,
        options: Optional[MatchOptions] = None,
        assigned_ids: Optional[Iterable[str]] = None,
) -> List[RankedCandidate]:
    """Deterministic ranking with validation, no I/O and no AI stage."""
    mode = coerce_mode(mode)
    options = (options or MatchOptions()).validate()
    profile = resolve_profile(options)
    validate_target(target, profile, mode)
    ranked, _ = deterministic_ranking(target, list(pool), profile, mode, options, assigned_ids=assigned_ids)
    return ranked
