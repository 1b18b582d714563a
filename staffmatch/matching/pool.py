from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from staffmatch.config import MatchOptions
from staffmatch.models import (
    Activity,
    CandidateProfile,
    MatchTarget,
    QUALITY_RANK,
    experience_rank,
    license_satisfies,
)
from .profiles import WeightProfile

logger = logging.getLogger(__name__)


def _meets_requirements(candidate: CandidateProfile, target: MatchTarget) -> bool:
    if target.min_quality and candidate.best_quality_rank < QUALITY_RANK.get(target.min_quality, 0):
        return False
    if target.min_experience and experience_rank(candidate.experience_level) < experience_rank(target.min_experience):
        return False
    if target.driving_license and not license_satisfies(candidate.driving_license, target.driving_license):
        return False
    return True


def filter_pool(
        candidates: Iterable[CandidateProfile],
        target: MatchTarget,
        profile: WeightProfile,
        options: MatchOptions,
        *,
        assigned_ids: Optional[Iterable[str]] = None,
) -> List[CandidateProfile]:
    """
    Eligibility predicates, applied in this order:
      1) scope (same team as requested)
      2) active candidates only
      3) not already claimed/assigned for this target
      4) not the "self" candidate whose peers are being ranked
      5) has a profile document (when required)
      6) target minimums (only with options.enforce_requirements)
    Input order is preserved.
    """
    excluded = set(options.exclude_candidate_ids)
    excluded.update(assigned_ids or ())
    require_document = profile.require_document if options.require_document is None else options.require_document

    out: List[CandidateProfile] = []
    seen = set()
    for c in candidates:
        if c.id in seen:
            continue
        seen.add(c.id)
        if options.scope_team_id and c.team_id != options.scope_team_id:
            continue
        if c.activity != Activity.ACTIVE.value:
            continue
        if c.id in excluded:
            continue
        if options.self_candidate_id and c.id == options.self_candidate_id:
            continue
        if require_document and not c.profile_document_url:
            continue
        if options.enforce_requirements and not _meets_requirements(c, target):
            continue
        out.append(c)

    logger.debug("Pool filter kept %d of %d candidates (target=%s)", len(out), len(seen), target.id)
    return out
