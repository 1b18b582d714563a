from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence

from staffmatch.config import MatchOptions
from staffmatch.errors import ValidationError
from staffmatch.geo import Geocoder
from staffmatch.io.documents import DocumentTextExtractor, enrich_shortlist
from staffmatch.llm.client import AIReasoningClient
from staffmatch.llm.reranker import rerank_shortlist
from staffmatch.matching.engine import coerce_mode, deterministic_ranking, resolve_profile, validate_target
from staffmatch.matching.types import RankedCandidate
from staffmatch.models import CandidateProfile, MatchMode, MatchTarget

logger = logging.getLogger(__name__)

NO_AI_CLIENT = "no AI client configured"


class CandidateRepository(Protocol):
    def load_candidates(self, scope: Optional[str] = None) -> List[CandidateProfile]:
        """Authorized pool, optionally restricted to one team. Unknown scope raises NotFoundError."""
        ...

    def assigned_candidate_ids(self, target_id: str) -> List[str]:
        ...


class TargetRepository(Protocol):
    def get_target(self, target_id: str) -> MatchTarget:
        """Raises NotFoundError for unknown ids."""
        ...


@dataclass(frozen=True)
class MatchRequest:
    target: Optional[MatchTarget] = None
    target_id: Optional[str] = None
    mode: Any = MatchMode.POINTS
    options: MatchOptions = field(default_factory=MatchOptions)


@dataclass(frozen=True)
class MatchResult:
    target: MatchTarget
    mode_requested: MatchMode
    mode_applied: MatchMode
    profile: str
    candidates: List[RankedCandidate]
    pool_size: int
    eligible_count: int
    duration_ms: int
    ai_failure: Optional[str] = None

    @property
    def ai_applied(self) -> bool:
        return self.mode_applied == MatchMode.AI

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_id": self.target.id,
            "method": self.mode_applied.value,
            "requested_method": self.mode_requested.value,
            "profile": self.profile,
            "pool_size": self.pool_size,
            "eligible": self.eligible_count,
            "duration_ms": self.duration_ms,
            "ai_failure": self.ai_failure,
            "matches": [r.to_dict() for r in self.candidates],
        }


def _resolve_target(request: MatchRequest, target_repo: Optional[TargetRepository]) -> MatchTarget:
    if request.target is not None:
        return request.target
    if not request.target_id:
        raise ValidationError("Either a target or a target_id is required.")
    if target_repo is None:
        raise ValidationError("target_id given but no target repository configured.")
    return target_repo.get_target(request.target_id)


def _geocode(target: MatchTarget, geocoder: Optional[Geocoder]) -> MatchTarget:
    if target.has_coordinates or not target.location_text or geocoder is None:
        return target
    coords = geocoder.resolve(target.location_text)
    if coords is None:
        logger.info("Could not geocode target location (target=%s): %r", target.id, target.location_text)
        return target
    return target.with_coordinates(*coords)


def _load_pool(
        options: MatchOptions,
        candidates: Optional[Iterable[CandidateProfile]],
        candidate_repo: Optional[CandidateRepository],
) -> List[CandidateProfile]:
    if candidates is not None:
        return list(candidates)
    if candidate_repo is None:
        raise ValidationError("No candidate pool and no candidate repository given.")
    return list(candidate_repo.load_candidates(options.scope_team_id))


def run_match(
        request: MatchRequest,
        *,
        candidates: Optional[Iterable[CandidateProfile]] = None,
        candidate_repo: Optional[CandidateRepository] = None,
        target_repo: Optional[TargetRepository] = None,
        document_extractor: Optional[DocumentTextExtractor] = None,
        ai_client: Optional[AIReasoningClient] = None,
        geocoder: Optional[Geocoder] = None,
) -> MatchResult:
    """
    Full matching request:
      - validation and lookups (errors raised before any scoring)
      - deterministic ranking (always computed)
      - ai mode only: shortlist, document enrichment, AI rerank

    Any failure after the deterministic ranking exists returns that ranking
    (identical to points mode) with `ai_failure` set.
    """
    started = time.monotonic()
    mode = coerce_mode(request.mode)
    options = request.options.validate()
    profile = resolve_profile(options)
    deadline = started + options.request_timeout_seconds

    target = _geocode(_resolve_target(request, target_repo), geocoder)
    validate_target(target, profile, mode)

    pool = _load_pool(options, candidates, candidate_repo)
    assigned: Sequence[str] = ()
    if candidate_repo is not None:
        assigned = candidate_repo.assigned_candidate_ids(target.id)

    ranked, eligible_count = deterministic_ranking(target, pool, profile, mode, options, assigned_ids=assigned)

    def _result(items: List[RankedCandidate], applied: MatchMode, failure: Optional[str] = None) -> MatchResult:
        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Match done (target=%s, profile=%s, requested=%s, applied=%s): %d/%d eligible, %d returned in %dms",
            target.id, profile.name, mode.value, applied.value, eligible_count, len(pool), len(items), duration_ms,
        )
        return MatchResult(
            target=target,
            mode_requested=mode,
            mode_applied=applied,
            profile=profile.name,
            candidates=items,
            pool_size=len(pool),
            eligible_count=eligible_count,
            duration_ms=duration_ms,
            ai_failure=failure,
        )

    if mode != MatchMode.AI:
        return _result(ranked, mode)

    if ai_client is None:
        logger.warning("AI mode requested without a client (target=%s); using points ranking", target.id)
        return _result(ranked, MatchMode.POINTS, NO_AI_CLIENT)

    k = options.shortlist_size or profile.shortlist_size
    shortlist = ranked[:k]

    documents: Dict[str, str] = {}
    if document_extractor is not None:
        documents = enrich_shortlist(
            shortlist,
            document_extractor,
            timeout_seconds=options.document_timeout_seconds,
            max_chars=options.document_max_chars,
            max_workers=options.max_document_workers,
            deadline=deadline,
        )

    outcome = rerank_shortlist(
        target=target,
        shortlist=shortlist,
        client=ai_client,
        documents=documents,
        timeout_seconds=options.ai_timeout_seconds,
        deadline=deadline,
    )
    if not outcome.applied:
        return _result(ranked, MatchMode.POINTS, outcome.failure)
    return _result(outcome.candidates, MatchMode.AI)
