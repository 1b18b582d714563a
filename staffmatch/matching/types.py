from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from staffmatch.models import CandidateProfile


@dataclass(frozen=True)
class ScoreBreakdown:
    role_match: float = 0.0
    quality: float = 0.0
    experience: float = 0.0
    location: float = 0.0
    documents_bonus: float = 0.0
    notes_bonus: float = 0.0

    @property
    def total(self) -> float:
        # Always derived, never stored
        return (
                self.role_match
                + self.quality
                + self.experience
                + self.location
                + self.documents_bonus
                + self.notes_bonus
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "role_match": self.role_match,
            "quality": self.quality,
            "experience": self.experience,
            "location": self.location,
            "documents_bonus": self.documents_bonus,
            "notes_bonus": self.notes_bonus,
            "total": self.total,
        }


@dataclass(frozen=True)
class RankedCandidate:
    candidate: CandidateProfile
    distance_km: Optional[float]
    breakdown: ScoreBreakdown
    ai_score: Optional[float] = None
    match_reason: Optional[str] = None
    matched_role: Optional[str] = None

    @property
    def score(self) -> float:
        return self.breakdown.total

    @property
    def id(self) -> str:
        return self.candidate.id

    def to_dict(self) -> Dict[str, Any]:
        c = self.candidate
        d: Dict[str, Any] = {
            "id": c.id,
            "first_name": c.first_name,
            "last_name": c.last_name,
            "position_title": c.position_title,
            "city": c.city,
            "canton": c.canton,
            "postal_code": c.postal_code,
            "experience_level": c.experience_level,
            "driving_license": c.driving_license,
            "quality_tags": list(c.quality_tags),
            "profile_document_url": c.profile_document_url,
            "distance_km": round(self.distance_km, 1) if self.distance_km is not None else None,
            "score": self.score,
            "score_breakdown": self.breakdown.to_dict(),
        }
        if self.matched_role is not None:
            d["matched_role"] = self.matched_role
        if self.ai_score is not None:
            d["ai_score"] = self.ai_score
            d["match_reason"] = self.match_reason
        return d
