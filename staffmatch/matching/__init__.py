from .engine import rank_candidates, deterministic_ranking
from .profiles import PROFILES, WeightProfile, get_profile
from .roles import roles_match, core_role_name, find_best_matching_role
from .scoring import score_candidate
from .types import RankedCandidate, ScoreBreakdown

__all__ = [
    "rank_candidates",
    "deterministic_ranking",
    "PROFILES",
    "WeightProfile",
    "get_profile",
    "roles_match",
    "core_role_name",
    "find_best_matching_role",
    "score_candidate",
    "RankedCandidate",
    "ScoreBreakdown",
]
