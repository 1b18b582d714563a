# staffmatch/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from staffmatch.errors import ValidationError

# --- Networking ---

USER_AGENT = "staffmatch/0.3 (+document-enrichment)"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# --- Time budgets (seconds) ---

AI_TIMEOUT_SECONDS: float = _env_float("STAFFMATCH_AI_TIMEOUT_SECONDS", 30.0)
DOCUMENT_TIMEOUT_SECONDS: float = _env_float("STAFFMATCH_DOCUMENT_TIMEOUT_SECONDS", 8.0)
REQUEST_TIMEOUT_SECONDS: float = _env_float("STAFFMATCH_REQUEST_TIMEOUT_SECONDS", 60.0)

# --- Guardrails ---

DOCUMENT_MAX_CHARS = 2000
NOTES_MAX_CHARS = 500
MAX_DOCUMENT_WORKERS: int = _env_int("STAFFMATCH_MAX_DOCUMENT_WORKERS", 8)
PARALLEL_SCORING_THRESHOLD: int = _env_int("STAFFMATCH_PARALLEL_SCORING_THRESHOLD", 500)

# --- AI reranking ---

# Provider selection: "openai" | "anthropic"  (default: openai)
STAFFMATCH_LLM_PROVIDER: str = os.environ.get("STAFFMATCH_LLM_PROVIDER", "openai").strip().lower()

_DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-6",
}
STAFFMATCH_LLM_MODEL: str = os.environ.get("STAFFMATCH_LLM_MODEL", "").strip()


def default_model(provider: str) -> str:
    """Explicit STAFFMATCH_LLM_MODEL wins, else the provider default."""
    return STAFFMATCH_LLM_MODEL or _DEFAULT_MODELS.get(provider, _DEFAULT_MODELS["openai"])


# Never logged, never included in structured output.
STAFFMATCH_LLM_KEY: str | None = os.environ.get("STAFFMATCH_LLM_KEY") or None


def resolve_llm_key(provider: str) -> Optional[str]:
    if STAFFMATCH_LLM_KEY:
        return STAFFMATCH_LLM_KEY
    if provider == "anthropic":
        return os.getenv("ANTHROPIC_API_KEY") or None
    return os.getenv("OPENAI_API_KEY") or None


def llm_configured() -> bool:
    return bool(resolve_llm_key(STAFFMATCH_LLM_PROVIDER))


@dataclass(frozen=True)
class MatchOptions:
    """
    Per-request knobs for the matching engine. Anything left as None falls
    back to the weight profile or to the module-level defaults above.
    """
    profile: Optional[str] = None
    scope_team_id: Optional[str] = None
    exclude_candidate_ids: FrozenSet[str] = field(default_factory=frozenset)
    self_candidate_id: Optional[str] = None
    require_document: Optional[bool] = None
    enforce_requirements: bool = False

    result_limit: Optional[int] = None
    shortlist_size: Optional[int] = None

    document_max_chars: int = DOCUMENT_MAX_CHARS
    max_document_workers: int = MAX_DOCUMENT_WORKERS
    parallel_scoring_threshold: int = PARALLEL_SCORING_THRESHOLD

    document_timeout_seconds: float = DOCUMENT_TIMEOUT_SECONDS
    ai_timeout_seconds: float = AI_TIMEOUT_SECONDS
    request_timeout_seconds: float = REQUEST_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        object.__setattr__(self, "exclude_candidate_ids", frozenset(self.exclude_candidate_ids or ()))

    def validate(self) -> "MatchOptions":
        for name in ("result_limit", "shortlist_size"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValidationError(f"{name} must be a positive integer, got {value!r}.")
        for name in ("document_max_chars", "max_document_workers", "parallel_scoring_threshold"):
            if getattr(self, name) <= 0:
                raise ValidationError(f"{name} must be positive.")
        for name in ("document_timeout_seconds", "ai_timeout_seconds", "request_timeout_seconds"):
            if getattr(self, name) <= 0:
                raise ValidationError(f"{name} must be positive.")
        return self
