from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass, replace
from typing import List, Mapping, Optional, Sequence

from staffmatch.errors import UpstreamDependencyError
from staffmatch.matching.assembler import SORT_KEYS
from staffmatch.matching.types import RankedCandidate
from staffmatch.models import MatchTarget
from .client import AIReasoningClient
from .parser import RerankFailed, RerankParsed, parse_rerank_response
from .prompt import build_rerank_prompt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RerankOutcome:
    """
    candidates is the AI-ordered shortlist when applied, otherwise the
    deterministic shortlist exactly as it came in.
    """
    candidates: List[RankedCandidate]
    applied: bool
    failure: Optional[str] = None


def _call_with_deadline(client: AIReasoningClient, prompt: str, timeout: float) -> str:
    # The client gets the timeout too, but we never wait longer than it regardless.
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="staffmatch-ai")
    try:
        fut = pool.submit(client.complete, prompt, timeout=timeout)
        try:
            return fut.result(timeout=timeout)
        except FutureTimeout:
            fut.cancel()
            raise UpstreamDependencyError(
                f"AI call exceeded {timeout:.1f}s", stage="ai", context={"timeout": timeout},
            ) from None
    finally:
        pool.shutdown(wait=False, cancel_futures=True)


def merge_assessments(shortlist: Sequence[RankedCandidate], parsed: RerankParsed) -> List[RankedCandidate]:
    merged = []
    for r in shortlist:
        a = parsed.assessment_for(r.id)
        merged.append(replace(r, ai_score=a.score, match_reason=a.reason))
    # Stable: equal AI scores keep the deterministic order
    return sorted(merged, key=SORT_KEYS["ai_score"])


def rerank_shortlist(
        *,
        target: MatchTarget,
        shortlist: Sequence[RankedCandidate],
        client: AIReasoningClient,
        documents: Optional[Mapping[str, str]] = None,
        timeout_seconds: float,
        deadline: Optional[float] = None,
) -> RerankOutcome:
    """
    Ask the reasoning model to score the shortlist. Never raises for
    upstream problems: any failure returns the shortlist untouched with
    `failure` set.
    """
    baseline = list(shortlist)
    if not baseline:
        return RerankOutcome(candidates=baseline, applied=False, failure="empty shortlist")

    def _fallback(reason: str) -> RerankOutcome:
        logger.warning(
            "AI rerank failed, keeping deterministic order (target=%s, shortlist=%d): %s",
            target.id, len(baseline), reason,
        )
        return RerankOutcome(candidates=baseline, applied=False, failure=reason)

    budget = timeout_seconds
    if deadline is not None:
        budget = min(budget, deadline - time.monotonic())
    if budget <= 0:
        return _fallback("request deadline reached before AI stage")

    prompt = build_rerank_prompt(target=target, shortlist=baseline, documents=documents)

    started = time.monotonic()
    try:
        raw = _call_with_deadline(client, prompt, budget)
    except UpstreamDependencyError as exc:
        return _fallback(str(exc))
    except Exception as exc:  # noqa: BLE001
        return _fallback(f"AI client error: {type(exc).__name__}")

    result = parse_rerank_response(raw, [r.id for r in baseline])
    if isinstance(result, RerankFailed):
        logger.debug("Unparsable AI response (target=%s): %.500s", target.id, raw)
        return _fallback(result.reason)

    if result.ignored_ids or result.skipped_items:
        logger.info(
            "AI rerank (target=%s): ignored %d unknown ids, skipped %d malformed items",
            target.id, len(result.ignored_ids), result.skipped_items,
        )
    logger.info(
        "AI rerank applied (target=%s): %d/%d assessed in %dms",
        target.id, len(result.assessments), len(baseline), int((time.monotonic() - started) * 1000),
    )
    return RerankOutcome(candidates=merge_assessments(baseline, result), applied=True)
