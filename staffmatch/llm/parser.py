"""
staffmatch/llm/parser.py

Parse boundary for free-form model output. Nothing raised here ever
escapes: callers get RerankParsed or RerankFailed and branch on it.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

DEFAULT_REASON = "No assessment available"

_ID_KEYS = ("candidate_id", "id")
_SCORE_KEYS = ("score", "ai_score")
_REASON_KEYS = ("reason", "match_reason")

_decoder = json.JSONDecoder()


@dataclass(frozen=True)
class AIAssessment:
    score: float
    reason: str


@dataclass(frozen=True)
class RerankParsed:
    assessments: Dict[str, AIAssessment]
    skipped_items: int = 0
    ignored_ids: List[str] = field(default_factory=list)

    ok = True

    def assessment_for(self, candidate_id: str) -> AIAssessment:
        return self.assessments.get(candidate_id) or AIAssessment(score=0.0, reason=DEFAULT_REASON)


@dataclass(frozen=True)
class RerankFailed:
    reason: str

    ok = False


RerankParseResult = Union[RerankParsed, RerankFailed]


def find_first_json_array(text: str) -> tuple[Optional[list], Optional[str]]:
    """
    Decode the first top-level JSON array literal anywhere in `text`.
    Returns (array, None) or (None, error). Surrounding prose and code
    fences are ignored; a "[" that does not start valid JSON is skipped.

    A "[" followed by an object or a nested array is taken as the answer
    itself: if it does not decode (truncated output, stray comma) that is
    the error, and no "[" inside it is tried.
    """
    first_error: Optional[str] = None
    start = text.find("[")
    while start != -1:
        try:
            value, _end = _decoder.raw_decode(text, start)
        except json.JSONDecodeError as exc:
            error = f"JSON parse error: {exc.msg} at char {exc.pos}"
            if _opens_structured_array(text, start):
                return None, error
            if first_error is None:
                first_error = error
            start = text.find("[", max(start + 1, exc.pos))
            continue
        if isinstance(value, list):
            return value, None
        start = text.find("[", start + 1)

    return None, first_error or "No JSON array found in response"


def _opens_structured_array(text: str, start: int) -> bool:
    rest = text[start + 1:].lstrip()
    return rest[:1] in ("{", "[")


def _first_present(item: Dict[str, Any], keys: Iterable[str]) -> Any:
    for k in keys:
        if item.get(k) is not None:
            return item[k]
    return None


def _coerce_score(raw: Any) -> Optional[float]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return min(100.0, max(0.0, value))


def parse_rerank_response(raw_text: Optional[str], shortlist_ids: Iterable[str]) -> RerankParseResult:
    """
    Extract {candidate_id -> AIAssessment} from model output.

    Whole-stage failures: empty text, no array, undecodable array.
    Item-level problems (not an object, no id, no numeric score) only drop
    that item. Ids outside the shortlist are ignored.
    """
    if raw_text is None or not raw_text.strip():
        return RerankFailed("Empty response text")

    array, error = find_first_json_array(raw_text)
    if array is None:
        return RerankFailed(error or "No JSON array found in response")

    allowed = set(shortlist_ids)
    assessments: Dict[str, AIAssessment] = {}
    skipped = 0
    ignored: List[str] = []

    for item in array:
        if not isinstance(item, dict):
            skipped += 1
            continue
        cid = _first_present(item, _ID_KEYS)
        score = _coerce_score(_first_present(item, _SCORE_KEYS))
        if cid is None or score is None:
            skipped += 1
            continue
        cid = str(cid).strip()
        if cid not in allowed:
            ignored.append(cid)
            continue
        if cid in assessments:
            # First assessment for an id wins
            continue
        reason = _first_present(item, _REASON_KEYS)
        reason = " ".join(str(reason).split()) if reason is not None else ""
        assessments[cid] = AIAssessment(score=score, reason=reason or DEFAULT_REASON)

    return RerankParsed(assessments=assessments, skipped_items=skipped, ignored_ids=ignored)
