"""
staffmatch/llm/prompt.py

Builds the reranking prompt from the target and the deterministic shortlist.

Constraints:
- Only non-null candidate attributes are rendered
- Notes are capped at NOTES_MAX_CHARS, document text arrives pre-truncated
- The model must answer with one JSON array and nothing else
"""
from __future__ import annotations

from typing import Mapping, Optional, Sequence

from staffmatch import config
from staffmatch.matching.types import RankedCandidate
from staffmatch.models import MatchTarget

SYSTEM_PROMPT = """\
You are a recruiting specialist at a Swiss staffing agency placing skilled trades \
(electrical, timber construction, landscaping, construction and similar).
Rate how well each candidate fits the open position using ALL data provided: \
trade/position, experience, distance, driving licence, internal quality rating, notes and profile text.
Criteria, most important first: professional qualification, experience, regional proximity, \
driving licence when required, internal quality rating, additional information.
Score scale: 85-100 very good, 70-84 good, 55-69 moderate, 40-54 weak, 0-39 not suitable.
Rate EVERY candidate, including those without a profile document.
Give a short, concrete reason (1-2 sentences, Swiss Standard German, no emojis, no filler).
Answer ONLY with a JSON array, one object per candidate:
[{"candidate_id": "<id>", "score": 75, "reason": "<short reason>"}]\
"""

_URGENCY_LABELS = {3: "immediately", 2: "soon", 1: "can wait"}

_EXPERIENCE_LABELS = {
    "more_than_3": "more than 3 years",
    "more_than_1": "1-3 years",
    "less_than_1": "less than 1 year",
    "senior": "senior (5+ years)",
    "mid": "intermediate (2-5 years)",
    "junior": "junior (0-2 years)",
}

_LICENSE_LABELS = {
    "b_car": "category B + own car",
    "be_car": "category BE + own car",
    "b": "category B (no car)",
    "be": "category BE (no car)",
    "none": "no driving licence",
}

_QUALITY_LABELS = {"A": "A (top)", "B": "B (ok)", "C": "C (flop)"}


def _truncate(text: str, max_chars: int) -> str:
    text = text.strip()
    return text if len(text) <= max_chars else text[:max_chars] + "..."


def describe_target(target: MatchTarget) -> str:
    lines = []
    if target.title:
        lines.append(f"Title: {target.title}")
    lines.append(f"Role: {target.role or 'not specified'}")
    if target.role_catalog:
        lines.append(f"Accepted roles: {', '.join(target.role_catalog)}")
    if target.company_name:
        lines.append(f"Company: {target.company_name}")
    if target.description:
        lines.append(f"Description: {_truncate(target.description, config.NOTES_MAX_CHARS)}")
    place = target.city or target.location_text or target.canton
    if place:
        lines.append(f"Location: {place}")
    if target.radius_km:
        lines.append(f"Search radius: {target.radius_km:g} km")
    if target.min_experience:
        lines.append(f"Minimum experience: {_EXPERIENCE_LABELS.get(target.min_experience, target.min_experience)}")
    if target.min_quality:
        lines.append(f"Minimum quality: {target.min_quality}")
    if target.driving_license:
        lines.append(f"Driving licence: {_LICENSE_LABELS.get(target.driving_license, target.driving_license)}")
    if target.urgency in _URGENCY_LABELS:
        lines.append(f"Urgency: {_URGENCY_LABELS[target.urgency]}")
    return "\n".join(lines)


def describe_candidate(index: int, ranked: RankedCandidate, document_text: Optional[str] = None) -> str:
    c = ranked.candidate
    lines = [f"{index}. {c.display_name} (ID: {c.id})"]
    if c.position_title:
        lines.append(f"   - Position: {c.position_title}")
    address = ", ".join(p for p in (c.street, c.postal_code, c.city, c.canton) if p)
    if address:
        lines.append(f"   - Address: {address}")
    if ranked.distance_km is not None:
        lines.append(f"   - Distance to position: {round(ranked.distance_km)} km")
    if c.experience_level:
        lines.append(f"   - Experience: {_EXPERIENCE_LABELS.get(c.experience_level, c.experience_level)}")
    if c.driving_license:
        lines.append(f"   - Driving licence: {_LICENSE_LABELS.get(c.driving_license, c.driving_license)}")
    if c.quality_tags:
        lines.append(f"   - Quality rating: {', '.join(_QUALITY_LABELS.get(t, t) for t in c.quality_tags)}")
    if c.quality_note:
        lines.append(f"   - Rating note: {_truncate(c.quality_note, config.NOTES_MAX_CHARS)}")
    if c.notes:
        lines.append(f"   - Notes: {_truncate(c.notes, config.NOTES_MAX_CHARS)}")
    if document_text:
        lines.append(f"   - Profile document: {document_text}")
    return "\n".join(lines)


def build_rerank_prompt(
        *,
        target: MatchTarget,
        shortlist: Sequence[RankedCandidate],
        documents: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Assemble the user-turn prompt. Returns a single string ready to send
    after SYSTEM_PROMPT.
    """
    documents = documents or {}
    blocks = [
        describe_candidate(i, r, documents.get(r.id))
        for i, r in enumerate(shortlist, start=1)
    ]
    n = len(blocks)
    candidates_str = "\n\n".join(blocks)

    prompt = f"""\
POSITION:
{describe_target(target)}

CANDIDATES TO RATE ({n}):
{candidates_str}

TASK:
Rate EACH of the {n} candidates with a score (0-100) and a short reason.
Answer with a JSON array containing all {n} candidates:
[{{"candidate_id": "<id from the data>", "score": 75, "reason": "<short reason>"}}]\
"""
    return prompt


def estimate_token_count(text: str) -> int:
    """Rough estimate, ~4 chars per token. Used for budget checks in tests."""
    return len(text) // 4
