import logging
import threading
import time

from staffmatch.errors import UpstreamDependencyError
from staffmatch.llm.parser import DEFAULT_REASON
from staffmatch.llm.reranker import rerank_shortlist
from staffmatch.matching.types import RankedCandidate, ScoreBreakdown
from staffmatch.models import CandidateProfile, MatchTarget

TARGET = MatchTarget(id="vac-1", role="Elektroinstallateur")


class FakeClient:
    def __init__(self, answer=None, error=None, delay=0.0):
        self.answer = answer
        self.error = error
        self.delay = delay
        self.calls = []

    def complete(self, prompt, *, timeout):
        self.calls.append((prompt, timeout))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.answer


def _make_shortlist(*ids):
    return [
        RankedCandidate(
            candidate=CandidateProfile(id=cid, first_name="T", last_name=cid.upper()),
            distance_km=float(i),
            breakdown=ScoreBreakdown(quality=float(10 - i)),
        )
        for i, cid in enumerate(ids)
    ]


def test_success_reorders_by_ai_score():
    shortlist = _make_shortlist("a", "b", "c")
    client = FakeClient('[{"candidate_id": "c", "score": 90, "reason": "top"}, {"candidate_id": "a", "score": 50}]')

    outcome = rerank_shortlist(target=TARGET, shortlist=shortlist, client=client, timeout_seconds=5)

    assert outcome.applied
    assert outcome.failure is None
    assert [r.id for r in outcome.candidates] == ["c", "a", "b"]
    b = outcome.candidates[2]
    assert b.ai_score == 0.0
    assert b.match_reason == DEFAULT_REASON
    # Deterministic fields survive the merge
    assert outcome.candidates[0].breakdown == shortlist[2].breakdown


def test_equal_ai_scores_keep_deterministic_order():
    shortlist = _make_shortlist("a", "b", "c")
    client = FakeClient("[" + ",".join(f'{{"candidate_id": "{x}", "score": 70}}' for x in "cba") + "]")

    outcome = rerank_shortlist(target=TARGET, shortlist=shortlist, client=client, timeout_seconds=5)
    assert [r.id for r in outcome.candidates] == ["a", "b", "c"]


def test_documents_reach_the_prompt():
    client = FakeClient('[{"candidate_id": "a", "score": 1}]')
    rerank_shortlist(
        target=TARGET,
        shortlist=_make_shortlist("a"),
        client=client,
        documents={"a": "Lehrabschluss 2015"},
        timeout_seconds=5,
    )
    prompt, timeout = client.calls[0]
    assert "Lehrabschluss 2015" in prompt
    assert timeout <= 5


def test_malformed_output_falls_back_unchanged(caplog):
    shortlist = _make_shortlist("a", "b")
    client = FakeClient("Leider kann ich das nicht beurteilen.")

    with caplog.at_level(logging.WARNING, logger="staffmatch.llm.reranker"):
        outcome = rerank_shortlist(target=TARGET, shortlist=shortlist, client=client, timeout_seconds=5)

    assert not outcome.applied
    assert outcome.candidates == shortlist
    assert "No JSON array" in outcome.failure
    assert "vac-1" in caplog.text


def test_upstream_error_falls_back():
    shortlist = _make_shortlist("a")
    client = FakeClient(error=UpstreamDependencyError("OpenAI API error: RateLimitError", stage="ai"))

    outcome = rerank_shortlist(target=TARGET, shortlist=shortlist, client=client, timeout_seconds=5)
    assert not outcome.applied
    assert outcome.candidates == shortlist
    assert "RateLimitError" in outcome.failure


def test_unexpected_client_exception_falls_back():
    client = FakeClient(error=RuntimeError("boom"))
    outcome = rerank_shortlist(target=TARGET, shortlist=_make_shortlist("a"), client=client, timeout_seconds=5)
    assert not outcome.applied
    assert "RuntimeError" in outcome.failure


def test_slow_client_times_out():
    client = FakeClient('[{"candidate_id": "a", "score": 99}]', delay=1.0)

    started = time.monotonic()
    outcome = rerank_shortlist(target=TARGET, shortlist=_make_shortlist("a"), client=client, timeout_seconds=0.1)

    assert time.monotonic() - started < 0.9
    assert not outcome.applied
    assert "exceeded" in outcome.failure


def test_deadline_already_passed_skips_call():
    client = FakeClient('[{"candidate_id": "a", "score": 99}]')
    outcome = rerank_shortlist(
        target=TARGET,
        shortlist=_make_shortlist("a"),
        client=client,
        timeout_seconds=5,
        deadline=time.monotonic() - 1,
    )
    assert not outcome.applied
    assert "deadline" in outcome.failure
    assert client.calls == []


def test_deadline_caps_client_timeout():
    client = FakeClient('[{"candidate_id": "a", "score": 99}]')
    rerank_shortlist(
        target=TARGET,
        shortlist=_make_shortlist("a"),
        client=client,
        timeout_seconds=30,
        deadline=time.monotonic() + 2,
    )
    assert client.calls[0][1] <= 2


def test_empty_shortlist_is_not_sent():
    client = FakeClient("[]")
    outcome = rerank_shortlist(target=TARGET, shortlist=[], client=client, timeout_seconds=5)
    assert not outcome.applied
    assert outcome.candidates == []
    assert client.calls == []


def test_client_runs_off_the_calling_thread():
    seen = []

    class ThreadRecordingClient:
        def complete(self, prompt, *, timeout):
            seen.append(threading.current_thread().name)
            return '[{"candidate_id": "a", "score": 1}]'

    rerank_shortlist(target=TARGET, shortlist=_make_shortlist("a"), client=ThreadRecordingClient(), timeout_seconds=5)
    assert seen and seen[0].startswith("staffmatch-ai")
