from staffmatch.config import MatchOptions
from staffmatch.matching.pool import filter_pool
from staffmatch.matching.profiles import CONTACT_POINTS, TEAM_PEERS
from staffmatch.models import CandidateProfile, MatchTarget


def _make_candidate(cid, **overrides):
    base = dict(
        id=cid,
        first_name="Test",
        last_name=cid.upper(),
        position_title="Elektroinstallateur",
        activity="active",
        team_id="t-1",
    )
    base.update(overrides)
    return CandidateProfile(**base)


def _make_target(**overrides):
    base = dict(id="vac-1", role="Elektroinstallateur")
    base.update(overrides)
    return MatchTarget(**base)


def _ids(candidates):
    return [c.id for c in candidates]


def test_only_active_candidates():
    pool = [_make_candidate("a"), _make_candidate("b", activity="inactive"), _make_candidate("c", activity=None)]
    assert _ids(filter_pool(pool, _make_target(), CONTACT_POINTS, MatchOptions())) == ["a"]


def test_scope_limits_to_team():
    pool = [_make_candidate("a"), _make_candidate("b", team_id="t-2")]
    out = filter_pool(pool, _make_target(), CONTACT_POINTS, MatchOptions(scope_team_id="t-2"))
    assert _ids(out) == ["b"]


def test_excluded_and_assigned_ids_removed():
    pool = [_make_candidate("a"), _make_candidate("b"), _make_candidate("c")]
    options = MatchOptions(exclude_candidate_ids=frozenset({"a"}))
    out = filter_pool(pool, _make_target(), CONTACT_POINTS, options, assigned_ids=["c"])
    assert _ids(out) == ["b"]


def test_self_candidate_removed():
    pool = [_make_candidate("a"), _make_candidate("me")]
    out = filter_pool(pool, _make_target(), CONTACT_POINTS, MatchOptions(self_candidate_id="me"))
    assert _ids(out) == ["a"]


def test_profile_requires_document():
    pool = [_make_candidate("a"), _make_candidate("b", profile_document_url="https://x/b.pdf")]
    assert _ids(filter_pool(pool, _make_target(), TEAM_PEERS, MatchOptions())) == ["b"]


def test_require_document_option_overrides_profile():
    pool = [_make_candidate("a"), _make_candidate("b", profile_document_url="https://x/b.pdf")]
    assert _ids(filter_pool(pool, _make_target(), TEAM_PEERS, MatchOptions(require_document=False))) == ["a", "b"]
    assert _ids(filter_pool(pool, _make_target(), CONTACT_POINTS, MatchOptions(require_document=True))) == ["b"]


def test_requirements_ignored_unless_enforced():
    pool = [_make_candidate("a", quality_tags=("C",))]
    target = _make_target(min_quality="A")
    assert _ids(filter_pool(pool, target, CONTACT_POINTS, MatchOptions())) == ["a"]


def test_enforced_requirements():
    pool = [
        _make_candidate("ok", quality_tags=("B",), experience_level="more_than_3", driving_license="be_car"),
        _make_candidate("low_quality", quality_tags=("C",), experience_level="more_than_3", driving_license="b"),
        _make_candidate("junior", quality_tags=("A",), experience_level="less_than_1", driving_license="b"),
        _make_candidate("no_license", quality_tags=("A",), experience_level="senior"),
        _make_candidate("legacy_senior", quality_tags=("A",), experience_level="senior", driving_license="b_car"),
    ]
    target = _make_target(min_quality="B", min_experience="more_than_1", driving_license="b")
    out = filter_pool(pool, target, CONTACT_POINTS, MatchOptions(enforce_requirements=True))
    assert _ids(out) == ["ok", "legacy_senior"]


def test_be_license_not_satisfied_by_b():
    pool = [_make_candidate("b_only", driving_license="b_car"), _make_candidate("be", driving_license="be")]
    target = _make_target(driving_license="be")
    out = filter_pool(pool, target, CONTACT_POINTS, MatchOptions(enforce_requirements=True))
    assert _ids(out) == ["be"]


def test_duplicates_dropped_and_order_kept():
    pool = [_make_candidate("b"), _make_candidate("a"), _make_candidate("b")]
    assert _ids(filter_pool(pool, _make_target(), CONTACT_POINTS, MatchOptions())) == ["b", "a"]
