from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from staffmatch import config
from staffmatch.config import MatchOptions
from staffmatch.errors import NotFoundError, ValidationError
from staffmatch.io.documents import HttpDocumentExtractor
from staffmatch.llm.client import default_client
from staffmatch.matching.profiles import PROFILES
from staffmatch.models import MatchMode, MatchTarget
from staffmatch.repository import JsonMatchRepository, default_data_dir
from staffmatch.service import MatchRequest, MatchResult, run_match

EXIT_VALIDATION = 2
EXIT_NOT_FOUND = 3


def print_human_summary(result: MatchResult) -> None:
    t = result.target
    print("\n=== staffmatch ===")
    label = t.title or t.role or t.id
    where = f" @ {t.location_text}" if t.location_text else ""
    print(f"Target: {label}{where}  [{t.id}]")
    print(f"Profile: {result.profile} | Method: {result.mode_applied.value}", end="")
    if result.mode_applied != result.mode_requested:
        print(f" (requested {result.mode_requested.value})", end="")
    print()
    if result.ai_failure:
        print(f"AI stage skipped: {result.ai_failure}")
    print(f"Pool: {result.pool_size} | Eligible: {result.eligible_count} | Returned: {len(result.candidates)}")
    print(f"Duration: {result.duration_ms}ms")

    if not result.candidates:
        print("\nNo matching candidates.")
        return

    print("\nMatches:")
    for idx, r in enumerate(result.candidates, start=1):
        c = r.candidate
        dist = f"{r.distance_km:.1f} km" if r.distance_km is not None else "distance unknown"
        title = f" ({c.position_title})" if c.position_title else ""
        print(f"\n{idx}) {c.display_name}{title}  [{c.id}]")
        print(f"   {dist} | score: {r.score:g}")
        if r.ai_score is not None:
            print(f"   ai: {r.ai_score:g} | {r.match_reason}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="staffmatch", description="Rank candidates for a vacancy or contact")
    parser.add_argument("--data-dir", type=str, default=str(default_data_dir()), help="Directory with candidates.json, targets.json, ...")
    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument("--target-id", type=str, help="Id of a target in targets.json")
    src.add_argument("--target", type=str, help="Path to a JSON file describing the target")
    parser.add_argument("--mode", choices=[m.value for m in MatchMode], default=MatchMode.POINTS.value)
    parser.add_argument("--profile", choices=sorted(PROFILES), default=None, help="Weight profile preset")
    parser.add_argument("--scope", type=str, default=None, help="Restrict the pool to one team id")
    parser.add_argument("--self", dest="self_id", type=str, default=None, help="Candidate id to exclude (peer search)")
    parser.add_argument("--top-k", type=int, default=None, help="Maximum number of results")
    parser.add_argument("--enforce-requirements", action="store_true", help="Hard-filter on target minimums")
    parser.add_argument("--json", action="store_true", help="Print JSON only (machine-readable)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging on stderr")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    repo = JsonMatchRepository(Path(args.data_dir))
    mode = MatchMode(args.mode)

    try:
        target = None
        if args.target:
            target_path = Path(args.target)
            if not target_path.exists():
                raise NotFoundError(f"Target file not found: {target_path}")
            try:
                raw_target = json.loads(target_path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                raise ValidationError(f"{target_path.name} is not valid JSON: {e.msg} (line {e.lineno})") from e
            target = MatchTarget.from_dict(raw_target)

        options = MatchOptions(
            profile=args.profile,
            scope_team_id=args.scope,
            self_candidate_id=args.self_id,
            result_limit=args.top_k,
            enforce_requirements=args.enforce_requirements,
        )
        ai_client = default_client() if mode == MatchMode.AI else None
        if mode == MatchMode.AI and not config.llm_configured():
            print(f"[staffmatch] No API key for provider '{config.STAFFMATCH_LLM_PROVIDER}'; using points ranking.", file=sys.stderr)

        result = run_match(
            MatchRequest(target=target, target_id=args.target_id, mode=mode, options=options),
            candidate_repo=repo,
            target_repo=repo,
            document_extractor=HttpDocumentExtractor() if mode == MatchMode.AI else None,
            ai_client=ai_client,
            geocoder=repo.geocoder(),
        )
    except ValidationError as e:
        print(f"[staffmatch] Invalid request: {e}", file=sys.stderr)
        return EXIT_VALIDATION
    except NotFoundError as e:
        print(f"[staffmatch] {e}", file=sys.stderr)
        return EXIT_NOT_FOUND

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_human_summary(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
