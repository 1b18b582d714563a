from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from staffmatch.errors import NotFoundError, ValidationError
from staffmatch.geo import PostalCodeEntry, PostalCodeGeocoder
from staffmatch.models import CandidateProfile, MatchTarget


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    raw_text = path.read_text(encoding="utf-8").strip()
    if not raw_text:
        return default
    try:
        return json.loads(raw_text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"{path.name} is not valid JSON: {e.msg} (line {e.lineno})") from e


def _as_records(data: Any, name: str) -> List[Dict[str, Any]]:
    # Accept either a list of records or {"<id>": {...}} keyed by id
    if isinstance(data, dict):
        return [dict(v, id=v.get("id", k)) if isinstance(v, dict) else v for k, v in data.items()]
    if isinstance(data, list):
        return list(data)
    raise ValidationError(f"{name} must hold a JSON list or object.")


class JsonMatchRepository:
    """
    Local JSON data for the matching engine.

    Layout:
      <base_dir>/
        candidates.json  -> [ {CandidateProfile...}, ... ]
        targets.json     -> [ {MatchTarget...}, ... ]
        assignments.json -> { "<target_id>": ["<candidate_id>", ...], ... }
        locations.json   -> [ {"postal_code", "name", "latitude", "longitude", "canton"}, ... ]

    Missing files count as empty.
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)
        self.candidates_path = self.base_dir / "candidates.json"
        self.targets_path = self.base_dir / "targets.json"
        self.assignments_path = self.base_dir / "assignments.json"
        self.locations_path = self.base_dir / "locations.json"

    def _all_candidates(self) -> List[CandidateProfile]:
        records = _as_records(_read_json(self.candidates_path, []), self.candidates_path.name)
        return [CandidateProfile.from_dict(r) for r in records]

    def load_candidates(self, scope: Optional[str] = None) -> List[CandidateProfile]:
        candidates = self._all_candidates()
        if scope is None:
            return candidates
        scoped = [c for c in candidates if c.team_id == scope]
        if not scoped:
            raise NotFoundError(f"Unknown team scope '{scope}'.")
        return scoped

    def assigned_candidate_ids(self, target_id: str) -> List[str]:
        data = _read_json(self.assignments_path, {})
        if not isinstance(data, dict):
            raise ValidationError(f"{self.assignments_path.name} must hold a JSON object.")
        return [str(cid) for cid in data.get(target_id) or []]

    def get_target(self, target_id: str) -> MatchTarget:
        records = _as_records(_read_json(self.targets_path, []), self.targets_path.name)
        for r in records:
            if str(r.get("id")) == target_id:
                return MatchTarget.from_dict(r)
        raise NotFoundError(f"Target '{target_id}' not found.")

    def geocoder(self) -> Optional[PostalCodeGeocoder]:
        records = _read_json(self.locations_path, [])
        if not records:
            return None
        entries = [
            PostalCodeEntry(
                postal_code=str(r["postal_code"]),
                name=r["name"],
                latitude=float(r["latitude"]),
                longitude=float(r["longitude"]),
                canton=r.get("canton"),
            )
            for r in records
        ]
        return PostalCodeGeocoder(entries)


def default_data_dir() -> Path:
    return Path(".staffmatch")
