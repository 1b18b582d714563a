import json
import shutil
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"

DATA_FILES = ("candidates.json", "targets.json", "assignments.json", "locations.json")


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def load_text(fixtures_dir):
    """load_text("file.ext") -> str"""
    def _load(name: str) -> str:
        return (fixtures_dir / name).read_text(encoding="utf-8")
    return _load


@pytest.fixture
def load_json(load_text):
    """load_json("file.json") -> parsed JSON, built on load_text."""
    def _load(name: str):
        return json.loads(load_text(name))
    return _load


@pytest.fixture
def data_dir(tmp_path: Path, fixtures_dir: Path) -> Path:
    """A writable copy of the JSON data directory used by JsonMatchRepository."""
    for name in DATA_FILES:
        shutil.copy(fixtures_dir / name, tmp_path / name)
    return tmp_path
