import json
from pathlib import Path

import pytest

from betscope.cache.store import ResearchStore
from betscope.config import Settings
from fakes import RESEARCH_JSON


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(data_dir=tmp_path / "data")


@pytest.fixture
def store(tmp_path: Path) -> ResearchStore:
    return ResearchStore(tmp_path / "research_cache")


@pytest.fixture
def research_json() -> str:
    return json.dumps(RESEARCH_JSON)
