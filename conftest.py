import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend.app import create_app
from backend.config import Settings
from coffee_quest.brand_store import BrandConfigStore, JsonFileBackend


class StubLLM:
    """Scripted LLM: returns (or raises) queued replies in order.

    The last reply repeats once the queue is exhausted. Every call is recorded
    as (stage, prompt, system) in `calls`.
    """

    def __init__(self, *replies: str | dict | Exception) -> None:
        self._replies = list(replies)
        self.calls: list[tuple[str, str, str]] = []

    async def __call__(self, stage: str, prompt: str, system: str = "") -> str:
        self.calls.append((stage, prompt, system))
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


@pytest.fixture
def brand_config_path(tmp_path: Path) -> Path:
    return tmp_path / "brand-config.json"


@pytest.fixture
def brand_store(brand_config_path: Path) -> BrandConfigStore:
    return BrandConfigStore(JsonFileBackend(brand_config_path))


@pytest.fixture
def make_client(brand_store: BrandConfigStore, brand_config_path: Path):
    """Build a TestClient around an app wired to `llm` (None = rule-based)."""

    def _make(llm=None, batch_concurrency: int = 1) -> TestClient:
        settings = Settings(brand_config_path=brand_config_path, batch_concurrency=batch_concurrency)
        return TestClient(create_app(settings=settings, store=brand_store, llm=llm))

    return _make
