"""Environment configuration.

Values come from the process environment, with a `.env` file at the repo root
loaded first. Nothing here is persisted; the brand configuration lives in the
brand store, not in the environment.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from coffee_quest.llm import DEFAULT_BASE_URL, DEFAULT_MODEL

ROOT = Path(__file__).parent.parent
DEFAULT_BRAND_CONFIG_PATH = ROOT / "data" / "brand-config.json"

load_dotenv(ROOT / ".env")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw) if raw.strip() else default
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    try:
        return float(raw) if raw.strip() else default
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class Settings:
    llm_api_key: str = ""
    llm_base_url: str = DEFAULT_BASE_URL
    llm_model: str = DEFAULT_MODEL
    llm_timeout: float = 60.0
    brand_config_path: Path = DEFAULT_BRAND_CONFIG_PATH
    batch_concurrency: int = 1
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


def load_settings() -> Settings:
    origins = os.getenv("CORS_ORIGINS", "*")
    return Settings(
        llm_api_key=os.getenv("LLM_API_KEY") or os.getenv("GROQ_API_KEY", ""),
        llm_base_url=os.getenv("LLM_BASE_URL", DEFAULT_BASE_URL),
        llm_model=os.getenv("LLM_MODEL", DEFAULT_MODEL),
        llm_timeout=_float_env("LLM_TIMEOUT", 60.0),
        brand_config_path=Path(os.getenv("BRAND_CONFIG_PATH", str(DEFAULT_BRAND_CONFIG_PATH))),
        batch_concurrency=max(1, _int_env("BATCH_CONCURRENCY", 1)),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
    )
