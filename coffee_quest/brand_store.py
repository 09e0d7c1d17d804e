"""Brand configuration store.

One process-wide BrandConfig, loaded once when the store is built and
rewritten wholesale on every update. Where the bytes live is up to the
injected backend:

    JsonFileBackend — a single JSON file, written atomically (temp file +
                      os.replace) so a reader never sees a partial file.
    MemoryBackend   — a dict; for tests and throwaway runs.

Update semantics: the supplied top-level keys replace the current values,
everything else is left as is. Unknown keys are ignored. There is no
cross-process locking; concurrent writers are last-write-wins.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from coffee_quest.models import BrandConfig

logger = logging.getLogger(__name__)

DEFAULT_BRAND_CONFIG: dict[str, Any] = {
    "brandName": "Roastery Realm Coffee",
    "market": "Urban Indian coffee drinkers in metros like Bengaluru, Mumbai, Delhi, Pune",
    "tone": "playful, warm, premium, coffee-nerdy but approachable",
    "theme": "coffee journeys, roastery realms, brew mastery, streaks, points",
    "defaultCampaignGoal": "increase-order-value",
    "primaryObjectives": [
        "increase-order-value",
        "drive-new-product-trial",
        "boost-social-shares",
    ],
    "rewardPool": [
        {
            "id": "discount10",
            "type": "discount",
            "label": "10% off any coffee bag",
            "description": "Gentle nudge to add one more bag to the cart.",
            "conditions": "Valid on coffee beans only, for 3 days.",
        },
        {
            "id": "discount15-new-origin",
            "type": "discount",
            "label": "15% off this month’s single-origin",
            "description": "Encourages upgrading to a more premium or new single-origin.",
            "conditions": "Applicable only on featured single-origin SKUs.",
        },
        {
            "id": "free-shipping-weekend",
            "type": "discount",
            "label": "Free shipping weekend",
            "description": "Removes friction for topping up subscriptions.",
            "conditions": "Valid on orders above ₹699, this weekend only.",
        },
        {
            "id": "guide-pourover",
            "type": "exclusive-content",
            "label": "Pour-over Mastery Mini Guide",
            "description": "Short, practical video + steps for perfect pour-over.",
            "conditions": "Unlocked after completing a discovery challenge.",
        },
        {
            "id": "brew-along-session",
            "type": "exclusive-content",
            "label": "Live Brew-Along Session invite",
            "description": "Join our barista for a live Zoom session on better home brewing.",
            "conditions": "Limited seats; requires RSVP from the quest screen.",
        },
        {
            "id": "early-single-origin",
            "type": "early-access",
            "label": "Early access to next single-origin drop",
            "description": "Reserve a limited micro-lot before it goes public.",
            "conditions": "Limited quantity, 48-hour early window.",
        },
        {
            "id": "badge-espresso-ace",
            "type": "badge",
            "label": "Espresso Ace badge",
            "description": "Profile badge for completing multiple espresso-related quests.",
            "conditions": "Purely cosmetic, shows on profile and leaderboard.",
        },
        {
            "id": "badge-south-indian-legend",
            "type": "badge",
            "label": "South Indian Legend badge",
            "description": "For users who complete a filter-coffee-centric quest series.",
            "conditions": "Unlock after 3 South Indian filter challenges.",
        },
        {
            "id": "comeback-boost",
            "type": "comeback",
            "label": "Welcome Back Boost",
            "description": "Extra loyalty points for returning after a break and completing a quest.",
            "conditions": "For users inactive for 21+ days.",
        },
        {
            "id": "refer-friend-bonus",
            "type": "other",
            "label": "Refer-a-friend bonus",
            "description": "Bonus points or discount unlocked if they share the quest and a friend orders.",
            "conditions": "Reward is granted when referred friend places an order above a threshold.",
        },
        {
            "id": "mystery-sampler",
            "type": "other",
            "label": "Mystery sampler add-on",
            "description": "Small sampler of a surprise coffee with their next order to spark discovery.",
            "conditions": "Available once per user per season.",
        },
    ],
    "guardrails": (
        "Avoid manipulative language. Do not guilt-trip the user. Stay respectful, "
        "friendly, and transparent about rewards and conditions."
    ),
}


class BrandConfigWriteError(RuntimeError):
    """Raised when the backend fails to persist the configuration."""


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

class ConfigBackend(Protocol):
    def load(self) -> dict[str, Any] | None: ...

    def save(self, data: dict[str, Any]) -> None: ...


class JsonFileBackend:
    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any] | None:
        """Return the stored dict, or None when there is no file yet."""
        if not self._path.is_file():
            return None
        data = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self._path} does not hold a JSON object")
        return data

    def save(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self._path.parent,
            prefix=self._path.name + ".",
            suffix=".tmp",
            delete=False,
        ) as fh:
            tmp = Path(fh.name)
            fh.write(json.dumps(data, indent=2, ensure_ascii=False) + "\n")
        try:
            os.replace(tmp, self._path)
        finally:
            tmp.unlink(missing_ok=True)


class MemoryBackend:
    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self.data = json.loads(json.dumps(data)) if data is not None else None

    def load(self) -> dict[str, Any] | None:
        return json.loads(json.dumps(self.data)) if self.data is not None else None

    def save(self, data: dict[str, Any]) -> None:
        self.data = json.loads(json.dumps(data))


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

def _known_keys(fields: dict[str, Any]) -> dict[str, Any]:
    """Keep only keys BrandConfig knows, normalised to wire names."""
    by_name = {}
    for name, info in BrandConfig.model_fields.items():
        by_name[name] = info.alias or name
        by_name[info.alias or name] = info.alias or name
    return {by_name[k]: v for k, v in fields.items() if k in by_name}


class BrandConfigStore:
    """Holds the current BrandConfig and persists updates through a backend."""

    def __init__(self, backend: ConfigBackend) -> None:
        self._backend = backend
        self._config = self._load()

    def _load(self) -> BrandConfig:
        defaults = BrandConfig.model_validate(DEFAULT_BRAND_CONFIG)
        try:
            stored = self._backend.load()
        except (OSError, ValueError) as e:
            logger.warning("Failed to load brand config, using defaults: %s", e)
            return defaults
        if stored is None:
            logger.info("No stored brand config, using defaults")
            return defaults

        merged = {**defaults.to_json(), **_known_keys(stored)}
        try:
            config = BrandConfig.model_validate(merged)
        except ValidationError as e:
            logger.warning("Stored brand config is invalid, using defaults: %s", e)
            return defaults
        logger.info("Loaded brand config for %s", config.brand_name)
        return config

    def get(self) -> BrandConfig:
        return self._config.model_copy(deep=True)

    def update(self, fields: dict[str, Any]) -> BrandConfig:
        """Merge the supplied top-level keys, persist, and return the result.

        Raises ValidationError for bad values and BrandConfigWriteError when the
        backend cannot save. The in-memory config only changes after a
        successful save.
        """
        merged = {**self._config.to_json(), **_known_keys(fields)}
        config = BrandConfig.model_validate(merged)
        try:
            self._backend.save(config.to_json())
        except OSError as e:
            logger.error("Failed to save brand config: %s", e)
            raise BrandConfigWriteError(f"Failed to save brand config: {e}") from e
        self._config = config
        logger.info("Saved brand config (%s)", ", ".join(sorted(_known_keys(fields))) or "no changes")
        return self.get()
