"""Provider response validation.

The provider is asked for a JSON object of a known shape, but nothing stops it
from returning prose, fenced JSON, missing keys or values of the wrong type.
This module is the trust boundary: text in, typed models out.

Two failure levels:

    ResponseFormatError  — the text is empty, is not JSON, or is not a JSON
                           object. Nothing usable; the caller surfaces a 5xx.
    field-level problems — an absent, empty or wrongly-typed field is replaced
                           by the same field of a fully-populated default
                           model, and the substitution is logged.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from coffee_quest.models import (
    REWARD_TYPES,
    ChannelAssets,
    Challenge,
    EmailAsset,
    Experience,
    InAppAsset,
    Progress,
    PushAsset,
    Reward,
    RewardConfig,
)

logger = logging.getLogger(__name__)

_MISSING = object()


class ResponseFormatError(ValueError):
    """Raised when provider output cannot be read as a JSON object."""


# ---------------------------------------------------------------------------
# Text → dict
# ---------------------------------------------------------------------------

def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    cleaned = re.sub(r"^```(?:json)?\s*", "", cleaned)
    cleaned = re.sub(r"\s*```$", "", cleaned)
    return cleaned


def parse_json_object(text: str | None) -> dict[str, Any]:
    """Parse provider output as a JSON object, stripping markdown fences.

    Falls back to the outermost ``{...}`` span when the object is wrapped in
    prose.
    """
    if not text or not text.strip():
        raise ResponseFormatError("Provider returned an empty response")

    cleaned = _strip_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", cleaned, re.DOTALL)
        if not match:
            raise ResponseFormatError("Provider response is not valid JSON") from None
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ResponseFormatError(f"Provider response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ResponseFormatError(
            f"Provider response must be a JSON object, got {type(data).__name__}"
        )
    return data


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------

class _Filler:
    """Reads fields from untrusted dicts, recording every default it applies."""

    def __init__(self) -> None:
        self.filled: list[str] = []

    def section(self, data: dict, key: str) -> dict:
        value = data.get(key)
        return value if isinstance(value, dict) else {}

    def text(self, data: dict, key: str, default: str, path: str) -> str:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        self.filled.append(path)
        return default

    def integer(self, data: dict, key: str, default: int, path: str) -> int:
        value = data.get(key)
        if isinstance(value, bool):
            value = None
        elif isinstance(value, float) and value.is_integer():
            value = int(value)
        elif isinstance(value, str) and re.fullmatch(r"\s*-?\d+\s*", value):
            value = int(value)
        if isinstance(value, int):
            return value
        self.filled.append(path)
        return default

    def choice(self, data: dict, key: str, allowed: tuple[str, ...], default: str, path: str) -> str:
        value = data.get(key)
        if isinstance(value, str) and value.strip().lower() in allowed:
            return value.strip().lower()
        self.filled.append(path)
        return default

    def nullable_text(self, data: dict, key: str, default: str | None, path: str) -> str | None:
        # An explicit null means "no code"; an absent key takes the default.
        value = data.get(key, _MISSING)
        if value is None:
            return None
        if isinstance(value, str) and value.strip():
            return value.strip()
        self.filled.append(path)
        return default

    def report(self, what: str) -> None:
        if self.filled:
            logger.warning(
                "%s response missing or invalid fields, defaults applied: %s",
                what, ", ".join(self.filled),
            )


def _first_key(data: dict, *keys: str) -> str:
    """Return the first of `keys` present in `data` (wire or attribute spelling)."""
    for key in keys:
        if key in data:
            return key
    return keys[0]


def coerce_experience(data: dict[str, Any], defaults: Experience) -> Experience:
    """Build an Experience from provider output, filling gaps from `defaults`.

    The user summary always comes from `defaults`: the provider never gets to
    rename the customer.
    """
    f = _Filler()

    raw_challenge = f.section(data, "challenge")
    dc = defaults.challenge
    challenge = Challenge(
        title=f.text(raw_challenge, "title", dc.title, "challenge.title"),
        description=f.text(raw_challenge, "description", dc.description, "challenge.description"),
        success_criteria=f.text(
            raw_challenge, _first_key(raw_challenge, "successCriteria", "success_criteria"),
            dc.success_criteria, "challenge.successCriteria",
        ),
        xp_reward=f.integer(
            raw_challenge, _first_key(raw_challenge, "xpReward", "xp_reward"),
            dc.xp_reward, "challenge.xpReward",
        ),
        bonus_points=f.integer(
            raw_challenge, _first_key(raw_challenge, "bonusPoints", "bonus_points"),
            dc.bonus_points, "challenge.bonusPoints",
        ),
    )

    raw_reward = f.section(data, "reward")
    dr = defaults.reward
    reward = Reward(
        type=f.choice(raw_reward, "type", REWARD_TYPES, dr.type, "reward.type"),
        label=f.text(raw_reward, "label", dr.label, "reward.label"),
        code=f.nullable_text(raw_reward, "code", dr.code, "reward.code"),
        description=f.text(raw_reward, "description", dr.description, "reward.description"),
        conditions=f.text(raw_reward, "conditions", dr.conditions, "reward.conditions"),
    )

    raw_progress = f.section(data, "progress")
    dp = defaults.progress
    progress = Progress(
        level=f.integer(raw_progress, "level", dp.level, "progress.level"),
        points=f.integer(raw_progress, "points", dp.points, "progress.points"),
        streak_days=f.integer(
            raw_progress, _first_key(raw_progress, "streakDays", "streak_days"),
            dp.streak_days, "progress.streakDays",
        ),
    )

    narrative = f.text(data, "narrative", defaults.narrative, "narrative")
    f.report("Experience")

    return Experience(
        user=defaults.user,
        narrative=narrative,
        challenge=challenge,
        reward=reward,
        progress=progress,
    )


def coerce_channel_assets(data: dict[str, Any], defaults: ChannelAssets) -> ChannelAssets:
    """Build ChannelAssets from provider output, filling gaps from `defaults`."""
    f = _Filler()

    raw_email = f.section(data, "email")
    de = defaults.email
    email = EmailAsset(
        subject=f.text(raw_email, "subject", de.subject, "email.subject"),
        preview_text=f.text(
            raw_email, _first_key(raw_email, "previewText", "preview_text"),
            de.preview_text, "email.previewText",
        ),
        body_text=f.text(
            raw_email, _first_key(raw_email, "bodyText", "body_text"),
            de.body_text, "email.bodyText",
        ),
    )

    raw_push = f.section(data, "push")
    push = PushAsset(
        title=f.text(raw_push, "title", defaults.push.title, "push.title"),
        body=f.text(raw_push, "body", defaults.push.body, "push.body"),
    )

    raw_in_app = f.section(data, _first_key(data, "inApp", "in_app"))
    di = defaults.in_app
    in_app = InAppAsset(
        heading=f.text(raw_in_app, "heading", di.heading, "inApp.heading"),
        body=f.text(raw_in_app, "body", di.body, "inApp.body"),
        cta_label=f.text(
            raw_in_app, _first_key(raw_in_app, "ctaLabel", "cta_label"),
            di.cta_label, "inApp.ctaLabel",
        ),
    )

    raw_config = f.section(data, _first_key(data, "rewardConfig", "reward_config"))
    drc = defaults.reward_config
    reward_config = RewardConfig(
        internal_name=f.text(
            raw_config, _first_key(raw_config, "internalName", "internal_name"),
            drc.internal_name, "rewardConfig.internalName",
        ),
        type=f.choice(raw_config, "type", REWARD_TYPES, drc.type, "rewardConfig.type"),
        value=f.text(raw_config, "value", drc.value, "rewardConfig.value"),
        conditions=f.text(raw_config, "conditions", drc.conditions, "rewardConfig.conditions"),
        expiry_days=f.integer(
            raw_config, _first_key(raw_config, "expiryDays", "expiry_days"),
            drc.expiry_days, "rewardConfig.expiryDays",
        ),
    )

    f.report("Channel assets")
    return ChannelAssets(email=email, push=push, in_app=in_app, reward_config=reward_config)
