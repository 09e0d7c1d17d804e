"""Core domain models.

Every record that crosses an HTTP or provider boundary is one of these types.
Python attributes are snake_case; the JSON wire format is camelCase, and both
spellings are accepted on input.
"""

from __future__ import annotations

from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RewardType = Literal[
    "discount",
    "exclusive-content",
    "early-access",
    "badge",
    "comeback",
    "other",
]

REWARD_TYPES: tuple[str, ...] = get_args(RewardType)

CAMPAIGN_GOALS: tuple[str, ...] = (
    "increase-order-value",
    "drive-new-product-trial",
    "boost-social-shares",
    "collect-preferences",
    "reactivate-lapsed-user",
)

DEFAULT_SEGMENT = "Urban Millennial Professional"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        """Dump using wire (camelCase) names."""
        return self.model_dump(by_alias=True, mode="json")


# ---------------------------------------------------------------------------
# User profile
# ---------------------------------------------------------------------------

class Preferences(CamelModel):
    roast: str = "medium"
    fav_drinks: list[str] = Field(default_factory=lambda: ["latte"])
    sweetness: str = "medium"
    reward_preference: str = "discount"
    brew_methods: list[str] = Field(default_factory=lambda: ["french-press"])


class Behavior(CamelModel):
    avg_monthly_orders: int | float = 0
    last_order_days_ago: int | float = 0
    typical_cart_value: int | float = 0


class Loyalty(CamelModel):
    level: int = 1
    points: int = 0
    streak_days: int = 0


class UserProfile(CamelModel):
    """A customer as supplied by the caller. Never mutated."""

    id: str | None = None
    name: str
    city: str = ""
    segment: str = DEFAULT_SEGMENT
    preferences: Preferences = Field(default_factory=Preferences)
    behavior: Behavior = Field(default_factory=Behavior)
    loyalty: Loyalty = Field(default_factory=Loyalty)

    def summary(self) -> UserSummary:
        return UserSummary(id=self.id, name=self.name, city=self.city, segment=self.segment)


class UserSummary(CamelModel):
    id: str | None = None
    name: str
    city: str = ""
    segment: str = ""


# ---------------------------------------------------------------------------
# Quest experience
# ---------------------------------------------------------------------------

class Challenge(CamelModel):
    title: str
    description: str
    success_criteria: str
    xp_reward: int
    bonus_points: int


class Reward(CamelModel):
    type: RewardType
    label: str
    code: str | None = None
    description: str
    conditions: str


class Progress(CamelModel):
    level: int
    points: int
    streak_days: int


class Experience(CamelModel):
    """One generated quest bundle. Produced per request, never persisted."""

    user: UserSummary
    narrative: str
    challenge: Challenge
    reward: Reward
    progress: Progress


# ---------------------------------------------------------------------------
# Channel assets
# ---------------------------------------------------------------------------

class EmailAsset(CamelModel):
    subject: str
    preview_text: str
    body_text: str


class PushAsset(CamelModel):
    title: str
    body: str


class InAppAsset(CamelModel):
    heading: str
    body: str
    cta_label: str


class RewardConfig(CamelModel):
    internal_name: str
    type: RewardType
    value: str
    conditions: str
    expiry_days: int


class ChannelAssets(CamelModel):
    """Marketing copy derived from an already generated experience."""

    email: EmailAsset
    push: PushAsset
    in_app: InAppAsset
    reward_config: RewardConfig


# ---------------------------------------------------------------------------
# Brand configuration
# ---------------------------------------------------------------------------

class RewardPoolItem(CamelModel):
    id: str
    type: RewardType
    label: str
    description: str = ""
    conditions: str = ""


class BrandConfig(CamelModel):
    """Tone, theme and reward settings applied to every generation."""

    brand_name: str
    market: str = ""
    tone: str = ""
    theme: str = ""
    default_campaign_goal: str = "increase-order-value"
    primary_objectives: list[str] = Field(default_factory=list)
    reward_pool: list[RewardPoolItem] = Field(default_factory=list)
    guardrails: str = ""
