"""Quest generation — one user in, one Experience out.

Flow for generate_experience():
  1. Resolve the campaign goal (request goal, else the brand default).
  2. Build the rule-based experience; it is the answer when no LLM is
     configured and the source of named defaults otherwise.
  3. Render the prompt and call the provider.
  4. Parse the reply as a JSON object and fill any missing field from the
     rule-based defaults.

Provider failures (LLMError) and unreadable replies (ResponseFormatError)
propagate to the caller.
"""

from __future__ import annotations

import logging

from coffee_quest import rules
from coffee_quest.llm import LLM
from coffee_quest.models import CAMPAIGN_GOALS, BrandConfig, ChannelAssets, Experience, UserProfile
from coffee_quest.prompts import channel_assets_prompt, experience_prompt
from coffee_quest.schema import coerce_channel_assets, coerce_experience, parse_json_object

logger = logging.getLogger(__name__)


def resolve_goal(goal: str | None, brand: BrandConfig) -> str:
    goal = (goal or "").strip() or brand.default_campaign_goal
    if goal not in CAMPAIGN_GOALS:
        # passed through to the prompt as-is
        logger.info("Custom campaign goal %r", goal)
    return goal


async def generate_experience(
    *,
    user: UserProfile,
    brand: BrandConfig,
    goal: str | None = None,
    llm: LLM | None = None,
) -> Experience:
    """Personalise today's quest for `user`."""
    goal = resolve_goal(goal, brand)
    defaults = rules.build_experience(user)
    if llm is None:
        logger.debug("rule-based experience user=%s goal=%s", user.name, goal)
        return defaults

    system, prompt = experience_prompt(user, goal, brand)
    text = await llm("experience", prompt, system=system)
    data = parse_json_object(text)
    return coerce_experience(data, defaults)


async def generate_channel_assets(
    *,
    experience: Experience,
    brand: BrandConfig,
    llm: LLM | None = None,
) -> ChannelAssets:
    """Derive email/push/in-app copy and a reward config from an experience."""
    defaults = rules.build_channel_assets(experience, brand_name=brand.brand_name)
    if llm is None:
        return defaults

    system, prompt = channel_assets_prompt(experience, brand)
    text = await llm("channel_assets", prompt, system=system)
    data = parse_json_object(text)
    return coerce_channel_assets(data, defaults)
