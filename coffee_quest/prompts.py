"""Handlebars prompt rendering for quest and channel-asset generation."""

import json
from collections.abc import Callable
from typing import Any

import pybars

from coffee_quest.models import BrandConfig, Experience, UserProfile


_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


# ── Templates ────────────────────────────────────────────

SYSTEM_TEMPLATE = """\
You are the gamification copywriter for {{{brand.brandName}}}.
Market: {{{brand.market}}}
Tone: {{{brand.tone}}}
Theme: {{{brand.theme}}}
Guardrails: {{{brand.guardrails}}}
Always answer with a single JSON object and nothing else."""

EXPERIENCE_TEMPLATE = """\
Design today's Coffee Quest for this customer.

Campaign goal: {{{goal}}}
Brand objectives: {{{objectives}}}

Customer profile (JSON):
{{{user_json}}}

Pick the reward from this pool when one fits (JSON):
{{{reward_pool_json}}}

Return JSON with exactly this shape:
{
  "narrative": "<2-4 sentences of story, addressed to {{{user.name}}}>",
  "challenge": {
    "title": "<short title>",
    "description": "<what to do today>",
    "successCriteria": "<observable completion condition>",
    "xpReward": <integer>,
    "bonusPoints": <integer>
  },
  "reward": {
    "type": "discount | exclusive-content | early-access | badge | comeback | other",
    "label": "<short label>",
    "code": "<promo code or null>",
    "description": "<one or two sentences>",
    "conditions": "<terms>"
  },
  "progress": {
    "level": {{user.loyalty.level}},
    "points": <current points plus bonusPoints>,
    "streakDays": <current streak plus one>
  }
}"""

CHANNEL_ASSETS_TEMPLATE = """\
Turn this generated quest into ready-to-send marketing copy.

Quest (JSON):
{{{experience_json}}}

Return JSON with exactly this shape:
{
  "email": {"subject": "...", "previewText": "...", "bodyText": "..."},
  "push": {"title": "<max 40 chars>", "body": "<max 120 chars>"},
  "inApp": {"heading": "...", "body": "...", "ctaLabel": "<2-3 words>"},
  "rewardConfig": {
    "internalName": "<kebab-case id>",
    "type": "{{{experience.reward.type}}}",
    "value": "<human-readable value>",
    "conditions": "...",
    "expiryDays": <integer>
  }
}"""


# ── Context + prompt builders ────────────────────────────


def build_context(
    brand: BrandConfig,
    user: UserProfile | None = None,
    goal: str | None = None,
    experience: Experience | None = None,
) -> dict[str, Any]:
    """Assemble template variables. Keys use wire (camelCase) names."""
    brand_json = brand.to_json()
    ctx: dict[str, Any] = {
        "brand": brand_json,
        "objectives": ", ".join(brand.primary_objectives),
        "reward_pool_json": json.dumps(brand_json["rewardPool"], indent=2, ensure_ascii=False),
    }
    if user is not None:
        user_json = user.to_json()
        ctx["user"] = user_json
        ctx["user_json"] = json.dumps(user_json, indent=2, ensure_ascii=False)
    if goal is not None:
        ctx["goal"] = goal
    if experience is not None:
        exp_json = experience.to_json()
        ctx["experience"] = exp_json
        ctx["experience_json"] = json.dumps(exp_json, indent=2, ensure_ascii=False)
    return ctx


def experience_prompt(user: UserProfile, goal: str, brand: BrandConfig) -> tuple[str, str]:
    """Return (system, prompt) for quest generation."""
    ctx = build_context(brand, user=user, goal=goal)
    return render_prompt(SYSTEM_TEMPLATE, ctx), render_prompt(EXPERIENCE_TEMPLATE, ctx)


def channel_assets_prompt(experience: Experience, brand: BrandConfig) -> tuple[str, str]:
    """Return (system, prompt) for channel-asset generation."""
    ctx = build_context(brand, experience=experience)
    return render_prompt(SYSTEM_TEMPLATE, ctx), render_prompt(CHANNEL_ASSETS_TEMPLATE, ctx)
