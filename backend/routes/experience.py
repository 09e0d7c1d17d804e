"""Quest generation endpoints: seed user, custom user, batch, channel assets."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from coffee_quest import seed
from coffee_quest.batch import run_batch
from coffee_quest.brand_store import BrandConfigStore
from coffee_quest.llm import LLM, LLMError
from coffee_quest.models import BrandConfig, Experience, UserProfile
from coffee_quest.prompts import PromptError
from coffee_quest.quest import generate_channel_assets, generate_experience
from coffee_quest.schema import ResponseFormatError

from .deps import get_batch_concurrency, get_brand_store, get_llm
from .models import BatchBody, ChannelAssetsBody, CustomExperienceBody, ExperienceBody

logger = logging.getLogger(__name__)

router = APIRouter()

_GENERATION_ERRORS = (LLMError, ResponseFormatError, PromptError)


async def _experience_or_500(
    user: UserProfile, goal: str | None, brand: BrandConfig, llm: LLM | None
) -> Experience:
    try:
        return await generate_experience(user=user, brand=brand, goal=goal, llm=llm)
    except _GENERATION_ERRORS as e:
        logger.exception("Experience generation failed for %s", user.name)
        raise HTTPException(500, f"Failed to generate experience: {e}")


@router.post("/experience")
async def seed_user_experience(
    body: ExperienceBody,
    store: BrandConfigStore = Depends(get_brand_store),
    llm: LLM | None = Depends(get_llm),
):
    """Generate today's quest for one of the sample users."""
    user = seed.find_user(body.user_id) if isinstance(body.user_id, str) else None
    if not user:
        raise HTTPException(404, "User not found")
    experience = await _experience_or_500(user, body.goal, store.get(), llm)
    return experience.to_json()


@router.post("/experience/custom")
async def custom_experience(
    body: CustomExperienceBody,
    store: BrandConfigStore = Depends(get_brand_store),
    llm: LLM | None = Depends(get_llm),
):
    """Generate a quest for a caller-supplied user profile."""
    name = (body.user or {}).get("name")
    if not isinstance(name, str) or not name.strip():
        raise HTTPException(400, "user.name is required")
    try:
        user = UserProfile.model_validate(body.user)
    except ValidationError as e:
        raise HTTPException(400, f"Invalid user profile: {e.error_count()} invalid field(s)")
    experience = await _experience_or_500(user, body.goal, store.get(), llm)
    return experience.to_json()


@router.post("/experience/batch")
async def batch_experience(
    body: BatchBody,
    store: BrandConfigStore = Depends(get_brand_store),
    llm: LLM | None = Depends(get_llm),
    concurrency: int = Depends(get_batch_concurrency),
):
    """Run the single-user generator over a list of users (simulation mode)."""
    if not body.users:
        raise HTTPException(400, "users must be a non-empty array")

    brand = store.get()

    async def _generate(user: UserProfile) -> Experience:
        return await generate_experience(user=user, brand=brand, goal=body.goal, llm=llm)

    results = await run_batch(body.users, _generate, concurrency=concurrency)
    return {"results": [r.to_json() for r in results]}


@router.post("/experience/channel-assets")
async def channel_assets(
    body: ChannelAssetsBody,
    store: BrandConfigStore = Depends(get_brand_store),
    llm: LLM | None = Depends(get_llm),
):
    """Derive email/push/in-app copy and a reward config from a generated quest."""
    if not body.experience:
        raise HTTPException(400, "experience is required")
    try:
        experience = Experience.model_validate(body.experience)
    except ValidationError as e:
        raise HTTPException(400, f"Invalid experience: {e.error_count()} invalid field(s)")

    try:
        assets = await generate_channel_assets(experience=experience, brand=store.get(), llm=llm)
    except _GENERATION_ERRORS as e:
        logger.exception("Channel asset generation failed")
        raise HTTPException(500, f"Failed to generate channel assets: {e}")
    return assets.to_json()
