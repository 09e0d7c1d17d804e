"""Sample user endpoints."""

from fastapi import APIRouter

from coffee_quest.seed import SEED_USERS

router = APIRouter()


@router.get("/users")
async def list_users():
    """List the sample users available to POST /api/experience."""
    return [u.to_json() for u in SEED_USERS]
