"""Health check endpoint."""

from fastapi import APIRouter, Depends

from coffee_quest.llm import LLM, HttpLLM

from .deps import get_llm

router = APIRouter()


@router.get("/health")
async def health(llm: LLM | None = Depends(get_llm)):
    """Health check. Reports which engine serves quests."""
    result = {"status": "ok", "service": "coffee-quest-backend"}
    if llm is None:
        result["engine"] = "rules"
    else:
        result["engine"] = "llm"
        if isinstance(llm, HttpLLM):
            result["model"] = llm.model
    return result
