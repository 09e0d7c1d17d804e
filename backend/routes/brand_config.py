"""Brand configuration endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from coffee_quest.brand_store import BrandConfigStore, BrandConfigWriteError

from .deps import get_brand_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/brand-config")
async def get_brand_config(store: BrandConfigStore = Depends(get_brand_store)):
    """Get the current brand configuration."""
    return store.get().to_json()


@router.put("/brand-config")
async def update_brand_config(
    body: dict[str, Any] = Body(...),
    store: BrandConfigStore = Depends(get_brand_store),
):
    """Merge the supplied top-level keys into the brand configuration."""
    try:
        config = store.update(body)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise HTTPException(400, f"Invalid brand config: {fields}")
    except BrandConfigWriteError as e:
        raise HTTPException(500, str(e))
    return config.to_json()
