"""Batch simulation — run the single-user generator over a list of users.

Items are processed as a bounded fan-out: at most `concurrency` generator
calls are in flight at once. The default of 1 keeps the provider traffic
strictly sequential. Results keep input order, and a failing item is
recorded rather than aborting the batch, so N inputs always give N results.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from coffee_quest.models import Experience, UserProfile

logger = logging.getLogger(__name__)

Generator = Callable[[UserProfile], Awaitable[Experience]]


class BatchResult(BaseModel):
    success: bool
    user: dict[str, Any]
    experience: Experience | None = None
    error: str | None = None

    def to_json(self) -> dict[str, Any]:
        """Flatten to {success, user, narrative, challenge, reward, progress} or {success, user, error}."""
        out: dict[str, Any] = {"success": self.success, "user": self.user}
        if self.experience is not None:
            exp = self.experience.to_json()
            out.update({k: v for k, v in exp.items() if k != "user"})
        if self.error is not None:
            out["error"] = self.error
        return out


def _raw_summary(item: Any) -> dict[str, Any]:
    """Best-effort user summary for an item that may not validate."""
    if not isinstance(item, dict):
        return {"id": None, "name": "", "city": "", "segment": ""}
    return {
        "id": item.get("id"),
        "name": item.get("name") or "",
        "city": item.get("city") or "",
        "segment": item.get("segment") or "",
    }


def _error_message(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        return f"Invalid user profile: {fields}"
    return str(exc) or type(exc).__name__


async def run_batch(
    users: list[Any],
    generate: Generator,
    *,
    concurrency: int = 1,
) -> list[BatchResult]:
    """Generate an experience for every item in `users`.

    Items may be UserProfile instances or raw dicts; raw dicts are validated
    per item, so one malformed row only fails itself.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")
    semaphore = asyncio.Semaphore(concurrency)

    async def _one(index: int, item: Any) -> BatchResult:
        summary = _raw_summary(item)
        try:
            user = item if isinstance(item, UserProfile) else UserProfile.model_validate(item)
            summary = user.summary().to_json()
            async with semaphore:
                experience = await generate(user)
        except Exception as e:
            logger.warning("batch item %d (%s) failed: %s", index, summary.get("name") or "?", e)
            return BatchResult(success=False, user=summary, error=_error_message(e))
        return BatchResult(success=True, user=experience.user.to_json(), experience=experience)

    results = await asyncio.gather(*(_one(i, item) for i, item in enumerate(users)))
    succeeded = sum(1 for r in results if r.success)
    logger.info("batch finished: %d/%d succeeded (concurrency=%d)", succeeded, len(results), concurrency)
    return list(results)
