"""Pydantic request models for API endpoints.

Bodies are deliberately loose: the routes check required fields themselves so
a missing user name is a 400 with a readable message rather than a 422 dump.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExperienceBody(_Body):
    user_id: Any = None
    goal: str | None = None


class CustomExperienceBody(_Body):
    user: dict[str, Any] | None = None
    goal: str | None = None


class BatchBody(_Body):
    users: list[Any] = []
    goal: str | None = None


class ChannelAssetsBody(_Body):
    experience: dict[str, Any] | None = None
