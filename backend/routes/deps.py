"""Request-scoped access to the collaborators create_app() installs."""

from fastapi import Request

from coffee_quest.brand_store import BrandConfigStore
from coffee_quest.llm import LLM


def get_brand_store(request: Request) -> BrandConfigStore:
    return request.app.state.brand_store


def get_llm(request: Request) -> LLM | None:
    return request.app.state.llm


def get_batch_concurrency(request: Request) -> int:
    return request.app.state.batch_concurrency
