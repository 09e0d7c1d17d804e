import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from backend.config import Settings, load_settings
from backend.routes import router
from coffee_quest.brand_store import BrandConfigStore, JsonFileBackend
from coffee_quest.llm import LLM, HttpLLM

logger = logging.getLogger(__name__)

_FROM_SETTINGS = object()


def build_llm(settings: Settings) -> LLM | None:
    """HttpLLM when an API key is configured, else None (rule-based engine)."""
    if not settings.llm_api_key:
        logger.warning(
            "LLM_API_KEY / GROQ_API_KEY is not set; serving rule-based quests only"
        )
        return None
    return HttpLLM(
        base_url=settings.llm_base_url,
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        timeout=settings.llm_timeout,
    )


async def _http_error(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = ", ".join(".".join(str(p) for p in err["loc"] if p != "body") for err in exc.errors())
    return JSONResponse({"error": f"Invalid request body: {fields}"}, status_code=400)


def create_app(
    settings: Settings | None = None,
    store: BrandConfigStore | None = None,
    llm=_FROM_SETTINGS,
) -> FastAPI:
    """Build the app. Explicit `store` / `llm` override the environment."""
    settings = settings or load_settings()
    if store is None:
        store = BrandConfigStore(JsonFileBackend(settings.brand_config_path))
    if llm is _FROM_SETTINGS:
        llm = build_llm(settings)

    app = FastAPI(title="Coffee Quest")
    app.state.brand_store = store
    app.state.llm = llm
    app.state.batch_concurrency = settings.batch_concurrency

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(HTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (configured from the environment)
app = create_app()
