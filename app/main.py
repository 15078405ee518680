from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from app.config import load_env_files, resolve_project_path
from app.logging_utils import configure_logging
from app.schemas.price_analysis import HealthResponse


def _validate_env() -> None:
    """
    Validate required environment variables at startup.

    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - LLM API key check is skipped only when LLM_ADAPTER=mock.
    - The marketplace source config file must exist.
    """

    load_env_files()

    errors: list[str] = []

    # --- LLM adapter ----------------------------------------------------
    adapter = os.getenv("LLM_ADAPTER", "openai").strip().lower()
    if adapter not in {"openai", "mock"}:
        errors.append(f"LLM_ADAPTER='{adapter}' is not valid. Allowed values: ['mock', 'openai'].")
    elif adapter != "mock":
        llm_api_key = os.getenv("LLM_API_KEY", "").strip()
        openai_api_key = os.getenv("OPENAI_API_KEY", "").strip()
        if not llm_api_key and not openai_api_key:
            errors.append(
                "LLM API key is not set. Provide LLM_API_KEY or OPENAI_API_KEY. "
                "Empty strings are not permitted."
            )

    # --- Marketplace sources --------------------------------------------
    sources_path = resolve_project_path(
        os.getenv("MARKETPLACE_SOURCES_CONFIG_PATH", "").strip()
        or "app/scraping/config/sources.json"
    )
    if not sources_path.exists():
        errors.append(f"Marketplace source config not found: {sources_path}")

    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    configure_logging()

    application = FastAPI(
        title="Price Analysis API",
        version="1.0.0",
    )

    from app.api.responses import validation_error_response
    from app.api.routers import price_analysis_router, seller_price_analysis_router

    application.include_router(price_analysis_router)
    application.include_router(seller_price_analysis_router)
    application.add_exception_handler(RequestValidationError, validation_error_response)

    @application.get("/health")
    def healthcheck() -> HealthResponse:
        return HealthResponse()

    logging.getLogger(__name__).info("Price analysis API initialised")
    return application


app = create_app()
