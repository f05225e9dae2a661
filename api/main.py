"""
api/main.py — punkt wejścia FastAPI.

Lifespan:
  - Buduje provider losowości z config.random_seed
  - Inicjalizuje parser, rejestr formuł i runner (app.state)
  - Opcjonalnie ładuje bibliotekę formuł z config.formulas_file
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from adapters.formula_codec import FormulaJsonLoader
from adapters.formula_parser import RecursiveDescentParser
from adapters.formula_runner import FormulaRunner
from adapters.formula_store import InMemoryFormulaStore
from adapters.random_provider import build_random_provider
from api.routers import evaluate, formulas
from api.schemas import HealthResponse
from config import Settings

logger = logging.getLogger("formula_kit.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    random_provider = build_random_provider(settings.random_seed)
    app.state.parser = RecursiveDescentParser(random_provider=random_provider)
    app.state.formula_store = InMemoryFormulaStore(parser=app.state.parser)
    app.state.formula_runner = FormulaRunner(
        app.state.formula_store,
        use_input_pooling=settings.use_input_pooling,
    )

    if settings.formulas_file:
        loader = FormulaJsonLoader(app.state.formula_store)
        loaded = loader.load_from_file(settings.formulas_file)
        logger.info("Preloaded %d formulas from %s", loaded, settings.formulas_file)

    logger.info("FormulaKit API ready.")
    yield

    logger.info("Shutting down — clearing formula registry.")
    app.state.formula_runner.clear_pools()
    app.state.formula_store.clear()


def create_app() -> FastAPI:
    settings = Settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Routers
    app.include_router(formulas.router)
    app.include_router(evaluate.router)

    # Health
    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health(request: Request):
        return HealthResponse(
            status="ok",
            formulas=request.app.state.formula_store.count(),
            version=settings.app_version,
        )

    return app


app = create_app()
