from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from mfl_companion.errors import AuthFailure, InvalidFranchiseId, UnknownLeague, UpstreamUnavailable
from mfl_companion.leagues import LeagueRegistry
from mfl_companion.logging_setup import setup_logging
from mfl_companion_service.deps import get_registry, get_settings
from mfl_companion_service.routers.auth import router as auth_router
from mfl_companion_service.routers.teams import router as teams_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.dependency_overrides.get(get_settings, get_settings)()
    setup_logging(settings.log_level)
    logger.info("MFL companion starting (env={}, year={})", settings.app_env, settings.mfl_year)
    yield


app = FastAPI(title="MFL Companion Service", version="0.1.0", lifespan=lifespan)
app.include_router(auth_router)
app.include_router(teams_router)


@app.exception_handler(AuthFailure)
async def _unauthorized(request: Request, exc: AuthFailure):
    return JSONResponse(status_code=401, content={"detail": "Unauthorized"})


@app.exception_handler(InvalidFranchiseId)
async def _bad_franchise(request: Request, exc: InvalidFranchiseId):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(UnknownLeague)
async def _unknown_league(request: Request, exc: UnknownLeague):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(UpstreamUnavailable)
async def _upstream(request: Request, exc: UpstreamUnavailable):
    logger.error("Upstream failure on {}: {}", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Upstream service unavailable"})


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/api/leagues")
def leagues(registry: LeagueRegistry = Depends(get_registry)):
    return {"leagues": registry.namespaces()}
