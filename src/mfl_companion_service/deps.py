from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from loguru import logger

from mfl_companion.adapters.data_repo import DataRepo
from mfl_companion.domain.models import SessionData
from mfl_companion.errors import AuthFailure, UpstreamUnavailable
from mfl_companion.leagues import LeagueConfig, LeagueRegistry
from mfl_companion.mfl_client import MflClient
from mfl_companion.preferences import PreferenceStore
from mfl_companion.session import SESSION_COOKIE, SessionSigner
from mfl_companion.settings import Settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def get_data_repo(settings: Settings = Depends(get_settings)) -> DataRepo:
    return DataRepo(data_dir=str(settings.data_dir))


@lru_cache(maxsize=8)
def _load_registry(repo: DataRepo, theleague_id: str, afl_league_id: str) -> LeagueRegistry:
    leagues = []
    for namespace, league_id in (("theleague", theleague_id), ("afl", afl_league_id)):
        try:
            assets = repo.load_league_assets(namespace)
        except UpstreamUnavailable as e:
            logger.warning("League {} disabled: {}", namespace, e)
            continue
        leagues.append(LeagueConfig.from_assets(assets, league_id=league_id or None))
    return LeagueRegistry(leagues)


def get_registry(
    settings: Settings = Depends(get_settings),
    repo: DataRepo = Depends(get_data_repo),
) -> LeagueRegistry:
    return _load_registry(repo, settings.theleague_id, settings.afl_league_id)


@lru_cache(maxsize=4)
def _signer(secret: str) -> SessionSigner:
    return SessionSigner(secret=secret)


def get_signer(settings: Settings = Depends(get_settings)) -> SessionSigner:
    return _signer(settings.jwt_secret)


def get_mfl_client(settings: Settings = Depends(get_settings)) -> MflClient:
    return MflClient.from_settings(settings)


def get_league(league: str, registry: LeagueRegistry = Depends(get_registry)) -> LeagueConfig:
    return registry.get(league)


def get_preference_store(
    request: Request,
    league: LeagueConfig = Depends(get_league),
    settings: Settings = Depends(get_settings),
) -> PreferenceStore:
    return PreferenceStore(league, request.cookies, secure=settings.secure_cookies)


def get_optional_session(
    request: Request,
    signer: SessionSigner = Depends(get_signer),
) -> Optional[SessionData]:
    return signer.validate(request.cookies.get(SESSION_COOKIE))


def require_session(session: Optional[SessionData] = Depends(get_optional_session)) -> SessionData:
    if session is None:
        raise AuthFailure()
    return session
