from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Dict
import json
import os

from dotenv import load_dotenv
from loguru import logger

from mfl_companion.franchise_ids import normalize_franchise_id
from mfl_companion.session import generate_secret

LOCAL_ENVS = {"development", "dev", "local", "test"}


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    app_env: str

    mfl_year: int
    mfl_api_host: str
    mfl_timeout: int

    data_dir: Path
    env_path: Path
    log_level: str

    theleague_id: str
    afl_league_id: str

    user_franchise_overrides: Dict[str, str] = field(default_factory=dict)

    @staticmethod
    def from_env() -> "Settings":
        """
        Loads config/local/.env by default (gitignored).
        You can override with environment variables.
        """
        repo_root = Path(__file__).resolve().parents[2]  # .../src/mfl_companion -> repo root
        default_env_path = repo_root / "config" / "local" / ".env"

        # Environment variables already set will not be overwritten.
        if default_env_path.exists():
            load_dotenv(default_env_path, override=False)

        env_path = Path(os.getenv("MFL_ENV_PATH", str(default_env_path))).expanduser().resolve()
        if env_path.exists():
            load_dotenv(env_path, override=False)

        app_env = os.getenv("APP_ENV", "development").strip().lower() or "development"

        jwt_secret = os.getenv("JWT_SECRET", "").strip()
        if not jwt_secret:
            if app_env not in LOCAL_ENVS:
                raise RuntimeError(
                    "JWT_SECRET is not set. It must be stable across processes in "
                    f"APP_ENV={app_env}; check config/local/.env or the deployment environment."
                )
            logger.warning("JWT_SECRET not set - using a random secret. Sessions will not survive a restart.")
            jwt_secret = generate_secret()

        log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
        if log_level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            logger.warning("Invalid LOG_LEVEL {!r}, using INFO", log_level)
            log_level = "INFO"

        return Settings(
            jwt_secret=jwt_secret,
            app_env=app_env,
            mfl_year=int(os.getenv("MFL_YEAR", str(date.today().year)).strip()),
            mfl_api_host=os.getenv("MFL_API_HOST", "https://api.myfantasyleague.com").strip().rstrip("/"),
            mfl_timeout=int(os.getenv("MFL_TIMEOUT", "30").strip()),
            data_dir=Path(os.getenv("DATA_DIR", "data")).expanduser(),
            env_path=env_path,
            log_level=log_level,
            theleague_id=os.getenv("THELEAGUE_ID", "").strip(),
            afl_league_id=os.getenv("AFL_LEAGUE_ID", "").strip(),
            user_franchise_overrides=_parse_overrides(os.getenv("USER_FRANCHISE_OVERRIDES", "")),
        )

    @property
    def is_local(self) -> bool:
        return self.app_env in LOCAL_ENVS

    @property
    def secure_cookies(self) -> bool:
        return not self.is_local

    def league_ids(self) -> Dict[str, str]:
        return {"theleague": self.theleague_id, "afl": self.afl_league_id}


def _parse_overrides(raw: str) -> Dict[str, str]:
    """USER_FRANCHISE_OVERRIDES='{"username": "0003"}' -> {"username": "0003"}"""
    raw = raw.strip()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise RuntimeError(f"USER_FRANCHISE_OVERRIDES is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise RuntimeError("USER_FRANCHISE_OVERRIDES must be a JSON object")

    out: Dict[str, str] = {}
    for user, fid in data.items():
        normalized = normalize_franchise_id(fid)
        if normalized is None:
            raise RuntimeError(f"USER_FRANCHISE_OVERRIDES[{user!r}] is not a franchise id: {fid!r}")
        out[str(user).strip().lower()] = normalized
    return out
