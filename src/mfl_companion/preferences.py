from __future__ import annotations

import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional
from urllib.parse import quote, unquote

from loguru import logger
from pydantic import ValidationError

from mfl_companion.domain.models import TeamPreference
from mfl_companion.errors import CorruptedPreference, InvalidFranchiseId
from mfl_companion.franchise_ids import validate_franchise_id
from mfl_companion.leagues import LeagueConfig

PREFERENCE_MAX_AGE = 365 * 24 * 60 * 60


@dataclass(frozen=True)
class CookieWrite:
    name: str
    value: str
    max_age: int

    @property
    def is_delete(self) -> bool:
        return self.max_age <= 0


def encode_preference(pref: TeamPreference) -> str:
    payload = pref.model_dump(by_alias=True, exclude_none=True)
    return quote(json.dumps(payload, separators=(",", ":")), safe="")


def decode_preference(raw: str) -> Dict[str, Any]:
    try:
        data = json.loads(unquote(raw))
    except ValueError as e:
        raise CorruptedPreference(f"preference cookie is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise CorruptedPreference(f"preference cookie is {type(data).__name__}, expected object")
    return data


def iso_timestamp(ts: float) -> str:
    """2025-09-01T12:00:00.000Z, the format browsers produce with toISOString()."""
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PreferenceStore:
    """
    Team preference for one league namespace, backed by a readable cookie.

    Reads come from the request's cookies; writes and deletions are queued
    and flushed onto the response by apply(). Reads made after set() or
    clear() within the same request see the queued state.
    """

    def __init__(
        self,
        league: LeagueConfig,
        cookies: Mapping[str, str],
        *,
        secure: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self.league = league
        self.secure = secure
        self._clock = clock
        self._value: Optional[str] = cookies.get(league.cookie_name)
        self._pending: List[CookieWrite] = []

    @property
    def cookie_name(self) -> str:
        return self.league.cookie_name

    @property
    def pending(self) -> List[CookieWrite]:
        return list(self._pending)

    def get(self) -> Optional[TeamPreference]:
        if not self._value:
            return None
        try:
            return self._parse(self._value)
        except CorruptedPreference as e:
            logger.warning("Clearing corrupted {} cookie: {}", self.cookie_name, e)
            self.clear()
            return None

    def _parse(self, raw: str) -> TeamPreference:
        data = decode_preference(raw)
        try:
            pref = TeamPreference.model_validate(data)
        except ValidationError as e:
            raise CorruptedPreference(f"preference cookie has bad shape: {e.error_count()} errors") from e
        if not pref.last_updated:
            raise CorruptedPreference("preference cookie has no lastUpdated")
        franchise_id = validate_franchise_id(pref.franchise_id, self.league.known_ids)
        if franchise_id is None:
            raise CorruptedPreference(f"franchise {pref.franchise_id!r} not in {self.league.namespace}")

        update = {"franchise_id": franchise_id}
        franchise = self.league.franchise(franchise_id)
        if franchise is not None:
            # older AFL cookies may predate the conference fields
            if not pref.conference_id and franchise.conference_id:
                update["conference_id"] = franchise.conference_id
            if not pref.competition_id and franchise.competition_id:
                update["competition_id"] = franchise.competition_id
        return pref.model_copy(update=update)

    def set(self, franchise_id: str) -> TeamPreference:
        normalized = validate_franchise_id(franchise_id, self.league.known_ids)
        if normalized is None:
            raise InvalidFranchiseId(franchise_id, self.league.namespace)

        franchise = self.league.franchise(normalized)
        pref = TeamPreference(
            franchise_id=normalized,
            last_updated=iso_timestamp(self._clock()),
            conference_id=franchise.conference_id if franchise else None,
            competition_id=franchise.competition_id if franchise else None,
        )
        value = encode_preference(pref)
        self._value = value
        self._pending.append(CookieWrite(self.cookie_name, value, PREFERENCE_MAX_AGE))
        logger.info("Team preference for {} set to {}", self.league.namespace, normalized)
        return pref

    def clear(self) -> None:
        self._value = None
        self._pending.append(CookieWrite(self.cookie_name, "", 0))

    def apply(self, response) -> None:
        """Write queued cookie changes onto a Starlette/FastAPI response."""
        for w in self._pending:
            if w.is_delete:
                response.delete_cookie(w.name, path="/", samesite="lax")
            else:
                response.set_cookie(
                    w.name,
                    w.value,
                    max_age=w.max_age,
                    path="/",
                    samesite="lax",
                    secure=self.secure,
                    httponly=False,
                )
        self._pending.clear()
