from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import requests
from loguru import logger

from mfl_companion.domain.models import Franchise, MflLoginResult
from mfl_companion.errors import UpstreamUnavailable
from mfl_companion.franchise_ids import normalize_franchise_id
from mfl_companion.settings import Settings


USER_ID_KEYS = ("cookie", "MFL_USER_ID", "user_id", "userId", "USER_ID", "USERID", "user")
FRANCHISE_KEYS = (
    "FRANCHISE_ID",
    "franchise_id",
    "franchiseId",
    "FranchiseId",
    "franchise",
    "Franchise",
    "team_id",
    "teamId",
    "team",
)
LEAGUE_KEYS = ("LEAGUE_ID", "league_id", "leagueId", "LeagueId", "league")


def _pick(keys: Iterable[str], sources: Iterable[Optional[Dict[str, Any]]]) -> str:
    """First non-blank scalar found under any key, scanning sources in order."""
    for source in sources:
        if not isinstance(source, dict):
            continue
        for k in keys:
            v = source.get(k)
            if v is None or isinstance(v, (dict, list)):
                continue
            s = str(v).strip()
            if s:
                return s
    return ""


def _as_list(v: Any) -> List[Any]:
    if v is None:
        return []
    if isinstance(v, list):
        return v
    return [v]


def _error_text(err: Any) -> str:
    # MFL wraps text nodes as {"$t": "..."}
    if isinstance(err, dict):
        return str(err.get("$t") or err.get("message") or err)
    return str(err)


@dataclass
class MflClient:
    """
    The only place that talks to MyFantasyLeague. Credentials are never
    logged; request failures become UpstreamUnavailable.
    """
    year: int
    session: requests.Session
    host: str = "https://api.myfantasyleague.com"
    timeout: int = 30
    user_franchise_overrides: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: Settings) -> "MflClient":
        session = requests.Session()
        session.headers.update({"Accept": "application/json"})
        return cls(
            year=settings.mfl_year,
            session=session,
            host=settings.mfl_api_host,
            timeout=settings.mfl_timeout,
            user_franchise_overrides=dict(settings.user_franchise_overrides),
        )

    def url(self, path: str) -> str:
        return f"{self.host}/{self.year}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            resp = self.session.request(method, self.url(path), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"MFL {path} request failed: {type(e).__name__}") from e
        if resp.status_code >= 500:
            raise UpstreamUnavailable(f"MFL {path} returned {resp.status_code}")
        return resp

    def export(self, type_: str, *, cookie: Optional[str] = None, **params: str) -> Dict[str, Any]:
        query = {"TYPE": type_, "JSON": "1", **params}
        headers = {"Cookie": f"MFL_USER_ID={cookie}"} if cookie else None
        resp = self._request("GET", "export", params=query, headers=headers)
        try:
            resp.raise_for_status()
            return resp.json()
        except (requests.HTTPError, ValueError) as e:
            raise UpstreamUnavailable(f"MFL export {type_} failed: {e}") from e

    def login(self, username: str, password: str, league_id: Optional[str] = None) -> MflLoginResult:
        data = {"USERNAME": username, "PASSWORD": password, "XML": "0", "JSON": "1"}
        if league_id:
            data["LEAGUE_ID"] = league_id

        resp = self._request(
            "POST",
            "login",
            data=data,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        if not resp.ok:
            logger.info("MFL login for {} rejected with HTTP {}", username, resp.status_code)
            return MflLoginResult(success=False, error=f"MFL API error: {resp.status_code} {resp.reason}")

        content_type = resp.headers.get("content-type", "")
        try:
            body = resp.json()
        except ValueError:
            # Non-JSON 2xx bodies mean MFL accepted the login but answered in XML/HTML.
            return MflLoginResult(
                success=True,
                user_id=username,
                username=username,
                franchise_id="",
                league_id=league_id or "",
                role="owner",
            )
        if not isinstance(body, dict):
            return MflLoginResult(success=False, error="Unexpected MFL login response")

        return self._login_result(body, content_type, username=username, league_id=league_id)

    def _login_result(
        self,
        body: Dict[str, Any],
        content_type: str,
        *,
        username: str,
        league_id: Optional[str],
    ) -> MflLoginResult:
        sources = [body, body.get("status"), body.get("login"), body.get("LOGIN"), body.get("auth")]

        if body.get("error"):
            return MflLoginResult(success=False, error=_error_text(body["error"]))

        cookie = _pick(("cookie", "MFL_USER_ID"), sources)
        if not cookie and "json" in content_type:
            return MflLoginResult(success=False, error="Failed to authenticate with MFL")

        user_id = _pick(USER_ID_KEYS, sources) or username
        franchise_id = normalize_franchise_id(_pick(FRANCHISE_KEYS, sources)) or ""
        if not franchise_id:
            franchise_id = self._override_for(username, user_id)
        resolved_league = _pick(LEAGUE_KEYS, [{"LEAGUE_ID": league_id}, *sources])

        if not franchise_id and cookie:
            found_league, found_franchise = self._lookup_my_league(cookie, resolved_league)
            resolved_league = resolved_league or found_league
            franchise_id = found_franchise

        logger.info(
            "MFL login ok for {} (league={}, franchise={})",
            username,
            resolved_league or "-",
            franchise_id or "-",
        )
        return MflLoginResult(
            success=True,
            user_id=user_id,
            username=username,
            franchise_id=franchise_id,
            league_id=resolved_league,
            role=str(body.get("ROLE") or body.get("role") or "owner"),
            raw_response=body,
        )

    def _override_for(self, *names: str) -> str:
        for name in names:
            key = (name or "").strip().lower()
            if key and key in self.user_franchise_overrides:
                return self.user_franchise_overrides[key]
        return ""

    def _lookup_my_league(self, cookie: str, league_id: str) -> tuple[str, str]:
        """
        Best effort: find the user's franchise through the myleagues export.
        Falls back to the first league when league_id is unknown or absent.
        """
        try:
            data = self.export("myleagues", cookie=cookie)
        except UpstreamUnavailable as e:
            logger.warning("myleagues lookup failed: {}", e)
            return "", ""

        leagues = _as_list((data.get("leagues") or data.get("myleagues") or {}).get("league"))
        leagues = [lg for lg in leagues if isinstance(lg, dict)]
        logger.debug("myleagues returned {} leagues", len(leagues))
        if not leagues:
            return "", ""

        target = next(
            (
                lg for lg in leagues
                if league_id and league_id in {
                    str(lg.get("league_id") or lg.get("id") or ""),
                    str(lg.get("name") or ""),
                }
            ),
            leagues[0],
        )
        found_league = str(target.get("league_id") or target.get("id") or "")
        found_franchise = normalize_franchise_id(_pick(FRANCHISE_KEYS, [target])) or ""
        return found_league, found_franchise

    def league_franchises(self, league_id: str) -> List[Franchise]:
        data = self.export("league", L=league_id)
        league = data.get("league") or {}
        raw = _as_list((league.get("franchises") or {}).get("franchise"))

        out: List[Franchise] = []
        for f in raw:
            if not isinstance(f, dict):
                continue
            fid = normalize_franchise_id(f.get("id"))
            if fid is None:
                logger.warning("Skipping franchise with bad id {!r}", f.get("id"))
                continue
            out.append(
                Franchise(
                    id=fid,
                    name=str(f.get("name") or fid),
                    abbrev=str(f.get("abbrev") or "") or None,
                    conference_id=str(f.get("conference") or "") or None,
                    competition_id=str(f.get("division") or "") or None,
                )
            )
        return out
