from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from mfl_companion.domain.models import SessionData, TeamPreference
from mfl_companion.errors import AuthFailure
from mfl_companion.franchise_ids import validate_franchise_id
from mfl_companion.leagues import LeagueConfig
from mfl_companion.links import LEAGUE_PATH_PREFIXES, with_team_param
from mfl_companion.preferences import PreferenceStore
from mfl_companion.selection import resolve_for_store
from mfl_companion.session import is_authorized_for_league, is_franchise_owner
from mfl_companion_service.deps import (
    get_league,
    get_optional_session,
    get_preference_store,
    require_session,
)


router = APIRouter(prefix="/api/leagues/{league}", tags=["teams"])

PAGES = ("rosters", "standings", "matchup-preview")


class PreferenceUpdate(BaseModel):
    franchise_id: str = Field(..., alias="franchiseId")

    model_config = {"populate_by_name": True}


def _preference_payload(pref: Optional[TeamPreference]) -> Optional[Dict[str, Any]]:
    return pref.model_dump(by_alias=True, exclude_none=True) if pref is not None else None


def _session_franchise(session: Optional[SessionData], league: LeagueConfig) -> Optional[str]:
    if session is None or not session.franchise_id:
        return None
    # a session from another MFL league says nothing about this one
    if league.league_id and not is_authorized_for_league(session, league.league_id):
        return None
    return session.franchise_id


@router.get("/franchises")
def franchises(league: LeagueConfig = Depends(get_league)):
    return {
        "league": league.namespace,
        "defaultTeam": league.default_team,
        "franchises": [f.model_dump(exclude_none=True) for f in league.franchises],
    }


@router.get("/team")
def team(
    response: Response,
    set_: Optional[str] = Query(None, alias="set"),
    view: Optional[str] = Query(None),
    store: PreferenceStore = Depends(get_preference_store),
    session: Optional[SessionData] = Depends(get_optional_session),
):
    league = store.league
    selection = resolve_for_store(
        store,
        set_param=set_,
        view_param=view,
        auth_franchise=_session_franchise(session, league),
    )
    store.apply(response)

    prefix = LEAGUE_PATH_PREFIXES.get(league.namespace, f"/{league.namespace}/")
    franchise = league.franchise(selection.franchise_id)
    return {
        "league": league.namespace,
        "franchiseId": selection.franchise_id,
        "source": selection.source,
        "franchise": franchise.model_dump(exclude_none=True) if franchise else None,
        "isMine": (
            _session_franchise(session, league) is not None
            and is_franchise_owner(session, selection.franchise_id)
        ),
        "links": {
            page: with_team_param(f"{prefix}{page}", selection.franchise_id, league=league.namespace)
            for page in PAGES
        },
    }


@router.get("/my-team")
def my_team(
    league: LeagueConfig = Depends(get_league),
    session: SessionData = Depends(require_session),
):
    franchise_id = validate_franchise_id(_session_franchise(session, league), league.known_ids)
    if franchise_id is None:
        raise AuthFailure()
    franchise = league.franchise(franchise_id)
    return {
        "league": league.namespace,
        "franchiseId": franchise_id,
        "franchise": franchise.model_dump(exclude_none=True) if franchise else None,
        "role": session.role,
    }


@router.get("/preference")
def read_preference(response: Response, store: PreferenceStore = Depends(get_preference_store)):
    pref = store.get()
    store.apply(response)
    return {"league": store.league.namespace, "preference": _preference_payload(pref)}


@router.put("/preference")
def write_preference(
    body: PreferenceUpdate,
    response: Response,
    store: PreferenceStore = Depends(get_preference_store),
):
    pref = store.set(body.franchise_id)
    store.apply(response)
    return {"league": store.league.namespace, "preference": _preference_payload(pref)}


@router.delete("/preference")
def delete_preference(response: Response, store: PreferenceStore = Depends(get_preference_store)):
    store.clear()
    store.apply(response)
    return {"league": store.league.namespace, "preference": None}
