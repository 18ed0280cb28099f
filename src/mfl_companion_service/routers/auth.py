from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, Field

from mfl_companion.auth import clear_session_cookie, login, set_session_cookie
from mfl_companion.domain.models import SessionData
from mfl_companion.mfl_client import MflClient
from mfl_companion.session import SESSION_COOKIE, SessionSigner
from mfl_companion.settings import Settings
from mfl_companion_service.deps import get_mfl_client, get_settings, get_signer


router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    # blank credentials are rejected by login() with the same 401 as bad ones
    username: str = ""
    password: str = ""
    league_id: Optional[str] = Field(None, alias="leagueId")

    model_config = {"populate_by_name": True}


def user_payload(session: SessionData) -> Dict[str, Any]:
    return {
        "userId": session.user_id,
        "username": session.username,
        "franchiseId": session.franchise_id,
        "leagueId": session.league_id,
        "role": session.role,
    }


@router.post("/login")
def login_route(
    body: LoginRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
    client: MflClient = Depends(get_mfl_client),
    signer: SessionSigner = Depends(get_signer),
):
    outcome = login(
        client=client,
        signer=signer,
        username=body.username,
        password=body.password,
        league_id=body.league_id,
    )
    set_session_cookie(response, outcome.token, secure=settings.secure_cookies, max_age=signer.ttl_seconds)
    return {"success": True, "message": "Login successful", "user": user_payload(outcome.session)}


@router.post("/logout")
def logout_route(response: Response):
    clear_session_cookie(response)
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me")
def me(request: Request, response: Response, signer: SessionSigner = Depends(get_signer)):
    token = request.cookies.get(SESSION_COOKIE)
    session = signer.validate(token)
    if session is None:
        if token:
            clear_session_cookie(response)
        return {"authenticated": False, "user": None}
    return {
        "authenticated": True,
        "user": user_payload(session),
        "expiresAt": session.expires_at,
    }
