from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from mfl_companion.domain.models import SessionData
from mfl_companion.errors import AuthFailure
from mfl_companion.mfl_client import MflClient
from mfl_companion.session import SESSION_COOKIE, SessionSigner

ROLES = {"owner", "commissioner", "admin"}


@dataclass(frozen=True)
class LoginOutcome:
    token: str
    session: SessionData


def login(
    *,
    client: MflClient,
    signer: SessionSigner,
    username: str,
    password: str,
    league_id: Optional[str] = None,
    now: Optional[int] = None,
) -> LoginOutcome:
    """
    Check credentials with MFL and issue a session token.

    Any rejection raises AuthFailure with the same generic message.
    UpstreamUnavailable from the client propagates unchanged.
    """
    username = (username or "").strip()
    if not username or not password:
        raise AuthFailure()

    result = client.login(username, password, league_id)
    if not result.success:
        logger.info("Login rejected for {}", username)
        raise AuthFailure()

    role = (result.role or "owner").lower()
    token = signer.issue(
        user_id=result.user_id or username,
        username=result.username or username,
        franchise_id=result.franchise_id or "",
        league_id=result.league_id or league_id or "",
        role=role if role in ROLES else "owner",
        now=now,
    )
    session = signer.validate(token, now=now)
    if session is None:
        raise AuthFailure()
    return LoginOutcome(token=token, session=session)


def set_session_cookie(response, token: str, *, secure: bool, max_age: int) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=max_age,
        path="/",
        samesite="lax",
        secure=secure,
        httponly=True,
    )


def clear_session_cookie(response) -> None:
    response.delete_cookie(SESSION_COOKIE, path="/", samesite="lax", httponly=True)
