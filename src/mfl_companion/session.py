from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from loguru import logger
from pydantic import ValidationError

from mfl_companion.domain.models import SessionData

SESSION_COOKIE = "session_token"
SESSION_TTL_SECONDS = 90 * 24 * 60 * 60

_HEADER = {"alg": "HS256", "typ": "JWT"}


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(s: str) -> bytes:
    return base64.urlsafe_b64decode(s + "=" * (-len(s) % 4))


def generate_secret() -> str:
    return secrets.token_hex(32)


@dataclass(frozen=True)
class SessionSigner:
    """
    Issues and checks HS256 session tokens (header.payload.signature).
    Stateless: nothing is stored server side, so a token stays valid until
    its exp even after logout.
    """
    secret: str
    ttl_seconds: int = SESSION_TTL_SECONDS

    def _sign(self, signing_input: str) -> str:
        digest = hmac.new(self.secret.encode("utf-8"), signing_input.encode("utf-8"), hashlib.sha256).digest()
        return _b64url(digest)

    def issue(
        self,
        *,
        user_id: str,
        username: str,
        franchise_id: str = "",
        league_id: str = "",
        role: str = "owner",
        now: Optional[int] = None,
    ) -> str:
        iat = int(time.time()) if now is None else int(now)
        exp = iat + self.ttl_seconds
        payload: Dict[str, Any] = {
            "userId": user_id,
            "username": username,
            "franchiseId": franchise_id,
            "leagueId": league_id,
            "role": role,
            "iat": iat,
            "exp": exp,
        }
        header = _b64url(json.dumps(_HEADER, separators=(",", ":")).encode("utf-8"))
        body = _b64url(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
        signing_input = f"{header}.{body}"
        return f"{signing_input}.{self._sign(signing_input)}"

    def validate(self, token: Optional[str], *, now: Optional[int] = None) -> Optional[SessionData]:
        """Return the embedded identity, or None if the token is bad or expired."""
        if not token:
            return None
        parts = token.split(".")
        if len(parts) != 3:
            return None
        header, body, signature = parts
        expected = self._sign(f"{header}.{body}")
        if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("ascii")):
            return None

        try:
            payload = json.loads(_b64url_decode(body))
            if json.loads(_b64url_decode(header)).get("alg") != "HS256":
                return None
            data = SessionData(
                user_id=str(payload["userId"]),
                username=str(payload["username"]),
                franchise_id=str(payload.get("franchiseId") or ""),
                league_id=str(payload.get("leagueId") or ""),
                role=payload.get("role") or "owner",
                issued_at=int(payload["iat"]),
                expires_at=int(payload["exp"]),
            )
        except (ValueError, KeyError, TypeError, AttributeError, ValidationError) as e:
            logger.debug("Rejecting session token with unreadable payload: {}", type(e).__name__)
            return None

        current = int(time.time()) if now is None else int(now)
        if data.expires_at < current:
            return None
        return data


def is_franchise_owner(session: SessionData, franchise_id: str) -> bool:
    return bool(session.franchise_id) and session.franchise_id == franchise_id


def is_authorized_for_league(session: SessionData, league_id: str) -> bool:
    return bool(session.league_id) and session.league_id == league_id
