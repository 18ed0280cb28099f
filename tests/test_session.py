import base64
import json

import pytest

from mfl_companion.domain.models import SessionData
from mfl_companion.session import (
    SESSION_TTL_SECONDS,
    SessionSigner,
    is_authorized_for_league,
    is_franchise_owner,
)

NOW = 1_760_000_000


def _signer(secret: str = "s3cret") -> SessionSigner:
    return SessionSigner(secret=secret)


def _token(signer=None, **overrides) -> str:
    kwargs = {"user_id": "abc123", "username": "coach", "franchise_id": "0003", "league_id": "13522", "now": NOW}
    kwargs.update(overrides)
    return (signer or _signer()).issue(**kwargs)


def test_issue_and_validate() -> None:
    data = _signer().validate(_token(), now=NOW + 60)
    assert data is not None
    assert data.username == "coach"
    assert data.user_id == "abc123"
    assert data.franchise_id == "0003"
    assert data.league_id == "13522"
    assert data.role == "owner"
    assert data.issued_at == NOW
    assert data.expires_at == NOW + SESSION_TTL_SECONDS


def test_token_is_three_part_hs256() -> None:
    header, _, _ = _token().split(".")
    decoded = json.loads(base64.urlsafe_b64decode(header + "=" * (-len(header) % 4)))
    assert decoded == {"alg": "HS256", "typ": "JWT"}


def test_ninety_day_window() -> None:
    assert SESSION_TTL_SECONDS == 90 * 24 * 60 * 60
    token = _token()
    assert _signer().validate(token, now=NOW + SESSION_TTL_SECONDS) is not None
    assert _signer().validate(token, now=NOW + SESSION_TTL_SECONDS + 1) is None


def test_wrong_secret_rejected() -> None:
    assert _signer("other").validate(_token(), now=NOW) is None


def test_tampered_payload_rejected() -> None:
    header, body, sig = _token().split(".")
    payload = json.loads(base64.urlsafe_b64decode(body + "=" * (-len(body) % 4)))
    payload["franchiseId"] = "0001"
    forged = base64.urlsafe_b64encode(json.dumps(payload).encode()).rstrip(b"=").decode()
    assert _signer().validate(f"{header}.{forged}.{sig}", now=NOW) is None


@pytest.mark.parametrize("token", [None, "", "abc", "a.b", "a.b.c.d", "a.b.c", "é.é.é"])
def test_garbage_tokens_rejected(token) -> None:
    assert _signer().validate(token, now=NOW) is None


def test_ownership_helpers() -> None:
    data = SessionData(user_id="u", username="u", franchise_id="0003", league_id="13522", issued_at=0, expires_at=1)
    assert is_franchise_owner(data, "0003")
    assert not is_franchise_owner(data, "0004")
    assert is_authorized_for_league(data, "13522")
    assert not is_authorized_for_league(data, "19621")

    anonymous = data.model_copy(update={"franchise_id": "", "league_id": ""})
    assert not is_franchise_owner(anonymous, "")
    assert not is_authorized_for_league(anonymous, "")
