import json
from urllib.parse import quote

import pytest

from mfl_companion.domain.models import Franchise
from mfl_companion.errors import InvalidFranchiseId
from mfl_companion.leagues import LeagueConfig
from mfl_companion.preferences import PREFERENCE_MAX_AGE, PreferenceStore, decode_preference, encode_preference

NOW = 1_760_000_000.0
STAMP = "2025-09-01T12:00:00.000Z"


def _league(n: int = 12) -> LeagueConfig:
    return LeagueConfig(
        namespace="theleague",
        league_id="13522",
        franchises=tuple(Franchise(id=f"{i:04d}", name=f"Team {i}") for i in range(1, n + 1)),
    )


def _afl() -> LeagueConfig:
    return LeagueConfig(
        namespace="afl",
        league_id="19621",
        franchises=(
            Franchise(id="0001", name="Team 1", conference_id="00", competition_id="00"),
            Franchise(id="0005", name="Team 5", conference_id="01", competition_id="00"),
            Franchise(id="0007", name="Team 7", conference_id="01", competition_id="01"),
        ),
    )


def _cookie(payload) -> str:
    return quote(json.dumps(payload), safe="")


def _store(cookies=None, **kwargs) -> PreferenceStore:
    return PreferenceStore(_league(), cookies or {}, clock=lambda: NOW, **kwargs)


class FakeResponse:
    def __init__(self):
        self.set_calls = []
        self.deleted = []

    def set_cookie(self, key, value, **kwargs):
        self.set_calls.append((key, value, kwargs))

    def delete_cookie(self, key, **kwargs):
        self.deleted.append((key, kwargs))


def test_cookie_name_is_per_league() -> None:
    assert _league().cookie_name == "theleague_team_pref"
    assert LeagueConfig(namespace="afl", league_id=None).cookie_name == "afl_team_pref"


def test_get_without_cookie_is_absent() -> None:
    store = _store()
    assert store.get() is None
    assert store.pending == []


def test_set_then_get_round_trips() -> None:
    store = _store()
    pref = store.set("3")
    assert pref.franchise_id == "0003"
    # 1_760_000_000 is 2025-10-09 08:53:20 UTC
    assert pref.last_updated == "2025-10-09T08:53:20.000Z"

    again = store.get()
    assert again is not None
    assert again.franchise_id == "0003"


def test_set_writes_readable_lax_cookie_for_a_year() -> None:
    store = _store(secure=True)
    store.set("0005")
    resp = FakeResponse()
    store.apply(resp)

    assert len(resp.set_calls) == 1
    name, value, kwargs = resp.set_calls[0]
    assert name == "theleague_team_pref"
    assert kwargs["max_age"] == PREFERENCE_MAX_AGE == 365 * 24 * 60 * 60
    assert kwargs["path"] == "/"
    assert kwargs["samesite"] == "lax"
    assert kwargs["secure"] is True
    assert kwargs["httponly"] is False
    assert store.pending == []

    reread = PreferenceStore(_league(), {name: value}).get()
    assert reread is not None and reread.franchise_id == "0005"


def test_secure_flag_off_for_local_development() -> None:
    store = _store(secure=False)
    store.set("0005")
    resp = FakeResponse()
    store.apply(resp)
    assert resp.set_calls[0][2]["secure"] is False


def test_set_unknown_id_raises_and_writes_nothing() -> None:
    store = _store()
    with pytest.raises(InvalidFranchiseId):
        store.set("0099")
    with pytest.raises(InvalidFranchiseId):
        store.set("abc")
    assert store.pending == []


def test_clear_removes_entry() -> None:
    store = _store({"theleague_team_pref": _cookie({"franchiseId": "0004", "lastUpdated": STAMP})})
    assert store.get().franchise_id == "0004"
    store.clear()
    assert store.get() is None

    resp = FakeResponse()
    store.apply(resp)
    assert [d[0] for d in resp.deleted] == ["theleague_team_pref"]


@pytest.mark.parametrize(
    "raw",
    [
        "not-json",
        quote("[1, 2]", safe=""),
        _cookie({"franchiseId": "0003"}),
        _cookie({"franchiseId": "0099", "lastUpdated": STAMP}),
        _cookie({"franchiseId": "zz", "lastUpdated": STAMP}),
        _cookie({"franchiseId": "0003", "lastUpdated": ""}),
        _cookie({"franchiseId": "0003", "lastUpdated": None}),
        _cookie({"franchiseId": "0003", "lastUpdated": ["x"]}),
    ],
)
def test_corrupted_cookie_reads_absent_and_is_cleared(raw) -> None:
    store = _store({"theleague_team_pref": raw})
    assert store.get() is None
    assert [w.name for w in store.pending if w.is_delete] == ["theleague_team_pref"]
    # the entry is gone for the rest of the request
    assert store.get() is None
    assert len(store.pending) == 1


def test_stored_id_is_normalized_on_read() -> None:
    store = _store({"theleague_team_pref": _cookie({"franchiseId": "7", "lastUpdated": 5})})
    pref = store.get()
    assert pref.franchise_id == "0007"
    assert pref.last_updated == 5


def test_encoded_value_is_cookie_safe() -> None:
    store = _store()
    pref = store.set("0002")
    value = encode_preference(pref)
    assert all(c not in value for c in ' ;,"')


def test_iso_timestamp_cookie_reads_back_without_cleanup() -> None:
    store = _store({"theleague_team_pref": _cookie({"franchiseId": "0003", "lastUpdated": STAMP})})
    pref = store.get()
    assert pref is not None
    assert pref.franchise_id == "0003"
    assert pref.last_updated == STAMP
    assert store.pending == []


def test_theleague_cookie_has_no_afl_fields() -> None:
    pref = _store().set("0002")
    assert decode_preference(encode_preference(pref)) == {
        "franchiseId": "0002",
        "lastUpdated": "2025-10-09T08:53:20.000Z",
    }


def test_afl_set_carries_conference_and_competition() -> None:
    store = PreferenceStore(_afl(), {}, clock=lambda: NOW)
    store.set("5")
    resp = FakeResponse()
    store.apply(resp)

    name, value, _ = resp.set_calls[0]
    assert name == "afl_team_pref"
    assert decode_preference(value) == {
        "franchiseId": "0005",
        "lastUpdated": "2025-10-09T08:53:20.000Z",
        "conferenceId": "01",
        "competitionId": "00",
    }

    pref = PreferenceStore(_afl(), {name: value}).get()
    assert (pref.franchise_id, pref.conference_id, pref.competition_id) == ("0005", "01", "00")


def test_afl_cookie_written_by_the_site_reads_back() -> None:
    raw = _cookie({"franchiseId": "0007", "conferenceId": "01", "competitionId": "01", "lastUpdated": STAMP})
    store = PreferenceStore(_afl(), {"afl_team_pref": raw})
    pref = store.get()
    assert (pref.franchise_id, pref.conference_id, pref.competition_id) == ("0007", "01", "01")
    assert store.pending == []


def test_afl_cookie_missing_conference_is_filled_from_league_data() -> None:
    store = PreferenceStore(_afl(), {"afl_team_pref": _cookie({"franchiseId": "0005", "lastUpdated": STAMP})})
    pref = store.get()
    assert (pref.conference_id, pref.competition_id) == ("01", "00")
    assert store.pending == []
