from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from mfl_companion.domain.models import Franchise, LeagueAssets
from mfl_companion.errors import UnknownLeague
from mfl_companion.franchise_ids import FIRST_FRANCHISE_ID


THELEAGUE = "theleague"
AFL = "afl"

PREFERENCE_COOKIES = {
    THELEAGUE: "theleague_team_pref",
    AFL: "afl_team_pref",
}


@dataclass(frozen=True)
class LeagueConfig:
    """
    One league namespace: its MFL id, the franchises it knows about and the
    cookie its team preference lives in.
    """
    namespace: str
    league_id: Optional[str]
    franchises: tuple[Franchise, ...] = ()
    default_team: str = FIRST_FRANCHISE_ID
    cookie_name: str = field(default="")

    def __post_init__(self) -> None:
        if not self.cookie_name:
            object.__setattr__(
                self,
                "cookie_name",
                PREFERENCE_COOKIES.get(self.namespace, f"{self.namespace}_team_pref"),
            )

    @classmethod
    def from_assets(cls, assets: LeagueAssets, league_id: Optional[str] = None) -> "LeagueConfig":
        franchises = tuple(assets.franchises)
        ids = sorted(f.id for f in franchises)
        default_team = FIRST_FRANCHISE_ID if FIRST_FRANCHISE_ID in ids or not ids else ids[0]
        return cls(
            namespace=assets.namespace,
            league_id=league_id or assets.league_id,
            franchises=franchises,
            default_team=default_team,
        )

    @property
    def known_ids(self) -> frozenset[str]:
        return frozenset(f.id for f in self.franchises)

    def franchise(self, franchise_id: str) -> Optional[Franchise]:
        for f in self.franchises:
            if f.id == franchise_id:
                return f
        return None


class LeagueRegistry:
    def __init__(self, leagues: Iterable[LeagueConfig] = ()):
        self._leagues: Dict[str, LeagueConfig] = {lg.namespace: lg for lg in leagues}

    def get(self, namespace: str) -> LeagueConfig:
        try:
            return self._leagues[namespace]
        except KeyError:
            raise UnknownLeague(namespace) from None

    def namespaces(self) -> list[str]:
        return sorted(self._leagues)
