from __future__ import annotations

import argparse
from datetime import datetime, timezone

from mfl_companion.adapters.data_repo import DataRepo
from mfl_companion.domain.models import LeagueAssets
from mfl_companion.logging_setup import setup_logging
from mfl_companion.mfl_client import MflClient
from mfl_companion.settings import Settings


def main() -> None:
    p = argparse.ArgumentParser(description="Refresh data/leagues/<namespace>.json from MFL.")
    p.add_argument("--league", choices=["theleague", "afl"], default="theleague")
    p.add_argument("--league-id", default=None, help="MFL league id (defaults to THELEAGUE_ID / AFL_LEAGUE_ID)")
    args = p.parse_args()

    settings = Settings.from_env()
    setup_logging(settings.log_level)

    league_id = args.league_id or settings.league_ids().get(args.league)
    if not league_id:
        raise SystemExit(f"No MFL league id for {args.league}. Pass --league-id or set it in config/local/.env.")

    client = MflClient.from_settings(settings)
    franchises = client.league_franchises(league_id)
    if not franchises:
        raise SystemExit(f"MFL returned no franchises for league {league_id}.")

    assets = LeagueAssets(
        namespace=args.league,
        league_id=league_id,
        season=settings.mfl_year,
        pulled_at=datetime.now(timezone.utc),
        franchises=franchises,
    )
    path = DataRepo(data_dir=str(settings.data_dir)).save_league_assets(assets)

    print(f"Found {len(franchises)} franchises in {args.league} ({league_id})")
    for f in franchises:
        print(f"- {f.id} | {f.name}")
    print(f"Saved -> {path}")


if __name__ == "__main__":
    main()
