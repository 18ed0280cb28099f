from __future__ import annotations

import argparse
import getpass

from mfl_companion.errors import UpstreamUnavailable
from mfl_companion.mfl_client import MflClient
from mfl_companion.settings import Settings


def main() -> None:
    p = argparse.ArgumentParser(description="Check MFL credentials and show the franchise they map to.")
    p.add_argument("username")
    p.add_argument("--league-id", default=None)
    args = p.parse_args()

    settings = Settings.from_env()
    client = MflClient.from_settings(settings)
    password = getpass.getpass("MFL password: ")

    try:
        result = client.login(args.username, password, args.league_id or settings.theleague_id or None)
    except UpstreamUnavailable as e:
        raise SystemExit(f"MFL unreachable: {e}")

    print("---- LOGIN ----")
    if not result.success:
        print(f"Rejected: {result.error}")
        raise SystemExit(1)
    print(f"user_id: {result.user_id}")
    print(f"league_id: {result.league_id or '-'}")
    print(f"franchise_id: {result.franchise_id or '-'}")
    print(f"role: {result.role}")


if __name__ == "__main__":
    main()
