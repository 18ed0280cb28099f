from dataclasses import dataclass
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from mfl_companion.domain.models import LeagueAssets
from mfl_companion.errors import UpstreamUnavailable


@dataclass(frozen=True)
class DataRepo:
    """
    Static asset store: one franchise list per league namespace under
    <data_dir>/leagues/<namespace>.json.
    """
    data_dir: str

    def league_assets_path(self, namespace: str) -> Path:
        return Path(self.data_dir) / "leagues" / f"{namespace}.json"

    def load_league_assets(self, namespace: str) -> LeagueAssets:
        path = self.league_assets_path(namespace)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise UpstreamUnavailable(f"Franchise assets unreadable at {path}: {e}") from e
        try:
            assets = LeagueAssets.model_validate_json(raw)
        except ValidationError as e:
            raise UpstreamUnavailable(f"Franchise assets at {path} are malformed: {e}") from e
        if not assets.namespace:
            assets = assets.model_copy(update={"namespace": namespace})
        logger.debug("Loaded {} franchises for {}", len(assets.franchises), namespace)
        return assets

    def save_league_assets(self, assets: LeagueAssets) -> Path:
        path = self.league_assets_path(assets.namespace)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(assets.model_dump_json(indent=2, exclude_none=True), encoding="utf-8")
        tmp.replace(path)
        return path
