from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Optional

from loguru import logger

from mfl_companion.domain.models import Selection, TeamPreference
from mfl_companion.franchise_ids import validate_franchise_id
from mfl_companion.preferences import PreferenceStore


@dataclass(frozen=True)
class SelectionContext:
    default_team: str
    set_param: Optional[str] = None
    view_param: Optional[str] = None
    stored_preference: Optional[TeamPreference] = None
    auth_franchise: Optional[str] = None


def resolve_team(
    ctx: SelectionContext,
    known_ids: AbstractSet[str],
    store: Optional[PreferenceStore] = None,
) -> Selection:
    """
    Pick the active franchise, first match wins:

      1. set  -> adopted and written to the preference store
      2. view -> shown for this response only
      3. stored preference
      4. the logged-in user's own franchise
      5. league default

    Invalid set/view values are ignored. Only tier 1 writes.
    """
    if ctx.set_param is not None:
        chosen = validate_franchise_id(ctx.set_param, known_ids)
        if chosen is not None:
            if store is not None:
                store.set(chosen)
            return Selection(franchise_id=chosen, source="set")
        logger.debug("Ignoring invalid set={!r}", ctx.set_param)

    if ctx.view_param is not None:
        chosen = validate_franchise_id(ctx.view_param, known_ids)
        if chosen is not None:
            return Selection(franchise_id=chosen, source="view")
        logger.debug("Ignoring invalid view={!r}", ctx.view_param)

    if ctx.stored_preference is not None:
        return Selection(franchise_id=ctx.stored_preference.franchise_id, source="preference")

    if ctx.auth_franchise:
        chosen = validate_franchise_id(ctx.auth_franchise, known_ids)
        if chosen is not None:
            return Selection(franchise_id=chosen, source="session")

    return Selection(franchise_id=ctx.default_team, source="default")


def resolve_for_store(
    store: PreferenceStore,
    *,
    set_param: Optional[str] = None,
    view_param: Optional[str] = None,
    auth_franchise: Optional[str] = None,
) -> Selection:
    """Read the stored preference first, then resolve against the store's league."""
    league = store.league
    ctx = SelectionContext(
        default_team=league.default_team,
        set_param=set_param,
        view_param=view_param,
        stored_preference=store.get(),
        auth_franchise=auth_franchise,
    )
    return resolve_team(ctx, league.known_ids, store=store)
