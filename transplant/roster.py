"""Phase B: clear the kept team's roster closure, then copy the donor roster in.

Local ids are never carried across files. Mapping rows are inserted by GUID and the target
assigns its own local ids; per-player rows are re-keyed by joining source local id -> GUID ->
target local id.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Tuple

from transplant.context import TransplantContext
from transplant.plan import (
    KEY_GUID,
    KEY_LOCAL_ID,
    KEY_TEAM,
    ROSTER_COPY_TABLES,
    ROSTER_DELETE_ORDER,
    DeletionStep,
)

logger = logging.getLogger(__name__)

# trait1/trait2 follow stored row order
_ORDERED_COPY_TABLES = frozenset({"t_baseball_player_traits"})


def _step_sql(ctx: TransplantContext, step: DeletionStep, columns: Sequence[str]) -> Tuple[str, List[object]]:
    if step.key == KEY_TEAM:
        selector = None
    elif step.key == KEY_LOCAL_ID:
        selector = ctx.target_roster_local_ids_sql
    else:
        selector = ctx.target_roster_guids_sql

    clauses: List[str] = []
    params: List[object] = []
    for col in columns:
        if selector is None:
            clauses.append(f'"{col}" = ?')
        else:
            clauses.append(f'"{col}" IN ({selector})')
        params.append(ctx.target_guid)
    return f"DELETE FROM main.{step.table} WHERE {' OR '.join(clauses)};", params


def delete_target_roster(ctx: TransplantContext, steps: Sequence[DeletionStep] = ROSTER_DELETE_ORDER) -> Dict[str, int]:
    """Walk ``steps`` in order. Tables or columns this save does not have are skipped."""
    deleted: Dict[str, int] = {}
    for step in steps:
        present = ctx.columns(step.table)
        if not present:
            logger.debug("[ROSTER_DELETE_SKIPPED] table=%s (not in this save)", step.table)
            continue
        cols = [c for c in step.columns if c in present]
        if not cols:
            logger.debug("[ROSTER_DELETE_SKIPPED] table=%s columns=%s (not in this save)", step.table, step.columns)
            continue
        sql, params = _step_sql(ctx, step, cols)
        deleted[step.table] = ctx.execute(sql, params)
    return deleted


def copy_source_roster(ctx: TransplantContext) -> Dict[str, int]:
    src = ctx.src
    inserted: Dict[str, int] = {}

    inserted["t_baseball_players"] = ctx.copy_rows(
        "t_baseball_players",
        from_sql=f"{src}.t_baseball_players s",
        where_sql="s.teamGUID = ?",
        where_params=(ctx.source_guid,),
        overrides={"teamGUID": ("?", (ctx.target_guid,))},
    )
    # OR IGNORE: an existing mapping keeps its local id (other rows may point at it)
    inserted["t_baseball_player_local_ids"] = ctx.copy_rows(
        "t_baseball_player_local_ids",
        from_sql=f"{src}.t_baseball_player_local_ids s",
        where_sql=f"s.GUID IN ({ctx.source_roster_guids_sql})",
        where_params=(ctx.source_guid,),
        verb="INSERT OR IGNORE",
    )

    for table, column in ROSTER_COPY_TABLES:
        inserted[table] = ctx.copy_rows(
            table,
            from_sql=(
                f"{src}.{table} s "
                f"JOIN {src}.t_baseball_player_local_ids slid ON slid.localID = s.\"{column}\" "
                f"JOIN {src}.t_baseball_players sp ON sp.GUID = slid.GUID "
                f"JOIN main.t_baseball_player_local_ids mlid ON mlid.GUID = slid.GUID"
            ),
            where_sql="sp.teamGUID = ?",
            where_params=(ctx.source_guid,),
            overrides={column: ("mlid.localID", ())},
            order_sql="s.rowid" if table in _ORDERED_COPY_TABLES else None,
        )
    return inserted


def transplant_roster(ctx: TransplantContext) -> Dict[str, Dict[str, int]]:
    deleted = delete_target_roster(ctx)
    inserted = copy_source_roster(ctx)
    logger.info(
        "[TRANSPLANT_ROSTER] team=%s players_removed=%d players_added=%d",
        ctx.plan.keep_identity,
        deleted.get("t_baseball_players", 0),
        inserted.get("t_baseball_players", 0),
    )
    return {"deleted": deleted, "inserted": inserted}
