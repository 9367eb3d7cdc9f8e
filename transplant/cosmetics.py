"""Phase A: replace the kept team's name, logos and team attributes with the donor's."""

from __future__ import annotations

import logging
from typing import Dict

from transplant.context import TransplantContext

logger = logging.getLogger(__name__)


def delete_target_cosmetics(ctx: TransplantContext) -> Dict[str, int]:
    """Logo attributes (through the team's logos), then logos, then team attributes."""
    deleted: Dict[str, int] = {}
    if ctx.has_table("t_team_logo_attributes"):
        deleted["t_team_logo_attributes"] = ctx.execute(
            """
            DELETE FROM main.t_team_logo_attributes
            WHERE teamLogoGUID IN (SELECT GUID FROM main.t_team_logos WHERE teamGUID = ?);
            """,
            (ctx.target_guid,),
        )
    if ctx.has_table("t_team_logos"):
        deleted["t_team_logos"] = ctx.execute(
            "DELETE FROM main.t_team_logos WHERE teamGUID = ?;", (ctx.target_guid,)
        )
    if ctx.has_table("t_team_attributes"):
        deleted["t_team_attributes"] = ctx.execute(
            "DELETE FROM main.t_team_attributes WHERE teamLocalID = ?;", (ctx.target_team_local_id,)
        )
    return deleted


def rename_target_team(ctx: TransplantContext) -> None:
    ctx.execute("UPDATE main.t_teams SET teamName = ? WHERE GUID = ?;", (ctx.source_team_name, ctx.target_guid))


def copy_source_cosmetics(ctx: TransplantContext) -> Dict[str, int]:
    """Logos re-keyed to the kept team GUID; logo attributes as-is; attributes re-keyed to its local id."""
    src = ctx.src
    inserted: Dict[str, int] = {}
    inserted["t_team_logos"] = ctx.copy_rows(
        "t_team_logos",
        from_sql=f"{src}.t_team_logos s",
        where_sql="s.teamGUID = ?",
        where_params=(ctx.source_guid,),
        overrides={"teamGUID": ("?", (ctx.target_guid,))},
    )
    inserted["t_team_logo_attributes"] = ctx.copy_rows(
        "t_team_logo_attributes",
        from_sql=f"{src}.t_team_logo_attributes s",
        where_sql=f"s.teamLogoGUID IN (SELECT GUID FROM {src}.t_team_logos WHERE teamGUID = ?)",
        where_params=(ctx.source_guid,),
    )
    inserted["t_team_attributes"] = ctx.copy_rows(
        "t_team_attributes",
        from_sql=f"{src}.t_team_attributes s",
        where_sql="s.teamLocalID = ?",
        where_params=(ctx.source_team_local_id,),
        overrides={"teamLocalID": ("?", (ctx.target_team_local_id,))},
    )
    return inserted


def transplant_cosmetics(ctx: TransplantContext) -> Dict[str, Dict[str, int]]:
    deleted = delete_target_cosmetics(ctx)
    rename_target_team(ctx)
    inserted = copy_source_cosmetics(ctx)
    logger.info(
        "[TRANSPLANT_COSMETICS] team=%s name=%r deleted=%s inserted=%s",
        ctx.plan.keep_identity,
        ctx.source_team_name,
        deleted,
        inserted,
    )
    return {"deleted": deleted, "inserted": inserted}
