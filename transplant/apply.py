"""Run Phase A (cosmetics) and Phase B (roster) as one all-or-nothing unit."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict

from league_repo import SaveDatabase
from transplant.context import TransplantContext
from transplant.cosmetics import transplant_cosmetics
from transplant.plan import TransplantPlan
from transplant.roster import transplant_roster

logger = logging.getLogger(__name__)


@dataclass
class TransplantResult:
    team_guid: str
    team_name: str
    deleted: Dict[str, int] = field(default_factory=dict)
    inserted: Dict[str, int] = field(default_factory=dict)

    @property
    def players_inserted(self) -> int:
        return self.inserted.get("t_baseball_players", 0)


def apply_transplant(db: SaveDatabase, plan: TransplantPlan, *, src: str = "src") -> TransplantResult:
    """Transplant the donor team from attached schema ``src`` onto ``plan.keep_identity``.

    Both phases share one outer transaction on ``db`` (each phase in its own savepoint). Any
    error rolls everything back and propagates; the target file is left untouched.
    """
    with db.transaction() as cur:
        ctx = TransplantContext.open(db, cur, plan, src=src)
        result = TransplantResult(team_guid=plan.keep_identity, team_name=ctx.source_team_name)

        with db.transaction():
            phase_a = transplant_cosmetics(ctx)
        with db.transaction():
            phase_b = transplant_roster(ctx)

        for phase in (phase_a, phase_b):
            result.deleted.update(phase["deleted"])
            result.inserted.update(phase["inserted"])

    logger.info(
        "[TRANSPLANT_DONE] team=%s name=%r players=%d",
        result.team_guid,
        result.team_name,
        result.players_inserted,
    )
    return result
