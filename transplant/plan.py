"""Transplant plan and the roster dependency closure, kept as data.

``ROSTER_DELETE_ORDER`` is walked top to bottom when clearing the kept team's roster: rows
keyed by player local id first, then rows keyed by player GUID, then the local-id mapping, then
the player core rows. ``ROSTER_COPY_TABLES`` lists the per-player tables re-inserted after the
core rows and mappings exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from schema import normalize_guid

KEY_LOCAL_ID = "local_id"
KEY_GUID = "guid"
KEY_TEAM = "team"

_KEY_KINDS = (KEY_LOCAL_ID, KEY_GUID, KEY_TEAM)


@dataclass(frozen=True)
class TransplantPlan:
    """Keep ``keep_identity`` (team GUID in the target), borrow everything else from
    ``donate_content_from`` (team GUID in the attached source)."""

    keep_identity: str
    donate_content_from: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "keep_identity", normalize_guid(self.keep_identity))
        object.__setattr__(self, "donate_content_from", normalize_guid(self.donate_content_from))


@dataclass(frozen=True)
class DeletionStep:
    """Delete rows of ``table`` whose ``columns`` (any of them) point at the doomed roster.

    ``key`` says what the columns hold: a player local id, a player GUID, or the team GUID.
    """

    table: str
    columns: Tuple[str, ...]
    key: str

    def __post_init__(self) -> None:
        if self.key not in _KEY_KINDS:
            raise ValueError(f"unknown key kind: {self.key!r}")
        if not self.columns:
            raise ValueError(f"{self.table}: at least one column is required")


def _by_local_id(table: str, *columns: str) -> DeletionStep:
    return DeletionStep(table, columns or ("baseballPlayerLocalID",), KEY_LOCAL_ID)


def _by_guid(table: str, *columns: str) -> DeletionStep:
    return DeletionStep(table, columns or ("baseballPlayerGUID",), KEY_GUID)


ROSTER_DELETE_ORDER: Tuple[DeletionStep, ...] = (
    # per-player rows keyed by local id
    _by_local_id("t_baseball_player_options"),
    _by_local_id("t_baseball_player_traits"),
    _by_local_id("t_baseball_player_colors"),
    _by_local_id("t_stats_batting"),
    _by_local_id("t_stats_pitching"),
    _by_local_id("t_draft_pool"),
    _by_local_id("t_free_agents"),
    _by_local_id("t_season_pitch_counts"),
    _by_local_id("t_pending_free_agents"),
    _by_local_id("t_available_players"),
    _by_local_id("t_news_references"),
    _by_local_id("t_manager_moments"),
    _by_local_id("t_game_results", "winningPitcherLocalID", "losingPitcherLocalID", "savePitcherLocalID"),
    # lineup / contract rows keyed by GUID
    _by_guid("t_batting_orders"),
    _by_guid("t_defensive_positions"),
    _by_guid("t_pitching_rotations"),
    _by_guid("t_salary"),
    _by_guid("t_training"),
    _by_guid("t_retirements"),
    _by_guid("t_contract_extensions"),
    _by_guid("t_unavailable_players"),
    # identity last
    DeletionStep("t_baseball_player_local_ids", ("GUID",), KEY_GUID),
    DeletionStep("t_baseball_players", ("teamGUID",), KEY_TEAM),
)

# Per-player tables copied from the source, re-keyed through GUID onto target local ids.
ROSTER_COPY_TABLES: Tuple[Tuple[str, str], ...] = (
    ("t_baseball_player_options", "baseballPlayerLocalID"),
    ("t_baseball_player_traits", "baseballPlayerLocalID"),
    ("t_baseball_player_colors", "baseballPlayerLocalID"),
)


def validate_delete_order(steps: Tuple[DeletionStep, ...] = ROSTER_DELETE_ORDER) -> None:
    """Check the ordering rules: local-id keyed < GUID keyed < mapping < core rows."""
    rank = {KEY_LOCAL_ID: 0, KEY_GUID: 1, KEY_TEAM: 3}
    last = -1
    for step in steps:
        r = 2 if step.table == "t_baseball_player_local_ids" else rank[step.key]
        if r < last:
            raise ValueError(f"{step.table} is out of order in the roster delete plan")
        last = r
    if not steps or steps[-1].table != "t_baseball_players":
        raise ValueError("player core rows must be deleted last")
