"""Apply roster-source values onto matched database players.

Runs on a cursor owned by the caller. Nothing here begins, commits or rolls back; the
caller decides what is atomic. One bad pair (validation failure, missing player, bad
enum) becomes a warning and the batch moves on.
"""

from __future__ import annotations

import logging
import numbers
import sqlite3
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from config import (
    MAX_TRAITS,
    NO_TRAIT,
    OPTION_ARM_ANGLE,
    OPTION_BATTING_HAND,
    OPTION_CHEMISTRY,
    OPTION_PITCH_POSITION,
    OPTION_PRIMARY_POSITION,
    OPTION_SECONDARY_POSITION,
    OPTION_THROWING_HAND,
    OPTION_TYPES,
    PITCH_TYPE_OPTIONS,
    PITCHER_PRIMARY_POSITION,
)
from errors import InjectorError, IntegrityError, NotFoundError, ValidationError
from models import Pitcher, Player, PlayerPair, PositionPlayer
from schema import (
    get_arm_angle_int,
    get_batting_hand_int,
    get_chemistry_int,
    get_pitch_position_int,
    get_position_int,
    get_throwing_hand_int,
    get_trait_ids,
    guid_to_blob,
)

logger = logging.getLogger(__name__)
_WARN_COUNTS: Dict[str, int] = {}


def _warn_limited(code: str, msg: str, *, limit: int = 20) -> None:
    """Log a WARNING, but cap repeats per code so a bad roster does not flood the log."""
    n = _WARN_COUNTS.get(code, 0)
    if n < limit:
        logger.warning("%s %s", code, msg)
    _WARN_COUNTS[code] = n + 1


_UPDATE_PLAYER_SQL = """
    UPDATE t_baseball_players
    SET power = ?, contact = ?, speed = ?, fielding = ?, arm = ?, velocity = ?, junk = ?, accuracy = ?
    WHERE GUID = ?;
"""

_UPSERT_OPTION_SQL = """
    INSERT INTO t_baseball_player_options (baseballPlayerLocalID, optionKey, optionValue, optionType)
    VALUES (?, ?, ?, ?)
    ON CONFLICT (baseballPlayerLocalID, optionKey)
    DO UPDATE SET optionValue = excluded.optionValue, optionType = excluded.optionType;
"""

_DELETE_TRAITS_SQL = "DELETE FROM t_baseball_player_traits WHERE baseballPlayerLocalID = ?;"

_INSERT_TRAIT_SQL = """
    INSERT INTO t_baseball_player_traits (baseballPlayerLocalID, trait, subType)
    VALUES (?, ?, ?);
"""


# ----------------------------
# Validation
# ----------------------------

def _is_number(value: object) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _is_text(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def player_validation_errors(player: Player) -> List[str]:
    """Required-field / type problems for one roster player (empty list = valid)."""
    problems: List[str] = []
    if not _is_text(player.name):
        problems.append("name is required")
    for key in ("power", "contact", "speed", "field"):
        if not _is_number(getattr(player, key)):
            problems.append(f"{key} must be a number")
    if not _is_text(player.bat):
        problems.append("bat is required")
    if not _is_text(player.throw):
        problems.append("throw is required")

    if isinstance(player, Pitcher):
        for key in ("velocity", "junk", "accuracy"):
            if not _is_number(getattr(player, key)):
                problems.append(f"{key} must be a number")
        if not isinstance(player.angle, str):
            problems.append("angle must be a string")
    elif isinstance(player, PositionPlayer):
        if not _is_number(player.arm):
            problems.append("arm must be a number")
    else:
        problems.append(f"unknown player type: {type(player).__name__}")
    return problems


def validate_player_data(player: Player) -> bool:
    return not player_validation_errors(player)


# ----------------------------
# Per-call statement context
# ----------------------------

@dataclass
class _PlayerWriter:
    """Statements for one update batch, bound to the caller's cursor."""

    cur: sqlite3.Cursor
    warnings: List[str] = field(default_factory=list)

    def warn(self, code: str, msg: str) -> None:
        self.warnings.append(msg)
        _warn_limited(code, msg)

    def local_id(self, guid_blob: bytes) -> Optional[int]:
        row = self.cur.execute(
            "SELECT localID FROM t_baseball_player_local_ids WHERE GUID = ?;", (guid_blob,)
        ).fetchone()
        return int(row[0]) if row else None

    def update_core(self, guid_blob: bytes, values: Sequence[object]) -> int:
        self.cur.execute(_UPDATE_PLAYER_SQL, (*values, guid_blob))
        return self.cur.rowcount

    def upsert_option(self, local_id: int, option_key: int, value: int, label: str, player_name: str) -> None:
        try:
            self.cur.execute(_UPSERT_OPTION_SQL, (local_id, option_key, int(value), OPTION_TYPES[option_key]))
            if self.cur.rowcount == 0:
                self.warn("[OPTION_UPSERT_NOOP]", f"Failed to update {label} for {player_name}")
        except (sqlite3.Error, KeyError) as exc:
            self.warn("[OPTION_UPSERT_FAILED]", f"Failed to update {label} for {player_name}: {exc}")

    def replace_traits(self, local_id: int, player: Player) -> None:
        try:
            self.cur.execute(_DELETE_TRAITS_SQL, (local_id,))
            logger.debug("Deleted %s existing traits for %s", self.cur.rowcount, player.name)
        except sqlite3.Error as exc:
            self.warn("[TRAIT_DELETE_FAILED]", f"Error updating traits for {player.name}: {exc}")
            return

        seen: List[str] = []
        for trait in (player.trait1, player.trait2):
            if not trait or trait == NO_TRAIT or trait in seen:
                continue
            seen.append(trait)
            if len(seen) > MAX_TRAITS:
                break
            ids = get_trait_ids(trait)
            if ids is None:
                self.warn("[TRAIT_UNKNOWN]", f"Invalid trait {trait} for {player.name}")
                continue
            try:
                self.cur.execute(_INSERT_TRAIT_SQL, (local_id, ids[0], ids[1]))
            except sqlite3.Error as exc:
                self.warn("[TRAIT_INSERT_FAILED]", f"Failed to insert trait {trait} for {player.name}: {exc}")


# ----------------------------
# Variant updates
# ----------------------------

def _guarded_int(fn, value, label: str, writer: _PlayerWriter, player_name: str) -> Optional[int]:
    try:
        return fn(value)
    except InjectorError as exc:
        writer.warn("[OPTION_VALUE_INVALID]", f"Failed to update {label} for {player_name}: {exc.message}")
        return None


def _write_common_options(writer: _PlayerWriter, local_id: int, roster: Player, name: str) -> None:
    for option_key, fn, value, label in (
        (OPTION_BATTING_HAND, get_batting_hand_int, roster.bat, "batting hand"),
        (OPTION_THROWING_HAND, get_throwing_hand_int, roster.throw, "throwing hand"),
        (OPTION_CHEMISTRY, get_chemistry_int, roster.chemistry, "chemistry"),
    ):
        v = _guarded_int(fn, value, label, writer, name)
        if v is not None:
            writer.upsert_option(local_id, option_key, v, label, name)


def _update_pitcher(writer: _PlayerWriter, guid_blob: bytes, local_id: int, roster: Pitcher, name: str) -> None:
    changed = writer.update_core(
        guid_blob,
        (roster.power, roster.contact, roster.speed, roster.field, 0, roster.velocity, roster.junk, roster.accuracy),
    )
    if changed == 0:
        raise IntegrityError(f"Failed to update pitcher {name} - no rows affected", {"player": name})

    writer.upsert_option(local_id, OPTION_ARM_ANGLE, get_arm_angle_int(roster.angle), "arm angle", name)
    _write_common_options(writer, local_id, roster, name)
    writer.upsert_option(local_id, OPTION_PRIMARY_POSITION, PITCHER_PRIMARY_POSITION, "primary position", name)

    role = get_pitch_position_int(roster.position)
    if role > 0:
        writer.upsert_option(local_id, OPTION_PITCH_POSITION, role, "pitch position", name)

    for key, option_key, label in PITCH_TYPE_OPTIONS:
        value = getattr(roster, key)
        if isinstance(value, bool):
            writer.upsert_option(local_id, option_key, 1 if value else 0, label, name)

    writer.replace_traits(local_id, roster)


def _update_position_player(
    writer: _PlayerWriter, guid_blob: bytes, local_id: int, roster: PositionPlayer, name: str
) -> None:
    changed = writer.update_core(
        guid_blob,
        (roster.power, roster.contact, roster.speed, roster.field, roster.arm, 0, 0, 0),
    )
    if changed == 0:
        raise IntegrityError(f"Failed to update position player {name} - no rows affected", {"player": name})

    _write_common_options(writer, local_id, roster, name)
    writer.upsert_option(local_id, OPTION_PRIMARY_POSITION, get_position_int(roster.position), "primary position", name)
    writer.upsert_option(
        local_id, OPTION_SECONDARY_POSITION, get_position_int(roster.secondary_position), "secondary position", name
    )
    writer.replace_traits(local_id, roster)


def update_player_attributes(cur: sqlite3.Cursor, pairs: Iterable[PlayerPair]) -> List[str]:
    """Overwrite matched database players with roster values. Returns warnings.

    ``cur`` must belong to the database that holds the ``db_player`` rows.
    """
    writer = _PlayerWriter(cur)
    updated = 0
    failed = 0

    for pair in pairs:
        if not pair.matched or pair.db_player is None or pair.roster_player is None:
            continue
        roster = pair.roster_player
        db_player = pair.db_player
        name = db_player.name or roster.name

        problems = player_validation_errors(roster)
        if problems:
            writer.warn("[ROSTER_PLAYER_INVALID]", f"Invalid roster player data for {roster.name!r}: {', '.join(problems)}")
            failed += 1
            continue

        try:
            if not db_player.guid:
                raise ValidationError(f"Database player {name} has no GUID")
            guid_blob = guid_to_blob(db_player.guid)
            local_id = writer.local_id(guid_blob)
            if local_id is None:
                raise NotFoundError(f"Player {name} not found", {"guid": db_player.guid})
            if isinstance(roster, Pitcher):
                _update_pitcher(writer, guid_blob, local_id, roster, name)
            else:
                _update_position_player(writer, guid_blob, local_id, roster, name)
            updated += 1
        except (InjectorError, sqlite3.Error) as exc:
            failed += 1
            writer.warn("[PLAYER_UPDATE_FAILED]", f"Failed to update {roster.kind.replace('_', ' ')} {name}: {exc}")

    logger.info("Successfully updated %s players, %s updates failed", updated, failed)
    return writer.warnings
