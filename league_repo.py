# league_repo.py
# Developer note:
# - One SaveDatabase wraps one decoded league file (.sqlite staged from a .sav container).
# - GUIDs cross the API boundary as strings; blobs stay inside SQL parameters.
# - Local ids are valid only inside one file. Never return them to callers as identity.
"""
SaveDatabase: read access + transaction helper for one league database.

Usage (CLI):
  python league_repo.py league --db League01.sqlite
  python league_repo.py players --db League01.sqlite --team 5E1C...-...

Python:
  from league_repo import SaveDatabase
  with SaveDatabase("League01.sqlite") as db:
      league = db.read_league()
      players = db.get_players_by_team(league.teams[0].guid)
"""

from __future__ import annotations

import argparse
import contextlib
import json
import logging
import re
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from config import (
    DEFAULT_CHEMISTRY,
    MAX_TRAITS,
    NO_TRAIT,
    OPTION_ARM_ANGLE,
    OPTION_BATTING_HAND,
    OPTION_CHANGEUP,
    OPTION_CHEMISTRY,
    OPTION_CURVEBALL,
    OPTION_CUTTER,
    OPTION_FORK,
    OPTION_FOUR_SEAM,
    OPTION_SCREWBALL,
    OPTION_SECONDARY_POSITION,
    OPTION_SLIDER,
    OPTION_THROWING_HAND,
    OPTION_TWO_SEAM,
    TEAM_COLOR_KEYS,
)
from errors import FileAccessError, IntegrityError, NotFoundError, ValidationError
from models import League, Pitcher, Player, PositionPlayer, Team
from schema import (
    blob_to_guid,
    get_arm_angle,
    get_batting_hand,
    get_chemistry,
    get_player_position,
    get_throwing_hand,
    get_trait,
    guid_to_blob,
    is_pitcher_position,
    linear_argb_to_hex,
)

logger = logging.getLogger(__name__)

_SCHEMA_ALIAS_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _json_loads(value: Any, default: Any):
    """
    Safe JSON loader:
    - None -> default
    - already dict/list -> returns as-is
    - invalid JSON -> default (logged)
    """
    if value is None:
        return default
    if isinstance(value, (dict, list)):
        return value
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError):
        logger.warning("[JSON_DECODE_FAILED] value_preview=%r", str(value)[:120])
        return default


def _pitch_flag(value: Any) -> bool:
    try:
        return int(value) == 1
    except (TypeError, ValueError):
        return False


# ----------------------------
# Player query
# ----------------------------

# Batting / throwing / chemistry are required options (inner joins); the rest are optional.
_PLAYERS_BY_TEAM_SQL = f"""
    SELECT
        p.GUID AS guid,
        vbpi.firstName AS first_name,
        vbpi.lastName AS last_name,
        p.power AS power,
        p.contact AS contact,
        p.speed AS speed,
        p.fielding AS fielding,
        p.arm AS arm,
        p.velocity AS velocity,
        p.junk AS junk,
        p.accuracy AS accuracy,
        vbpi.primaryPosition AS primary_position,
        vbpi.pitcherRole AS pitcher_role,
        secondaryPosition.optionValue AS secondary_position,
        batting.optionValue AS batting,
        throwing.optionValue AS throwing,
        chemistry.optionValue AS chemistry,
        fourSeam.optionValue AS fourseam,
        twoSeam.optionValue AS twoseam,
        screwball.optionValue AS screw,
        changeUp.optionValue AS change,
        fork.optionValue AS fork,
        curve.optionValue AS curve,
        slider.optionValue AS slider,
        cutter.optionValue AS cutter,
        armAngle.optionValue AS arm_angle,
        tr.traits AS traits
    FROM t_baseball_players p
    INNER JOIN t_baseball_player_local_ids lid
        ON lid.GUID = p.GUID
    INNER JOIN v_baseball_player_info vbpi
        ON vbpi.baseballPlayerGUID = lid.GUID
    INNER JOIN t_baseball_player_options batting
        ON batting.baseballPlayerLocalID = lid.localID AND batting.optionKey = {OPTION_BATTING_HAND}
    INNER JOIN t_baseball_player_options throwing
        ON throwing.baseballPlayerLocalID = lid.localID AND throwing.optionKey = {OPTION_THROWING_HAND}
    INNER JOIN t_baseball_player_options chemistry
        ON chemistry.baseballPlayerLocalID = lid.localID AND chemistry.optionKey = {OPTION_CHEMISTRY}
    LEFT JOIN t_baseball_player_options secondaryPosition
        ON secondaryPosition.baseballPlayerLocalID = lid.localID AND secondaryPosition.optionKey = {OPTION_SECONDARY_POSITION}
    LEFT JOIN t_baseball_player_options fourSeam
        ON fourSeam.baseballPlayerLocalID = lid.localID AND fourSeam.optionKey = {OPTION_FOUR_SEAM}
    LEFT JOIN t_baseball_player_options twoSeam
        ON twoSeam.baseballPlayerLocalID = lid.localID AND twoSeam.optionKey = {OPTION_TWO_SEAM}
    LEFT JOIN t_baseball_player_options screwball
        ON screwball.baseballPlayerLocalID = lid.localID AND screwball.optionKey = {OPTION_SCREWBALL}
    LEFT JOIN t_baseball_player_options changeUp
        ON changeUp.baseballPlayerLocalID = lid.localID AND changeUp.optionKey = {OPTION_CHANGEUP}
    LEFT JOIN t_baseball_player_options fork
        ON fork.baseballPlayerLocalID = lid.localID AND fork.optionKey = {OPTION_FORK}
    LEFT JOIN t_baseball_player_options curve
        ON curve.baseballPlayerLocalID = lid.localID AND curve.optionKey = {OPTION_CURVEBALL}
    LEFT JOIN t_baseball_player_options slider
        ON slider.baseballPlayerLocalID = lid.localID AND slider.optionKey = {OPTION_SLIDER}
    LEFT JOIN t_baseball_player_options cutter
        ON cutter.baseballPlayerLocalID = lid.localID AND cutter.optionKey = {OPTION_CUTTER}
    LEFT JOIN t_baseball_player_options armAngle
        ON armAngle.baseballPlayerLocalID = lid.localID AND armAngle.optionKey = {OPTION_ARM_ANGLE}
    LEFT JOIN (
        SELECT baseballPlayerLocalID,
               json_group_array(json_array(trait, subType)) AS traits
        FROM (
            SELECT baseballPlayerLocalID, trait, subType
            FROM t_baseball_player_traits
            ORDER BY baseballPlayerLocalID, rowid
        )
        GROUP BY baseballPlayerLocalID
    ) tr
        ON tr.baseballPlayerLocalID = lid.localID
    WHERE p.teamGUID = ?
    ORDER BY lid.localID
"""


def _row_traits(row: sqlite3.Row) -> List[str]:
    pairs = _json_loads(row["traits"], [])
    if not isinstance(pairs, list):
        return []
    names: List[str] = []
    for pair in pairs:
        if not isinstance(pair, list) or len(pair) != 2:
            continue
        name = get_trait(pair[0], pair[1])
        if name not in names:
            names.append(name)
    return names[:MAX_TRAITS]


def _required_int(row: sqlite3.Row, key: str, name: str) -> int:
    value = row[key]
    if value is None:
        raise IntegrityError(f"Pitcher {name} is missing {key}", {"player": name, "column": key})
    return int(value)


_PITCHER_RATING_COLUMNS = ("power", "contact", "speed", "fielding", "velocity", "junk", "accuracy")


def _missing_pitcher_ratings(row: sqlite3.Row) -> List[str]:
    """Rating columns a pitcher row lacks (such a row is not a complete player)."""
    position = get_player_position(row["primary_position"], row["pitcher_role"])
    if not is_pitcher_position(position):
        return []
    return [key for key in _PITCHER_RATING_COLUMNS if row[key] is None]


def row_to_player(row: sqlite3.Row) -> Player:
    """Map one joined player row to its variant. The variant is decided here, once."""
    name = f"{row['first_name'] or ''} {row['last_name'] or ''}".strip()
    position = get_player_position(row["primary_position"], row["pitcher_role"])
    traits = _row_traits(row)
    trait1 = traits[0] if len(traits) > 0 else NO_TRAIT
    trait2 = traits[1] if len(traits) > 1 else NO_TRAIT
    guid = blob_to_guid(row["guid"])
    bat = get_batting_hand(row["batting"])
    throw = get_throwing_hand(row["throwing"])

    if is_pitcher_position(position):
        return Pitcher(
            guid=guid,
            name=name,
            position=position,
            bat=bat,
            throw=throw,
            power=_required_int(row, "power", name),
            contact=_required_int(row, "contact", name),
            speed=_required_int(row, "speed", name),
            field=_required_int(row, "fielding", name),
            velocity=_required_int(row, "velocity", name),
            junk=_required_int(row, "junk", name),
            accuracy=_required_int(row, "accuracy", name),
            chemistry=get_chemistry(row["chemistry"]),
            fourseam=_pitch_flag(row["fourseam"]),
            twoseam=_pitch_flag(row["twoseam"]),
            cutter=_pitch_flag(row["cutter"]),
            change=_pitch_flag(row["change"]),
            curve=_pitch_flag(row["curve"]),
            slider=_pitch_flag(row["slider"]),
            fork=_pitch_flag(row["fork"]),
            screw=_pitch_flag(row["screw"]),
            angle=get_arm_angle(row["arm_angle"]),
            trait1=trait1,
            trait2=trait2,
        )

    chemistry = row["chemistry"]
    return PositionPlayer(
        guid=guid,
        name=name,
        position=position,
        secondary_position=get_player_position(row["secondary_position"], None),
        bat=bat,
        throw=throw,
        power=int(row["power"] or 0),
        contact=int(row["contact"] or 0),
        speed=int(row["speed"] or 0),
        field=int(row["fielding"] or 0),
        arm=int(row["arm"] or 0),
        chemistry=get_chemistry(chemistry) if chemistry is not None else DEFAULT_CHEMISTRY,
        trait1=trait1,
        trait2=trait2,
    )


# ----------------------------
# Repository
# ----------------------------

class SaveDatabase:
    def __init__(self, db_path: str | Path, *, foreign_keys: bool = True):
        self.db_path = str(db_path)
        if not Path(self.db_path).is_file():
            raise FileAccessError(f"Database file not found: {self.db_path}", {"path": self.db_path})
        # autocommit mode; we manage BEGIN/COMMIT manually to guarantee atomic multi-table writes
        try:
            self._conn = sqlite3.connect(self.db_path, isolation_level=None, uri=True)
        except sqlite3.Error as exc:
            raise FileAccessError(f"Cannot open database {self.db_path}: {exc}") from exc
        self._conn.row_factory = sqlite3.Row
        if foreign_keys:
            self._conn.execute("PRAGMA foreign_keys = ON;")
        # Rollback journal (not WAL): attached databases commit atomically and no -wal file
        # is left beside the file we re-pack.
        self._conn.execute("PRAGMA busy_timeout = 5000;")
        self._tx_depth = 0
        self._attached: Dict[str, str] = {}

    def close(self) -> None:
        try:
            self._conn.close()
        except sqlite3.Error:
            logger.warning("[DB_CLOSE_FAILED] path=%s", self.db_path, exc_info=True)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    @contextlib.contextmanager
    def transaction(self, *, write: bool = True):
        """Transaction helper.

        - Outermost: BEGIN (read) or BEGIN IMMEDIATE (write) on the connection.
        - Nested: SAVEPOINT/RELEASE so phases can roll back on their own inside one outer commit.
        """
        cur = self._conn.cursor()
        depth0 = self._tx_depth
        sp_name: str | None = None
        try:
            if depth0 == 0:
                self._conn.execute("BEGIN IMMEDIATE;" if write else "BEGIN;")
            else:
                sp_name = f"sp_{depth0}"
                cur.execute(f"SAVEPOINT {sp_name};")

            self._tx_depth += 1
            try:
                yield cur
            except Exception:
                if depth0 == 0:
                    self._conn.rollback()
                else:
                    cur.execute(f"ROLLBACK TO SAVEPOINT {sp_name};")
                    cur.execute(f"RELEASE SAVEPOINT {sp_name};")
                raise
            else:
                if depth0 == 0:
                    self._conn.commit()
                else:
                    cur.execute(f"RELEASE SAVEPOINT {sp_name};")
            finally:
                self._tx_depth -= 1
        finally:
            cur.close()

    # ------------------------
    # Attach (second schema)
    # ------------------------

    def attach(self, db_path: str | Path, alias: str = "src", *, read_only: bool = True) -> None:
        """Attach another league file under ``alias``.

        The path is bound as a parameter (never spliced into SQL). Read-only attaches use a
        ``file:`` URI with ``mode=ro`` so nothing in this connection can write the donor file.
        """
        if not _SCHEMA_ALIAS_RE.match(alias) or alias.lower() in {"main", "temp"}:
            raise ValidationError(f"Invalid schema alias: {alias!r}")
        if self._tx_depth != 0:
            raise RuntimeError("attach() must not run inside an active transaction")
        path = Path(db_path).resolve()
        if not path.is_file():
            raise FileAccessError(f"Database file not found: {path}", {"path": str(path)})
        target = path.as_uri() + ("?mode=ro" if read_only else "")
        try:
            self._conn.execute(f"ATTACH DATABASE ? AS {alias};", (target,))
        except sqlite3.Error as exc:
            raise FileAccessError(f"Cannot attach {path}: {exc}") from exc
        self._attached[alias] = str(path)

    def detach(self, alias: str = "src") -> None:
        if alias not in self._attached:
            return
        self._conn.execute(f"DETACH DATABASE {alias};")
        del self._attached[alias]

    # ------------------------
    # Reads: league / teams
    # ------------------------

    def get_league_row(self) -> Dict[str, Any]:
        row = self._conn.execute("SELECT name, GUID FROM t_leagues LIMIT 1;").fetchone()
        if not row:
            raise NotFoundError(f"No league row in {self.db_path}", {"path": self.db_path})
        return {"guid": blob_to_guid(row["GUID"]), "name": row["name"]}

    def get_team_local_id(self, team_guid: str, *, schema: str = "main") -> int:
        row = self._conn.execute(
            f"SELECT localID FROM {schema}.t_team_local_ids WHERE GUID = ?;",
            (guid_to_blob(team_guid),),
        ).fetchone()
        if not row:
            raise NotFoundError(f"Team local id not found: {team_guid}", {"team_guid": team_guid})
        return int(row["localID"])

    def get_team_colors(self, team_guid: str) -> List[str]:
        row = self._conn.execute(
            "SELECT localID FROM t_team_local_ids WHERE GUID = ?;",
            (guid_to_blob(team_guid),),
        ).fetchone()
        if not row:
            return []
        placeholders = ",".join("?" * len(TEAM_COLOR_KEYS))
        rows = self._conn.execute(
            f"""
            SELECT colorKey, optionValueInt
            FROM t_team_attributes
            WHERE teamLocalID = ? AND colorKey IN ({placeholders})
            ORDER BY colorKey;
            """,
            (row["localID"], *TEAM_COLOR_KEYS),
        ).fetchall()
        return [linear_argb_to_hex(r["optionValueInt"]) for r in rows if r["optionValueInt"] is not None]

    def get_team(self, team_guid: str, *, schema: str = "main") -> Team:
        row = self._conn.execute(
            f"SELECT GUID, teamName FROM {schema}.t_teams WHERE GUID = ?;",
            (guid_to_blob(team_guid),),
        ).fetchone()
        if not row:
            raise NotFoundError(f"Team not found: {team_guid}", {"team_guid": team_guid, "schema": schema})
        guid = blob_to_guid(row["GUID"])
        colors = self.get_team_colors(guid) if schema == "main" else []
        return Team(guid=guid, name=row["teamName"], colors=colors)

    def list_teams(self) -> List[Team]:
        rows = self._conn.execute("SELECT GUID, teamName FROM t_teams ORDER BY teamName;").fetchall()
        out: List[Team] = []
        for r in rows:
            guid = blob_to_guid(r["GUID"])
            out.append(Team(guid=guid, name=r["teamName"], colors=self.get_team_colors(guid)))
        return out

    def read_league(self) -> League:
        meta = self.get_league_row()
        return League(
            guid=meta["guid"],
            name=meta["name"],
            database_path=self.db_path,
            teams=self.list_teams(),
        )

    def has_played_season_or_franchise(self) -> bool:
        """True once the league has a schedule, a franchise, or game results (not importable)."""
        row = self._conn.execute(
            """
            SELECT (
                (SELECT COUNT(*) FROM t_season_schedule) +
                (SELECT COUNT(*) FROM t_franchise) +
                (SELECT COUNT(*) FROM t_game_results)
            ) AS total_count;
            """
        ).fetchone()
        return int(row["total_count"] or 0) > 0

    # ------------------------
    # Reads: players
    # ------------------------

    def get_players_by_team(self, team_guid: str) -> List[Player]:
        """Complete players of one team. Pitcher rows missing a rating are left out with a warning."""
        rows = self._conn.execute(_PLAYERS_BY_TEAM_SQL, (guid_to_blob(team_guid),)).fetchall()
        players: List[Player] = []
        for r in rows:
            missing = _missing_pitcher_ratings(r)
            if missing:
                logger.warning(
                    "[PLAYER_ROW_SKIPPED] guid=%s name=%r missing=%s",
                    blob_to_guid(r["guid"]),
                    f"{r['first_name'] or ''} {r['last_name'] or ''}".strip(),
                    ",".join(missing),
                )
                continue
            players.append(row_to_player(r))
        return players

    def get_player_local_id(self, player_guid: str, *, cur: sqlite3.Cursor | None = None) -> Optional[int]:
        c = cur or self._conn
        row = c.execute(
            "SELECT localID FROM t_baseball_player_local_ids WHERE GUID = ?;",
            (guid_to_blob(player_guid),),
        ).fetchone()
        return int(row["localID"]) if row else None

    # ------------------------
    # Convenience
    # ------------------------

    def __enter__(self) -> "SaveDatabase":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# ----------------------------
# CLI
# ----------------------------

def _cmd_league(args) -> None:
    with SaveDatabase(args.db) as db:
        league = db.read_league()
        played = db.has_played_season_or_franchise()
    print(f"{league.name} [{league.guid}] played={played}")
    for team in league.teams:
        print(f"  {team.guid}  {team.name}  {' '.join(team.colors)}")


def _cmd_players(args) -> None:
    with SaveDatabase(args.db) as db:
        players = db.get_players_by_team(args.team)
    for p in players:
        print(f"{p.guid}  {p.position:<5}  {p.name}  ({p.kind})")


def main(argv: Optional[Sequence[str]] = None) -> None:
    p = argparse.ArgumentParser(description="SaveDatabase (read a decoded league file)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_league = sub.add_parser("league", help="print league and teams")
    p_league.add_argument("--db", required=True, help="path to decoded .sqlite league file")
    p_league.set_defaults(func=_cmd_league)

    p_players = sub.add_parser("players", help="print a team's players")
    p_players.add_argument("--db", required=True, help="path to decoded .sqlite league file")
    p_players.add_argument("--team", required=True, help="team GUID")
    p_players.set_defaults(func=_cmd_players)

    args = p.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
