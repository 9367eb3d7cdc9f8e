"""Builds miniature league save databases for tests.

The schema mirrors the parts of the game's save the injector touches: league / team / logo /
attribute tables, players with the GUID <-> local-id indirection, option / trait / color rows,
a few dependent stat and lineup tables, and the player-info view.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Tuple

from config import (
    OPTION_ARM_ANGLE,
    OPTION_BATTING_HAND,
    OPTION_CHEMISTRY,
    OPTION_PITCH_POSITION,
    OPTION_PRIMARY_POSITION,
    OPTION_SECONDARY_POSITION,
    OPTION_THROWING_HAND,
    OPTION_TYPES,
)
from schema import guid_to_blob

SCHEMA_SQL = f"""
CREATE TABLE t_leagues (
    GUID BLOB PRIMARY KEY,
    name TEXT NOT NULL
);
CREATE TABLE t_teams (
    GUID BLOB PRIMARY KEY,
    teamName TEXT NOT NULL
);
CREATE TABLE t_team_local_ids (
    localID INTEGER PRIMARY KEY,
    GUID BLOB NOT NULL UNIQUE REFERENCES t_teams(GUID)
);
CREATE TABLE t_team_attributes (
    teamLocalID INTEGER NOT NULL REFERENCES t_team_local_ids(localID),
    colorKey INTEGER NOT NULL,
    optionValueInt INTEGER,
    PRIMARY KEY (teamLocalID, colorKey)
);
CREATE TABLE t_team_logos (
    GUID BLOB PRIMARY KEY,
    teamGUID BLOB NOT NULL REFERENCES t_teams(GUID),
    logoIndex INTEGER NOT NULL,
    positionX REAL
);
CREATE TABLE t_team_logo_attributes (
    teamLogoGUID BLOB NOT NULL REFERENCES t_team_logos(GUID),
    attributeKey INTEGER NOT NULL,
    value INTEGER,
    PRIMARY KEY (teamLogoGUID, attributeKey)
);
CREATE TABLE t_baseball_players (
    GUID BLOB PRIMARY KEY,
    teamGUID BLOB REFERENCES t_teams(GUID),
    firstName TEXT,
    lastName TEXT,
    power INTEGER,
    contact INTEGER,
    speed INTEGER,
    fielding INTEGER,
    arm INTEGER,
    velocity INTEGER,
    junk INTEGER,
    accuracy INTEGER
);
CREATE TABLE t_baseball_player_local_ids (
    localID INTEGER PRIMARY KEY,
    GUID BLOB NOT NULL UNIQUE REFERENCES t_baseball_players(GUID)
);
CREATE TABLE t_baseball_player_options (
    baseballPlayerLocalID INTEGER NOT NULL REFERENCES t_baseball_player_local_ids(localID),
    optionKey INTEGER NOT NULL,
    optionValue INTEGER,
    optionType INTEGER,
    PRIMARY KEY (baseballPlayerLocalID, optionKey)
);
CREATE TABLE t_baseball_player_traits (
    baseballPlayerLocalID INTEGER NOT NULL REFERENCES t_baseball_player_local_ids(localID),
    trait INTEGER NOT NULL,
    subType INTEGER NOT NULL,
    UNIQUE (baseballPlayerLocalID, trait, subType)
);
CREATE TABLE t_baseball_player_colors (
    baseballPlayerLocalID INTEGER NOT NULL REFERENCES t_baseball_player_local_ids(localID),
    colorKey INTEGER NOT NULL,
    colorValue INTEGER,
    PRIMARY KEY (baseballPlayerLocalID, colorKey)
);
CREATE TABLE t_stats_batting (
    baseballPlayerLocalID INTEGER NOT NULL REFERENCES t_baseball_player_local_ids(localID),
    hits INTEGER
);
CREATE TABLE t_batting_orders (
    teamGUID BLOB,
    baseballPlayerGUID BLOB NOT NULL REFERENCES t_baseball_players(GUID),
    slot INTEGER
);
CREATE TABLE t_game_results (
    id INTEGER PRIMARY KEY,
    winningPitcherLocalID INTEGER REFERENCES t_baseball_player_local_ids(localID),
    losingPitcherLocalID INTEGER REFERENCES t_baseball_player_local_ids(localID),
    savePitcherLocalID INTEGER REFERENCES t_baseball_player_local_ids(localID)
);
CREATE TABLE t_season_schedule (id INTEGER PRIMARY KEY);
CREATE TABLE t_franchise (id INTEGER PRIMARY KEY);
CREATE VIEW v_baseball_player_info AS
SELECT
    p.GUID AS baseballPlayerGUID,
    p.firstName AS firstName,
    p.lastName AS lastName,
    pos.optionValue AS primaryPosition,
    role.optionValue AS pitcherRole
FROM t_baseball_players p
JOIN t_baseball_player_local_ids lid ON lid.GUID = p.GUID
LEFT JOIN t_baseball_player_options pos
    ON pos.baseballPlayerLocalID = lid.localID AND pos.optionKey = {OPTION_PRIMARY_POSITION}
LEFT JOIN t_baseball_player_options role
    ON role.baseballPlayerLocalID = lid.localID AND role.optionKey = {OPTION_PITCH_POSITION};
"""

# Tables compared when checking that a failed transplant left nothing behind.
DUMP_TABLES: Tuple[str, ...] = (
    "t_teams",
    "t_team_local_ids",
    "t_team_attributes",
    "t_team_logos",
    "t_team_logo_attributes",
    "t_baseball_players",
    "t_baseball_player_local_ids",
    "t_baseball_player_options",
    "t_baseball_player_traits",
    "t_baseball_player_colors",
    "t_stats_batting",
    "t_batting_orders",
    "t_game_results",
)


def guid(prefix: int, n: int) -> str:
    return f"{prefix:08X}-0000-4000-8000-{n:012X}"


def connect(path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(str(path), isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def create_league(path: Path, name: str, league_guid: str) -> sqlite3.Connection:
    conn = connect(path)
    conn.executescript(SCHEMA_SQL)
    conn.execute("INSERT INTO t_leagues (GUID, name) VALUES (?, ?);", (guid_to_blob(league_guid), name))
    return conn


def add_team(conn: sqlite3.Connection, team_guid: str, name: str, colors: Optional[Dict[int, int]] = None) -> int:
    blob = guid_to_blob(team_guid)
    conn.execute("INSERT INTO t_teams (GUID, teamName) VALUES (?, ?);", (blob, name))
    cur = conn.execute("INSERT INTO t_team_local_ids (GUID) VALUES (?);", (blob,))
    local_id = int(cur.lastrowid)
    for key, value in (colors or {}).items():
        conn.execute(
            "INSERT INTO t_team_attributes (teamLocalID, colorKey, optionValueInt) VALUES (?, ?, ?);",
            (local_id, key, value),
        )
    return local_id


def add_logo(conn: sqlite3.Connection, team_guid: str, logo_guid: str, index: int, attrs: Dict[int, int]) -> None:
    conn.execute(
        "INSERT INTO t_team_logos (GUID, teamGUID, logoIndex, positionX) VALUES (?, ?, ?, ?);",
        (guid_to_blob(logo_guid), guid_to_blob(team_guid), index, 0.5 * index),
    )
    for key, value in attrs.items():
        conn.execute(
            "INSERT INTO t_team_logo_attributes (teamLogoGUID, attributeKey, value) VALUES (?, ?, ?);",
            (guid_to_blob(logo_guid), key, value),
        )


def _set_option(conn: sqlite3.Connection, local_id: int, key: int, value: int) -> None:
    conn.execute(
        "INSERT INTO t_baseball_player_options (baseballPlayerLocalID, optionKey, optionValue, optionType) "
        "VALUES (?, ?, ?, ?);",
        (local_id, key, value, OPTION_TYPES.get(key, 0)),
    )


def add_player(
    conn: sqlite3.Connection,
    team_guid: str,
    player_guid: str,
    first: str,
    last: str,
    *,
    position: int,
    role: Optional[int] = None,
    ratings: Sequence[int] = (50, 50, 50, 50),
    arm: Optional[int] = None,
    pitching: Optional[Sequence[int]] = None,
    bat: int = 1,
    throw: int = 1,
    chemistry: Optional[int] = 0,
    secondary: Optional[int] = None,
    angle: Optional[int] = None,
    pitches: Iterable[int] = (),
    traits: Iterable[Tuple[int, int]] = (),
    colors: Optional[Dict[int, int]] = None,
) -> int:
    """Insert a player with its mapping, options, traits and colors. Returns the local id."""
    blob = guid_to_blob(player_guid)
    velocity, junk, accuracy = pitching if pitching is not None else (None, None, None)
    conn.execute(
        """
        INSERT INTO t_baseball_players
            (GUID, teamGUID, firstName, lastName, power, contact, speed, fielding, arm, velocity, junk, accuracy)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
        """,
        (blob, guid_to_blob(team_guid), first, last, *ratings, arm, velocity, junk, accuracy),
    )
    local_id = int(conn.execute("INSERT INTO t_baseball_player_local_ids (GUID) VALUES (?);", (blob,)).lastrowid)

    _set_option(conn, local_id, OPTION_PRIMARY_POSITION, position)
    _set_option(conn, local_id, OPTION_BATTING_HAND, bat)
    _set_option(conn, local_id, OPTION_THROWING_HAND, throw)
    if chemistry is not None:
        _set_option(conn, local_id, OPTION_CHEMISTRY, chemistry)
    if role is not None:
        _set_option(conn, local_id, OPTION_PITCH_POSITION, role)
    if secondary is not None:
        _set_option(conn, local_id, OPTION_SECONDARY_POSITION, secondary)
    if angle is not None:
        _set_option(conn, local_id, OPTION_ARM_ANGLE, angle)
    for key in pitches:
        _set_option(conn, local_id, key, 1)
    for trait_id, subtype in traits:
        conn.execute(
            "INSERT INTO t_baseball_player_traits (baseballPlayerLocalID, trait, subType) VALUES (?, ?, ?);",
            (local_id, trait_id, subtype),
        )
    for key, value in (colors or {}).items():
        conn.execute(
            "INSERT INTO t_baseball_player_colors (baseballPlayerLocalID, colorKey, colorValue) VALUES (?, ?, ?);",
            (local_id, key, value),
        )
    return local_id


def dump_tables(path: Path, tables: Sequence[str] = DUMP_TABLES) -> Dict[str, list]:
    """Every row of ``tables`` in rowid order, for before/after comparisons."""
    conn = connect(path)
    try:
        out: Dict[str, list] = {}
        for table in tables:
            rows = conn.execute(f"SELECT * FROM {table} ORDER BY rowid;").fetchall()
            out[table] = [tuple(r) for r in rows]
        return out
    finally:
        conn.close()


# ----------------------------
# Canned leagues
# ----------------------------

TARGET_LEAGUE = guid(0xA, 0)
TARGET_TEAM = guid(0xA, 1)
TARGET_OTHER_TEAM = guid(0xA, 2)
TARGET_LOGO = guid(0xA, 101)
TARGET_ACE = guid(0xA, 11)
TARGET_CATCHER = guid(0xA, 12)
TARGET_SHORTSTOP = guid(0xA, 13)
TARGET_OTHER_PLAYER = guid(0xA, 21)

SOURCE_LEAGUE = guid(0xB, 0)
SOURCE_TEAM = guid(0xB, 1)
SOURCE_OTHER_TEAM = guid(0xB, 2)
SOURCE_LOGOS = (guid(0xB, 101), guid(0xB, 102))
SOURCE_STARTER = guid(0xB, 11)
SOURCE_CLOSER = guid(0xB, 12)
SOURCE_FIRST_BASE = guid(0xB, 13)
SOURCE_CENTER_FIELD = guid(0xB, 14)
SOURCE_OTHER_PLAYER = guid(0xB, 21)
SOURCE_ROSTER = (SOURCE_STARTER, SOURCE_CLOSER, SOURCE_FIRST_BASE, SOURCE_CENTER_FIELD)


def build_target_league(path: Path) -> Path:
    """Built-in style league: the kept team has 3 players with stats, lineups and a game result."""
    from config import OPTION_FOUR_SEAM, OPTION_SLIDER

    conn = create_league(path, "Super Mega League", TARGET_LEAGUE)
    try:
        add_team(conn, TARGET_TEAM, "Sharks", {0: 0xFF336699, 1: 0xFF000000})
        add_team(conn, TARGET_OTHER_TEAM, "Eagles", {0: 0xFFFFFFFF})
        add_logo(conn, TARGET_TEAM, TARGET_LOGO, 0, {1: 7})

        ace = add_player(
            conn, TARGET_TEAM, TARGET_ACE, "Old", "Ace",
            position=1, role=1, ratings=(10, 10, 30, 40), pitching=(60, 55, 50), angle=2,
            pitches=(OPTION_FOUR_SEAM, OPTION_SLIDER), traits=[(32, 6)], colors={0: 1},
        )
        catcher = add_player(
            conn, TARGET_TEAM, TARGET_CATCHER, "Old", "Catcher",
            position=2, arm=40, secondary=3, ratings=(55, 60, 20, 70),
        )
        add_player(conn, TARGET_TEAM, TARGET_SHORTSTOP, "Old", "Shortstop", position=6, arm=55)
        other = add_player(conn, TARGET_OTHER_TEAM, TARGET_OTHER_PLAYER, "Eagle", "Star", position=8, arm=70)

        conn.execute("INSERT INTO t_stats_batting (baseballPlayerLocalID, hits) VALUES (?, 12);", (catcher,))
        conn.execute("INSERT INTO t_stats_batting (baseballPlayerLocalID, hits) VALUES (?, 99);", (other,))
        for slot, g in enumerate((TARGET_CATCHER, TARGET_SHORTSTOP), start=1):
            conn.execute(
                "INSERT INTO t_batting_orders (teamGUID, baseballPlayerGUID, slot) VALUES (?, ?, ?);",
                (guid_to_blob(TARGET_TEAM), guid_to_blob(g), slot),
            )
        conn.execute(
            "INSERT INTO t_batting_orders (teamGUID, baseballPlayerGUID, slot) VALUES (?, ?, 1);",
            (guid_to_blob(TARGET_OTHER_TEAM), guid_to_blob(TARGET_OTHER_PLAYER)),
        )
        conn.execute("INSERT INTO t_game_results (winningPitcherLocalID) VALUES (?);", (ace,))
    finally:
        conn.close()
    return path


def build_source_league(path: Path) -> Path:
    """Custom league: the donor team has 2 pitchers and 2 position players, plus 2 logos."""
    from config import OPTION_CURVEBALL, OPTION_FOUR_SEAM, OPTION_SLIDER, OPTION_TWO_SEAM

    conn = create_league(path, "Custom League", SOURCE_LEAGUE)
    try:
        add_team(conn, SOURCE_OTHER_TEAM, "Comets", {0: 0xFF101010})
        add_team(conn, SOURCE_TEAM, "Moonshots", {0: 0xFF112233, 2: 0xFFAABBCC})
        add_logo(conn, SOURCE_TEAM, SOURCE_LOGOS[0], 0, {1: 3, 2: 4})
        add_logo(conn, SOURCE_TEAM, SOURCE_LOGOS[1], 1, {1: 9})

        # other team first so donor local ids do not line up with the target's
        add_player(conn, SOURCE_OTHER_TEAM, SOURCE_OTHER_PLAYER, "Comet", "Guy", position=9, arm=50)
        add_player(
            conn, SOURCE_TEAM, SOURCE_STARTER, "Luna", "Ramos",
            position=1, role=1, ratings=(15, 20, 35, 45), pitching=(70, 60, 65), angle=3,
            pitches=(OPTION_TWO_SEAM, OPTION_CURVEBALL), traits=[(7, 6)], colors={0: 42, 1: 43},
        )
        add_player(
            conn, SOURCE_TEAM, SOURCE_CLOSER, "Rico", "Vega",
            position=1, role=4, ratings=(5, 5, 25, 30), pitching=(80, 40, 55), angle=2, chemistry=3,
            pitches=(OPTION_FOUR_SEAM, OPTION_SLIDER),
        )
        add_player(
            conn, SOURCE_TEAM, SOURCE_FIRST_BASE, "Max", "Power",
            position=3, arm=45, secondary=11, ratings=(90, 60, 30, 50), bat=0, traits=[(0, 0)], colors={0: 5},
        )
        add_player(
            conn, SOURCE_TEAM, SOURCE_CENTER_FIELD, "Dee", "Speed",
            position=8, arm=60, ratings=(40, 70, 95, 80), bat=2, chemistry=1, traits=[(26, 6)],
        )
    finally:
        conn.close()
    return path
