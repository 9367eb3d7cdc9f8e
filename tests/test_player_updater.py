from dataclasses import replace
from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from config import OPTION_FOUR_SEAM, OPTION_TWO_SEAM, OPTION_TYPE_BOOL  # noqa: E402
from league_repo import SaveDatabase  # noqa: E402
from models import Pitcher, PlayerPair, PositionPlayer  # noqa: E402
from player_updater import update_player_attributes, validate_player_data  # noqa: E402
from save_factory import (  # noqa: E402
    SOURCE_FIRST_BASE,
    SOURCE_STARTER,
    SOURCE_TEAM,
    guid,
)


def _players(db: SaveDatabase):
    return {p.guid: p for p in db.get_players_by_team(SOURCE_TEAM)}


def _option(db: SaveDatabase, player_guid: str, key: int):
    local_id = db.get_player_local_id(player_guid)
    return db.connection.execute(
        "SELECT optionValue, optionType FROM t_baseball_player_options WHERE baseballPlayerLocalID = ? AND optionKey = ?;",
        (local_id, key),
    ).fetchone()


def _traits(db: SaveDatabase, player_guid: str):
    local_id = db.get_player_local_id(player_guid)
    rows = db.connection.execute(
        "SELECT trait, subType FROM t_baseball_player_traits WHERE baseballPlayerLocalID = ?;",
        (local_id,),
    ).fetchall()
    return [tuple(r) for r in rows]


def _update(db: SaveDatabase, pairs):
    with db.transaction() as cur:
        return update_player_attributes(cur, pairs)


def test_pitch_flags_flip(source_db: Path) -> None:
    with SaveDatabase(source_db) as db:
        starter = _players(db)[SOURCE_STARTER]
        assert not starter.fourseam and starter.twoseam

        roster = replace(starter, fourseam=True, twoseam=False)
        warnings = _update(db, [PlayerPair(roster, starter, True)])

        assert warnings == []
        assert tuple(_option(db, SOURCE_STARTER, OPTION_FOUR_SEAM)) == (1, OPTION_TYPE_BOOL)
        assert tuple(_option(db, SOURCE_STARTER, OPTION_TWO_SEAM)) == (0, OPTION_TYPE_BOOL)
        reread = _players(db)[SOURCE_STARTER]
        assert reread.fourseam and not reread.twoseam


def test_clutch_trait_replaces_existing(source_db: Path) -> None:
    with SaveDatabase(source_db) as db:
        starter = _players(db)[SOURCE_STARTER]
        assert starter.trait1 == "K Collector (+)"

        roster = replace(starter, trait1="Clutch (+)", trait2="--")
        _update(db, [PlayerPair(roster, starter, True)])

        assert _traits(db, SOURCE_STARTER) == [(32, 6)]
        assert _players(db)[SOURCE_STARTER].trait1 == "Clutch (+)"


def test_duplicate_and_unknown_traits(source_db: Path) -> None:
    with SaveDatabase(source_db) as db:
        first_base = _players(db)[SOURCE_FIRST_BASE]
        roster = replace(first_base, trait1="Clutch (+)", trait2="Clutch (+)")
        _update(db, [PlayerPair(roster, first_base, True)])
        assert _traits(db, SOURCE_FIRST_BASE) == [(32, 6)]

        roster = replace(first_base, trait1="Made Up Trait", trait2="Sprinter (+)")
        warnings = _update(db, [PlayerPair(roster, first_base, True)])
        assert any("Made Up Trait" in w for w in warnings)
        assert _traits(db, SOURCE_FIRST_BASE) == [(26, 6)]


def test_core_ratings_and_options_written(source_db: Path) -> None:
    with SaveDatabase(source_db) as db:
        first_base = _players(db)[SOURCE_FIRST_BASE]
        roster = replace(
            first_base,
            power=99,
            arm=12,
            bat="R",
            chemistry="Crafty",
            position="3B",
            secondary_position="LF",
        )
        warnings = _update(db, [PlayerPair(roster, first_base, True)])
        assert warnings == []
        after = _players(db)[SOURCE_FIRST_BASE]
    assert (after.power, after.arm) == (99, 12)
    assert after.bat == "R"
    assert after.chemistry == "Crafty"
    assert after.position == "3B"
    assert after.secondary_position == "LF"


def test_pitcher_role_change(source_db: Path) -> None:
    with SaveDatabase(source_db) as db:
        starter = _players(db)[SOURCE_STARTER]
        roster = replace(starter, position="RP", velocity=88, angle="Sub")
        _update(db, [PlayerPair(roster, starter, True)])
        after = _players(db)[SOURCE_STARTER]
    assert after.position == "RP"
    assert after.velocity == 88
    assert after.angle == "Sub"


def test_unmatched_pairs_are_ignored(source_db: Path) -> None:
    with SaveDatabase(source_db) as db:
        before = _players(db)
        first_base = before[SOURCE_FIRST_BASE]
        roster = replace(first_base, power=1)
        warnings = _update(db, [PlayerPair(roster, None, False), PlayerPair(roster, first_base, False)])
        assert warnings == []
        assert _players(db) == before


def test_missing_player_is_warning_not_failure(source_db: Path) -> None:
    with SaveDatabase(source_db) as db:
        players = _players(db)
        first_base = players[SOURCE_FIRST_BASE]
        ghost = replace(first_base, guid=guid(0xB, 999), name="Ghost Player")
        starter = players[SOURCE_STARTER]

        warnings = _update(
            db,
            [
                PlayerPair(replace(first_base, name="Ghost Player"), ghost, True),
                PlayerPair(replace(starter, accuracy=11), starter, True),
            ],
        )
        assert len(warnings) == 1
        assert "Ghost Player" in warnings[0]
        assert _players(db)[SOURCE_STARTER].accuracy == 11


def test_invalid_roster_player_skipped(source_db: Path) -> None:
    with SaveDatabase(source_db) as db:
        first_base = _players(db)[SOURCE_FIRST_BASE]
        bad = replace(first_base, power="lots")
        warnings = _update(db, [PlayerPair(bad, first_base, True)])
        assert len(warnings) == 1
        assert _players(db)[SOURCE_FIRST_BASE].power == first_base.power


def test_bad_enum_value_only_skips_that_option(source_db: Path) -> None:
    with SaveDatabase(source_db) as db:
        first_base = _players(db)[SOURCE_FIRST_BASE]
        roster = replace(first_base, chemistry="Grumpy", power=77)
        warnings = _update(db, [PlayerPair(roster, first_base, True)])
        assert any("chemistry" in w for w in warnings)
        after = _players(db)[SOURCE_FIRST_BASE]
    assert after.power == 77
    assert after.chemistry == first_base.chemistry


def test_updater_does_not_commit(source_db: Path) -> None:
    with SaveDatabase(source_db) as db:
        first_base = _players(db)[SOURCE_FIRST_BASE]
        with pytest.raises(RuntimeError):
            with db.transaction() as cur:
                update_player_attributes(cur, [PlayerPair(replace(first_base, power=3), first_base, True)])
                raise RuntimeError("abort")
        assert _players(db)[SOURCE_FIRST_BASE].power == first_base.power


def test_validate_player_data() -> None:
    base = dict(name="A B", bat="R", throw="R", power=1, contact=1, speed=1, field=1,
                chemistry="Competitive", trait1="--", trait2="--")
    assert validate_player_data(PositionPlayer(position="C", secondary_position="-", arm=5, **base))
    assert not validate_player_data(PositionPlayer(position="C", secondary_position="-", arm=None, **base))
    assert not validate_player_data(PositionPlayer(position="C", secondary_position="-", arm=True, **base))
    assert validate_player_data(Pitcher(position="SP", velocity=1, junk=1, accuracy=1, angle="Mid", **base))
    assert not validate_player_data(Pitcher(position="SP", velocity=1, junk=None, accuracy=1, angle="Mid", **base))
