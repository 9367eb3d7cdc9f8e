from pathlib import Path
import sys

import pytest

pytest.importorskip("pandas")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from errors import FileAccessError, ValidationError  # noqa: E402
from league_repo import SaveDatabase  # noqa: E402
from models import Pitcher, PositionPlayer  # noqa: E402
from roster_io import export_roster_excel, load_roster_excel  # noqa: E402
from save_factory import SOURCE_TEAM  # noqa: E402

HAND_MADE = (
    "Name,Position,Secondary Position,Bat,Throw,Power,Contact,Speed,Field,Arm,"
    "Velocity,Junk,Accuracy,Arm Angle,4F,SL,Chemistry,Trait1,Trait2\n"
    "Ace,SP,,R,R,40,30,20,50,,80,60,70,High,x,yes,Crafty,,\n"
    "Slugger,1B,OF,L,R,90,70,40,50,60,,,,,,,,Clutch (+),\n"
    ",,,,,,,,,,,,,,,,,,\n"
)


def test_hand_made_sheet_headers_and_blanks(tmp_path: Path) -> None:
    path = tmp_path / "roster.csv"
    path.write_text(HAND_MADE, encoding="utf-8")

    players = load_roster_excel(path)

    assert [p.name for p in players] == ["Ace", "Slugger"]
    ace, slugger = players
    assert isinstance(ace, Pitcher)
    assert (ace.velocity, ace.junk, ace.accuracy) == (80, 60, 70)
    assert ace.angle == "High"
    assert ace.fourseam and ace.slider and not ace.curve
    assert ace.chemistry == "Crafty"
    assert ace.trait1 == "--" and ace.trait2 == "--"

    assert isinstance(slugger, PositionPlayer)
    assert slugger.secondary_position == "OF"
    assert slugger.arm == 60
    assert slugger.chemistry == "Competitive"
    assert slugger.trait1 == "Clutch (+)"


def test_export_then_load_keeps_players(tmp_path: Path, source_db: Path) -> None:
    with SaveDatabase(source_db) as db:
        players = db.get_players_by_team(SOURCE_TEAM)
    path = export_roster_excel(players, tmp_path / "roster.csv")
    assert load_roster_excel(path) == players


def test_xlsx_sheet(tmp_path: Path, source_db: Path) -> None:
    pytest.importorskip("openpyxl")
    with SaveDatabase(source_db) as db:
        players = db.get_players_by_team(SOURCE_TEAM)
    path = export_roster_excel(players, tmp_path / "roster.xlsx")
    loaded = load_roster_excel(path, sheet_name="Roster")
    assert [p.name for p in loaded] == [p.name for p in players]


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileAccessError):
        load_roster_excel(tmp_path / "nope.xlsx")


def test_sheet_without_required_columns(tmp_path: Path) -> None:
    path = tmp_path / "bad.csv"
    path.write_text("Player,Pos\nAce,SP\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_roster_excel(path)
