# roster_io.py
# Developer note:
# - Local stand-in for the external roster sheet: one row per player, columns named after Player fields.
# - pandas is imported inside the functions so the rest of the package works without it.
"""Spreadsheet (xlsx / csv) roster adapter producing normalized Player records."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from config import DEFAULT_ARM_ANGLE, DEFAULT_CHEMISTRY, NO_TRAIT, PITCH_TYPE_OPTIONS
from errors import FileAccessError, ValidationError
from models import Player, parse_flag, player_from_dict, player_to_dict

logger = logging.getLogger(__name__)

ROSTER_SHEET_NAME = "Roster"

NUMERIC_COLUMNS = ("power", "contact", "speed", "field", "arm", "velocity", "junk", "accuracy")
BOOL_COLUMNS = tuple(key for key, _, _ in PITCH_TYPE_OPTIONS)
TEXT_COLUMNS = ("name", "position", "secondary_position", "bat", "throw", "chemistry", "trait1", "trait2", "angle")

EXPORT_COLUMNS: Sequence[str] = (
    "name", "position", "secondary_position", "bat", "throw",
    "power", "contact", "speed", "field", "arm",
    "velocity", "junk", "accuracy", "angle",
    *BOOL_COLUMNS,
    "chemistry", "trait1", "trait2", "guid",
)

# Header spellings seen in hand-made sheets -> field name
_COLUMN_ALIASES: Dict[str, str] = {
    "secondaryposition": "secondary_position",
    "secondary position": "secondary_position",
    "arm angle": "angle",
    "armangle": "angle",
    "4f": "fourseam",
    "2f": "twoseam",
    "cf": "cutter",
    "ch": "change",
    "cb": "curve",
    "sl": "slider",
    "fk": "fork",
    "sb": "screw",
}


def _normalize_column(name: Any) -> str:
    key = str(name).strip().lower()
    return _COLUMN_ALIASES.get(key, key)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and value != value:  # NaN
        return True
    return isinstance(value, str) and not value.strip()


def _to_number(value: Any) -> int:
    if _is_blank(value):
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _to_text(value: Any, default: str = "") -> str:
    if _is_blank(value):
        return default
    return str(value).strip()


def row_to_player(row: Dict[str, Any]) -> Player:
    """One sheet row (already header-normalized) -> Player variant."""
    raw: Dict[str, Any] = {}
    for key in TEXT_COLUMNS:
        raw[key] = _to_text(row.get(key))
    raw["chemistry"] = raw["chemistry"] or DEFAULT_CHEMISTRY
    raw["trait1"] = raw["trait1"] or NO_TRAIT
    raw["trait2"] = raw["trait2"] or NO_TRAIT
    raw["angle"] = raw["angle"] or DEFAULT_ARM_ANGLE
    raw["secondary_position"] = raw["secondary_position"] or "-"
    for key in NUMERIC_COLUMNS:
        raw[key] = _to_number(row.get(key))
    for key in BOOL_COLUMNS:
        raw[key] = parse_flag(row.get(key))
    guid = _to_text(row.get("guid"))
    raw["guid"] = guid or None
    return player_from_dict(raw)


def _read_frame(path: Path, sheet_name: Optional[str]):
    import pandas as pd

    if path.suffix.lower() == ".csv":
        return pd.read_csv(path)
    return pd.read_excel(path, sheet_name=(sheet_name if sheet_name is not None else 0))


def load_roster_excel(path: str | Path, sheet_name: Optional[str] = ROSTER_SHEET_NAME) -> List[Player]:
    """Read a roster sheet into Player records. Rows without a name are skipped."""
    p = Path(path)
    if not p.is_file():
        raise FileAccessError(f"Roster file not found: {p}", {"path": str(p)})
    try:
        df = _read_frame(p, sheet_name)
    except (OSError, ValueError) as exc:
        raise FileAccessError(f"Cannot read roster file {p.name}: {exc}", {"path": str(p)}) from exc

    df = df.rename(columns={c: _normalize_column(c) for c in df.columns})
    if "name" not in df.columns or "position" not in df.columns:
        raise ValidationError(
            "Roster sheet must have 'name' and 'position' columns",
            {"columns": [str(c) for c in df.columns]},
        )

    players: List[Player] = []
    for _, row in df.iterrows():
        record = row.to_dict()
        if _is_blank(record.get("name")):
            continue
        players.append(row_to_player(record))
    logger.info("[ROSTER_LOADED] file=%s players=%d", p.name, len(players))
    return players


def export_roster_excel(players: Sequence[Player], path: str | Path, sheet_name: str = ROSTER_SHEET_NAME) -> Path:
    """Write Player records to xlsx (or csv by suffix). Missing variant fields stay empty."""
    import pandas as pd

    out: List[Dict[str, Any]] = []
    for player in players:
        d = player_to_dict(player)
        d.pop("kind", None)
        out.append({col: d.get(col) for col in EXPORT_COLUMNS})

    df = pd.DataFrame(out, columns=list(EXPORT_COLUMNS))
    p = Path(path)
    try:
        if p.suffix.lower() == ".csv":
            df.to_csv(p, index=False)
        else:
            df.to_excel(p, sheet_name=sheet_name, index=False)
    except OSError as exc:
        raise FileAccessError(f"Cannot write roster file {p}: {exc}", {"path": str(p)}) from exc
    return p
