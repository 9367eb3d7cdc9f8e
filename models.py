"""League / team / player value types.

Players are a tagged union: ``PositionPlayer`` or ``Pitcher``. The variant is decided once
(at read or parse time) from the position string and carried through; consumers dispatch on
``player.kind`` instead of re-checking positions.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from config import DEFAULT_ARM_ANGLE, DEFAULT_CHEMISTRY, NO_TRAIT, PITCH_TYPE_OPTIONS
from errors import ValidationError
from schema import is_pitcher_position


@dataclass(frozen=True)
class Team:
    guid: str
    name: str
    colors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class League:
    guid: str
    name: str
    database_path: str
    teams: List[Team] = field(default_factory=list)

    def find_team(self, guid: str) -> Optional[Team]:
        for team in self.teams:
            if team.guid == guid:
                return team
        return None


@dataclass(frozen=True)
class PositionPlayer:
    name: str
    position: str
    bat: str
    throw: str
    power: int
    contact: int
    speed: int
    field: int
    chemistry: str
    trait1: str
    trait2: str
    secondary_position: str
    arm: int
    guid: Optional[str] = None

    kind = "position_player"

    @property
    def traits(self) -> List[str]:
        return [t for t in (self.trait1, self.trait2) if t and t != NO_TRAIT]


@dataclass(frozen=True)
class Pitcher:
    name: str
    position: str
    bat: str
    throw: str
    power: int
    contact: int
    speed: int
    field: int
    chemistry: str
    trait1: str
    trait2: str
    velocity: int
    junk: int
    accuracy: int
    angle: str
    fourseam: bool = False
    twoseam: bool = False
    cutter: bool = False
    change: bool = False
    curve: bool = False
    slider: bool = False
    fork: bool = False
    screw: bool = False
    guid: Optional[str] = None

    kind = "pitcher"

    @property
    def traits(self) -> List[str]:
        return [t for t in (self.trait1, self.trait2) if t and t != NO_TRAIT]

    @property
    def pitch_count(self) -> int:
        return sum(1 for key, _, _ in PITCH_TYPE_OPTIONS if getattr(self, key))


Player = Union[PositionPlayer, Pitcher]


@dataclass(frozen=True)
class PlayerPair:
    """A roster-source player and the database player it matched (if any)."""

    roster_player: Player
    db_player: Optional[Player]
    matched: bool


def player_to_dict(player: Player) -> Dict[str, Any]:
    d = asdict(player)
    d["kind"] = player.kind
    return d


_TRUE_STRINGS = {"true", "yes", "y", "1", "x", "☑"}


def parse_flag(value: Any) -> bool:
    """Checkbox-style flag: real bools and numbers as-is, strings only when truthy text."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == value and value != 0  # NaN is unset
    return str(value).strip().lower() in _TRUE_STRINGS


def _text(raw: Mapping[str, Any], key: str, default: str = "") -> str:
    value = raw.get(key)
    if value is None:
        return default
    return str(value).strip() or default


def player_from_dict(raw: Mapping[str, Any]) -> Player:
    """Build the right variant from a plain mapping (JSON body, spreadsheet row).

    Values are copied as given; type checks belong to the updater's validation step.
    Accepts both ``secondary_position`` and ``secondaryPosition`` spellings.
    """
    if not isinstance(raw, Mapping):
        raise ValidationError("player must be an object", {"value": repr(raw)[:120]})
    position = _text(raw, "position")
    common = dict(
        name=_text(raw, "name"),
        position=position,
        bat=_text(raw, "bat"),
        throw=_text(raw, "throw"),
        power=raw.get("power"),
        contact=raw.get("contact"),
        speed=raw.get("speed"),
        field=raw.get("field"),
        chemistry=_text(raw, "chemistry", DEFAULT_CHEMISTRY),
        trait1=_text(raw, "trait1", NO_TRAIT),
        trait2=_text(raw, "trait2", NO_TRAIT),
        guid=raw.get("guid"),
    )
    if is_pitcher_position(position):
        pitches = {key: parse_flag(raw.get(key)) for key, _, _ in PITCH_TYPE_OPTIONS}
        return Pitcher(
            velocity=raw.get("velocity"),
            junk=raw.get("junk"),
            accuracy=raw.get("accuracy"),
            angle=_text(raw, "angle", DEFAULT_ARM_ANGLE),
            **pitches,
            **common,
        )
    secondary = raw.get("secondary_position", raw.get("secondaryPosition"))
    return PositionPlayer(
        secondary_position=str(secondary).strip() if secondary else "-",
        arm=raw.get("arm"),
        **common,
    )
