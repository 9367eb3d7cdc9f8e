# roster_compare.py
"""Roster source vs. database players: matching, per-field diffs and roster checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from config import MIN_PITCH_TYPES, NO_TRAIT, ROSTER_SIZE
from models import League, Pitcher, Player, PlayerPair, PositionPlayer, Team
from player_updater import player_validation_errors

# (attribute, display name)
_COMMON_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("position", "Position"),
    ("bat", "Bat"),
    ("throw", "Throw"),
    ("power", "Power"),
    ("contact", "Contact"),
    ("speed", "Speed"),
    ("field", "Field"),
    ("chemistry", "Chemistry"),
)

_PITCHER_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("velocity", "Velocity"),
    ("junk", "Junk"),
    ("accuracy", "Accuracy"),
    ("fourseam", "4F"),
    ("twoseam", "2F"),
    ("cutter", "CF"),
    ("change", "CH"),
    ("curve", "CB"),
    ("slider", "SL"),
    ("fork", "FK"),
    ("screw", "SB"),
    ("angle", "Arm Angle"),
)

_POSITION_PLAYER_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("secondary_position", "Secondary Position"),
    ("arm", "Arm"),
)


@dataclass(frozen=True)
class PlayerDiff:
    property: str
    display_name: str
    roster_value: Any
    db_value: Any


@dataclass(frozen=True)
class RosterValidation:
    is_valid: bool
    player_count: int
    has_correct_player_count: bool
    all_players_valid: bool
    message: Optional[str] = None
    level: Optional[str] = None  # "error" | "warning" | "success"
    invalid_players: List[str] = field(default_factory=list)


def match_players(roster_players: Sequence[Player], db_players: Sequence[Player]) -> List[PlayerPair]:
    """Pair each roster player with the first database player of the same name."""
    by_name = {}
    for p in db_players:
        by_name.setdefault(p.name, p)
    out: List[PlayerPair] = []
    for rp in roster_players:
        db = by_name.get(rp.name)
        out.append(PlayerPair(roster_player=rp, db_player=db, matched=db is not None))
    return out


def _traits(player: Player) -> List[str]:
    return [t for t in (player.trait1, player.trait2) if t and t != NO_TRAIT]


def player_diffs(roster: Player, db: Player) -> List[PlayerDiff]:
    diffs: List[PlayerDiff] = []
    for key, display in _COMMON_FIELDS:
        a, b = getattr(roster, key), getattr(db, key)
        if a != b:
            diffs.append(PlayerDiff(key, display, a, b))

    rt, dt = _traits(roster), _traits(db)
    if sorted(rt) != sorted(dt):
        diffs.append(PlayerDiff("traits", "Traits", ", ".join(rt) or NO_TRAIT, ", ".join(dt) or NO_TRAIT))

    if isinstance(roster, Pitcher) and isinstance(db, Pitcher):
        extra = _PITCHER_FIELDS
    elif isinstance(roster, PositionPlayer) and isinstance(db, PositionPlayer):
        extra = _POSITION_PLAYER_FIELDS
    else:
        extra = ()
    for key, display in extra:
        a, b = getattr(roster, key), getattr(db, key)
        if a != b:
            diffs.append(PlayerDiff(key, display, a, b))
    return diffs


def roster_player_problems(player: Player) -> List[str]:
    problems = list(player_validation_errors(player))
    if not player.position:
        problems.append("position is required")
    if not player.chemistry:
        problems.append("chemistry is required")
    if player.trait1 and player.trait1 != NO_TRAIT and player.trait1 == player.trait2:
        problems.append("duplicate traits")
    if isinstance(player, Pitcher):
        if not player.angle:
            problems.append("angle is required")
        if player.pitch_count < MIN_PITCH_TYPES:
            problems.append(f"needs at least {MIN_PITCH_TYPES} pitch types")
    return problems


def is_roster_player_valid(player: Player) -> bool:
    return not roster_player_problems(player)


def validate_roster(players: Sequence[Player]) -> RosterValidation:
    count = len(players)
    invalid = [p.name or f"#{i + 1}" for i, p in enumerate(players) if roster_player_problems(p)]
    all_valid = not invalid
    size_ok = count == ROSTER_SIZE

    message: Optional[str] = None
    level: Optional[str] = None
    if count > 0:
        if not size_ok:
            level = "error"
            message = (
                f"Invalid roster size: {count} players found. "
                f"A valid roster must contain exactly {ROSTER_SIZE} players."
            )
        elif not all_valid:
            level = "warning"
            message = f"Roster contains {count} players but some have invalid data: {', '.join(invalid)}"
        else:
            level = "success"
            message = f"Valid roster: {count} players loaded successfully."

    return RosterValidation(
        is_valid=size_ok and all_valid,
        player_count=count,
        has_correct_player_count=size_ok,
        all_players_valid=all_valid,
        message=message,
        level=level,
        invalid_players=invalid,
    )


def validate_team_name(target_league: League, target_team: Team, source_team: Team) -> Optional[str]:
    """Error message if the donor name already belongs to another team of the target league."""
    wanted = source_team.name.lower()
    for team in target_league.teams:
        if team.guid == target_team.guid:
            continue
        if team.name.lower() == wanted:
            return (
                f'Team name "{source_team.name}" already exists in the "{target_league.name}" league. '
                "Please select a different custom team to avoid duplicate names."
            )
    return None
