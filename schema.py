# schema.py
from __future__ import annotations

import math
from typing import Dict, Mapping, NewType, Optional, Tuple

from config import (
    DEFAULT_ARM_ANGLE,
    NO_TRAIT,
    PITCHER_POSITIONS,
)
from errors import IntegrityError, ValidationError

# ============================================================================
# 0) Identity: GUID <-> blob
# ============================================================================

# IMPORTANT:
# - GUIDs are stored as 16-byte blobs and surface as uppercase 8-4-4-4-12 strings.
# - Local ids (integers) never leave a single database file.
Guid = NewType("Guid", str)

GUID_BLOB_LEN = 16


def blob_to_guid(blob: bytes) -> Guid:
    """Render a 16-byte GUID blob as XXXXXXXX-XXXX-XXXX-XXXX-XXXXXXXXXXXX."""
    raw = bytes(blob)
    if len(raw) != GUID_BLOB_LEN:
        raise IntegrityError(
            "GUID blob must be 16 bytes",
            {"length": len(raw)},
        )
    h = raw.hex().upper()
    return Guid(f"{h[0:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:]}")


def guid_to_blob(guid: str) -> bytes:
    """Inverse of blob_to_guid. Accepts upper- or lower-case hex, with or without hyphens."""
    s = str(guid or "").strip().replace("-", "")
    try:
        raw = bytes.fromhex(s)
    except ValueError as exc:
        raise ValidationError(f"Invalid GUID: {guid!r}") from exc
    if len(raw) != GUID_BLOB_LEN:
        raise ValidationError(f"Invalid GUID length: {guid!r}")
    return raw


def normalize_guid(guid: str) -> Guid:
    return blob_to_guid(guid_to_blob(guid))


# ============================================================================
# 1) Colors: stored linear ARGB int -> "#rrggbb" sRGB
# ============================================================================

def _linear_to_srgb(channel: int) -> int:
    x = channel / 255
    if x <= 0.0031308:
        out = 255 * 12.92 * x
    else:
        out = 255 * (1.055 * x ** (1 / 2.4) - 0.055)
    # half-up rounding
    return min(255, max(0, math.floor(out + 0.5)))


def linear_argb_to_hex(value: int) -> str:
    """Convert a stored linear ARGB integer into a display sRGB '#rrggbb' string.

    Alpha is ignored. Negative values (signed 32-bit storage) are read as unsigned.
    """
    v = int(value) & 0xFFFFFFFF
    r = _linear_to_srgb((v >> 16) & 0xFF)
    g = _linear_to_srgb((v >> 8) & 0xFF)
    b = _linear_to_srgb(v & 0xFF)
    return f"#{(r << 16) | (g << 8) | b:06x}"


# ============================================================================
# 2) Enumerations
# ============================================================================

POSITION_MAP: Dict[int, str] = {
    0: "",
    1: "P",
    2: "C",
    3: "1B",
    4: "2B",
    5: "3B",
    6: "SS",
    7: "LF",
    8: "CF",
    9: "RF",
    10: "IF",
    11: "OF",
    12: "1B/OF",
    13: "IF/OF",
}

PITCH_POSITION_MAP: Dict[int, str] = {
    1: "SP",
    2: "SP/RP",
    3: "RP",
    4: "CP",
}

BATTING_HAND_MAP: Dict[int, str] = {0: "L", 1: "R", 2: "S"}
THROWING_HAND_MAP: Dict[int, str] = {0: "L", 1: "R"}

CHEMISTRY_MAP: Dict[int, str] = {
    0: "Competitive",
    1: "Spirited",
    2: "Disciplined",
    3: "Scholarly",
    4: "Crafty",
}

ARM_ANGLE_MAP: Dict[int, str] = {0: "Sub", 1: "Low", 2: "Mid", 3: "High"}


def _reverse(mapping: Mapping[int, str]) -> Dict[str, int]:
    return {v: k for k, v in mapping.items() if v}


POSITION_REVERSE_MAP = _reverse(POSITION_MAP)
PITCH_POSITION_REVERSE_MAP = _reverse(PITCH_POSITION_MAP)
BATTING_HAND_REVERSE_MAP = _reverse(BATTING_HAND_MAP)
THROWING_HAND_REVERSE_MAP = _reverse(THROWING_HAND_MAP)
CHEMISTRY_REVERSE_MAP = _reverse(CHEMISTRY_MAP)
ARM_ANGLE_REVERSE_MAP = _reverse(ARM_ANGLE_MAP)


def _as_int(value: object, what: str) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise IntegrityError(f"Invalid {what} value: {value!r}") from exc


def is_pitcher_position(position: Optional[str]) -> bool:
    return position in PITCHER_POSITIONS


def get_player_position(position_int: object, pitch_position: object = None) -> str:
    """Resolve a stored primary position (+ optional pitcher role) to a display position.

    Unknown or empty positions degrade to '-'.
    """
    try:
        pos = int(position_int)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return "-"
    if pos == 1 and pitch_position not in (None, ""):
        try:
            role = PITCH_POSITION_MAP.get(int(pitch_position))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            role = None
        if role:
            return role
    return POSITION_MAP.get(pos) or "-"


def get_position_int(position: Optional[str]) -> int:
    """Field position -> stored int. Pitcher roles and '-' map to 0 (None)."""
    if not position or position == "-":
        return 0
    return POSITION_REVERSE_MAP.get(position, 0)


def get_pitch_position_int(position: Optional[str]) -> int:
    return PITCH_POSITION_REVERSE_MAP.get(position or "", 0)


def get_batting_hand(value: object) -> str:
    v = _as_int(value, "batting hand")
    if v not in BATTING_HAND_MAP:
        raise IntegrityError(f"Invalid batting hand value: {v}")
    return BATTING_HAND_MAP[v]


def get_batting_hand_int(bat: str) -> int:
    if bat not in BATTING_HAND_REVERSE_MAP:
        raise ValidationError(f"Invalid batting hand: {bat!r}")
    return BATTING_HAND_REVERSE_MAP[bat]


def get_throwing_hand(value: object) -> str:
    v = _as_int(value, "throwing hand")
    if v not in THROWING_HAND_MAP:
        raise IntegrityError(f"Invalid throwing hand value: {v}")
    return THROWING_HAND_MAP[v]


def get_throwing_hand_int(throw: str) -> int:
    if throw not in THROWING_HAND_REVERSE_MAP:
        raise ValidationError(f"Invalid throwing hand: {throw!r}")
    return THROWING_HAND_REVERSE_MAP[throw]


def get_chemistry(value: object) -> str:
    v = _as_int(value, "chemistry")
    if v not in CHEMISTRY_MAP:
        raise IntegrityError(f"Invalid chemistry value: {v}")
    return CHEMISTRY_MAP[v]


def get_chemistry_int(chemistry: str) -> int:
    if chemistry not in CHEMISTRY_REVERSE_MAP:
        raise ValidationError(f"Invalid chemistry: {chemistry!r}")
    return CHEMISTRY_REVERSE_MAP[chemistry]


def get_arm_angle(value: object) -> str:
    """Unknown or missing arm angles render as an empty string."""
    try:
        return ARM_ANGLE_MAP.get(int(value), "")  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return ""


def get_arm_angle_int(angle: Optional[str]) -> int:
    return ARM_ANGLE_REVERSE_MAP.get(angle or "", ARM_ANGLE_REVERSE_MAP[DEFAULT_ARM_ANGLE])


# ============================================================================
# 3) Trait catalog: "(traitId)-(subtypeId)" -> display name
# ============================================================================

TRAIT_MAP: Dict[str, str] = {
    "0-0": "POW vs RHP (+)",
    "0-1": "POW vs LHP (+)",
    "1-0": "CON vs RHP (+)",
    "1-1": "CON vs LHP (+)",
    "2-6": "RBI Hero (+)",
    "2-7": "RBI Zero (-)",
    "3-2": "High Pitch (+)",
    "3-3": "Low Pitch (+)",
    "3-4": "Inside Pitch (+)",
    "3-5": "Outside Pitch (+)",
    "4-6": "Tough Out (+)",
    "4-7": "Whiffer (-)",
    "5-12": "Specialist (+)",
    "5-13": "Reverse Splits (+)",
    "6-6": "Composed (+)",
    "6-7": "BB Prone (-)",
    "7-6": "K Collector (+)",
    "7-7": "K Neglector (-)",
    "8-6": "Stealer (+)",
    "8-7": "Bad Jumps (-)",
    "9-6": "Utility (+)",
    "10-8": "Fastball Hitter (+)",
    "10-9": "Off-Speed Hitter (+)",
    "11-6": "Bad Ball Hitter (+)",
    "12-10": "Big Hack (+)",
    "12-11": "Little Hack (+)",
    "13-6": "Rally Starter (+)",
    "14-6": "First Pitch Slayer (+)",
    "14-7": "First Pitch Prayer (-)",
    "15-6": "Pinch Perfect (+)",
    "16-6": "Ace Exterminator (+)",
    "17-6": "Mind Gamer (+)",
    "17-7": "Easy Target (-)",
    "18-6": "Pick Officer (+)",
    "18-7": "Easy Jumps (-)",
    "19-6": "Gets Ahead (+)",
    "19-7": "Falls Behind (-)",
    "20-6": "Rally Stopper (+)",
    "20-7": "Surrounded (-)",
    "21-7": "Crossed Up (-)",
    "22-14": "Elite 4F (+)",
    "22-15": "Elite 2F (+)",
    "22-16": "Elite CF (+)",
    "22-17": "Elite CB (+)",
    "22-18": "Elite SL (+)",
    "22-19": "Elite CH (+)",
    "22-20": "Elite SB (+)",
    "22-21": "Elite FK (+)",
    "23-6": "Workhorse (+)",
    "24-22": "Two Way (OF) (+)",
    "24-23": "Two Way (IF) (+)",
    "24-24": "Two Way (C) (+)",
    "25-6": "Metal Head (+)",
    "26-6": "Sprinter (+)",
    "26-7": "Slow Poke (-)",
    "27-6": "Base Rounder (+)",
    "27-7": "Base Jogger (-)",
    "28-6": "Distractor (+)",
    "29-6": "Magic Hands (+)",
    "29-7": "Butter Fingers (-)",
    "30-7": "Wild Thrower (-)",
    "31-7": "Wild Thing (-)",
    "32-6": "Clutch (+)",
    "32-7": "Choker (-)",
    "33-25": "Consistent (+)",
    "33-26": "Volatile (+)",
    "34-6": "Durable (+)",
    "34-7": "Injury Prone (-)",
    "35-6": "Stimulated (+)",
    "36-6": "Cannon Arm (+)",
    "36-7": "Noodle Arm (-)",
    "37-6": "Dive Wizard (+)",
    "38-6": "Sign Stealer (+)",
    "39-7": "Meltdown (-)",
    "40-6": "Bunter (+)",
}

TRAIT_REVERSE_MAP: Dict[str, Tuple[int, int]] = {
    name: (int(key.split("-")[0]), int(key.split("-")[1])) for key, name in TRAIT_MAP.items()
}


def trait_key(trait_id: int, subtype_id: int) -> str:
    return f"{int(trait_id)}-{int(subtype_id)}"


def get_trait(trait_id: object, subtype_id: object) -> str:
    """Strict: an unknown trait pair means the save is corrupt."""
    try:
        key = trait_key(int(trait_id), int(subtype_id))  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise IntegrityError(
            f"Invalid trait combination: traitId={trait_id!r}, subtypeId={subtype_id!r}"
        ) from exc
    name = TRAIT_MAP.get(key)
    if name is None:
        raise IntegrityError(
            f"Invalid trait combination: traitId={trait_id}, subtypeId={subtype_id}",
            {"trait_id": trait_id, "subtype_id": subtype_id},
        )
    return name


def get_trait_ids(trait: Optional[str]) -> Optional[Tuple[int, int]]:
    """Display name -> (traitId, subtypeId); None for '--', empty, or unknown names."""
    if not trait or trait == NO_TRAIT:
        return None
    return TRAIT_REVERSE_MAP.get(trait)
