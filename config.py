import os
from typing import Dict, FrozenSet, Tuple

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Staging area for decoded league databases. The host app owns the real save directory.
WORK_DIR = os.environ.get("ROSTER_INJECTOR_WORK_DIR") or os.path.join(BASE_DIR, "game_files")
LOG_LEVEL = os.environ.get("ROSTER_INJECTOR_LOG_LEVEL", "INFO").upper()

# League file naming
LEAGUE_FILE_PREFIX = "league"  # compared case-insensitively
SAVE_FILE_EXT = ".sav"
DATABASE_FILE_EXT = ".sqlite"
STALE_SAVE_SUFFIXES: Tuple[str, ...] = (".sav", ".sav.bak", ".hash")

# Container header byte shared by every zlib stream (78 01 / 78 5E / 78 9C / 78 DA)
CONTAINER_HEADER_BYTE = 0x78

# Player option keys (t_baseball_player_options.optionKey)
OPTION_THROWING_HAND = 4
OPTION_BATTING_HAND = 5
OPTION_ARM_ANGLE = 49
OPTION_PRIMARY_POSITION = 54
OPTION_SECONDARY_POSITION = 55
OPTION_PITCH_POSITION = 57
OPTION_FOUR_SEAM = 58
OPTION_TWO_SEAM = 59
OPTION_SCREWBALL = 60
OPTION_CHANGEUP = 61
OPTION_FORK = 62
OPTION_CURVEBALL = 63
OPTION_SLIDER = 64
OPTION_CUTTER = 65
OPTION_CHEMISTRY = 107

# optionType discriminator stored next to every option value.
OPTION_TYPE_ENUM = 0
OPTION_TYPE_BOOL = 1

OPTION_TYPES: Dict[int, int] = {
    OPTION_THROWING_HAND: OPTION_TYPE_ENUM,
    OPTION_BATTING_HAND: OPTION_TYPE_ENUM,
    OPTION_ARM_ANGLE: OPTION_TYPE_ENUM,
    OPTION_PRIMARY_POSITION: OPTION_TYPE_ENUM,
    OPTION_SECONDARY_POSITION: OPTION_TYPE_ENUM,
    OPTION_PITCH_POSITION: OPTION_TYPE_ENUM,
    OPTION_FOUR_SEAM: OPTION_TYPE_BOOL,
    OPTION_TWO_SEAM: OPTION_TYPE_BOOL,
    OPTION_SCREWBALL: OPTION_TYPE_BOOL,
    OPTION_CHANGEUP: OPTION_TYPE_BOOL,
    OPTION_FORK: OPTION_TYPE_BOOL,
    OPTION_CURVEBALL: OPTION_TYPE_BOOL,
    OPTION_SLIDER: OPTION_TYPE_BOOL,
    OPTION_CUTTER: OPTION_TYPE_BOOL,
    OPTION_CHEMISTRY: OPTION_TYPE_ENUM,
}

# Pitcher field name -> option key (field names match models.Pitcher)
PITCH_TYPE_OPTIONS: Tuple[Tuple[str, int, str], ...] = (
    ("fourseam", OPTION_FOUR_SEAM, "4-Seam"),
    ("twoseam", OPTION_TWO_SEAM, "2-Seam"),
    ("cutter", OPTION_CUTTER, "Cutter"),
    ("change", OPTION_CHANGEUP, "Changeup"),
    ("curve", OPTION_CURVEBALL, "Curveball"),
    ("slider", OPTION_SLIDER, "Slider"),
    ("fork", OPTION_FORK, "Fork"),
    ("screw", OPTION_SCREWBALL, "Screwball"),
)

PITCHER_POSITIONS: FrozenSet[str] = frozenset({"SP", "SP/RP", "RP", "CP"})

# Stored primary position for every pitcher ("P"); the role lives in OPTION_PITCH_POSITION.
PITCHER_PRIMARY_POSITION = 1

DEFAULT_CHEMISTRY = "Competitive"
DEFAULT_ARM_ANGLE = "Mid"
NO_TRAIT = "--"
MAX_TRAITS = 2

# Team cosmetics: colorKey slots read for display
TEAM_COLOR_KEYS: Tuple[int, ...] = (0, 1, 2, 3, 4)

# Roster source rules
ROSTER_SIZE = 22
MIN_PITCH_TYPES = 2
