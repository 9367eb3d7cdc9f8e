# game_files.py
# Developer note:
# - A save directory holds League*.sav containers; we stage decoded League*.sqlite copies in a work dir.
# - The host app re-hashes a league on next launch only if its .sav.bak / .hash siblings are gone.
"""Container <-> staged database file operations and the multi-file league scan."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

import container
from config import DATABASE_FILE_EXT, LEAGUE_FILE_PREFIX, SAVE_FILE_EXT, STALE_SAVE_SUFFIXES
from errors import FileAccessError, InjectorError, NotFoundError
from league_repo import SaveDatabase
from models import League

logger = logging.getLogger(__name__)


def _is_league_file(name: str, ext: str) -> bool:
    return name.lower().startswith(LEAGUE_FILE_PREFIX) and name.endswith(ext)


def list_league_files(directory: str | Path, ext: str) -> List[Path]:
    """League files with extension ``ext`` directly under ``directory`` (sorted by name)."""
    d = Path(directory)
    try:
        names = sorted(os.listdir(d))
    except OSError as exc:
        raise FileAccessError(f"Cannot list directory {d}: {exc}", {"path": str(d)}) from exc
    return [d / n for n in names if _is_league_file(n, ext) and (d / n).is_file()]


def unpack_save_file(save_path: str | Path, out_dir: str | Path) -> Path:
    """Decode one container into ``<out_dir>/<stem>.sqlite`` and return that path."""
    src = Path(save_path)
    out = Path(out_dir)
    try:
        data = src.read_bytes()
    except OSError as exc:
        raise FileAccessError(f"Failed to read {src.name}: {exc}", {"path": str(src)}) from exc

    database = container.decode(data)

    stem = src.name[: -len(SAVE_FILE_EXT)] if src.name.endswith(SAVE_FILE_EXT) else src.stem
    out_path = out / f"{stem}{DATABASE_FILE_EXT}"
    try:
        out.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(database)
    except OSError as exc:
        raise FileAccessError(f"Failed to write {out_path}: {exc}", {"path": str(out_path)}) from exc
    logger.info("[UNPACK] %s -> %s (%d bytes)", src.name, out_path, len(database))
    return out_path


def unpack_save_directory(save_dir: str | Path, out_dir: str | Path) -> List[Path]:
    """Decode every League*.sav in ``save_dir``. One bad container is logged and skipped."""
    files = list_league_files(save_dir, SAVE_FILE_EXT)
    if not files:
        raise NotFoundError("No league .sav files found in the selected directory", {"save_dir": str(save_dir)})

    out: List[Path] = []
    for f in files:
        try:
            out.append(unpack_save_file(f, out_dir))
        except InjectorError as exc:
            logger.warning("[UNPACK_SKIPPED] file=%s error=%s", f.name, exc)
    return out


def read_leagues(work_dir: str | Path) -> List[League]:
    """Read every staged League*.sqlite that is still importable.

    Leagues that already have a schedule, franchise or game results are left out. A file that
    cannot be read is logged and skipped so sibling files still load.
    """
    d = Path(work_dir)
    if not d.is_dir():
        raise NotFoundError(f"Leagues not loaded: {d} does not exist. Unpack the save directory first.", {"work_dir": str(d)})

    files = list_league_files(d, DATABASE_FILE_EXT)
    if not files:
        raise NotFoundError(f"No league {DATABASE_FILE_EXT} files found in {d}", {"work_dir": str(d)})

    leagues: List[League] = []
    for f in files:
        try:
            with SaveDatabase(f) as db:
                if db.has_played_season_or_franchise():
                    logger.info("[LEAGUE_EXCLUDED] %s has played a season or franchise", f.name)
                    continue
                leagues.append(db.read_league())
        except Exception:
            # sqlite3.Error or InjectorError: skip this file
            logger.exception("[LEAGUE_READ_FAILED] file=%s", f.name)
    return leagues


def _stale_save_files(save_dir: Path, league_name: str) -> List[Path]:
    prefix = league_name.lower()
    out: List[Path] = []
    for name in os.listdir(save_dir):
        lower = name.lower()
        if lower.startswith(prefix) and lower.endswith(STALE_SAVE_SUFFIXES):
            out.append(save_dir / name)
    return out


def pack_league(db_path: str | Path, save_dir: str | Path) -> Path:
    """Encode a staged database back into ``<save_dir>/<stem>.sav``.

    Existing ``<stem>*.sav``, ``*.sav.bak`` and ``*.hash`` files are removed first.
    """
    src = Path(db_path)
    dest_dir = Path(save_dir)
    league_name = src.name[: -len(DATABASE_FILE_EXT)] if src.name.endswith(DATABASE_FILE_EXT) else src.stem
    sav_path = dest_dir / f"{league_name}{SAVE_FILE_EXT}"

    try:
        data = container.encode(src.read_bytes())
    except OSError as exc:
        raise FileAccessError(f"Failed to read {src}: {exc}", {"path": str(src)}) from exc

    try:
        stale = _stale_save_files(dest_dir, league_name)
    except OSError as exc:
        raise FileAccessError(f"Cannot list save directory {dest_dir}: {exc}", {"path": str(dest_dir)}) from exc
    for f in stale:
        try:
            f.unlink()
            logger.info("[PACK] deleted existing file %s", f.name)
        except OSError:
            logger.warning("[PACK_STALE_DELETE_FAILED] file=%s", f, exc_info=True)

    try:
        sav_path.write_bytes(data)
    except OSError as exc:
        raise FileAccessError(f"Failed to write {sav_path}: {exc}", {"path": str(sav_path)}) from exc
    logger.info("[PACK] %s -> %s (%d bytes)", src.name, sav_path, len(data))
    return sav_path
