from __future__ import annotations

"""league_service.py

Write-oriented orchestration layer ("play ball").

Design goals:
- Keep SaveDatabase as the standard DB access interface.
- Put the multi-step scenario here: roster attribute update on the donor file, then the
  transplant into the target file, then the optional re-pack into the save directory.
- Every write step runs inside a transaction owned by this layer; nothing is left half-applied.
"""

import argparse
import contextlib
import logging
import sqlite3
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

from config import LOG_LEVEL, WORK_DIR
from errors import InjectorError, IntegrityError, ValidationError
from game_files import pack_league, read_leagues, unpack_save_directory
from league_repo import SaveDatabase
from models import Player, PlayerPair, player_to_dict
from player_updater import update_player_attributes
from roster_compare import match_players, validate_roster, validate_team_name
from transplant import TransplantPlan, TransplantResult, apply_transplant

logger = logging.getLogger(__name__)

SOURCE_SCHEMA = "src"


@dataclass
class PlayBallResult:
    """Outcome of one play-ball run."""

    team_guid: str
    team_name: str
    players_matched: int = 0
    warnings: List[str] = field(default_factory=list)
    deleted: Dict[str, int] = field(default_factory=dict)
    inserted: Dict[str, int] = field(default_factory=dict)
    save_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team_guid": self.team_guid,
            "team_name": self.team_name,
            "players_matched": self.players_matched,
            "warnings": list(self.warnings),
            "deleted": dict(self.deleted),
            "inserted": dict(self.inserted),
            "save_path": self.save_path,
        }


class LeagueService:
    """High-level write API bound to one target league file."""

    def __init__(self, target: SaveDatabase):
        self.target = target

    @classmethod
    @contextlib.contextmanager
    def open(cls, target_db: str | Path) -> Iterator["LeagueService"]:
        with SaveDatabase(target_db) as db:
            yield cls(db)

    # ----------------------------
    # Steps
    # ----------------------------
    @staticmethod
    def update_source_players(source_db: str | Path, pairs: Sequence[PlayerPair]) -> List[str]:
        """Attribute update on the donor file, in its own transaction. Returns warnings."""
        matched = [p for p in pairs if p.matched]
        if not matched:
            return []
        with SaveDatabase(source_db) as src:
            with src.transaction() as cur:
                return update_player_attributes(cur, matched)

    def check_team_name(self, source_db: str | Path, plan: TransplantPlan) -> None:
        """ValidationError if the donor name already belongs to another team of the target league."""
        target_league = self.target.read_league()
        target_team = self.target.get_team(plan.keep_identity)
        with SaveDatabase(source_db) as src:
            source_team = src.get_team(plan.donate_content_from)
        message = validate_team_name(target_league, target_team, source_team)
        if message:
            raise ValidationError(message, {"team_guid": plan.keep_identity, "team_name": source_team.name})

    @contextlib.contextmanager
    def attached_source(self, source_db: str | Path) -> Iterator[str]:
        self.target.attach(source_db, SOURCE_SCHEMA, read_only=True)
        try:
            yield SOURCE_SCHEMA
        finally:
            self.target.detach(SOURCE_SCHEMA)

    def transplant(self, source_db: str | Path, plan: TransplantPlan) -> TransplantResult:
        with self.attached_source(source_db) as schema:
            return apply_transplant(self.target, plan, src=schema)

    # ----------------------------
    # Scenario
    # ----------------------------
    def play_ball(
        self,
        source_db: str | Path,
        plan: TransplantPlan,
        pairs: Sequence[PlayerPair] = (),
        *,
        save_dir: str | Path | None = None,
    ) -> PlayBallResult:
        if Path(source_db).resolve() == Path(self.target.db_path).resolve():
            raise ValidationError("Source and target league files must be different", {"path": str(source_db)})
        self.check_team_name(source_db, plan)

        try:
            warnings = self.update_source_players(source_db, pairs)
            result = self.transplant(source_db, plan)
        except InjectorError:
            logger.exception("[PLAY_BALL_FAILED] target=%s team=%s", self.target.db_path, plan.keep_identity)
            raise
        except sqlite3.Error as exc:
            logger.exception("[PLAY_BALL_FAILED] target=%s team=%s", self.target.db_path, plan.keep_identity)
            raise IntegrityError(f"Transplant failed and was rolled back: {exc}", {"team_guid": plan.keep_identity}) from exc

        out = PlayBallResult(
            team_guid=result.team_guid,
            team_name=result.team_name,
            players_matched=sum(1 for p in pairs if p.matched),
            warnings=warnings,
            deleted=result.deleted,
            inserted=result.inserted,
        )
        if save_dir is not None:
            out.save_path = str(pack_league(self.target.db_path, save_dir))
        logger.info(
            "[PLAY_BALL] team=%s name=%r matched=%d warnings=%d",
            out.team_guid,
            out.team_name,
            out.players_matched,
            len(out.warnings),
        )
        return out


# ----------------------------
# Convenience module-level APIs
# ----------------------------
def play_ball(
    target_db: str | Path,
    source_db: str | Path,
    plan: TransplantPlan,
    pairs: Sequence[PlayerPair] = (),
    *,
    save_dir: str | Path | None = None,
) -> PlayBallResult:
    with LeagueService.open(target_db) as svc:
        return svc.play_ball(source_db, plan, pairs, save_dir=save_dir)


def match_roster(source_db: str | Path, source_team_guid: str, roster: Sequence[Player]) -> List[PlayerPair]:
    """Validate a roster and match it against the donor team's players."""
    check = validate_roster(roster)
    if not check.is_valid:
        raise ValidationError(check.message or "Invalid roster", {"invalid_players": check.invalid_players})
    with SaveDatabase(source_db) as src:
        db_players = src.get_players_by_team(source_team_guid)
    pairs = match_players(roster, db_players)
    unmatched = [p.roster_player.name for p in pairs if not p.matched]
    if unmatched:
        logger.warning("[ROSTER_UNMATCHED] %d players not found on donor team: %s", len(unmatched), ", ".join(unmatched))
    return pairs


def roster_pairs(source_db: str | Path, source_team_guid: str, roster_path: str | Path) -> List[PlayerPair]:
    """Load a roster sheet and match it against the donor team's players."""
    from roster_io import load_roster_excel

    return match_roster(source_db, source_team_guid, load_roster_excel(roster_path))


# ----------------------------
# CLI
# ----------------------------
def _cmd_unpack(args) -> None:
    for path in unpack_save_directory(args.save_dir, args.work_dir):
        print(path)


def _cmd_leagues(args) -> None:
    for league in read_leagues(args.work_dir):
        print(f"{league.name} [{league.guid}] {league.database_path}")
        for team in league.teams:
            print(f"  {team.guid}  {team.name}")


def _cmd_players(args) -> None:
    with SaveDatabase(args.db) as db:
        for p in db.get_players_by_team(args.team):
            d = player_to_dict(p)
            print(f"{d['guid']}  {d['position']:<5}  {d['name']}")


def _cmd_play_ball(args) -> None:
    plan = TransplantPlan(keep_identity=args.target_team, donate_content_from=args.source_team)
    pairs: List[PlayerPair] = []
    if args.roster:
        pairs = roster_pairs(args.source_db, plan.donate_content_from, args.roster)
    result = play_ball(args.target_db, args.source_db, plan, pairs, save_dir=args.save_dir)
    print(f"{result.team_name} -> {result.team_guid}: {result.inserted.get('t_baseball_players', 0)} players")
    for w in result.warnings:
        print(f"  warning: {w}")
    if result.save_path:
        print(f"saved {result.save_path}")


def _cmd_pack(args) -> None:
    print(pack_league(args.db, args.save_dir))


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    p = argparse.ArgumentParser(description="Roster injector: unpack saves, read leagues, transplant a team")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_unpack = sub.add_parser("unpack", help="decode League*.sav into the work dir")
    p_unpack.add_argument("--save-dir", required=True)
    p_unpack.add_argument("--work-dir", default=WORK_DIR)
    p_unpack.set_defaults(func=_cmd_unpack)

    p_leagues = sub.add_parser("leagues", help="list importable leagues in the work dir")
    p_leagues.add_argument("--work-dir", default=WORK_DIR)
    p_leagues.set_defaults(func=_cmd_leagues)

    p_players = sub.add_parser("players", help="list a team's players")
    p_players.add_argument("--db", required=True)
    p_players.add_argument("--team", required=True, help="team GUID")
    p_players.set_defaults(func=_cmd_players)

    p_play = sub.add_parser("play-ball", help="transplant a donor team onto a target team")
    p_play.add_argument("--target-db", required=True)
    p_play.add_argument("--target-team", required=True, help="team GUID kept in the target file")
    p_play.add_argument("--source-db", required=True)
    p_play.add_argument("--source-team", required=True, help="donor team GUID in the source file")
    p_play.add_argument("--roster", default=None, help="optional xlsx/csv roster applied to the donor first")
    p_play.add_argument("--save-dir", default=None, help="re-pack the target into this save directory")
    p_play.set_defaults(func=_cmd_play_ball)

    p_pack = sub.add_parser("pack", help="encode a league database back into a .sav")
    p_pack.add_argument("--db", required=True)
    p_pack.add_argument("--save-dir", required=True)
    p_pack.set_defaults(func=_cmd_pack)

    args = p.parse_args(argv)
    try:
        args.func(args)
    except InjectorError as exc:
        print(f"error: {exc.message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
