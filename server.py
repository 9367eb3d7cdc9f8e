from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from config import WORK_DIR
from errors import NOT_FOUND, InjectorError
from game_files import pack_league, read_leagues, unpack_save_directory
from league_repo import SaveDatabase
from league_service import match_roster, play_ball
from models import Player, player_from_dict, player_to_dict
from roster_compare import match_players, player_diffs, validate_roster, validate_team_name
from transplant import TransplantPlan


# -------------------------------------------------------------------------
# FastAPI app
# -------------------------------------------------------------------------
app = FastAPI(title="Roster Injector")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """Health check."""
    return {"ok": True, "service": "roster-injector"}


# -------------------------------------------------------------------------
# Pydantic models
# -------------------------------------------------------------------------
class UnpackRequest(BaseModel):
    save_dir: str
    work_dir: Optional[str] = None


class PackRequest(BaseModel):
    db_path: str
    save_dir: str


class RosterCompareRequest(BaseModel):
    db_path: str
    team_guid: str
    roster: List[Dict[str, Any]] = Field(default_factory=list)


class TeamCheckRequest(BaseModel):
    target_db: str
    target_team: str
    source_db: str
    source_team: str


class PlayBallRequest(BaseModel):
    target_db: str
    target_team: str
    source_db: str
    source_team: str
    roster: List[Dict[str, Any]] = Field(default_factory=list)
    save_dir: Optional[str] = None


# -------------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------------
def _error_response(error: InjectorError) -> JSONResponse:
    payload = {
        "ok": False,
        "error": {
            "code": error.code,
            "message": error.message,
            "details": error.details,
        },
    }
    return JSONResponse(status_code=404 if error.code == NOT_FOUND else 400, content=payload)


def _parse_roster(raw: List[Dict[str, Any]]) -> List[Player]:
    return [player_from_dict(r) for r in raw]


# -------------------------------------------------------------------------
# League files
# -------------------------------------------------------------------------
@app.post("/api/leagues/unpack")
async def api_unpack(req: UnpackRequest):
    try:
        paths = unpack_save_directory(req.save_dir, req.work_dir or WORK_DIR)
        return {"ok": True, "files": [str(p) for p in paths]}
    except InjectorError as exc:
        return _error_response(exc)


@app.get("/api/leagues")
async def api_leagues(work_dir: Optional[str] = None):
    try:
        leagues = read_leagues(work_dir or WORK_DIR)
        return {"ok": True, "leagues": [asdict(lg) for lg in leagues]}
    except InjectorError as exc:
        return _error_response(exc)


@app.post("/api/leagues/pack")
async def api_pack(req: PackRequest):
    try:
        path = pack_league(req.db_path, req.save_dir)
        return {"ok": True, "save_path": str(path)}
    except InjectorError as exc:
        return _error_response(exc)


# -------------------------------------------------------------------------
# Players / roster
# -------------------------------------------------------------------------
@app.get("/api/players")
async def api_players(db_path: str, team_guid: str):
    try:
        with SaveDatabase(db_path) as db:
            players = db.get_players_by_team(team_guid)
        return {"ok": True, "players": [player_to_dict(p) for p in players]}
    except InjectorError as exc:
        return _error_response(exc)


@app.post("/api/roster/compare")
async def api_roster_compare(req: RosterCompareRequest):
    try:
        roster = _parse_roster(req.roster)
        with SaveDatabase(req.db_path) as db:
            db_players = db.get_players_by_team(req.team_guid)
        check = validate_roster(roster)
        comparisons = []
        for pair in match_players(roster, db_players):
            diffs = player_diffs(pair.roster_player, pair.db_player) if pair.db_player else []
            comparisons.append(
                {
                    "roster_player": player_to_dict(pair.roster_player),
                    "db_player": player_to_dict(pair.db_player) if pair.db_player else None,
                    "matched": pair.matched,
                    "diffs": [asdict(d) for d in diffs],
                }
            )
        return {"ok": True, "validation": asdict(check), "comparisons": comparisons}
    except InjectorError as exc:
        return _error_response(exc)


@app.post("/api/teams/check")
async def api_team_check(req: TeamCheckRequest):
    try:
        with SaveDatabase(req.target_db) as db:
            target_league = db.read_league()
            target_team = db.get_team(req.target_team)
        with SaveDatabase(req.source_db) as db:
            source_team = db.get_team(req.source_team)
        error = validate_team_name(target_league, target_team, source_team)
        return {"ok": error is None, "message": error}
    except InjectorError as exc:
        return _error_response(exc)


# -------------------------------------------------------------------------
# Play ball
# -------------------------------------------------------------------------
@app.post("/api/play-ball")
async def api_play_ball(req: PlayBallRequest):
    try:
        plan = TransplantPlan(keep_identity=req.target_team, donate_content_from=req.source_team)
        roster = _parse_roster(req.roster)
        pairs = match_roster(req.source_db, plan.donate_content_from, roster) if roster else []
        result = play_ball(req.target_db, req.source_db, plan, pairs, save_dir=req.save_dir)
        return {"ok": True, "result": result.to_dict()}
    except InjectorError as exc:
        return _error_response(exc)
