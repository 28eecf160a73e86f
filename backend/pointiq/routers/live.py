# backend/pointiq/routers/live.py
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import http_problem
from ..models import Game, Match
from ..schemas import (
    GameOut,
    MatchEnd,
    MatchOut,
    PointCreate,
    PointRecord,
    SyncStatusOut,
)
from ..services import MatchTracker, archive_match
from ..storage.sync import SyncingPointStore

router = APIRouter(tags=["live"])


def get_tracker(request: Request) -> MatchTracker:
    return request.app.state.tracker


def get_store(request: Request) -> SyncingPointStore:
    return request.app.state.point_store


def game_out(game: Game) -> GameOut:
    return GameOut(
        id=game.id,
        game_number=game.game_number,
        player_served_first=bool(game.player_served_first),
        start_date=game.start_date,
        end_date=game.end_date,
        points_won=game.points_won,
        points_lost=game.points_lost,
        is_complete=game.is_complete,
        winner=game.winner,
        is_deuce=game.is_deuce,
        status_message=game.status_message,
        score_display=game.score_display,
        is_player_serving_next=game.is_player_serving_next,
    )


def match_out(match: Match, *, swap_sides: bool | None = None) -> MatchOut:
    current = match.current_game
    return MatchOut(
        id=match.id,
        start_date=match.start_date,
        end_date=match.end_date,
        opponent_name=match.opponent_name,
        notes=match.notes,
        games_won=match.games_won,
        games_lost=match.games_lost,
        point_count=match.point_count,
        current_game=game_out(current) if current is not None else None,
        swap_sides=swap_sides,
        duration_seconds=match.duration_seconds,
        games=[game_out(g) for g in match.games],
    )


def _live_match(tracker: MatchTracker) -> MatchOut:
    match = tracker.match or tracker.start_new_match()
    return match_out(match, swap_sides=tracker.swap_sides)


@router.get("/match", response_model=MatchOut)
async def current_match(tracker: MatchTracker = Depends(get_tracker)):
    return _live_match(tracker)


@router.post("/match/points", response_model=PointRecord, status_code=201)
async def log_point(body: PointCreate, tracker: MatchTracker = Depends(get_tracker)):
    return tracker.log_point(
        body.outcome,
        body.stroke_tokens,
        serve_type=body.serve_type,
        receive_type=body.receive_type,
        rally_types=body.rally_types,
    )


@router.post("/match/undo", response_model=PointRecord)
async def undo_last_point(tracker: MatchTracker = Depends(get_tracker)):
    record = tracker.undo_last()
    if record is None:
        return Response(status_code=204)
    return record


@router.post("/match/games", response_model=MatchOut, status_code=201)
async def start_new_game(tracker: MatchTracker = Depends(get_tracker)):
    tracker.start_new_game()
    return _live_match(tracker)


@router.post("/match/reset", response_model=MatchOut)
async def reset_match(tracker: MatchTracker = Depends(get_tracker)):
    tracker.reset_match()
    return _live_match(tracker)


@router.post("/match/swap", response_model=MatchOut)
async def toggle_side_swap(tracker: MatchTracker = Depends(get_tracker)):
    tracker.toggle_side_swap()
    return _live_match(tracker)


@router.post("/match/end", response_model=MatchOut)
async def end_match(
    body: MatchEnd | None = None,
    tracker: MatchTracker = Depends(get_tracker),
    session: AsyncSession = Depends(get_session),
):
    body = body or MatchEnd()
    finished = tracker.end_match(opponent_name=body.opponent_name, notes=body.notes)
    await archive_match(session, finished)
    return match_out(finished)


@router.get("/points", response_model=list[PointRecord])
async def list_points(store: SyncingPointStore = Depends(get_store)):
    return sorted(store.load_all(), key=lambda r: r.timestamp)


@router.get("/sync/status", response_model=SyncStatusOut)
async def sync_status(store: SyncingPointStore = Depends(get_store)):
    if not store.remote_enabled:
        raise http_problem(404, "remote sync is not configured", "sync_disabled")
    status = store.worker.last_status
    if status is None:
        raise http_problem(404, "no remote sync has finished yet", "sync_pending")
    return SyncStatusOut(
        operation=status.operation,
        ok=status.ok,
        detail=status.detail,
        finished_at=status.finished_at,
    )
