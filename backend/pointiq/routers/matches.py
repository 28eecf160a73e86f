# backend/pointiq/routers/matches.py
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import MatchNotFound
from ..schemas import MatchOut, MatchStatsOut
from ..services import compute_archive_stats, delete_match, get_match, list_matches
from .live import match_out

# Finished matches only; the match in progress lives under /match.
router = APIRouter(prefix="/matches", tags=["matches"])


@router.get("", response_model=list[MatchOut])
async def list_archived_matches(session: AsyncSession = Depends(get_session)):
    return [match_out(m) for m in await list_matches(session)]


@router.get("/stats", response_model=MatchStatsOut)
async def archived_match_stats(session: AsyncSession = Depends(get_session)):
    return MatchStatsOut(**compute_archive_stats(await list_matches(session)))


@router.get("/{match_id}", response_model=MatchOut)
async def get_archived_match(match_id: str, session: AsyncSession = Depends(get_session)):
    match = await get_match(session, match_id)
    if match is None:
        raise MatchNotFound(match_id)
    return match_out(match)


@router.delete("/{match_id}", status_code=204)
async def delete_archived_match(
    match_id: str, session: AsyncSession = Depends(get_session)
):
    if not await delete_match(session, match_id):
        raise MatchNotFound(match_id)
    return Response(status_code=204)
