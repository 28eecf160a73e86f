"""Archive of finished matches in the SQL database."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Game, Match

logger = logging.getLogger(__name__)


def _with_children():
    return (
        selectinload(Match.games).selectinload(Game.points),
        selectinload(Match.points),
    )


async def archive_match(session: AsyncSession, match: Match) -> Match:
    """Persist a finished match together with its games and points.

    The match is still usable after the commit: every collection is
    initialised while the objects are transient, so reading them later never
    triggers a lazy load outside the session.
    """

    point_count = match.point_count
    for game in match.games:
        logger.debug(
            "Archiving game %d of match %s with %d points",
            game.game_number,
            match.id,
            game.point_count,
        )

    session.add(match)
    await session.commit()
    logger.info("Archived match %s with %d points", match.id, point_count)
    return match


async def list_matches(session: AsyncSession) -> List[Match]:
    stmt = select(Match).options(*_with_children()).order_by(Match.start_date.desc())
    return list((await session.execute(stmt)).scalars().all())


async def get_match(session: AsyncSession, match_id: str) -> Optional[Match]:
    stmt = select(Match).where(Match.id == match_id).options(*_with_children())
    return (await session.execute(stmt)).scalar_one_or_none()


async def delete_match(session: AsyncSession, match_id: str) -> bool:
    """Delete a match; its games and points go with it."""

    match = await get_match(session, match_id)
    if match is None:
        return False
    await session.delete(match)
    await session.commit()
    logger.info("Deleted match %s", match_id)
    return True
