"""Live match tracking: the mutations the scoring screen performs.

The tracker owns the active :class:`~pointiq.models.Match` in memory and
mirrors every point into the point store. Score, serve and status are
never stored here; they are read off the aggregate, which recomputes them
from its points.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from ..exceptions import NoActiveMatch
from ..models import Game, Match, Point
from ..schemas import PointRecord
from ..scoring.outcomes import Outcome
from ..scoring.serve import player_serves_first_for, should_swap_sides
from ..storage.sync import SyncingPointStore
from ..time_utils import utc_now

logger = logging.getLogger(__name__)


def point_to_record(point: Point) -> PointRecord:
    return PointRecord(
        id=point.id,
        timestamp=point.timestamp,
        stroke_tokens=list(point.stroke_tokens or []),
        outcome=point.outcome,
        serve_type=point.serve_type,
        receive_type=point.receive_type,
        rally_types=list(point.rally_types or []),
        game_number=point.game.game_number if point.game is not None else None,
        match_id=point.match_id,
    )


class MatchTracker:
    def __init__(
        self,
        store: SyncingPointStore,
        *,
        auto_advance_games: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.auto_advance_games = auto_advance_games
        self.manual_swap_override = False
        self.match: Optional[Match] = None
        self._clock = clock

    @property
    def current_game(self) -> Optional[Game]:
        return self.match.current_game if self.match is not None else None

    @property
    def swap_sides(self) -> Optional[bool]:
        game = self.current_game
        if game is None:
            return None
        return should_swap_sides(game.game_number, self.manual_swap_override)

    def start_new_match(self) -> Match:
        self.match = Match(id=uuid.uuid4().hex, start_date=self._clock())
        self.manual_swap_override = False
        self.store.use_match(self.match.id)
        self.start_new_game()
        logger.info("Started match %s", self.match.id)
        return self.match

    def start_new_game(self) -> Game:
        if self.match is None:
            self.start_new_match()
            assert self.match is not None  # for type checkers
            return self.match.games[-1]

        now = self._clock()
        for game in self.match.games:
            if game.is_active:
                game.end_date = now

        previous = self.match.games[-1] if self.match.games else None
        game_number = len(self.match.games) + 1
        game = Game(
            id=uuid.uuid4().hex,
            game_number=game_number,
            player_served_first=player_serves_first_for(
                previous.player_served_first if previous is not None else None,
                game_number,
            ),
            start_date=now,
        )
        self.match.games.append(game)
        logger.info(
            "Started game %d of match %s (player serves first: %s)",
            game_number,
            self.match.id,
            game.player_served_first,
        )
        return game

    def log_point(
        self,
        outcome: Outcome | str,
        stroke_tokens: Sequence[str] = (),
        serve_type: Optional[str] = None,
        receive_type: Optional[str] = None,
        rally_types: Optional[Sequence[str]] = None,
    ) -> PointRecord:
        if self.match is None:
            self.start_new_match()
        assert self.match is not None  # for type checkers
        game = self.current_game or self.start_new_game()

        record = PointRecord.create(
            outcome,
            stroke_tokens,
            timestamp=self._clock(),
            serve_type=serve_type,
            receive_type=receive_type,
            rally_types=rally_types,
            game_number=game.game_number,
            match_id=self.match.id,
        )

        if any(p.id == record.id for p in self.match.points):
            logger.debug("Point %s already logged; ignoring duplicate", record.id)
            return record

        point = Point(
            id=record.id,
            timestamp=record.timestamp,
            outcome=record.outcome.value,
            match_id=record.match_id,
            stroke_tokens=list(record.stroke_tokens),
            serve_type=record.serve_type,
            receive_type=record.receive_type,
            rally_types=list(record.rally_types),
        )
        point.match = self.match
        point.game = game
        self.store.save(record)

        if self.auto_advance_games and game.is_complete:
            self.start_new_game()
        return record

    def undo_last(self) -> Optional[PointRecord]:
        """Remove the most recently logged point.

        Returns ``None`` (and does nothing) once there is nothing left to
        undo. When the in-memory match holds no points, the last record in
        the point store is removed instead.
        """

        if self.match is None or not self.match.points:
            return self.store.remove_last()

        point = self.match.points[-1]
        record = point_to_record(point)
        game = point.game
        if game is not None:
            game.points.remove(point)
            self._reopen(game)
        self.match.points.remove(point)
        self.store.remove(point.id)
        return record

    def _reopen(self, game: Game) -> None:
        # Undoing into a closed game drops the empty game that followed it.
        current = self.current_game
        if game.is_active or current is None or current.points:
            return
        if self.match is None or self.match.games[-1] is not current:
            return
        self.match.games.remove(current)
        game.end_date = None

    def reset_match(self) -> Match:
        """Throw away the active match and all of its points."""

        if self.match is not None:
            logger.info("Resetting match %s", self.match.id)
        self.store.clear()
        self.match = None
        return self.start_new_match()

    def end_match(
        self, *, opponent_name: Optional[str] = None, notes: Optional[str] = None
    ) -> Match:
        """Close the active match and start a new one.

        The finished match is returned for archiving. Its points stay in
        the remote store; only the local log is cleared for the next match.
        """

        if self.match is None:
            raise NoActiveMatch()

        finished = self.match
        now = self._clock()
        current = finished.current_game
        if current is not None and not current.points:
            finished.games.remove(current)
        for game in finished.games:
            if game.is_active:
                game.end_date = now
        finished.end_date = now
        if opponent_name is not None:
            finished.opponent_name = opponent_name
        if notes is not None:
            finished.notes = notes

        logger.info(
            "Ended match %s (%d-%d in games)",
            finished.id,
            finished.games_won,
            finished.games_lost,
        )
        self.store.clear(remote=False)
        self.match = None
        self.start_new_match()
        return finished

    def toggle_side_swap(self) -> bool:
        self.manual_swap_override = not self.manual_swap_override
        return self.manual_swap_override

    def restore(self) -> Match:
        """Rebuild the active match from the point store.

        Points are grouped into games by ``game_number``; records written
        before games existed go to game 1. Every game but the last is
        considered closed. The match keeps the id its points were logged
        under, so the background merge pulls only its own remote rows.
        """

        records = self.store.load_all()
        if not records:
            return self.start_new_match()

        by_game: Dict[int, List[PointRecord]] = defaultdict(list)
        for record in records:
            by_game[record.game_number or 1].append(record)

        ordered = sorted(records, key=lambda r: r.timestamp)
        match_id = next((r.match_id for r in reversed(ordered) if r.match_id), None)
        match = Match(id=match_id or uuid.uuid4().hex, start_date=ordered[0].timestamp)
        points: Dict[str, Point] = {}
        previous: Optional[Game] = None
        numbers = sorted(by_game)
        for number in numbers:
            game_records = sorted(by_game[number], key=lambda r: r.timestamp)
            game = Game(
                id=uuid.uuid4().hex,
                game_number=number,
                player_served_first=player_serves_first_for(
                    previous.player_served_first if previous is not None else None,
                    number,
                ),
                start_date=game_records[0].timestamp,
                end_date=game_records[-1].timestamp if number != numbers[-1] else None,
            )
            match.games.append(game)
            for record in game_records:
                point = Point(
                    id=record.id,
                    timestamp=record.timestamp,
                    outcome=record.outcome.value,
                    match_id=record.match_id,
                    stroke_tokens=list(record.stroke_tokens),
                    serve_type=record.serve_type,
                    receive_type=record.receive_type,
                    rally_types=list(record.rally_types),
                )
                point.game = game
                points[record.id] = point
            previous = game

        for record in ordered:
            points[record.id].match = match

        self.match = match
        self.manual_swap_override = False
        self.store.use_match(match.id)
        self.store.schedule_merge()
        logger.info(
            "Restored match %s with %d points in %d games",
            match.id,
            len(records),
            len(match.games),
        )
        return match
