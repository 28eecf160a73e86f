from sqlalchemy.orm import relationship
from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Boolean,
    Text,
    Index,
)
from .db import Base
from .scoring import rules, serve
from .scoring.outcomes import tally
from .time_utils import coerce_utc


class Match(Base):
    """A user-delimited sequence of games.

    Games and (for matches recorded before games existed) points hang off
    the match directly; deleting the match deletes both. A match never
    finishes on its own, only when ``end_date`` is set by the user.
    """

    __tablename__ = "match"
    id = Column(String, primary_key=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)
    opponent_name = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    games = relationship(
        "Game",
        cascade="all, delete-orphan",
        order_by="Game.game_number",
        back_populates="match",
    )
    points = relationship(
        "Point",
        cascade="all, delete-orphan",
        order_by="Point.timestamp",
        back_populates="match",
    )

    @property
    def is_active(self) -> bool:
        return self.end_date is None

    @property
    def point_count(self) -> int:
        return len(self.points)

    @property
    def points_won(self) -> int:
        return tally(p.outcome for p in self.points)[0]

    @property
    def points_lost(self) -> int:
        return tally(p.outcome for p in self.points)[1]

    @property
    def current_game(self):
        return next((g for g in self.games if g.is_active), None)

    @property
    def games_won(self) -> int:
        return sum(1 for g in self.games if g.winner is True)

    @property
    def games_lost(self) -> int:
        return sum(1 for g in self.games if g.winner is False)

    @property
    def is_complete(self) -> bool:
        return rules.is_match_complete(self.games_won, self.games_lost)

    @property
    def winner(self) -> bool | None:
        return rules.match_winner(self.games_won, self.games_lost)

    @property
    def duration_seconds(self) -> float | None:
        if self.end_date is None:
            return None
        return (coerce_utc(self.end_date) - coerce_utc(self.start_date)).total_seconds()


class Game(Base):
    __tablename__ = "game"
    id = Column(String, primary_key=True)
    match_id = Column(String, ForeignKey("match.id"), nullable=False)
    game_number = Column(Integer, nullable=False)
    player_served_first = Column(Boolean, nullable=False, default=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)

    match = relationship("Match", back_populates="games")
    points = relationship(
        "Point",
        cascade="all, delete-orphan",
        order_by="Point.timestamp",
        back_populates="game",
    )

    __table_args__ = (Index("ix_game_match_id", "match_id"),)

    @property
    def is_active(self) -> bool:
        return self.end_date is None

    @property
    def point_count(self) -> int:
        return len(self.points)

    def _score(self) -> tuple[int, int]:
        return tally(p.outcome for p in self.points)

    @property
    def points_won(self) -> int:
        return self._score()[0]

    @property
    def points_lost(self) -> int:
        return self._score()[1]

    @property
    def is_complete(self) -> bool:
        return rules.is_game_complete(*self._score())

    @property
    def winner(self) -> bool | None:
        return rules.game_winner(*self._score())

    @property
    def is_deuce(self) -> bool:
        return rules.is_deuce(*self._score())

    @property
    def status_message(self) -> str:
        return rules.game_status(*self._score())

    @property
    def score_display(self) -> str:
        return rules.format_game_score(*self._score())

    @property
    def is_player_serving_next(self) -> bool:
        won, lost = self._score()
        return serve.is_player_serving_next(won, lost, bool(self.player_served_first))


class Point(Base):
    __tablename__ = "point"
    id = Column(String, primary_key=True)  # content-derived, see schemas.make_point_id
    match_id = Column(String, ForeignKey("match.id"), nullable=True)
    game_id = Column(String, ForeignKey("game.id"), nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    outcome = Column(String, nullable=False)
    stroke_tokens = Column(JSON, nullable=False, default=list)
    serve_type = Column(String, nullable=True)
    receive_type = Column(String, nullable=True)
    rally_types = Column(JSON, nullable=False, default=list)

    match = relationship("Match", back_populates="points")
    game = relationship("Game", back_populates="points")

    __table_args__ = (
        Index("ix_point_match_id", "match_id"),
        Index("ix_point_game_id", "game_id"),
    )
