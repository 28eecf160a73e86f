from typing import List, Optional, Sequence
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from .scoring.outcomes import Outcome
from .time_utils import coerce_utc, utc_now


def make_point_id(
    timestamp: datetime, outcome: Outcome | str, stroke_tokens: Sequence[str]
) -> str:
    """Derive the identifier of a point from its content.

    Two devices logging the same rally at the same instant produce the same
    id, which keeps inserts idempotent and merges well defined.
    """

    value = Outcome(outcome).value
    return f"{timestamp.timestamp()}-{value}-{','.join(stroke_tokens)}"


class PointRecord(BaseModel):
    """One logged rally outcome as persisted in the local history file."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: str
    timestamp: datetime
    stroke_tokens: List[str] = Field(default_factory=list)
    outcome: Outcome
    serve_type: Optional[str] = None
    receive_type: Optional[str] = None
    rally_types: List[str] = Field(default_factory=list)
    game_number: Optional[int] = None
    match_id: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return coerce_utc(value)

    @field_validator("stroke_tokens", "rally_types", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value

    @classmethod
    def create(
        cls,
        outcome: Outcome | str,
        stroke_tokens: Sequence[str] = (),
        *,
        timestamp: datetime | None = None,
        serve_type: str | None = None,
        receive_type: str | None = None,
        rally_types: Sequence[str] | None = None,
        game_number: int | None = None,
        match_id: str | None = None,
    ) -> "PointRecord":
        ts = coerce_utc(timestamp) or utc_now()
        tokens = list(stroke_tokens)
        return cls(
            id=make_point_id(ts, outcome, tokens),
            timestamp=ts,
            stroke_tokens=tokens,
            outcome=Outcome(outcome),
            serve_type=serve_type,
            receive_type=receive_type,
            rally_types=list(rally_types or []),
            game_number=game_number,
            match_id=match_id,
        )

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class PointCreate(BaseModel):
    outcome: Outcome
    stroke_tokens: List[str] = Field(default_factory=list, max_length=50)
    serve_type: Optional[str] = Field(default=None, max_length=50)
    receive_type: Optional[str] = Field(default=None, max_length=50)
    rally_types: List[str] = Field(default_factory=list, max_length=50)

    model_config = ConfigDict(extra="forbid")

    @field_validator("stroke_tokens", "rally_types")
    @classmethod
    def _strip_tokens(cls, values: List[str]) -> List[str]:
        cleaned = []
        for value in values:
            trimmed = value.strip()
            if not trimmed:
                raise ValueError("tokens must not be empty")
            cleaned.append(trimmed)
        return cleaned


class GameOut(BaseModel):
    id: str
    game_number: int
    player_served_first: bool
    start_date: datetime
    end_date: Optional[datetime] = None
    points_won: int
    points_lost: int
    is_complete: bool
    winner: Optional[bool] = None
    is_deuce: bool
    status_message: str
    score_display: str
    is_player_serving_next: bool


class MatchOut(BaseModel):
    id: str
    start_date: datetime
    end_date: Optional[datetime] = None
    opponent_name: Optional[str] = None
    notes: Optional[str] = None
    games_won: int
    games_lost: int
    point_count: int
    current_game: Optional[GameOut] = None
    swap_sides: Optional[bool] = None
    duration_seconds: Optional[float] = None
    games: List[GameOut] = Field(default_factory=list)


class MatchStatsOut(BaseModel):
    matches: int
    matches_won: int
    games_won: int
    games_lost: int
    points_won: int
    points_lost: int
    match_win_rate: float
    game_win_rate: float
    point_win_rate: float
    total_duration_seconds: float


class MatchEnd(BaseModel):
    opponent_name: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = Field(default=None, max_length=2000)

    model_config = ConfigDict(extra="forbid")


class SyncStatusOut(BaseModel):
    operation: str
    ok: bool
    detail: Optional[str] = None
    finished_at: datetime
