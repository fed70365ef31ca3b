import json
from decimal import Decimal

from heliclockter import datetime_utc
from pydantic import BaseModel, Field, field_validator

from fairway.models.db.shared import BaseModelORM
from fairway.utils.id_types import LeagueId, TournamentId, UserId


class Reward(BaseModel):
    position: int = Field(ge=1)
    percentage: Decimal = Field(ge=0, le=1)


class League(BaseModelORM):
    id: LeagueId
    name: str
    tournament_id: TournamentId
    entry_fee: int = Field(ge=0)
    max_participants: int | None = None
    rewards: list[Reward] = Field(default_factory=list)
    joined_players: list[UserId] = Field(default_factory=list)
    created: datetime_utc

    @field_validator("rewards", mode="before")
    @classmethod
    def parse_rewards(cls, value: object) -> object:
        if isinstance(value, str):
            return json.loads(value)
        return value if value is not None else []

    @field_validator("joined_players", mode="before")
    @classmethod
    def parse_joined_players(cls, value: object) -> object:
        return value if value is not None else []
