from typing import Annotated

from heliclockter import datetime_utc
from pydantic import BaseModel, Field, StringConstraints, field_validator

from fairway.models.db.shared import BaseModelORM
from fairway.utils.id_types import LeagueId, PlayerId, PlayerProfileId, TeamId, UserId


class JoinLeagueBody(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)] | None = None
    player_profile_ids: list[PlayerProfileId] = Field(default_factory=list)

    @field_validator("player_profile_ids")
    @classmethod
    def deduplicate(cls, value: list[PlayerProfileId]) -> list[PlayerProfileId]:
        return list(dict.fromkeys(value))


class TeamInsertable(BaseModelORM):
    owner_id: UserId
    league_id: LeagueId
    name: str | None = None
    player_ids: list[PlayerId] = Field(default_factory=list)
    created: datetime_utc


class Team(TeamInsertable):
    id: TeamId
    position: int | None = None

    @field_validator("player_ids", mode="before")
    @classmethod
    def parse_player_ids(cls, value: object) -> object:
        return value if value is not None else []
