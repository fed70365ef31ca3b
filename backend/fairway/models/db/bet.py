from heliclockter import datetime_utc

from fairway.models.db.shared import BaseModelORM
from fairway.utils.id_types import BetId, LeagueId, TeamId, UserId


class BetInsertable(BaseModelORM):
    owner_id: UserId
    league_id: LeagueId
    team_id: TeamId
    amount: int
    created: datetime_utc


class Bet(BetInsertable):
    id: BetId
