from enum import StrEnum

from heliclockter import datetime_utc

from fairway.models.db.shared import BaseModelORM
from fairway.utils.id_types import TournamentId


class TournamentStatus(StrEnum):
    ACTIVE = "active"
    PROCESSING = "processing"
    FINISHED = "finished"
    CANCELLED = "cancelled"


class Tournament(BaseModelORM):
    id: TournamentId
    name: str
    starts_at: datetime_utc
    finishes_at: datetime_utc
    status: TournamentStatus = TournamentStatus.ACTIVE
    created: datetime_utc
