from heliclockter import datetime_utc
from pydantic import Field

from fairway.models.db.shared import BaseModelORM
from fairway.utils.id_types import PlayerId, PlayerProfileId, TournamentId


class PlayerProfile(BaseModelORM):
    id: PlayerProfileId
    first_name: str
    last_name: str
    country: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Player(BaseModelORM):
    """A golfer entered in one tournament. Teams reference these IDs, not profile IDs."""

    id: PlayerId
    profile_id: PlayerProfileId
    tournament_id: TournamentId
    level: int = Field(ge=1, le=5)
    current_score: int | None = None
    missed_cut: bool = False
    created: datetime_utc

    @property
    def score(self) -> int:
        return self.current_score or 0

    @property
    def group(self) -> str:
        return chr(ord("A") + self.level - 1)
