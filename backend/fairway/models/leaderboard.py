from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer

from fairway.utils.id_types import TeamId, UserId

CENT = Decimal("0.01")


def money_to_json(value: Decimal) -> float:
    return float(value.quantize(CENT))


# Exact in Python, a number rounded to cents on the wire
Money = Annotated[Decimal, PlainSerializer(money_to_json, return_type=float, when_used="json")]


class LeaderboardPlayer(BaseModel):
    group: str
    player_name: str
    score: int
    status: str


class LeaderboardEntry(BaseModel):
    rank: int
    team_id: TeamId
    owner_id: UserId
    team_name: str
    owner_display_name: str
    total_score: int
    players: list[LeaderboardPlayer] = Field(default_factory=list)
    best_scores: list[int] = Field(default_factory=list)
    prize: Money = Decimal(0)


class PrizeDistributionItem(BaseModel):
    position: int
    percentage: Decimal
    amount: Money


class Leaderboard(BaseModel):
    entries: list[LeaderboardEntry]
    total_pot: Money
    platform_fee: Money
    round: str
    prize_distribution: list[PrizeDistributionItem]
