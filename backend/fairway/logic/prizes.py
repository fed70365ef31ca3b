from decimal import ROUND_FLOOR, Decimal

from fairway.config import config
from fairway.models.db.league import League, Reward
from fairway.models.leaderboard import PrizeDistributionItem
from fairway.utils.errors import ErrorCode, FairwayError


def calculate_gross_pot(entry_fee: int, team_count: int) -> Decimal:
    return Decimal(entry_fee) * Decimal(team_count)


def calculate_total_pot(entry_fee: int, team_count: int) -> Decimal:
    """The pot left for prizes after the platform rake, exact to the minor unit fraction."""
    return calculate_gross_pot(entry_fee, team_count) * (Decimal(1) - config.platform_rake)


def calculate_platform_fee(entry_fee: int, team_count: int) -> Decimal:
    return calculate_gross_pot(entry_fee, team_count) * config.platform_rake


def calculate_reward_amount(total_pot: Decimal, percentage: Decimal) -> int:
    """The amount actually paid out for one position, floored to whole minor units."""
    return int((total_pot * percentage).to_integral_value(rounding=ROUND_FLOOR))


def validate_reward_percentages(league: League) -> None:
    total_percentage = sum((reward.percentage for reward in league.rewards), Decimal(0))
    if total_percentage > Decimal(1):
        raise FairwayError(
            ErrorCode.VALIDATION,
            "Reward percentages exceed the prize pool",
            {"league_id": league.id, "total_percentage": str(total_percentage)},
        )


def rewards_by_position(rewards: list[Reward]) -> dict[int, Reward]:
    # first entry wins when a position is listed twice
    result: dict[int, Reward] = {}
    for reward in rewards:
        result.setdefault(reward.position, reward)
    return result


def calculate_prize_distribution(
    rewards: list[Reward], total_pot: Decimal, team_count: int
) -> list[PrizeDistributionItem]:
    return [
        PrizeDistributionItem(
            position=reward.position,
            percentage=reward.percentage,
            amount=total_pot * reward.percentage,
        )
        for position, reward in sorted(rewards_by_position(rewards).items())
        if position <= team_count
    ]
