from heliclockter import datetime_utc

from fairway.config import config
from fairway.logic.limits import get_window_starts
from fairway.models.db.league import League
from fairway.models.db.user import User
from fairway.models.payments import LimitWindow
from fairway.sql.bets import get_bet_total_since
from fairway.utils.errors import ErrorCode, FairwayError
from fairway.utils.logging import logger


def is_self_excluded(user: User, now: datetime_utc) -> bool:
    if not user.is_self_excluded:
        return False
    return user.exclusion_ending is None or user.exclusion_ending > now


def check_self_exclusion(user: User, now: datetime_utc | None = None) -> None:
    if is_self_excluded(user, now or datetime_utc.now()):
        raise FairwayError(
            ErrorCode.FORBIDDEN,
            "Your account is self-excluded from betting",
            {"exclusion_ending": user.exclusion_ending},
        )


def check_betting_limit(user: User, league: League) -> None:
    if user.betting_limit is not None and league.entry_fee > user.betting_limit:
        raise FairwayError(
            ErrorCode.LIMIT_EXCEEDED,
            "Entry fee exceeds your betting limit",
            {"betting_limit": user.betting_limit, "entry_fee": league.entry_fee},
        )


async def check_monthly_bet_limit(
    user: User, league: League, now: datetime_utc | None = None
) -> None:
    month_start = get_window_starts(now or datetime_utc.now())[LimitWindow.MONTHLY]
    current_total = await get_bet_total_since(user.id, month_start)
    if current_total + league.entry_fee > config.monthly_bet_limit:
        logger.info(
            f"Monthly bet limit reached for user {user.id}: "
            f"{current_total} + {league.entry_fee} > {config.monthly_bet_limit}"
        )
        raise FairwayError(
            ErrorCode.LIMIT_EXCEEDED,
            "Monthly betting limit exceeded",
            {
                "window": LimitWindow.MONTHLY,
                "current_total": current_total,
                "limit": config.monthly_bet_limit,
                "requested": league.entry_fee,
            },
        )
