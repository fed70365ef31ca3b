from heliclockter import datetime_utc, timedelta

from fairway.config import config
from fairway.models.db.transaction import TransactionType
from fairway.models.db.user import PaymentLimits
from fairway.models.payments import LimitCheckResult, LimitWindow
from fairway.sql.transactions import sql_sum_completed_since
from fairway.utils.errors import ErrorCode, FairwayError
from fairway.utils.id_types import UserId
from fairway.utils.logging import logger

WINDOW_CHECK_ORDER = (LimitWindow.MONTHLY, LimitWindow.WEEKLY, LimitWindow.DAILY)


def get_window_starts(now: datetime_utc) -> dict[LimitWindow, datetime_utc]:
    """Start instants of the calendar windows containing `now`, all at UTC midnight."""
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    days_since_week_start = (today.weekday() - config.week_start_weekday) % 7
    return {
        LimitWindow.DAILY: today,
        LimitWindow.WEEKLY: today - timedelta(days=days_since_week_start),
        LimitWindow.MONTHLY: today.replace(day=1),
    }


async def check_limit(
    user_id: UserId,
    direction: TransactionType,
    amount: int,
    limits: PaymentLimits | None,
    now: datetime_utc | None = None,
) -> LimitCheckResult:
    """
    Check a new deposit or withdrawal of `amount` against the user's window ceilings.

    Only completed transactions count toward a window. The first breached window is reported and
    later windows are not aggregated.
    """
    if limits is None:
        return LimitCheckResult(allowed=True)

    window_starts = get_window_starts(now or datetime_utc.now())
    for window in WINDOW_CHECK_ORDER:
        ceiling: int | None = getattr(limits, window.value)
        if ceiling is None:
            continue

        current_total = await sql_sum_completed_since(user_id, direction, window_starts[window])
        if current_total + amount > ceiling:
            return LimitCheckResult(
                allowed=False, window=window, current_total=current_total, limit=ceiling
            )

    return LimitCheckResult(allowed=True)


async def enforce_limit(
    user_id: UserId,
    direction: TransactionType,
    amount: int,
    limits: PaymentLimits | None,
    now: datetime_utc | None = None,
) -> None:
    result = await check_limit(user_id, direction, amount, limits, now)
    if result.allowed:
        return

    logger.info(
        f"Rejected {direction.value} of {amount} for user {user_id}: "
        f"{result.window} limit {result.limit} reached with {result.current_total}"
    )
    raise FairwayError(
        ErrorCode.LIMIT_EXCEEDED,
        f"{str(result.window).capitalize()} {direction.value} limit exceeded",
        {
            "window": result.window,
            "current_total": result.current_total,
            "limit": result.limit,
            "requested": amount,
        },
    )
