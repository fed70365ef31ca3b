from heliclockter import datetime_utc

from fairway.database import database
from fairway.models.db.user import User
from fairway.utils.db import fetch_all_parsed, fetch_one_parsed
from fairway.utils.id_types import UserId


async def get_user_by_id(user_id: UserId) -> User | None:
    return await fetch_one_parsed(
        database,
        User,
        "SELECT * FROM users WHERE id = :user_id",
        {"user_id": user_id},
    )


async def get_users_by_ids(user_ids: list[UserId]) -> list[User]:
    if len(user_ids) < 1:
        return []
    return await fetch_all_parsed(
        database,
        User,
        "SELECT * FROM users WHERE id = ANY(:user_ids)",
        {"user_ids": [int(user_id) for user_id in user_ids]},
    )


async def sql_increment_balance(user_id: UserId, amount: int) -> int | None:
    """Atomically add `amount` to the balance, returns the new balance or None if the user is gone."""
    assert amount >= 0
    new_balance = await database.fetch_val(
        """
        UPDATE users
        SET current_balance = current_balance + :amount, updated = :updated
        WHERE id = :user_id
        RETURNING current_balance
        """,
        values={"user_id": user_id, "amount": amount, "updated": datetime_utc.now()},
    )
    return int(new_balance) if new_balance is not None else None


async def sql_decrement_balance(user_id: UserId, amount: int) -> int | None:
    """
    Atomically subtract `amount` from the balance.

    The update only applies when the balance covers the amount, so it returns None instead of
    driving a balance negative.
    """
    assert amount >= 0
    new_balance = await database.fetch_val(
        """
        UPDATE users
        SET current_balance = current_balance - :amount, updated = :updated
        WHERE id = :user_id
          AND current_balance >= :amount
        RETURNING current_balance
        """,
        values={"user_id": user_id, "amount": amount, "updated": datetime_utc.now()},
    )
    return int(new_balance) if new_balance is not None else None
