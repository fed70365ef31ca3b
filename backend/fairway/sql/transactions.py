import json
from typing import Any

from heliclockter import datetime_utc

from fairway.database import database
from fairway.models.db.transaction import (
    PaymentStatus,
    Transaction,
    TransactionInsertable,
    TransactionType,
)
from fairway.models.payments import TransactionSummary
from fairway.utils.db import fetch_all_parsed, fetch_one_parsed
from fairway.utils.id_types import TransactionId, UserId


async def sql_sum_completed_since(
    user_id: UserId, transaction_type: TransactionType, since: datetime_utc
) -> int:
    query = """
        SELECT COALESCE(SUM(value), 0)
        FROM transactions
        WHERE user_id = :user_id
          AND type = CAST(:type AS transaction_type)
          AND payment_status = 'COMPLETED'
          AND created >= :since
    """
    total = await database.fetch_val(
        query, values={"user_id": user_id, "type": transaction_type.value, "since": since}
    )
    return int(total or 0)


INSERT_TRANSACTION_QUERY = """
    INSERT INTO transactions (
        user_id, name, type, value, payment_status, merchant_ref, idempotency_key,
        charge_id, currency, metadata, created, updated
    )
    VALUES (
        :user_id, :name, CAST(:type AS transaction_type), :value,
        CAST(:payment_status AS payment_status), :merchant_ref, :idempotency_key,
        :charge_id, :currency, CAST(:metadata AS JSONB), :created, :updated
    )
"""


def _transaction_values(transaction: TransactionInsertable) -> dict[str, Any]:
    values = transaction.model_dump()
    values["type"] = transaction.type.value
    values["payment_status"] = transaction.payment_status.value
    values["metadata"] = json.dumps(transaction.metadata, default=str)
    return values


async def sql_insert_transaction(transaction: TransactionInsertable) -> TransactionId:
    transaction_id = await database.fetch_val(
        f"{INSERT_TRANSACTION_QUERY} RETURNING id", values=_transaction_values(transaction)
    )
    return TransactionId(transaction_id)


async def sql_insert_transaction_once(transaction: TransactionInsertable) -> TransactionId | None:
    """Insert unless a transaction with the same idempotency key exists, returns None in that case."""
    assert transaction.idempotency_key is not None
    transaction_id = await database.fetch_val(
        f"{INSERT_TRANSACTION_QUERY} ON CONFLICT (idempotency_key) DO NOTHING RETURNING id",
        values=_transaction_values(transaction),
    )
    return TransactionId(transaction_id) if transaction_id is not None else None


async def get_transaction_for_user(
    transaction_id: TransactionId, user_id: UserId
) -> Transaction | None:
    return await fetch_one_parsed(
        database,
        Transaction,
        "SELECT * FROM transactions WHERE id = :transaction_id AND user_id = :user_id",
        {"transaction_id": transaction_id, "user_id": user_id},
    )


async def get_transaction_by_charge_id(charge_id: str) -> Transaction | None:
    return await fetch_one_parsed(
        database,
        Transaction,
        "SELECT * FROM transactions WHERE charge_id = :charge_id ORDER BY id DESC LIMIT 1",
        {"charge_id": charge_id},
    )


async def get_transactions_for_user(
    user_id: UserId, transaction_type: TransactionType | None = None
) -> list[Transaction]:
    type_filter = "AND type = CAST(:type AS transaction_type)" if transaction_type else ""
    values: dict = {"user_id": user_id}
    if transaction_type:
        values["type"] = transaction_type.value

    return await fetch_all_parsed(
        database,
        Transaction,
        f"""
        SELECT *
        FROM transactions
        WHERE user_id = :user_id
          {type_filter}
        ORDER BY created DESC, id DESC
        """,
        values,
    )


async def get_transaction_summary_for_user(user_id: UserId) -> TransactionSummary:
    row = await database.fetch_one(
        """
        SELECT
            COALESCE(SUM(value) FILTER (WHERE type = 'deposit'), 0) AS deposited,
            COALESCE(SUM(value) FILTER (WHERE type = 'withdrawal'), 0) AS withdrawn
        FROM transactions
        WHERE user_id = :user_id
          AND payment_status = 'COMPLETED'
        """,
        values={"user_id": user_id},
    )
    if row is None:
        return TransactionSummary(deposited=0, withdrawn=0)
    return TransactionSummary(
        deposited=int(row._mapping["deposited"]), withdrawn=int(row._mapping["withdrawn"])
    )


async def sql_transition_payment_status(
    transaction_id: TransactionId,
    from_status: PaymentStatus,
    to_status: PaymentStatus,
    *,
    charge_id: str | None = None,
    error_code: str | None = None,
    error_message: str | None = None,
) -> bool:
    """
    Conditionally move a transaction from `from_status` to `to_status`.

    Returns False when the row was no longer in `from_status`, which is how the confirmation
    path and the webhook path avoid applying the same completion twice.
    """
    updated_id = await database.fetch_val(
        """
        UPDATE transactions
        SET payment_status = CAST(:to_status AS payment_status),
            charge_id = COALESCE(:charge_id, charge_id),
            payment_error_code = COALESCE(:error_code, payment_error_code),
            payment_error_message = COALESCE(:error_message, payment_error_message),
            updated = :updated
        WHERE id = :transaction_id
          AND payment_status = CAST(:from_status AS payment_status)
        RETURNING id
        """,
        values={
            "transaction_id": transaction_id,
            "from_status": from_status.value,
            "to_status": to_status.value,
            "charge_id": charge_id,
            "error_code": error_code,
            "error_message": error_message,
            "updated": datetime_utc.now(),
        },
    )
    return updated_id is not None


async def sql_set_charge_id(transaction_id: TransactionId, charge_id: str) -> None:
    await database.execute(
        """
        UPDATE transactions
        SET charge_id = :charge_id, updated = :updated
        WHERE id = :transaction_id
        """,
        values={
            "transaction_id": transaction_id,
            "charge_id": charge_id,
            "updated": datetime_utc.now(),
        },
    )
