from enum import IntEnum

from fairway.database import database


class LockScope(IntEnum):
    LEAGUE_JOIN = 72001
    PAYMENT_LIMITS = 72002
    MIGRATIONS = 72003


async def acquire_advisory_xact_lock(scope: LockScope, key: int) -> None:
    """Block until the transaction-scoped lock for (scope, key) is held. Must run in a transaction."""
    await database.execute(
        "SELECT pg_advisory_xact_lock(:lock_scope, :lock_key)",
        values={"lock_scope": int(scope), "lock_key": int(key)},
    )
