from heliclockter import datetime_utc

from fairway.database import database
from fairway.models.db.bet import BetInsertable
from fairway.schema import bets
from fairway.utils.id_types import BetId, UserId


async def sql_insert_bet(bet: BetInsertable) -> BetId:
    bet_id = await database.execute(query=bets.insert(), values=bet.model_dump())
    return BetId(bet_id)


async def get_bet_total_since(owner_id: UserId, since: datetime_utc) -> int:
    query = """
        SELECT COALESCE(SUM(amount), 0)
        FROM bets
        WHERE owner_id = :owner_id
          AND created >= :since
    """
    return int(await database.fetch_val(query, values={"owner_id": owner_id, "since": since}) or 0)
