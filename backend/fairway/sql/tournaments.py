from heliclockter import datetime_utc

from fairway.database import database
from fairway.models.db.tournament import Tournament, TournamentStatus
from fairway.utils.db import fetch_all_parsed, fetch_one_parsed
from fairway.utils.id_types import TournamentId


async def sql_get_tournament(tournament_id: TournamentId) -> Tournament | None:
    return await fetch_one_parsed(
        database,
        Tournament,
        "SELECT * FROM tournaments WHERE id = :tournament_id",
        {"tournament_id": tournament_id},
    )


async def sql_get_finished_tournaments(now: datetime_utc) -> list[Tournament]:
    return await fetch_all_parsed(
        database,
        Tournament,
        """
        SELECT *
        FROM tournaments
        WHERE finishes_at <= :now
          AND status = 'active'
        ORDER BY finishes_at ASC, id ASC
        """,
        {"now": now},
    )


async def sql_transition_tournament_status(
    tournament_id: TournamentId, from_status: TournamentStatus, to_status: TournamentStatus
) -> bool:
    """
    Move a tournament between states only if it is still in `from_status`.

    Returns whether this caller performed the transition, concurrent callers racing on the same
    tournament see False.
    """
    updated_id = await database.fetch_val(
        """
        UPDATE tournaments
        SET status = CAST(:to_status AS tournament_status)
        WHERE id = :tournament_id
          AND status = CAST(:from_status AS tournament_status)
        RETURNING id
        """,
        values={
            "tournament_id": tournament_id,
            "from_status": from_status.value,
            "to_status": to_status.value,
        },
    )
    return updated_id is not None
