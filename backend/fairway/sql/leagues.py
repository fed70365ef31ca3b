from fairway.database import database
from fairway.models.db.league import League
from fairway.utils.db import fetch_all_parsed, fetch_one_parsed
from fairway.utils.id_types import LeagueId, TournamentId, UserId


async def get_league_by_id(league_id: LeagueId) -> League | None:
    return await fetch_one_parsed(
        database,
        League,
        "SELECT * FROM leagues WHERE id = :league_id",
        {"league_id": league_id},
    )


async def get_leagues_for_tournament(tournament_id: TournamentId) -> list[League]:
    return await fetch_all_parsed(
        database,
        League,
        "SELECT * FROM leagues WHERE tournament_id = :tournament_id ORDER BY id ASC",
        {"tournament_id": tournament_id},
    )


async def sql_add_joined_player(league_id: LeagueId, user_id: UserId) -> None:
    await database.execute(
        """
        UPDATE leagues
        SET joined_players = array_append(joined_players, CAST(:user_id AS BIGINT))
        WHERE id = :league_id
          AND NOT (CAST(:user_id AS BIGINT) = ANY(joined_players))
        """,
        values={"league_id": league_id, "user_id": user_id},
    )
