from fairway.database import database
from fairway.models.db.team import Team, TeamInsertable
from fairway.schema import teams
from fairway.utils.db import fetch_all_parsed
from fairway.utils.id_types import LeagueId, TeamId, UserId


async def get_teams_for_league(league_id: LeagueId) -> list[Team]:
    return await fetch_all_parsed(
        database,
        Team,
        "SELECT * FROM teams WHERE league_id = :league_id ORDER BY id ASC",
        {"league_id": league_id},
    )


async def get_team_count_for_owner(league_id: LeagueId, owner_id: UserId) -> int:
    query = """
        SELECT count(*)
        FROM teams
        WHERE league_id = :league_id
          AND owner_id = :owner_id
    """
    return int(
        await database.fetch_val(query, values={"league_id": league_id, "owner_id": owner_id})
        or 0
    )


async def sql_insert_team(team: TeamInsertable) -> TeamId:
    values = team.model_dump()
    values["player_ids"] = [int(player_id) for player_id in team.player_ids]
    team_id = await database.execute(query=teams.insert(), values=values)
    return TeamId(team_id)


async def sql_set_team_position(team_id: TeamId, position: int) -> None:
    await database.execute(
        "UPDATE teams SET position = :position WHERE id = :team_id",
        values={"team_id": team_id, "position": position},
    )
