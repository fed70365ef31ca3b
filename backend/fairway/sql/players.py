from fairway.database import database
from fairway.models.db.player import Player, PlayerProfile
from fairway.utils.db import fetch_all_parsed
from fairway.utils.id_types import PlayerId, PlayerProfileId, TournamentId


async def get_players_in_tournament_by_profile_ids(
    tournament_id: TournamentId, profile_ids: list[PlayerProfileId]
) -> list[Player]:
    if len(profile_ids) < 1:
        return []
    return await fetch_all_parsed(
        database,
        Player,
        """
        SELECT *
        FROM players
        WHERE tournament_id = :tournament_id
          AND profile_id = ANY(:profile_ids)
        """,
        {"tournament_id": tournament_id, "profile_ids": [int(id_) for id_ in profile_ids]},
    )


async def get_players_by_ids(player_ids: list[PlayerId]) -> list[Player]:
    if len(player_ids) < 1:
        return []
    return await fetch_all_parsed(
        database,
        Player,
        "SELECT * FROM players WHERE id = ANY(:player_ids)",
        {"player_ids": [int(id_) for id_ in player_ids]},
    )


async def get_player_profiles_by_ids(profile_ids: list[PlayerProfileId]) -> list[PlayerProfile]:
    if len(profile_ids) < 1:
        return []
    return await fetch_all_parsed(
        database,
        PlayerProfile,
        "SELECT * FROM player_profiles WHERE id = ANY(:profile_ids)",
        {"profile_ids": [int(id_) for id_ in profile_ids]},
    )
