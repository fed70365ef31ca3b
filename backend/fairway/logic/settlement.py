from heliclockter import datetime_utc

from fairway.database import database
from fairway.models.db.bet import BetInsertable
from fairway.models.db.league import League
from fairway.models.db.team import JoinLeagueBody, Team, TeamInsertable
from fairway.models.db.user import User
from fairway.sql.bets import sql_insert_bet
from fairway.sql.leagues import get_league_by_id, sql_add_joined_player
from fairway.sql.locks import LockScope, acquire_advisory_xact_lock
from fairway.sql.players import get_players_in_tournament_by_profile_ids
from fairway.sql.teams import get_team_count_for_owner, sql_insert_team
from fairway.sql.tournaments import sql_get_tournament
from fairway.sql.users import sql_decrement_balance
from fairway.utils.errors import ErrorCode, FairwayError, not_found, translate_store_errors
from fairway.utils.id_types import LeagueId, PlayerId, PlayerProfileId, TournamentId
from fairway.utils.logging import logger


def insufficient_balance(required: int, available: int | None) -> FairwayError:
    return FairwayError(
        ErrorCode.INSUFFICIENT_BALANCE,
        "Insufficient balance to pay the entry fee",
        {"required": required, "available": available},
    )


async def resolve_tournament_player_ids(
    tournament_id: TournamentId, profile_ids: list[PlayerProfileId]
) -> list[PlayerId]:
    """
    Map player profile IDs onto the tournament's roster.

    All profile IDs that are not entered in the tournament are rejected together, so a team is
    never created with part of its requested players.
    """
    players = await get_players_in_tournament_by_profile_ids(tournament_id, profile_ids)
    player_id_by_profile_id = {player.profile_id: player.id for player in players}
    unmatched = [
        profile_id for profile_id in profile_ids if profile_id not in player_id_by_profile_id
    ]
    if len(unmatched) > 0:
        raise FairwayError(
            ErrorCode.INVALID_REFERENCE,
            "Some players are not part of this tournament",
            {"tournament_id": tournament_id, "unmatched_player_profile_ids": unmatched},
        )
    return [player_id_by_profile_id[profile_id] for profile_id in profile_ids]


async def check_team_count(league: League, user: User) -> int:
    team_count = await get_team_count_for_owner(league.id, user.id)
    if league.max_participants is not None and team_count >= league.max_participants:
        raise FairwayError(
            ErrorCode.LIMIT_EXCEEDED,
            "Maximum number of teams for this league reached",
            {"max_participants": league.max_participants, "current_teams": team_count},
        )
    return team_count


async def _collect_entry_fee_and_create_team(
    league: League, user: User, team: TeamInsertable
) -> Team:
    await acquire_advisory_xact_lock(LockScope.LEAGUE_JOIN, league.id)

    if league.max_participants is not None:
        team_count = await get_team_count_for_owner(league.id, user.id)
        if team_count >= league.max_participants:
            raise FairwayError(
                ErrorCode.CONFLICT,
                "Another request used the last team slot for this league",
                {"max_participants": league.max_participants, "current_teams": team_count},
            )

    team_id = await sql_insert_team(team)
    await sql_insert_bet(
        BetInsertable(
            owner_id=user.id,
            league_id=league.id,
            team_id=team_id,
            amount=league.entry_fee,
            created=team.created,
        )
    )
    if await sql_decrement_balance(user.id, league.entry_fee) is None:
        raise insufficient_balance(league.entry_fee, None)

    await sql_add_joined_player(league.id, user.id)
    return Team(id=team_id, **team.model_dump())


async def join_league(user: User, league_id: LeagueId, body: JoinLeagueBody) -> Team:
    """
    Create a team for `user` in the league and collect the entry fee for it.

    Preconditions are checked in order and each aborts without side effects. The team, its bet and
    the balance decrement are then written in one store transaction, so a team never exists
    without its fee and a fee is never taken without a team.
    """
    league = await get_league_by_id(league_id)
    if league is None:
        raise not_found("League", league_id)

    if user.current_balance < league.entry_fee:
        logger.info(
            f"User {user.id} cannot join league {league_id}: "
            f"balance {user.current_balance} < entry fee {league.entry_fee}"
        )
        raise insufficient_balance(league.entry_fee, user.current_balance)

    tournament = await sql_get_tournament(league.tournament_id)
    if tournament is None:
        raise not_found("Tournament", league.tournament_id)

    if league.max_participants is not None:
        await check_team_count(league, user)

    player_ids = await resolve_tournament_player_ids(tournament.id, body.player_profile_ids)

    team = TeamInsertable(
        owner_id=user.id,
        league_id=league.id,
        name=body.name,
        player_ids=player_ids,
        created=datetime_utc.now(),
    )
    with translate_store_errors("joining league"):
        async with database.transaction():
            created_team = await _collect_entry_fee_and_create_team(league, user, team)

    logger.info(
        f"User {user.id} joined league {league.id} with team {created_team.id}, "
        f"collected entry fee {league.entry_fee}"
    )
    return created_team
