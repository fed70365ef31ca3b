import time
from decimal import Decimal

from heliclockter import datetime_utc

from fairway.config import config
from fairway.logic.prizes import (
    calculate_platform_fee,
    calculate_prize_distribution,
    calculate_total_pot,
)
from fairway.models.db.league import League
from fairway.models.db.player import Player, PlayerProfile
from fairway.models.db.team import Team
from fairway.models.db.tournament import Tournament
from fairway.models.db.user import User
from fairway.models.leaderboard import Leaderboard, LeaderboardEntry, LeaderboardPlayer
from fairway.sql.leagues import get_league_by_id
from fairway.sql.players import get_player_profiles_by_ids, get_players_by_ids
from fairway.sql.teams import get_teams_for_league
from fairway.sql.tournaments import sql_get_tournament
from fairway.sql.users import get_users_by_ids
from fairway.utils.errors import not_found
from fairway.utils.id_types import LeagueId, PlayerId, PlayerProfileId, UserId
from fairway.utils.logging import logger

TOURNAMENT_FINISHED = "Tournament finished"
UNNAMED_TEAM = "Unnamed Team"
UNKNOWN_OWNER = "Unknown Owner"


def compute_round(
    starts_at: datetime_utc, now: datetime_utc, round_count: int | None = None
) -> str:
    """
    Coarse progress indicator, one round per calendar day since the tournament started.

    Days are counted between UTC calendar dates, so a tournament starting at 23:00 is on its
    second round one hour later.
    """
    round_count = round_count or config.tournament_round_count
    days_difference = (now.date() - starts_at.date()).days
    if days_difference >= round_count:
        return TOURNAMENT_FINISHED
    return f"{max(1, days_difference + 1)}/{round_count}"


def get_team_players(team: Team, players_by_id: dict[PlayerId, Player]) -> list[Player]:
    return [players_by_id[player_id] for player_id in team.player_ids if player_id in players_by_id]


def get_team_total(team_players: list[Player]) -> int:
    return sum(player.score for player in team_players)


def get_best_scores(team_players: list[Player], count: int | None = None) -> list[int]:
    count = count or config.leaderboard_best_scores_count
    return sorted(player.score for player in team_players)[:count]


def rank_teams(
    teams: list[Team], players_by_id: dict[PlayerId, Player]
) -> list[tuple[Team, int]]:
    """
    Order teams by total score, lowest first.

    Ties keep their incoming order, so tied teams get consecutive ranks instead of a shared one.
    """
    totals = [(team, get_team_total(get_team_players(team, players_by_id))) for team in teams]
    return sorted(totals, key=lambda team_with_total: team_with_total[1])


def to_leaderboard_player(player: Player, profile: PlayerProfile | None) -> LeaderboardPlayer:
    return LeaderboardPlayer(
        group=player.group,
        player_name=profile.full_name if profile is not None else f"Player {player.id}",
        score=player.score,
        status="MC" if player.missed_cut else "F",
    )


def get_owner_display_name(owner: User | None) -> str:
    if owner is None:
        return UNKNOWN_OWNER
    return owner.display_name or UNKNOWN_OWNER


def build_leaderboard(
    league: League,
    tournament: Tournament,
    teams: list[Team],
    owners_by_id: dict[UserId, User],
    players_by_id: dict[PlayerId, Player],
    profiles_by_id: dict[PlayerProfileId, PlayerProfile],
    now: datetime_utc,
) -> Leaderboard:
    team_count = len(teams)
    total_pot = calculate_total_pot(league.entry_fee, team_count)
    prize_distribution = calculate_prize_distribution(league.rewards, total_pot, team_count)
    prizes_by_position = {item.position: item.amount for item in prize_distribution}
    tournament_started = now >= tournament.starts_at

    entries: list[LeaderboardEntry] = []
    for index, (team, total) in enumerate(rank_teams(teams, players_by_id)):
        rank = index + 1
        team_players = get_team_players(team, players_by_id)
        entries.append(
            LeaderboardEntry(
                rank=rank,
                team_id=team.id,
                owner_id=team.owner_id,
                team_name=team.name or UNNAMED_TEAM,
                owner_display_name=get_owner_display_name(owners_by_id.get(team.owner_id)),
                total_score=total,
                players=[
                    to_leaderboard_player(player, profiles_by_id.get(player.profile_id))
                    for player in team_players
                ]
                if tournament_started
                else [],
                best_scores=get_best_scores(team_players) if tournament_started else [],
                prize=prizes_by_position.get(rank, Decimal(0)) if tournament_started else Decimal(0),
            )
        )

    return Leaderboard(
        entries=entries,
        total_pot=total_pot,
        platform_fee=calculate_platform_fee(league.entry_fee, team_count),
        round=compute_round(tournament.starts_at, now),
        prize_distribution=prize_distribution,
    )


async def get_players_for_teams(teams: list[Team]) -> dict[PlayerId, Player]:
    player_ids = list({player_id for team in teams for player_id in team.player_ids})
    return {player.id: player for player in await get_players_by_ids(player_ids)}


async def compute_leaderboard(league_id: LeagueId, now: datetime_utc | None = None) -> Leaderboard:
    started_at = time.monotonic()
    now = now or datetime_utc.now()

    league = await get_league_by_id(league_id)
    if league is None:
        raise not_found("League", league_id)

    tournament = await sql_get_tournament(league.tournament_id)
    if tournament is None:
        raise not_found("Tournament", league.tournament_id)

    teams = await get_teams_for_league(league_id)
    owner_ids = list({team.owner_id for team in teams})
    owners_by_id = {user.id: user for user in await get_users_by_ids(owner_ids)}
    players_by_id = await get_players_for_teams(teams)
    profile_ids = list({player.profile_id for player in players_by_id.values()})
    profiles_by_id = {
        profile.id: profile for profile in await get_player_profiles_by_ids(profile_ids)
    }

    leaderboard = build_leaderboard(
        league, tournament, teams, owners_by_id, players_by_id, profiles_by_id, now
    )

    elapsed_ms = (time.monotonic() - started_at) * 1000
    if elapsed_ms > config.leaderboard_slow_warn_ms:
        logger.warning(
            f"Computing leaderboard for league {league_id} with {len(teams)} teams "
            f"took {elapsed_ms:.0f} ms"
        )
    return leaderboard
