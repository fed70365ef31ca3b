from fastapi import APIRouter, Depends

from fairway.config import config
from fairway.logic.leaderboard import compute_leaderboard
from fairway.logic.responsible_gambling import (
    check_betting_limit,
    check_monthly_bet_limit,
    check_self_exclusion,
)
from fairway.logic.settlement import join_league
from fairway.models.db.team import JoinLeagueBody
from fairway.models.db.user import User
from fairway.routes.auth import user_authenticated
from fairway.routes.models import LeaderboardResponse, TeamResponse
from fairway.sql.leagues import get_league_by_id
from fairway.utils.id_types import LeagueId

router = APIRouter(prefix=config.api_prefix)


async def user_allowed_to_bet(
    league_id: LeagueId, user: User = Depends(user_authenticated)
) -> User:
    check_self_exclusion(user)

    # a missing league is reported by join_league itself
    league = await get_league_by_id(league_id)
    if league is not None:
        check_betting_limit(user, league)
        await check_monthly_bet_limit(user, league)
    return user


@router.post("/leagues/{league_id}/teams", response_model=TeamResponse)
async def create_team_in_league(
    league_id: LeagueId,
    body: JoinLeagueBody,
    user: User = Depends(user_allowed_to_bet),
) -> TeamResponse:
    return TeamResponse(data=await join_league(user, league_id, body))


@router.get("/leagues/{league_id}/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    league_id: LeagueId, _: User = Depends(user_authenticated)
) -> LeaderboardResponse:
    return LeaderboardResponse(data=await compute_leaderboard(league_id))
