from heliclockter import datetime_utc

from fairway.config import config
from fairway.database import database
from fairway.logic.leaderboard import get_players_for_teams, rank_teams
from fairway.logic.prizes import (
    calculate_reward_amount,
    calculate_total_pot,
    rewards_by_position,
    validate_reward_percentages,
)
from fairway.models.db.league import League
from fairway.models.db.team import Team
from fairway.models.db.tournament import Tournament, TournamentStatus
from fairway.models.db.transaction import PaymentStatus, TransactionInsertable, TransactionType
from fairway.sql.audit_logs import sql_insert_audit_log
from fairway.sql.leagues import get_leagues_for_tournament
from fairway.sql.teams import get_teams_for_league, sql_set_team_position
from fairway.sql.tournaments import (
    sql_get_finished_tournaments,
    sql_transition_tournament_status,
)
from fairway.sql.transactions import sql_insert_transaction_once
from fairway.sql.users import sql_increment_balance
from fairway.utils.errors import ErrorCode, FairwayError, translate_store_errors
from fairway.utils.id_types import TournamentId
from fairway.utils.logging import logger


async def pay_prize(
    league: League, team: Team, position: int, amount: int, now: datetime_utc
) -> bool:
    """Pay one prize, returns False when an earlier settlement run already paid it."""
    with translate_store_errors("paying prize"):
        async with database.transaction():
            transaction_id = await sql_insert_transaction_once(
                TransactionInsertable(
                    user_id=team.owner_id,
                    name=f"Prize for position {position} in {league.name}",
                    type=TransactionType.PRIZE,
                    value=amount,
                    payment_status=PaymentStatus.COMPLETED,
                    idempotency_key=f"prize-{league.id}-{position}",
                    currency=config.default_currency,
                    metadata={"league_id": league.id, "team_id": team.id, "position": position},
                    created=now,
                    updated=now,
                )
            )
            if transaction_id is None:
                logger.info(f"Prize for position {position} in league {league.id} was already paid")
                return False

            await sql_increment_balance(team.owner_id, amount)
            await sql_insert_audit_log(
                team.owner_id,
                "PRIZE_PAID",
                "transaction",
                transaction_id,
                {"league_id": league.id, "team_id": team.id, "position": position, "amount": amount},
            )
    return True


async def settle_league(league: League, now: datetime_utc) -> int:
    """Store final positions for the league's teams and pay out its rewards, returns the amount paid."""
    with translate_store_errors("storing final positions"):
        teams = await get_teams_for_league(league.id)
        ranked_teams = rank_teams(teams, await get_players_for_teams(teams))
        async with database.transaction():
            for index, (team, _) in enumerate(ranked_teams):
                await sql_set_team_position(team.id, index + 1)

    validate_reward_percentages(league)

    total_pot = calculate_total_pot(league.entry_fee, len(teams))
    total_paid = 0
    for position, reward in sorted(rewards_by_position(league.rewards).items()):
        if position > len(ranked_teams):
            continue

        amount = calculate_reward_amount(total_pot, reward.percentage)
        if amount <= 0:
            continue

        team, _ = ranked_teams[position - 1]
        if await pay_prize(league, team, position, amount, now):
            total_paid += amount

    logger.info(
        f"Settled league {league.id}: {len(teams)} teams, pot {total_pot}, paid {total_paid}"
    )
    return total_paid


async def settle_leagues(tournament: Tournament, now: datetime_utc) -> bool:
    """Settle every league of the tournament, returns False when a later run has to try again."""
    try:
        with translate_store_errors("loading leagues"):
            leagues = await get_leagues_for_tournament(tournament.id)
    except FairwayError:
        return False

    complete = True
    for league in leagues:
        try:
            await settle_league(league, now)
        except FairwayError as exc:
            logger.error(f"Could not settle league {league.id}: {exc.code} {exc.message}")
            # Invalid rewards stay invalid on a rerun
            if exc.code != ErrorCode.VALIDATION:
                complete = False
    return complete


async def settle_tournament(tournament: Tournament, now: datetime_utc) -> bool:
    claimed = await sql_transition_tournament_status(
        tournament.id, TournamentStatus.ACTIVE, TournamentStatus.PROCESSING
    )
    if not claimed:
        logger.info(f"Tournament {tournament.id} is already being settled, skipping")
        return False

    if not await settle_leagues(tournament, now):
        await sql_transition_tournament_status(
            tournament.id, TournamentStatus.PROCESSING, TournamentStatus.ACTIVE
        )
        logger.warning(f"Tournament {tournament.id} was only partly settled, left for the next run")
        return False

    await sql_transition_tournament_status(
        tournament.id, TournamentStatus.PROCESSING, TournamentStatus.FINISHED
    )
    return True


async def settle_finished_tournaments(now: datetime_utc | None = None) -> list[TournamentId]:
    """
    Pay out every tournament that has finished and is still active.

    Each tournament is claimed with a conditional status update first, so concurrent runs never
    pay the same tournament twice.
    """
    now = now or datetime_utc.now()
    settled: list[TournamentId] = []
    for tournament in await sql_get_finished_tournaments(now):
        if await settle_tournament(tournament, now):
            settled.append(tournament.id)

    logger.info(f"Settled {len(settled)} finished tournaments")
    return settled
