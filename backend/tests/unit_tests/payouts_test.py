from decimal import Decimal
from typing import Any

import pytest
from asyncpg.exceptions import ConnectionDoesNotExistError
from heliclockter import datetime_utc

from fairway.logic import payouts
from fairway.logic.prizes import calculate_reward_amount
from fairway.models.db.league import League, Reward
from fairway.models.db.player import Player
from fairway.models.db.team import Team
from fairway.models.db.tournament import Tournament, TournamentStatus
from fairway.models.db.transaction import TransactionInsertable, TransactionType
from fairway.utils.errors import ErrorCode, FairwayError
from fairway.utils.id_types import LeagueId, PlayerId, TeamId, TournamentId, UserId


class _DummyTransaction:
    async def __aenter__(self) -> "_DummyTransaction":
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> bool:
        return False


def _league(rewards: list[Reward], entry_fee: int = 333) -> League:
    return League(
        id=LeagueId(4),
        name="US Open Pool",
        tournament_id=TournamentId(9),
        entry_fee=entry_fee,
        rewards=rewards,
        created=datetime_utc.now(),
    )


def _teams() -> list[Team]:
    return [
        Team(
            id=TeamId(team_id),
            owner_id=UserId(owner_id),
            league_id=LeagueId(4),
            player_ids=[PlayerId(player_id)],
            created=datetime_utc.now(),
        )
        for team_id, owner_id, player_id in ((1, 11, 101), (2, 12, 102), (3, 13, 103))
    ]


def _players() -> dict[PlayerId, Player]:
    scores = {101: 4, 102: -8, 103: -2}
    return {
        PlayerId(player_id): Player(
            id=PlayerId(player_id),
            profile_id=player_id,
            tournament_id=TournamentId(9),
            level=1,
            current_score=score,
            created=datetime_utc.now(),
        )
        for player_id, score in scores.items()
    }


class FakeStore:
    def __init__(self) -> None:
        self.positions: dict[TeamId, int] = {}
        self.balances: dict[UserId, int] = {}
        self.transactions: list[TransactionInsertable] = []
        self.statuses: dict[TournamentId, TournamentStatus] = {}
        self.fail_on_key: str | None = None
        self.fail_on_position = False

    async def get_teams(self, _: LeagueId) -> list[Team]:
        return _teams()

    async def get_players(self, _: list[Team]) -> dict[PlayerId, Player]:
        return _players()

    async def set_position(self, team_id: TeamId, position: int) -> None:
        if self.fail_on_position:
            raise ConnectionDoesNotExistError("connection was closed in the middle of operation")
        self.positions[team_id] = position

    async def increment_balance(self, user_id: UserId, amount: int) -> int:
        self.balances[user_id] = self.balances.get(user_id, 0) + amount
        return self.balances[user_id]

    async def insert_transaction_once(self, transaction: TransactionInsertable) -> int | None:
        if transaction.idempotency_key == self.fail_on_key:
            self.fail_on_key = None
            raise ConnectionDoesNotExistError("connection was closed in the middle of operation")
        if any(
            existing.idempotency_key == transaction.idempotency_key
            for existing in self.transactions
        ):
            return None
        self.transactions.append(transaction)
        return len(self.transactions)

    async def audit(self, *_: Any, **__: Any) -> int:
        return 1

    async def transition(
        self, tournament_id: TournamentId, from_status: TournamentStatus, to_status: TournamentStatus
    ) -> bool:
        if self.statuses.get(tournament_id) != from_status:
            return False
        self.statuses[tournament_id] = to_status
        return True


def _install(monkeypatch: pytest.MonkeyPatch, store: FakeStore, leagues: list[League]) -> None:
    async def fake_get_leagues(_: TournamentId) -> list[League]:
        return leagues

    monkeypatch.setattr(payouts, "get_teams_for_league", store.get_teams)
    monkeypatch.setattr(payouts, "get_players_for_teams", store.get_players)
    monkeypatch.setattr(payouts, "sql_set_team_position", store.set_position)
    monkeypatch.setattr(payouts, "sql_increment_balance", store.increment_balance)
    monkeypatch.setattr(payouts, "sql_insert_transaction_once", store.insert_transaction_once)
    monkeypatch.setattr(payouts, "sql_insert_audit_log", store.audit)
    monkeypatch.setattr(payouts, "sql_transition_tournament_status", store.transition)
    monkeypatch.setattr(payouts, "get_leagues_for_tournament", fake_get_leagues)
    monkeypatch.setattr(payouts.database, "transaction", lambda: _DummyTransaction())


def _tournament() -> Tournament:
    return Tournament(
        id=TournamentId(9),
        name="US Open",
        starts_at=datetime_utc.now(),
        finishes_at=datetime_utc.now(),
        created=datetime_utc.now(),
    )


def test_reward_amount_is_floored() -> None:
    assert calculate_reward_amount(Decimal("899.1"), Decimal("0.5")) == 449
    assert calculate_reward_amount(Decimal("899.1"), Decimal("0.3")) == 269
    assert calculate_reward_amount(Decimal("180"), Decimal("0.5")) == 90


@pytest.mark.asyncio
async def test_settle_league_pays_ranked_teams(monkeypatch: pytest.MonkeyPatch) -> None:
    store = FakeStore()
    league = _league(
        [Reward(position=1, percentage=Decimal("0.5")), Reward(position=2, percentage=Decimal("0.3"))]
    )
    _install(monkeypatch, store, [league])

    paid = await payouts.settle_league(league, datetime_utc.now())

    assert paid == 449 + 269
    assert store.positions == {TeamId(2): 1, TeamId(3): 2, TeamId(1): 3}
    assert store.balances == {UserId(12): 449, UserId(13): 269}
    assert [transaction.type for transaction in store.transactions] == [TransactionType.PRIZE] * 2
    assert [transaction.idempotency_key for transaction in store.transactions] == [
        "prize-4-1",
        "prize-4-2",
    ]


@pytest.mark.asyncio
async def test_settle_league_rejects_rewards_over_pool(monkeypatch: pytest.MonkeyPatch) -> None:
    store = FakeStore()
    league = _league(
        [Reward(position=1, percentage=Decimal("0.8")), Reward(position=2, percentage=Decimal("0.3"))]
    )
    _install(monkeypatch, store, [league])

    with pytest.raises(FairwayError) as exc_info:
        await payouts.settle_league(league, datetime_utc.now())

    assert exc_info.value.code == ErrorCode.VALIDATION
    assert store.balances == {}
    assert len(store.positions) == 3


@pytest.mark.asyncio
async def test_settle_tournament_claims_before_paying(monkeypatch: pytest.MonkeyPatch) -> None:
    store = FakeStore()
    league = _league([Reward(position=1, percentage=Decimal("1"))], entry_fee=100)
    _install(monkeypatch, store, [league])
    store.statuses[TournamentId(9)] = TournamentStatus.ACTIVE

    assert await payouts.settle_tournament(_tournament(), datetime_utc.now()) is True
    assert await payouts.settle_tournament(_tournament(), datetime_utc.now()) is False

    assert store.statuses[TournamentId(9)] == TournamentStatus.FINISHED
    assert store.balances == {UserId(12): 270}


@pytest.mark.asyncio
async def test_settle_tournament_finishes_despite_bad_league(monkeypatch: pytest.MonkeyPatch) -> None:
    store = FakeStore()
    bad_league = _league(
        [Reward(position=1, percentage=Decimal("0.8")), Reward(position=2, percentage=Decimal("0.3"))]
    )
    _install(monkeypatch, store, [bad_league])
    store.statuses[TournamentId(9)] = TournamentStatus.ACTIVE

    assert await payouts.settle_tournament(_tournament(), datetime_utc.now()) is True

    assert store.statuses[TournamentId(9)] == TournamentStatus.FINISHED
    assert store.balances == {}


@pytest.mark.asyncio
async def test_settle_finished_tournaments(monkeypatch: pytest.MonkeyPatch) -> None:
    store = FakeStore()
    _install(monkeypatch, store, [])
    store.statuses[TournamentId(9)] = TournamentStatus.ACTIVE

    async def fake_get_finished(_: datetime_utc) -> list[Tournament]:
        return [_tournament()]

    monkeypatch.setattr(payouts, "sql_get_finished_tournaments", fake_get_finished)

    assert await payouts.settle_finished_tournaments() == [TournamentId(9)]
    assert await payouts.settle_finished_tournaments() == []


@pytest.mark.asyncio
async def test_settle_league_skips_prizes_already_paid(monkeypatch: pytest.MonkeyPatch) -> None:
    store = FakeStore()
    league = _league(
        [Reward(position=1, percentage=Decimal("0.5")), Reward(position=2, percentage=Decimal("0.3"))]
    )
    _install(monkeypatch, store, [league])

    assert await payouts.settle_league(league, datetime_utc.now()) == 449 + 269
    assert await payouts.settle_league(league, datetime_utc.now()) == 0

    assert store.balances == {UserId(12): 449, UserId(13): 269}
    assert len(store.transactions) == 2


@pytest.mark.asyncio
async def test_store_failure_mid_payout_is_retried(monkeypatch: pytest.MonkeyPatch) -> None:
    store = FakeStore()
    league = _league(
        [Reward(position=1, percentage=Decimal("0.5")), Reward(position=2, percentage=Decimal("0.3"))]
    )
    _install(monkeypatch, store, [league])
    store.statuses[TournamentId(9)] = TournamentStatus.ACTIVE
    store.fail_on_key = "prize-4-2"

    assert await payouts.settle_tournament(_tournament(), datetime_utc.now()) is False
    assert store.statuses[TournamentId(9)] == TournamentStatus.ACTIVE
    assert store.balances == {UserId(12): 449}

    assert await payouts.settle_tournament(_tournament(), datetime_utc.now()) is True
    assert store.statuses[TournamentId(9)] == TournamentStatus.FINISHED
    assert store.balances == {UserId(12): 449, UserId(13): 269}
    assert [transaction.idempotency_key for transaction in store.transactions] == [
        "prize-4-1",
        "prize-4-2",
    ]


@pytest.mark.asyncio
async def test_store_failure_on_positions_leaves_tournament_active(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    store = FakeStore()
    league = _league([Reward(position=1, percentage=Decimal("1"))], entry_fee=100)
    _install(monkeypatch, store, [league])
    store.statuses[TournamentId(9)] = TournamentStatus.ACTIVE
    store.fail_on_position = True

    assert await payouts.settle_tournament(_tournament(), datetime_utc.now()) is False
    assert store.statuses[TournamentId(9)] == TournamentStatus.ACTIVE
    assert store.balances == {}

    store.fail_on_position = False
    assert await payouts.settle_tournament(_tournament(), datetime_utc.now()) is True
    assert store.balances == {UserId(12): 270}
