import copy
from typing import Any

import pytest
from heliclockter import datetime_utc

from fairway.logic import settlement
from fairway.models.db.bet import BetInsertable
from fairway.models.db.league import League
from fairway.models.db.player import Player
from fairway.models.db.team import JoinLeagueBody, TeamInsertable
from fairway.models.db.tournament import Tournament
from fairway.models.db.user import User
from fairway.sql.locks import LockScope
from fairway.utils.errors import ErrorCode, FairwayError
from fairway.utils.id_types import (
    BetId,
    LeagueId,
    PlayerId,
    PlayerProfileId,
    TeamId,
    TournamentId,
    UserId,
)

USER_ID = UserId(1)
LEAGUE_ID = LeagueId(10)
TOURNAMENT_ID = TournamentId(3)
ROSTER_PROFILE_IDS = [PlayerProfileId(501), PlayerProfileId(502), PlayerProfileId(503)]


class FakeLedger:
    """In-memory stand-in for the store, with all-or-nothing transactions."""

    def __init__(self, balance: int, existing_teams: int = 0) -> None:
        self.state: dict[str, Any] = {
            "balance": balance,
            "teams": [
                {"id": TeamId(900 + index), "owner_id": USER_ID, "league_id": LEAGUE_ID}
                for index in range(existing_teams)
            ],
            "bets": [],
            "joined_players": [],
        }
        self.fail_on_decrement: BaseException | None = None
        self.extra_team_before_recount = False
        self.locks: list[tuple[LockScope, int]] = []

    def transaction(self) -> "FakeLedger._Transaction":
        return FakeLedger._Transaction(self)

    class _Transaction:
        def __init__(self, ledger: "FakeLedger") -> None:
            self.ledger = ledger
            self.snapshot: dict[str, Any] = {}

        async def __aenter__(self) -> "FakeLedger._Transaction":
            self.snapshot = copy.deepcopy(self.ledger.state)
            return self

        async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> bool:
            if exc_type is not None:
                self.ledger.state = self.snapshot
            return False

    async def count_teams(self, league_id: LeagueId, owner_id: UserId) -> int:
        return len(
            [
                team
                for team in self.state["teams"]
                if team["league_id"] == league_id and team["owner_id"] == owner_id
            ]
        )

    async def lock(self, scope: LockScope, key: int) -> None:
        self.locks.append((scope, key))
        if self.extra_team_before_recount:
            # a concurrent join committed between the precondition read and the lock
            self.state["teams"].append(
                {"id": TeamId(999), "owner_id": USER_ID, "league_id": LEAGUE_ID}
            )

    async def insert_team(self, team: TeamInsertable) -> TeamId:
        team_id = TeamId(100 + len(self.state["teams"]))
        self.state["teams"].append({"id": team_id, **team.model_dump()})
        return team_id

    async def insert_bet(self, bet: BetInsertable) -> BetId:
        bet_id = BetId(200 + len(self.state["bets"]))
        self.state["bets"].append({"id": bet_id, **bet.model_dump()})
        return bet_id

    async def decrement_balance(self, _: UserId, amount: int) -> int | None:
        if self.fail_on_decrement is not None:
            raise self.fail_on_decrement
        if self.state["balance"] < amount:
            return None
        self.state["balance"] -= amount
        return self.state["balance"]

    async def add_joined_player(self, _: LeagueId, user_id: UserId) -> None:
        if user_id not in self.state["joined_players"]:
            self.state["joined_players"].append(user_id)


def _user(balance: int) -> User:
    return User(
        id=USER_ID, email="golfer@example.com", current_balance=balance, created=datetime_utc.now()
    )


def _league(entry_fee: int = 100, max_participants: int | None = 2) -> League:
    return League(
        id=LEAGUE_ID,
        name="Open Championship",
        tournament_id=TOURNAMENT_ID,
        entry_fee=entry_fee,
        max_participants=max_participants,
        created=datetime_utc.now(),
    )


def _install(
    monkeypatch: pytest.MonkeyPatch,
    ledger: FakeLedger,
    league: League | None,
    tournament_exists: bool = True,
) -> None:
    async def fake_get_league(_: LeagueId) -> League | None:
        return league

    async def fake_get_tournament(tournament_id: TournamentId) -> Tournament | None:
        if not tournament_exists:
            return None
        return Tournament(
            id=tournament_id,
            name="The Open",
            starts_at=datetime_utc.now(),
            finishes_at=datetime_utc.now(),
            created=datetime_utc.now(),
        )

    async def fake_get_players(
        tournament_id: TournamentId, profile_ids: list[PlayerProfileId]
    ) -> list[Player]:
        return [
            Player(
                id=PlayerId(profile_id - 400),
                profile_id=profile_id,
                tournament_id=tournament_id,
                level=1,
                created=datetime_utc.now(),
            )
            for profile_id in profile_ids
            if profile_id in ROSTER_PROFILE_IDS
        ]

    monkeypatch.setattr(settlement, "get_league_by_id", fake_get_league)
    monkeypatch.setattr(settlement, "sql_get_tournament", fake_get_tournament)
    monkeypatch.setattr(settlement, "get_players_in_tournament_by_profile_ids", fake_get_players)
    monkeypatch.setattr(settlement, "get_team_count_for_owner", ledger.count_teams)
    monkeypatch.setattr(settlement, "acquire_advisory_xact_lock", ledger.lock)
    monkeypatch.setattr(settlement, "sql_insert_team", ledger.insert_team)
    monkeypatch.setattr(settlement, "sql_insert_bet", ledger.insert_bet)
    monkeypatch.setattr(settlement, "sql_decrement_balance", ledger.decrement_balance)
    monkeypatch.setattr(settlement, "sql_add_joined_player", ledger.add_joined_player)
    monkeypatch.setattr(settlement.database, "transaction", ledger.transaction)


@pytest.mark.asyncio
async def test_join_league_collects_fee_and_creates_team_with_bet(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    ledger = FakeLedger(balance=250)
    _install(monkeypatch, ledger, _league(entry_fee=100))

    team = await settlement.join_league(
        _user(250),
        LEAGUE_ID,
        JoinLeagueBody(name="  Birdie Hunters ", player_profile_ids=[503, 501, 503]),
    )

    assert ledger.state["balance"] == 150
    assert len(ledger.state["teams"]) == 1
    assert len(ledger.state["bets"]) == 1
    bet = ledger.state["bets"][0]
    assert bet["team_id"] == team.id
    assert bet["amount"] == 100
    assert (bet["owner_id"], bet["league_id"]) == (USER_ID, LEAGUE_ID)
    assert team.name == "Birdie Hunters"
    assert team.player_ids == [PlayerId(103), PlayerId(101)]
    assert ledger.state["joined_players"] == [USER_ID]
    assert ledger.locks == [(LockScope.LEAGUE_JOIN, LEAGUE_ID)]


@pytest.mark.asyncio
async def test_join_league_insufficient_balance_has_no_side_effects(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    ledger = FakeLedger(balance=99)
    _install(monkeypatch, ledger, _league(entry_fee=100))

    with pytest.raises(FairwayError) as exc_info:
        await settlement.join_league(_user(99), LEAGUE_ID, JoinLeagueBody())

    assert exc_info.value.code == ErrorCode.INSUFFICIENT_BALANCE
    assert exc_info.value.details == {"required": 100, "available": 99}
    assert ledger.state["balance"] == 99
    assert ledger.state["teams"] == []
    assert ledger.state["bets"] == []


@pytest.mark.asyncio
async def test_join_league_rejects_team_beyond_max_participants(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    ledger = FakeLedger(balance=1000)
    _install(monkeypatch, ledger, _league(max_participants=2))

    await settlement.join_league(_user(1000), LEAGUE_ID, JoinLeagueBody())
    await settlement.join_league(_user(900), LEAGUE_ID, JoinLeagueBody())
    state_before = copy.deepcopy(ledger.state)

    with pytest.raises(FairwayError) as exc_info:
        await settlement.join_league(_user(800), LEAGUE_ID, JoinLeagueBody())

    assert exc_info.value.code == ErrorCode.LIMIT_EXCEEDED
    assert exc_info.value.details["max_participants"] == 2
    assert ledger.state == state_before


@pytest.mark.asyncio
async def test_join_league_unlimited_participants(monkeypatch: pytest.MonkeyPatch) -> None:
    ledger = FakeLedger(balance=1000, existing_teams=25)
    _install(monkeypatch, ledger, _league(max_participants=None))

    await settlement.join_league(_user(1000), LEAGUE_ID, JoinLeagueBody())

    assert ledger.state["balance"] == 900


@pytest.mark.asyncio
async def test_join_league_rejects_all_unmatched_players_together(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    ledger = FakeLedger(balance=500)
    _install(monkeypatch, ledger, _league())

    with pytest.raises(FairwayError) as exc_info:
        await settlement.join_league(
            _user(500), LEAGUE_ID, JoinLeagueBody(player_profile_ids=[501, 777, 502, 778])
        )

    assert exc_info.value.code == ErrorCode.INVALID_REFERENCE
    assert exc_info.value.details["unmatched_player_profile_ids"] == [777, 778]
    assert ledger.state["teams"] == []
    assert ledger.state["balance"] == 500


@pytest.mark.asyncio
async def test_join_league_not_found_checks_come_first(monkeypatch: pytest.MonkeyPatch) -> None:
    ledger = FakeLedger(balance=0)
    _install(monkeypatch, ledger, None)

    with pytest.raises(FairwayError) as exc_info:
        await settlement.join_league(_user(0), LEAGUE_ID, JoinLeagueBody())
    assert exc_info.value.code == ErrorCode.NOT_FOUND
    assert exc_info.value.details["entity"] == "League"


@pytest.mark.asyncio
async def test_join_league_balance_checked_before_tournament(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    ledger = FakeLedger(balance=0)
    _install(monkeypatch, ledger, _league(), tournament_exists=False)

    with pytest.raises(FairwayError) as exc_info:
        await settlement.join_league(_user(0), LEAGUE_ID, JoinLeagueBody())
    assert exc_info.value.code == ErrorCode.INSUFFICIENT_BALANCE

    ledger.state["balance"] = 500
    with pytest.raises(FairwayError) as exc_info:
        await settlement.join_league(_user(500), LEAGUE_ID, JoinLeagueBody())
    assert exc_info.value.code == ErrorCode.NOT_FOUND
    assert exc_info.value.details["entity"] == "Tournament"


@pytest.mark.asyncio
async def test_join_league_store_failure_rolls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    ledger = FakeLedger(balance=300)
    ledger.fail_on_decrement = OSError("connection reset")
    _install(monkeypatch, ledger, _league())

    with pytest.raises(FairwayError) as exc_info:
        await settlement.join_league(_user(300), LEAGUE_ID, JoinLeagueBody())

    assert exc_info.value.code == ErrorCode.INTERNAL
    assert ledger.state["balance"] == 300
    assert ledger.state["teams"] == []
    assert ledger.state["bets"] == []


@pytest.mark.asyncio
async def test_join_league_balance_spent_concurrently_rolls_back(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    ledger = FakeLedger(balance=40)
    _install(monkeypatch, ledger, _league(entry_fee=100))

    # the caller read a balance of 100, the store only has 40 left at commit time
    with pytest.raises(FairwayError) as exc_info:
        await settlement.join_league(_user(100), LEAGUE_ID, JoinLeagueBody())

    assert exc_info.value.code == ErrorCode.INSUFFICIENT_BALANCE
    assert ledger.state["balance"] == 40
    assert ledger.state["teams"] == []
    assert ledger.state["bets"] == []


@pytest.mark.asyncio
async def test_join_league_recount_under_lock_detects_conflict(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    ledger = FakeLedger(balance=500, existing_teams=1)
    ledger.extra_team_before_recount = True
    _install(monkeypatch, ledger, _league(max_participants=2))

    with pytest.raises(FairwayError) as exc_info:
        await settlement.join_league(_user(500), LEAGUE_ID, JoinLeagueBody())

    assert exc_info.value.code == ErrorCode.CONFLICT
    assert exc_info.value.status_code == 409
    assert len(ledger.state["teams"]) == 1
    assert ledger.state["balance"] == 500
