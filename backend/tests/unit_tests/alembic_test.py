from typing import Any

import pytest
from alembic.config import Config

from fairway.utils import alembic as alembic_utils


class FakeConnection:
    def __init__(self) -> None:
        self.statements: list[str] = []

    def __enter__(self) -> "FakeConnection":
        return self

    def __exit__(self, *_: Any) -> None:
        return None

    def execute(self, statement: Any, parameters: dict[str, Any] | None = None) -> None:
        self.statements.append(str(statement))


class FakeEngine:
    def __init__(self) -> None:
        self.connection = FakeConnection()
        self.disposed = False

    def connect(self) -> FakeConnection:
        return self.connection

    def dispose(self) -> None:
        self.disposed = True


def _install(
    monkeypatch: pytest.MonkeyPatch, revisions: tuple[str | None, str | None]
) -> tuple[FakeEngine, list[str]]:
    engine = FakeEngine()
    upgrades: list[str] = []

    def fake_upgrade(_: Config, revision: str) -> None:
        upgrades.append(revision)

    monkeypatch.setattr(alembic_utils, "get_alembic_config", lambda: Config())
    monkeypatch.setattr(alembic_utils, "create_engine", lambda *_, **__: engine)
    monkeypatch.setattr(alembic_utils, "get_schema_revisions", lambda *_: revisions)
    monkeypatch.setattr(alembic_utils.command, "upgrade", fake_upgrade)
    return engine, upgrades


def test_migrations_run_under_advisory_lock(monkeypatch: pytest.MonkeyPatch) -> None:
    engine, upgrades = _install(monkeypatch, (None, "8c3e1f0a7b52"))

    alembic_utils.alembic_run_migrations()

    assert upgrades == ["head"]
    lock, unlock = engine.connection.statements
    assert "pg_advisory_lock" in lock
    assert "pg_advisory_unlock" in unlock
    assert engine.disposed


def test_migrations_skipped_at_head(monkeypatch: pytest.MonkeyPatch) -> None:
    engine, upgrades = _install(monkeypatch, ("8c3e1f0a7b52", "8c3e1f0a7b52"))

    alembic_utils.alembic_run_migrations()

    assert upgrades == []
    assert len(engine.connection.statements) == 2


def test_lock_released_when_upgrade_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    engine, _ = _install(monkeypatch, (None, "8c3e1f0a7b52"))

    def failing_upgrade(*_: Any) -> None:
        raise RuntimeError("migration failed")

    monkeypatch.setattr(alembic_utils.command, "upgrade", failing_upgrade)

    with pytest.raises(RuntimeError):
        alembic_utils.alembic_run_migrations()

    assert "pg_advisory_unlock" in engine.connection.statements[-1]
