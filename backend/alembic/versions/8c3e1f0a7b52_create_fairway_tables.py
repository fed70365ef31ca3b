"""create fairway tables

Revision ID: 8c3e1f0a7b52
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects.postgresql import ENUM

from alembic import op

# revision identifiers, used by Alembic.
revision: str | None = "8c3e1f0a7b52"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None

tournament_status_enum = ENUM(
    "active", "processing", "finished", "cancelled", name="tournament_status", create_type=False
)
transaction_type_enum = ENUM(
    "deposit", "withdrawal", "prize", name="transaction_type", create_type=False
)
payment_status_enum = ENUM(
    "PENDING", "COMPLETED", "FAILED", "REFUNDED", name="payment_status", create_type=False
)


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name, sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
    )


def upgrade() -> None:
    bind = op.get_bind()
    tournament_status_enum.create(bind, checkfirst=True)
    transaction_type_enum.create(bind, checkfirst=True)
    payment_status_enum.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("first_name", sa.String(), server_default="", nullable=False),
        sa.Column("last_name", sa.String(), server_default="", nullable=False),
        sa.Column("nickname", sa.String(), server_default="", nullable=False),
        sa.Column("current_balance", sa.BigInteger(), server_default="0", nullable=False),
        sa.Column("betting_limit", sa.BigInteger(), nullable=True),
        sa.Column("deposit_limit", postgresql.JSONB(), nullable=True),
        sa.Column("withdrawal_limit", postgresql.JSONB(), nullable=True),
        sa.Column("is_self_excluded", sa.Boolean(), server_default="f", nullable=False),
        sa.Column("exclusion_ending", sa.DateTime(timezone=True), nullable=True),
        _timestamp("created"),
        _timestamp("updated"),
        sa.CheckConstraint("current_balance >= 0", name="ck_users_current_balance_non_negative"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "player_profiles",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("first_name", sa.String(), nullable=False),
        sa.Column("last_name", sa.String(), nullable=False),
        sa.Column("country", sa.String(), server_default="", nullable=False),
        _timestamp("created"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_player_profiles_id"), "player_profiles", ["id"], unique=False)

    op.create_table(
        "tournaments",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finishes_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", tournament_status_enum, server_default="active", nullable=False),
        _timestamp("created"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tournaments_id"), "tournaments", ["id"], unique=False)
    op.create_index(op.f("ix_tournaments_name"), "tournaments", ["name"], unique=False)
    op.create_index(op.f("ix_tournaments_status"), "tournaments", ["status"], unique=False)

    op.create_table(
        "players",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("profile_id", sa.BigInteger(), nullable=False),
        sa.Column("tournament_id", sa.BigInteger(), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("current_score", sa.Integer(), nullable=True),
        sa.Column("missed_cut", sa.Boolean(), server_default="f", nullable=False),
        _timestamp("created"),
        sa.CheckConstraint("level BETWEEN 1 AND 5", name="ck_players_level_range"),
        sa.ForeignKeyConstraint(["profile_id"], ["player_profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_players_id"), "players", ["id"], unique=False)
    op.create_index(op.f("ix_players_profile_id"), "players", ["profile_id"], unique=False)
    op.create_index(op.f("ix_players_tournament_id"), "players", ["tournament_id"], unique=False)

    op.create_table(
        "leagues",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("tournament_id", sa.BigInteger(), nullable=False),
        sa.Column("entry_fee", sa.BigInteger(), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("rewards", postgresql.JSONB(), server_default="[]", nullable=False),
        sa.Column(
            "joined_players", postgresql.ARRAY(sa.BigInteger()), server_default="{}", nullable=False
        ),
        _timestamp("created"),
        sa.CheckConstraint("entry_fee >= 0", name="ck_leagues_entry_fee_non_negative"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_leagues_id"), "leagues", ["id"], unique=False)
    op.create_index(op.f("ix_leagues_tournament_id"), "leagues", ["tournament_id"], unique=False)

    op.create_table(
        "teams",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("owner_id", sa.BigInteger(), nullable=False),
        sa.Column("league_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column(
            "player_ids", postgresql.ARRAY(sa.BigInteger()), server_default="{}", nullable=False
        ),
        sa.Column("position", sa.Integer(), nullable=True),
        _timestamp("created"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["league_id"], ["leagues.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_teams_id"), "teams", ["id"], unique=False)
    op.create_index(op.f("ix_teams_owner_id"), "teams", ["owner_id"], unique=False)
    op.create_index(op.f("ix_teams_league_id"), "teams", ["league_id"], unique=False)

    op.create_table(
        "bets",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("owner_id", sa.BigInteger(), nullable=False),
        sa.Column("league_id", sa.BigInteger(), nullable=False),
        sa.Column("team_id", sa.BigInteger(), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        _timestamp("created"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["league_id"], ["leagues.id"]),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_bets_id"), "bets", ["id"], unique=False)
    op.create_index(op.f("ix_bets_owner_id"), "bets", ["owner_id"], unique=False)
    op.create_index(op.f("ix_bets_league_id"), "bets", ["league_id"], unique=False)
    op.create_index(op.f("ix_bets_team_id"), "bets", ["team_id"], unique=True)

    op.create_table(
        "transactions",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("type", transaction_type_enum, nullable=False),
        sa.Column("value", sa.BigInteger(), nullable=False),
        sa.Column("payment_status", payment_status_enum, server_default="PENDING", nullable=False),
        sa.Column("merchant_ref", sa.String(), nullable=True),
        sa.Column("idempotency_key", sa.String(), nullable=True),
        sa.Column("charge_id", sa.String(), nullable=True),
        sa.Column("currency", sa.String(), nullable=False),
        sa.Column("payment_error_code", sa.String(), nullable=True),
        sa.Column("payment_error_message", sa.Text(), nullable=True),
        sa.Column("metadata", postgresql.JSONB(), server_default="{}", nullable=False),
        _timestamp("created"),
        _timestamp("updated"),
        sa.CheckConstraint("value > 0", name="ck_transactions_value_positive"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("merchant_ref"),
        sa.UniqueConstraint("idempotency_key"),
    )
    op.create_index(op.f("ix_transactions_id"), "transactions", ["id"], unique=False)
    op.create_index(op.f("ix_transactions_user_id"), "transactions", ["user_id"], unique=False)
    op.create_index(op.f("ix_transactions_type"), "transactions", ["type"], unique=False)
    op.create_index(
        op.f("ix_transactions_payment_status"), "transactions", ["payment_status"], unique=False
    )
    op.create_index(op.f("ix_transactions_charge_id"), "transactions", ["charge_id"], unique=False)
    op.create_index(op.f("ix_transactions_created"), "transactions", ["created"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=True),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("entity_type", sa.String(), nullable=False),
        sa.Column("entity_id", sa.String(), nullable=False),
        sa.Column("metadata", postgresql.JSONB(), server_default="{}", nullable=False),
        _timestamp("created"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_audit_logs_id"), "audit_logs", ["id"], unique=False)
    op.create_index(op.f("ix_audit_logs_action"), "audit_logs", ["action"], unique=False)


def downgrade() -> None:
    for table in (
        "audit_logs",
        "transactions",
        "bets",
        "teams",
        "leagues",
        "players",
        "tournaments",
        "player_profiles",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    payment_status_enum.drop(bind, checkfirst=True)
    transaction_type_enum.drop(bind, checkfirst=True)
    tournament_status_enum.drop(bind, checkfirst=True)
