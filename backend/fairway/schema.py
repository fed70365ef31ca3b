from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, Table, func
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import declarative_base  # type: ignore[attr-defined]
from sqlalchemy.sql.sqltypes import BigInteger, Boolean, DateTime, Enum, Text

Base = declarative_base()
metadata = Base.metadata
DateTimeTZ = DateTime(timezone=True)

users = Table(
    "users",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column("email", String, nullable=False, index=True, unique=True),
    Column("first_name", String, nullable=False, server_default=""),
    Column("last_name", String, nullable=False, server_default=""),
    Column("nickname", String, nullable=False, server_default=""),
    Column("current_balance", BigInteger, nullable=False, server_default="0"),
    Column("betting_limit", BigInteger, nullable=True),
    Column("deposit_limit", JSONB, nullable=True),
    Column("withdrawal_limit", JSONB, nullable=True),
    Column("is_self_excluded", Boolean, nullable=False, server_default="f"),
    Column("exclusion_ending", DateTimeTZ, nullable=True),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
    Column("updated", DateTimeTZ, nullable=False, server_default=func.now()),
    CheckConstraint("current_balance >= 0", name="ck_users_current_balance_non_negative"),
)

player_profiles = Table(
    "player_profiles",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column("first_name", String, nullable=False),
    Column("last_name", String, nullable=False),
    Column("country", String, nullable=False, server_default=""),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
)

tournaments = Table(
    "tournaments",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column("name", String, nullable=False, index=True),
    Column("starts_at", DateTimeTZ, nullable=False),
    Column("finishes_at", DateTimeTZ, nullable=False),
    Column(
        "status",
        Enum(
            "active",
            "processing",
            "finished",
            "cancelled",
            name="tournament_status",
        ),
        nullable=False,
        server_default="active",
        index=True,
    ),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
)

players = Table(
    "players",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column(
        "profile_id",
        BigInteger,
        ForeignKey("player_profiles.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    ),
    Column(
        "tournament_id",
        BigInteger,
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    ),
    Column("level", Integer, nullable=False),
    Column("current_score", Integer, nullable=True),
    Column("missed_cut", Boolean, nullable=False, server_default="f"),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
    CheckConstraint("level BETWEEN 1 AND 5", name="ck_players_level_range"),
)

leagues = Table(
    "leagues",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column("name", String, nullable=False),
    Column("tournament_id", BigInteger, ForeignKey("tournaments.id"), index=True, nullable=False),
    Column("entry_fee", BigInteger, nullable=False),
    Column("max_participants", Integer, nullable=True),
    Column("rewards", JSONB, nullable=False, server_default="[]"),
    Column("joined_players", ARRAY(BigInteger), nullable=False, server_default="{}"),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
    CheckConstraint("entry_fee >= 0", name="ck_leagues_entry_fee_non_negative"),
)

teams = Table(
    "teams",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column("owner_id", BigInteger, ForeignKey("users.id"), index=True, nullable=False),
    Column("league_id", BigInteger, ForeignKey("leagues.id"), index=True, nullable=False),
    Column("name", String, nullable=True),
    Column("player_ids", ARRAY(BigInteger), nullable=False, server_default="{}"),
    Column("position", Integer, nullable=True),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
)

bets = Table(
    "bets",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column("owner_id", BigInteger, ForeignKey("users.id"), index=True, nullable=False),
    Column("league_id", BigInteger, ForeignKey("leagues.id"), index=True, nullable=False),
    Column(
        "team_id",
        BigInteger,
        ForeignKey("teams.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
        unique=True,
    ),
    Column("amount", BigInteger, nullable=False),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
)

transactions = Table(
    "transactions",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column("user_id", BigInteger, ForeignKey("users.id"), index=True, nullable=False),
    Column("name", String, nullable=False),
    Column(
        "type",
        Enum("deposit", "withdrawal", "prize", name="transaction_type"),
        nullable=False,
        index=True,
    ),
    Column("value", BigInteger, nullable=False),
    Column(
        "payment_status",
        Enum("PENDING", "COMPLETED", "FAILED", "REFUNDED", name="payment_status"),
        nullable=False,
        server_default="PENDING",
        index=True,
    ),
    Column("merchant_ref", String, nullable=True, unique=True),
    Column("idempotency_key", String, nullable=True, unique=True),
    Column("charge_id", String, nullable=True, index=True),
    Column("currency", String, nullable=False),
    Column("payment_error_code", String, nullable=True),
    Column("payment_error_message", Text, nullable=True),
    Column("metadata", JSONB, nullable=False, server_default="{}"),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now(), index=True),
    Column("updated", DateTimeTZ, nullable=False, server_default=func.now()),
    CheckConstraint("value > 0", name="ck_transactions_value_positive"),
)

audit_logs = Table(
    "audit_logs",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column("user_id", BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    Column("action", String, nullable=False, index=True),
    Column("entity_type", String, nullable=False),
    Column("entity_id", String, nullable=False),
    Column("metadata", JSONB, nullable=False, server_default="{}"),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
)
