"""Model registration module used by alembic autogeneration."""

from fairway.models.db.bet import Bet  # noqa: F401
from fairway.models.db.league import League  # noqa: F401
from fairway.models.db.player import Player, PlayerProfile  # noqa: F401
from fairway.models.db.team import Team  # noqa: F401
from fairway.models.db.tournament import Tournament  # noqa: F401
from fairway.models.db.transaction import Transaction  # noqa: F401
from fairway.models.db.user import User  # noqa: F401
