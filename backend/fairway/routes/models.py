from pydantic import BaseModel

from fairway.models.db.team import Team
from fairway.models.db.transaction import Transaction
from fairway.models.leaderboard import Leaderboard
from fairway.models.payments import PaymentConfirmation, PaymentInitiated, TransactionSummary


class DataResponse[DataT](BaseModel):
    data: DataT


class WebhookReceivedResponse(BaseModel):
    received: bool = True


class TeamResponse(DataResponse[Team]):
    pass


class LeaderboardResponse(DataResponse[Leaderboard]):
    pass


class PaymentInitiatedResponse(DataResponse[PaymentInitiated]):
    pass


class PaymentConfirmationResponse(DataResponse[PaymentConfirmation]):
    pass


class TransactionsResponse(DataResponse[list[Transaction]]):
    pass


class TransactionSummaryResponse(DataResponse[TransactionSummary]):
    pass
