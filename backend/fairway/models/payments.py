from enum import StrEnum, auto
from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

from fairway.models.db.transaction import PaymentStatus, TransactionType
from fairway.utils.id_types import TransactionId

CurrencyCode = Annotated[str, StringConstraints(min_length=3, max_length=3, to_upper=True)]


class LimitWindow(StrEnum):
    DAILY = auto()
    WEEKLY = auto()
    MONTHLY = auto()


class LimitCheckResult(BaseModel):
    allowed: bool
    window: LimitWindow | None = None
    current_total: int | None = None
    limit: int | None = None


class InitiatePaymentBody(BaseModel):
    amount: int = Field(gt=0)
    currency: CurrencyCode | None = None


class ConfirmPaymentBody(BaseModel):
    transaction_id: TransactionId
    payment_token: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    payment_method: str | None = None


class PaymentInitiated(BaseModel):
    transaction_id: TransactionId
    merchant_ref: str
    amount: int
    currency: str
    type: TransactionType


class PaymentConfirmation(BaseModel):
    transaction_id: TransactionId
    status: PaymentStatus
    amount: int
    charge_id: str | None = None
    message: str | None = None


class GatewayStatus(StrEnum):
    COMPLETED = "COMPLETED"
    PENDING = "PENDING"
    FAILED = "FAILED"


class GatewayError(BaseModel):
    code: str | None = None
    message: str | None = None


class GatewayErrorBody(BaseModel):
    error: GatewayError = Field(default_factory=GatewayError)


class GatewayResult(BaseModel):
    id: str
    status: GatewayStatus
    error: GatewayError | None = None


class WebhookEventType(StrEnum):
    PAYMENT_COMPLETED = "PAYMENT_COMPLETED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    REFUND_COMPLETED = "REFUND_COMPLETED"


class WebhookObject(BaseModel):
    id: str
    status: str | None = None
    amount: int | None = None
    merchant_ref: str | None = Field(default=None, alias="merchantRefNum")


class GatewayWebhookPayload(BaseModel):
    event_type: str = Field(alias="eventType")
    event_id: str | None = Field(default=None, alias="eventId")
    object: WebhookObject


class TransactionSummary(BaseModel):
    deposited: int
    withdrawn: int
