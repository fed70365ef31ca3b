import json
from enum import StrEnum
from typing import Any

from heliclockter import datetime_utc
from pydantic import Field, field_validator

from fairway.models.db.shared import BaseModelORM
from fairway.utils.id_types import TransactionId, UserId


class TransactionType(StrEnum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    PRIZE = "prize"


class PaymentStatus(StrEnum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class TransactionInsertable(BaseModelORM):
    user_id: UserId
    name: str
    type: TransactionType
    value: int = Field(gt=0)
    payment_status: PaymentStatus = PaymentStatus.PENDING
    merchant_ref: str | None = None
    idempotency_key: str | None = None
    charge_id: str | None = None
    currency: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created: datetime_utc
    updated: datetime_utc


class Transaction(TransactionInsertable):
    id: TransactionId
    payment_error_code: str | None = None
    payment_error_message: str | None = None

    @field_validator("metadata", mode="before")
    @classmethod
    def parse_metadata(cls, value: object) -> object:
        if isinstance(value, str):
            return json.loads(value)
        return value if value is not None else {}
