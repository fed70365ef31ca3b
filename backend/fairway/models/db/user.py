import json

from heliclockter import datetime_utc
from pydantic import BaseModel, Field, field_validator

from fairway.models.db.shared import BaseModelORM
from fairway.utils.id_types import UserId


class PaymentLimits(BaseModel):
    """Ceilings in minor units per calendar window; `None` means the window is not limited."""

    daily: int | None = Field(default=None, ge=0)
    weekly: int | None = Field(default=None, ge=0)
    monthly: int | None = Field(default=None, ge=0)


class UserBase(BaseModelORM):
    email: str
    first_name: str = ""
    last_name: str = ""
    nickname: str = ""
    current_balance: int = 0
    betting_limit: int | None = None
    deposit_limit: PaymentLimits | None = None
    withdrawal_limit: PaymentLimits | None = None
    is_self_excluded: bool = False
    exclusion_ending: datetime_utc | None = None
    created: datetime_utc

    @field_validator("deposit_limit", "withdrawal_limit", mode="before")
    @classmethod
    def parse_limits(cls, value: object) -> object:
        if isinstance(value, str):
            return json.loads(value)
        return value

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class User(UserBase):
    id: UserId
