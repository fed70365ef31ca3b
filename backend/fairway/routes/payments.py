from fastapi import APIRouter, Depends, Header, Request

from fairway.config import config
from fairway.integrations.payment_gateway import PaymentGateway, get_payment_gateway
from fairway.logic.payments import (
    confirm_payment,
    handle_webhook,
    initiate_deposit,
    initiate_withdrawal,
)
from fairway.models.db.user import User
from fairway.models.payments import ConfirmPaymentBody, InitiatePaymentBody
from fairway.routes.auth import user_authenticated
from fairway.routes.models import (
    PaymentConfirmationResponse,
    PaymentInitiatedResponse,
    WebhookReceivedResponse,
)

router = APIRouter(prefix=config.api_prefix)


@router.post("/payments/deposits", response_model=PaymentInitiatedResponse)
async def create_deposit(
    body: InitiatePaymentBody, user: User = Depends(user_authenticated)
) -> PaymentInitiatedResponse:
    return PaymentInitiatedResponse(data=await initiate_deposit(user, body))


@router.post("/payments/withdrawals", response_model=PaymentInitiatedResponse)
async def create_withdrawal(
    body: InitiatePaymentBody, user: User = Depends(user_authenticated)
) -> PaymentInitiatedResponse:
    return PaymentInitiatedResponse(data=await initiate_withdrawal(user, body))


@router.post("/payments/confirm", response_model=PaymentConfirmationResponse)
async def post_confirm_payment(
    body: ConfirmPaymentBody,
    user: User = Depends(user_authenticated),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> PaymentConfirmationResponse:
    return PaymentConfirmationResponse(data=await confirm_payment(user, body, gateway))


@router.post("/payments/webhook", response_model=WebhookReceivedResponse)
async def payment_webhook(
    request: Request, x_paysafe_signature: str | None = Header(default=None)
) -> WebhookReceivedResponse:
    await handle_webhook(await request.body(), x_paysafe_signature)
    return WebhookReceivedResponse()
