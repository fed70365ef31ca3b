import hashlib
import hmac
import uuid

from heliclockter import datetime_utc
from pydantic import ValidationError

from fairway.config import config
from fairway.database import database
from fairway.integrations.payment_gateway import PaymentGateway, PaymentGatewayError
from fairway.logic.limits import enforce_limit
from fairway.models.db.transaction import (
    PaymentStatus,
    Transaction,
    TransactionInsertable,
    TransactionType,
)
from fairway.models.db.user import PaymentLimits, User
from fairway.models.payments import (
    ConfirmPaymentBody,
    GatewayStatus,
    GatewayWebhookPayload,
    InitiatePaymentBody,
    PaymentConfirmation,
    PaymentInitiated,
    WebhookEventType,
)
from fairway.sql.audit_logs import sql_insert_audit_log
from fairway.sql.locks import LockScope, acquire_advisory_xact_lock
from fairway.sql.transactions import (
    get_transaction_by_charge_id,
    get_transaction_for_user,
    sql_insert_transaction,
    sql_set_charge_id,
    sql_transition_payment_status,
)
from fairway.sql.users import sql_decrement_balance, sql_increment_balance
from fairway.utils.errors import ErrorCode, FairwayError, translate_store_errors
from fairway.utils.logging import logger

MERCHANT_REF_PREFIX = {
    TransactionType.DEPOSIT: "TXN",
    TransactionType.WITHDRAWAL: "WD",
}


def create_merchant_ref(transaction_type: TransactionType) -> str:
    return f"{MERCHANT_REF_PREFIX[transaction_type]}-{uuid.uuid4().hex}"


async def _insert_pending_transaction(
    user: User,
    transaction_type: TransactionType,
    amount: int,
    limits: PaymentLimits | None,
    transaction: TransactionInsertable,
) -> Transaction:
    if config.strict_payment_limits:
        with translate_store_errors(f"initiating {transaction_type.value}"):
            async with database.transaction():
                await acquire_advisory_xact_lock(LockScope.PAYMENT_LIMITS, user.id)
                await enforce_limit(user.id, transaction_type, amount, limits)
                transaction_id = await sql_insert_transaction(transaction)
    else:
        await enforce_limit(user.id, transaction_type, amount, limits)
        with translate_store_errors(f"initiating {transaction_type.value}"):
            transaction_id = await sql_insert_transaction(transaction)

    return Transaction(id=transaction_id, **transaction.model_dump())


async def _initiate_payment(
    user: User,
    transaction_type: TransactionType,
    body: InitiatePaymentBody,
    limits: PaymentLimits | None,
) -> PaymentInitiated:
    now = datetime_utc.now()
    currency = body.currency or config.default_currency
    transaction = await _insert_pending_transaction(
        user,
        transaction_type,
        body.amount,
        limits,
        TransactionInsertable(
            user_id=user.id,
            name=f"{transaction_type.value.capitalize()} of {body.amount} {currency}",
            type=transaction_type,
            value=body.amount,
            payment_status=PaymentStatus.PENDING,
            merchant_ref=create_merchant_ref(transaction_type),
            idempotency_key=str(uuid.uuid4()),
            currency=currency,
            created=now,
            updated=now,
        ),
    )
    await sql_insert_audit_log(
        user.id,
        f"{transaction_type.value.upper()}_INITIATED",
        "transaction",
        transaction.id,
        {"amount": body.amount, "currency": currency, "merchant_ref": transaction.merchant_ref},
    )
    logger.info(f"User {user.id} initiated {transaction_type.value} {transaction.id} of {body.amount}")

    assert transaction.merchant_ref is not None
    return PaymentInitiated(
        transaction_id=transaction.id,
        merchant_ref=transaction.merchant_ref,
        amount=transaction.value,
        currency=transaction.currency,
        type=transaction_type,
    )


async def initiate_deposit(user: User, body: InitiatePaymentBody) -> PaymentInitiated:
    if body.amount < config.min_deposit_amount:
        raise FairwayError(
            ErrorCode.VALIDATION,
            f"Minimum deposit amount is {config.min_deposit_amount}",
            {"field": "amount", "minimum": config.min_deposit_amount},
        )
    return await _initiate_payment(user, TransactionType.DEPOSIT, body, user.deposit_limit)


async def initiate_withdrawal(user: User, body: InitiatePaymentBody) -> PaymentInitiated:
    if user.current_balance < body.amount:
        raise FairwayError(
            ErrorCode.INSUFFICIENT_BALANCE,
            "Insufficient balance for this withdrawal",
            {"required": body.amount, "available": user.current_balance},
        )
    return await _initiate_payment(user, TransactionType.WITHDRAWAL, body, user.withdrawal_limit)


async def complete_transaction(transaction: Transaction, charge_id: str | None, source: str) -> bool:
    """
    Mark a pending transaction completed and move the balance, as one atomic unit.

    Returns False if the transaction was no longer pending, so the confirmation path and the
    webhook path never apply the same completion twice.
    """
    with translate_store_errors("completing payment"):
        async with database.transaction():
            transitioned = await sql_transition_payment_status(
                transaction.id,
                PaymentStatus.PENDING,
                PaymentStatus.COMPLETED,
                charge_id=charge_id,
            )
            if not transitioned:
                return False

            if transaction.type == TransactionType.WITHDRAWAL:
                if await sql_decrement_balance(transaction.user_id, transaction.value) is None:
                    logger.error(
                        f"Withdrawal {transaction.id} was paid out by the gateway but user "
                        f"{transaction.user_id} no longer has {transaction.value} available, "
                        "needs manual reconciliation"
                    )
                    raise FairwayError(
                        ErrorCode.INSUFFICIENT_BALANCE,
                        "Insufficient balance to complete this withdrawal",
                        {"required": transaction.value, "transaction_id": transaction.id},
                    )
            else:
                await sql_increment_balance(transaction.user_id, transaction.value)

            await sql_insert_audit_log(
                transaction.user_id,
                f"PAYMENT_COMPLETED_{source.upper()}",
                "transaction",
                transaction.id,
                {"charge_id": charge_id, "amount": transaction.value, "type": transaction.type},
            )

    logger.info(f"Completed {transaction.type.value} {transaction.id} via {source}")
    return True


async def fail_transaction(
    transaction: Transaction,
    source: str,
    *,
    charge_id: str | None = None,
    error_code: str | None = None,
    error_message: str | None = None,
) -> bool:
    failed = await sql_transition_payment_status(
        transaction.id,
        PaymentStatus.PENDING,
        PaymentStatus.FAILED,
        charge_id=charge_id,
        error_code=error_code,
        error_message=error_message,
    )
    if failed:
        await sql_insert_audit_log(
            transaction.user_id,
            f"PAYMENT_FAILED_{source.upper()}",
            "transaction",
            transaction.id,
            {"charge_id": charge_id, "error_code": error_code, "error_message": error_message},
        )
    return failed


async def confirm_payment(
    user: User, body: ConfirmPaymentBody, gateway: PaymentGateway
) -> PaymentConfirmation:
    transaction = await get_transaction_for_user(body.transaction_id, user.id)
    if transaction is None or transaction.payment_status != PaymentStatus.PENDING:
        raise FairwayError(
            ErrorCode.NOT_FOUND,
            "Transaction not found or already processed",
            {"entity": "Transaction", "id": body.transaction_id},
        )

    if transaction.type == TransactionType.WITHDRAWAL and user.current_balance < transaction.value:
        raise FairwayError(
            ErrorCode.INSUFFICIENT_BALANCE,
            "Insufficient balance for this withdrawal",
            {"required": transaction.value, "available": user.current_balance},
        )

    assert transaction.merchant_ref is not None
    process = (
        gateway.process_withdrawal
        if transaction.type == TransactionType.WITHDRAWAL
        else gateway.process_payment
    )
    try:
        result = await process(
            transaction.merchant_ref, transaction.value, transaction.currency, body.payment_token
        )
    except PaymentGatewayError as exc:
        logger.warning(f"Payment gateway error for transaction {transaction.id}: {exc}")
        await fail_transaction(
            transaction, "confirmation", error_code=exc.code, error_message=str(exc)
        )
        raise FairwayError(
            ErrorCode.INTERNAL,
            "Payment processing failed",
            {"transaction_id": transaction.id, "reason": str(exc)},
        ) from exc

    match result.status:
        case GatewayStatus.COMPLETED:
            await complete_transaction(transaction, result.id, "confirmation")
            return PaymentConfirmation(
                transaction_id=transaction.id,
                status=PaymentStatus.COMPLETED,
                amount=transaction.value,
                charge_id=result.id,
            )
        case GatewayStatus.PENDING:
            await sql_set_charge_id(transaction.id, result.id)
            return PaymentConfirmation(
                transaction_id=transaction.id,
                status=PaymentStatus.PENDING,
                amount=transaction.value,
                charge_id=result.id,
                message="Payment is being processed",
            )
        case GatewayStatus.FAILED:
            error_code = result.error.code if result.error else None
            error_message = result.error.message if result.error else None
            await fail_transaction(
                transaction,
                "confirmation",
                charge_id=result.id,
                error_code=error_code,
                error_message=error_message,
            )
            return PaymentConfirmation(
                transaction_id=transaction.id,
                status=PaymentStatus.FAILED,
                amount=transaction.value,
                charge_id=result.id,
                message=error_message or "Payment processing failed",
            )


def verify_webhook_signature(raw_body: bytes, signature: str | None) -> None:
    expected = hmac.new(
        config.payment_webhook_secret.encode(), raw_body, hashlib.sha256
    ).hexdigest()
    if signature is None or not hmac.compare_digest(signature.encode(), expected.encode()):
        logger.warning("Rejected payment webhook with an invalid signature")
        raise FairwayError(ErrorCode.UNAUTHORIZED, "Webhook signature verification failed")


async def process_webhook_event(payload: GatewayWebhookPayload) -> None:
    charge_id = payload.object.id
    if payload.event_type not in WebhookEventType:
        logger.info(f"Ignoring unhandled payment webhook event {payload.event_type}")
        return

    transaction = await get_transaction_by_charge_id(charge_id)
    if transaction is None:
        logger.warning(f"Payment webhook {payload.event_type} for unknown charge {charge_id}")
        return

    match WebhookEventType(payload.event_type):
        case WebhookEventType.PAYMENT_COMPLETED:
            if not await complete_transaction(transaction, charge_id, "webhook"):
                logger.info(f"Transaction {transaction.id} was already processed, ignoring webhook")
        case WebhookEventType.PAYMENT_FAILED:
            await fail_transaction(transaction, "webhook", charge_id=charge_id)
        case WebhookEventType.REFUND_COMPLETED:
            refunded = await sql_transition_payment_status(
                transaction.id, PaymentStatus.COMPLETED, PaymentStatus.REFUNDED
            )
            if refunded:
                await sql_insert_audit_log(
                    transaction.user_id,
                    "PAYMENT_REFUNDED_WEBHOOK",
                    "transaction",
                    transaction.id,
                    {"charge_id": charge_id, "amount": payload.object.amount},
                )
            logger.warning(
                f"Refund completed for transaction {transaction.id} (charge {charge_id}), "
                "balance needs manual reconciliation"
            )


async def handle_webhook(raw_body: bytes, signature: str | None) -> None:
    """
    Verify and apply one gateway webhook delivery.

    Only a bad signature is reported back. Processing failures are logged for manual
    reconciliation and the delivery is still acknowledged, so the gateway does not keep retrying.
    """
    verify_webhook_signature(raw_body, signature)
    try:
        payload = GatewayWebhookPayload.model_validate_json(raw_body)
        await process_webhook_event(payload)
    except ValidationError:
        logger.exception("Received a malformed payment webhook")
    except Exception:
        logger.exception("Failed to process payment webhook")
