from fastapi import APIRouter, Depends, Query

from fairway.config import config
from fairway.models.db.transaction import TransactionType
from fairway.models.db.user import User
from fairway.routes.auth import user_authenticated
from fairway.routes.models import TransactionsResponse, TransactionSummaryResponse
from fairway.sql.transactions import get_transaction_summary_for_user, get_transactions_for_user

router = APIRouter(prefix=config.api_prefix)


@router.get("/transactions", response_model=TransactionsResponse)
async def get_transactions(
    transaction_type: TransactionType | None = Query(default=None, alias="type"),
    user: User = Depends(user_authenticated),
) -> TransactionsResponse:
    return TransactionsResponse(data=await get_transactions_for_user(user.id, transaction_type))


@router.get("/transactions/summary", response_model=TransactionSummaryResponse)
async def get_transaction_summary(
    user: User = Depends(user_authenticated),
) -> TransactionSummaryResponse:
    return TransactionSummaryResponse(data=await get_transaction_summary_for_user(user.id))
