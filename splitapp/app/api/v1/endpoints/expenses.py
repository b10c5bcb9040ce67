"""
Expense API endpoints.

Writes (add, settle) commit the record first; notifications and emails
follow as a best-effort step that cannot fail the request.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from splitapp.app.db.session import get_db
from splitapp.app.domain.ledger.expense_service import ExpenseService
from splitapp.app.domain.ledger.ledger_service import LedgerService
from splitapp.app.models.expense import Expense
from splitapp.app.schemas.expense import (
    ExpenseCreate,
    SettlementCreate,
    ExpenseResponse,
    BalanceResponse,
)
from splitapp.app.services.dispatcher import Dispatcher, get_dispatcher
from splitapp.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/expenses", tags=["Expenses"])


async def _send_alerts(db: AsyncSession, notify, dispatcher: Dispatcher, record: Expense) -> None:
    try:
        await notify(db, dispatcher, record)
        await db.commit()
    except Exception as e:
        await db.rollback()
        # rollback expires the already-committed record; reload it for the response
        await db.refresh(record)
        logger.warning("Notification/Email service warning for record %s: %s", record.id, e)


@router.post("/add", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def add_expense(
    payload: ExpenseCreate,
    db: AsyncSession = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """Record an expense with caller-supplied split amounts."""
    expense = await ExpenseService.record_expense(
        db,
        description=payload.description,
        amount=payload.amount,
        payer_id=payload.payer,
        group_id=payload.group,
        split_type=payload.split_type,
        split_data=payload.split_data,
    )
    await _send_alerts(db, NotificationService.notify_expense_added, dispatcher, expense)
    projected = await LedgerService.project(db, [expense])
    return projected[0]


@router.post("/settle", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def settle_debt(
    payload: SettlementCreate,
    db: AsyncSession = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """Record that ``payer`` paid ``receiver`` directly."""
    settlement = await ExpenseService.record_settlement(
        db,
        payer_id=payload.payer,
        receiver_id=payload.receiver,
        amount=payload.amount,
        group_id=payload.group,
    )
    await _send_alerts(db, NotificationService.notify_settlement, dispatcher, settlement)
    projected = await LedgerService.project(db, [settlement])
    return projected[0]


@router.get("/balance/{user_id}", response_model=BalanceResponse)
async def get_user_balance(user_id: int, db: AsyncSession = Depends(get_db)):
    """Net balance against every counterparty across all groups."""
    summary = await LedgerService.compute_user_balance(db, user_id)
    return BalanceResponse.model_validate(summary, from_attributes=True)


@router.get("/group/{group_id}", response_model=List[ExpenseResponse])
async def get_group_expenses(group_id: int, db: AsyncSession = Depends(get_db)):
    """Records of this group only, newest first."""
    return await LedgerService.compute_group_expenses(db, group_id)


@router.get("/history/{user_id}", response_model=List[ExpenseResponse])
async def get_user_history(user_id: int, db: AsyncSession = Depends(get_db)):
    """The user's records across all groups, newest first."""
    return await LedgerService.compute_user_history(db, user_id)
