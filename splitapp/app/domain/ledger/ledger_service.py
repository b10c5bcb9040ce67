"""
Ledger Service (Domain Logic).

Loads expense/settlement records from the store and runs the ledger engine
over them, or projects them for display with user and group names resolved.
All queries here are read-only.
"""

from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from splitapp.app.core.config import settings
from splitapp.app.domain.ledger.ledger_engine import (
    BalanceSummary,
    LedgerLine,
    LedgerRecord,
    compute_user_balance,
)
from splitapp.app.models.expense import Expense, ExpenseSplit
from splitapp.app.models.group import Group
from splitapp.app.models.user import User


async def lookup_usernames(db: AsyncSession, user_ids: Iterable[Optional[int]]) -> Dict[int, str]:
    """Batch-resolve user ids. Ids with no matching user are absent from the result."""
    ids = {uid for uid in user_ids if uid is not None}
    if not ids:
        return {}
    result = await db.execute(select(User.id, User.username).where(User.id.in_(ids)))
    return {row.id: row.username for row in result.all()}


async def lookup_group_names(db: AsyncSession, group_ids: Iterable[int]) -> Dict[int, str]:
    ids = set(group_ids)
    if not ids:
        return {}
    result = await db.execute(select(Group.id, Group.name).where(Group.id.in_(ids)))
    return {row.id: row.name for row in result.all()}


def _referenced_user_ids(expenses: Iterable[Expense]) -> set:
    ids = set()
    for expense in expenses:
        ids.add(expense.payer_id)
        ids.update(split.user_id for split in expense.splits)
    return ids


def to_ledger_record(expense: Expense) -> LedgerRecord:
    return LedgerRecord(
        payer_id=expense.payer_id,
        lines=[LedgerLine(debtor_id=split.user_id, amount=Decimal(split.amount)) for split in expense.splits],
    )


class LedgerService:

    @staticmethod
    async def fetch_user_records(db: AsyncSession, user_id: int) -> List[Expense]:
        """Every record where the user paid or owes a split, across all groups, newest first."""
        stmt = (
            select(Expense)
            .where(or_(
                Expense.payer_id == user_id,
                Expense.splits.any(ExpenseSplit.user_id == user_id),
            ))
            .order_by(Expense.created_at.desc(), Expense.id.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def compute_user_balance(db: AsyncSession, user_id: int) -> BalanceSummary:
        """
        Net the user's records into "I owe" and "owed to me" lists.

        Netting is global: records from every group the user appears in are
        combined per counterparty.
        """
        expenses = await LedgerService.fetch_user_records(db, user_id)
        usernames = await lookup_usernames(db, _referenced_user_ids(expenses))

        return compute_user_balance(
            user_id,
            (to_ledger_record(expense) for expense in expenses),
            resolved_ids=set(usernames),
            display_names=usernames,
            threshold=settings.negligible_balance_threshold,
        )

    @staticmethod
    async def compute_group_expenses(db: AsyncSession, group_id: int) -> List[dict]:
        """Records of exactly one group, newest first."""
        stmt = (
            select(Expense)
            .where(Expense.group_id == group_id)
            .order_by(Expense.created_at.desc(), Expense.id.desc())
        )
        result = await db.execute(stmt)
        return await LedgerService.project(db, list(result.scalars().all()))

    @staticmethod
    async def compute_user_history(db: AsyncSession, user_id: int) -> List[dict]:
        """The user's raw records, not netted, newest first, with group names."""
        expenses = await LedgerService.fetch_user_records(db, user_id)
        return await LedgerService.project(db, expenses, with_group=True)

    @staticmethod
    async def project(db: AsyncSession, expenses: List[Expense], with_group: bool = False) -> List[dict]:
        """Shape records for the API, resolving payer/debtor (and optionally group) names."""
        usernames = await lookup_usernames(db, _referenced_user_ids(expenses))
        group_names = await lookup_group_names(db, (e.group_id for e in expenses)) if with_group else {}

        def user_ref(user_id):
            if user_id not in usernames:
                return None
            return {"id": user_id, "username": usernames[user_id]}

        projected = []
        for expense in expenses:
            group = None
            if expense.group_id in group_names:
                group = {"id": expense.group_id, "name": group_names[expense.group_id]}
            projected.append({
                "id": expense.id,
                "description": expense.description,
                "amount": expense.amount,
                "payer": user_ref(expense.payer_id),
                "group_id": expense.group_id,
                "group": group,
                "split_type": expense.split_type,
                "is_settled": expense.is_settled,
                "splits": [
                    {"user": user_ref(split.user_id), "amount": split.amount, "percent": split.percent}
                    for split in expense.splits
                ],
                "created_at": expense.created_at,
            })
        return projected
