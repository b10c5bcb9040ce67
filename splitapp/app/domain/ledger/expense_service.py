"""
Expense Service (Domain Logic).

Appends expenses and settlements to the record log. Records are committed
before any notification work starts, so alerting failures never undo them.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from splitapp.app.core.config import settings
from splitapp.app.core.exceptions import ValidationError, ResourceNotFoundError
from splitapp.app.domain.ledger.split_formatter import format_splits, validate_split_total
from splitapp.app.models.enums import SplitType
from splitapp.app.models.expense import Expense, ExpenseSplit, SETTLEMENT_DESCRIPTION
from splitapp.app.models.group import Group

logger = logging.getLogger(__name__)


async def _require_group(db: AsyncSession, group_id: Optional[int], message: str) -> Group:
    if group_id is None:
        raise ValidationError(message)
    group = await db.get(Group, group_id)
    if group is None:
        raise ResourceNotFoundError("Group", group_id)
    return group


class ExpenseService:

    @staticmethod
    async def record_expense(
        db: AsyncSession,
        description: str,
        amount: Decimal,
        payer_id: int,
        group_id: Optional[int],
        split_type: SplitType,
        split_data: Any,
    ) -> Expense:
        """
        Persist an expense with caller-supplied splits.

        Raises:
            ValidationError: group missing or split data malformed
            ResourceNotFoundError: group does not exist
        """
        if group_id is None:
            raise ValidationError("Group ID is required")
        lines = format_splits(split_data)
        if settings.strict_split_validation:
            validate_split_total(amount, lines)
        await _require_group(db, group_id, "Group ID is required")

        expense = Expense(
            description=description,
            amount=amount,
            payer_id=payer_id,
            group_id=group_id,
            split_type=split_type,
            is_settled=False,
            splits=[
                ExpenseSplit(position=i, user_id=line.user_id, amount=line.amount, percent=line.percent)
                for i, line in enumerate(lines)
            ],
        )
        db.add(expense)
        await db.commit()
        await db.refresh(expense)

        logger.info("Expense %s recorded in group %s by payer %s", expense.id, group_id, payer_id)
        return expense

    @staticmethod
    async def record_settlement(
        db: AsyncSession,
        payer_id: int,
        receiver_id: int,
        amount: Decimal,
        group_id: Optional[int],
    ) -> Expense:
        """
        Persist a settlement: ``payer_id`` paid ``receiver_id`` directly.

        Stored as an EXACT expense with one split so the ledger engine nets it
        against existing debt without special handling.
        """
        await _require_group(db, group_id, "Settlement must belong to a group")

        settlement = Expense(
            description=SETTLEMENT_DESCRIPTION,
            amount=amount,
            payer_id=payer_id,
            group_id=group_id,
            split_type=SplitType.EXACT,
            is_settled=True,
            splits=[ExpenseSplit(position=0, user_id=receiver_id, amount=amount)],
        )
        db.add(settlement)
        await db.commit()
        await db.refresh(settlement)

        logger.info("Settlement %s recorded: %s paid %s %s", settlement.id, payer_id, receiver_id, amount)
        return settlement
