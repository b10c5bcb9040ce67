"""
Ledger Engine.

Nets a user's expense/settlement records into a pairwise balance sheet.

The engine is pure: callers load the records (every record where the user is
payer or debtor, across all groups) and the set of user ids that still resolve
to a real user. Nothing here touches the database.

Sign convention for the working sheet:
    positive -> the counterparty owes the user
    negative -> the user owes the counterparty
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Mapping, Optional, Set

UNKNOWN_USERNAME = "Unknown"
CENT = Decimal("0.01")


@dataclass(frozen=True)
class LedgerLine:
    debtor_id: Optional[int]
    amount: Decimal


@dataclass(frozen=True)
class LedgerRecord:
    payer_id: Optional[int]
    lines: Optional[List[LedgerLine]] = None


@dataclass(frozen=True)
class BalanceEntry:
    id: int
    username: str
    amount: str


@dataclass
class BalanceSummary:
    owe_list: List[BalanceEntry] = field(default_factory=list)
    owed_list: List[BalanceEntry] = field(default_factory=list)


def format_amount(amount: Decimal) -> str:
    return str(amount.quantize(CENT, rounding=ROUND_HALF_UP))


def accumulate_balances(
    user_id: int,
    records: Iterable[LedgerRecord],
    resolved_ids: Set[int],
) -> Dict[int, Decimal]:
    """
    Sum signed per-counterparty deltas for ``user_id``.

    Records whose payer does not resolve are skipped whole; split lines whose
    debtor does not resolve, or whose debtor is the payer, are skipped.
    """
    sheet: Dict[int, Decimal] = {}

    for record in records:
        payer_id = record.payer_id
        if payer_id is None or payer_id not in resolved_ids or not record.lines:
            continue

        for line in record.lines:
            debtor_id = line.debtor_id
            if debtor_id is None or debtor_id not in resolved_ids:
                continue
            if debtor_id == payer_id:
                continue

            if payer_id == user_id:
                sheet[debtor_id] = sheet.get(debtor_id, Decimal("0")) + line.amount
            if debtor_id == user_id:
                sheet[payer_id] = sheet.get(payer_id, Decimal("0")) - line.amount

    return sheet


def partition_balances(
    sheet: Mapping[int, Decimal],
    display_names: Mapping[int, str],
    threshold: Decimal,
) -> BalanceSummary:
    """
    Split the sheet into "I owe" and "owed to me" lists.

    Entries with an absolute value below ``threshold`` are dropped; an entry
    exactly at the threshold is kept.
    """
    summary = BalanceSummary()
    for counterparty_id, amount in sheet.items():
        if abs(amount) < threshold:
            continue

        username = display_names.get(counterparty_id) or UNKNOWN_USERNAME
        if amount > 0:
            summary.owed_list.append(BalanceEntry(counterparty_id, username, format_amount(amount)))
        else:
            summary.owe_list.append(BalanceEntry(counterparty_id, username, format_amount(-amount)))
    return summary


def compute_user_balance(
    user_id: int,
    records: Iterable[LedgerRecord],
    resolved_ids: Set[int],
    display_names: Mapping[int, str],
    threshold: Decimal = Decimal("1"),
) -> BalanceSummary:
    """Net all of a user's records into owe/owed lists."""
    sheet = accumulate_balances(user_id, records, resolved_ids)
    return partition_balances(sheet, display_names, threshold)
