"""
Split Formatter.

Turns the client's ``splitData`` payload into canonical split lines.
Amounts must fit the cents column they are stored in but are otherwise
trusted as given. Nothing checks that they add up to the total or that the
payer is left out, and percentages are not checked either.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Sequence

from splitapp.app.core.exceptions import ValidationError


class SplitFormatError(ValidationError):
    """Raised when split data is absent or structurally malformed."""


@dataclass(frozen=True)
class SplitLine:
    user_id: int
    amount: Decimal
    percent: Optional[float] = None


def _to_user_id(value: Any, index: int) -> int:
    if isinstance(value, bool):
        raise SplitFormatError(f"Split {index} has an invalid userId", {"index": index})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise SplitFormatError(f"Split {index} has an invalid userId", {"index": index})


# ExpenseSplit.amount is Numeric(12, 2)
MAX_SPLIT_AMOUNT = Decimal("9999999999.99")
CENT = Decimal("0.01")


def _to_decimal(value: Any, index: int) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise SplitFormatError(f"Split {index} has a non-numeric amount", {"index": index})
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise SplitFormatError(f"Split {index} has a non-numeric amount", {"index": index})
    if not amount.is_finite():
        raise SplitFormatError(f"Split {index} has a non-numeric amount", {"index": index})
    if abs(amount) > MAX_SPLIT_AMOUNT:
        raise SplitFormatError(f"Split {index} amount is too large", {"index": index})
    if amount != amount.quantize(CENT):
        raise SplitFormatError(f"Split {index} amount has more than 2 decimal places", {"index": index})
    return amount


def format_splits(split_data: Optional[Sequence[Any]]) -> List[SplitLine]:
    """
    Build canonical split lines, preserving input order.
    
    Each entry must be a mapping with ``userId`` and ``amount``;
    ``percent`` is optional and carried through untouched.
    
    Raises:
        SplitFormatError: split data missing, not a list, or an entry lacks a field
    """
    if split_data is None:
        raise SplitFormatError("Split data is required")
    if isinstance(split_data, (str, bytes)) or not isinstance(split_data, (list, tuple)):
        raise SplitFormatError("Split data must be a list")
    
    lines = []
    for index, entry in enumerate(split_data):
        if not isinstance(entry, dict):
            raise SplitFormatError(f"Split {index} must be an object", {"index": index})
        if entry.get("userId") is None:
            raise SplitFormatError(f"Split {index} is missing userId", {"index": index})
        if entry.get("amount") is None:
            raise SplitFormatError(f"Split {index} is missing amount", {"index": index})
        
        percent = entry.get("percent")
        if percent is not None:
            if isinstance(percent, bool) or not isinstance(percent, (int, float)):
                raise SplitFormatError(f"Split {index} has a non-numeric percent", {"index": index})
            percent = float(percent)
        
        lines.append(SplitLine(
            user_id=_to_user_id(entry["userId"], index),
            amount=_to_decimal(entry["amount"], index),
            percent=percent,
        ))
    return lines


def validate_split_total(total: Decimal, lines: Sequence[SplitLine]) -> None:
    """
    Strict mode only: split amounts must add up to the expense total.
    
    Compared at cent precision.
    """
    split_sum = sum((line.amount for line in lines), Decimal("0"))
    if split_sum.quantize(CENT) != Decimal(total).quantize(CENT):
        raise SplitFormatError(
            "Split amounts do not add up to the expense total",
            {"total": str(total), "split_sum": str(split_sum)},
        )
