"""
Expense, settlement and balance schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from splitapp.app.models.enums import SplitType
from splitapp.app.schemas.common import UserRef, GroupRef


class ExpenseCreate(BaseModel):
    """
    POST /expenses/add.
    
    ``group`` is optional at the schema level so a missing group is reported
    as a 400 by the endpoint. ``splitData`` is left untyped and checked by the
    split formatter.
    """
    model_config = ConfigDict(populate_by_name=True)
    
    description: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    payer: int
    group: Optional[int] = None
    split_type: SplitType = Field(..., alias="splitType")
    split_data: Any = Field(default=None, alias="splitData")


class SettlementCreate(BaseModel):
    """POST /expenses/settle. ``payer`` pays ``receiver``."""
    payer: int
    receiver: int
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    group: Optional[int] = None


class SplitResponse(BaseModel):
    user: Optional[UserRef] = None
    amount: Decimal
    percent: Optional[float] = None


class ExpenseResponse(BaseModel):
    id: int
    description: str
    amount: Decimal
    payer: Optional[UserRef] = None
    group_id: int
    group: Optional[GroupRef] = None
    split_type: SplitType
    is_settled: bool
    splits: List[SplitResponse]
    created_at: datetime


class BalanceEntryResponse(BaseModel):
    id: int
    username: str
    amount: str
    
    class Config:
        from_attributes = True


class BalanceResponse(BaseModel):
    """Counterparties the user owes, and counterparties who owe the user."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)
    
    owe_list: List[BalanceEntryResponse] = Field(..., alias="oweList")
    owed_list: List[BalanceEntryResponse] = Field(..., alias="owedList")
