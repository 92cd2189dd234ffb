from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Literal

from pydantic import BaseModel, ConfigDict, Field, EmailStr
from pydantic.alias_generators import to_camel


# =========================
# USER
# =========================
class CreateUser(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: str
    email: EmailStr
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =========================
# BUDGET RECORDS (what the assistant reads)
# =========================
class BudgetRecord(BaseModel):
    """Base for rows embedded in the model prompt; dumped with camelCase keys."""

    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True
    )


class TransactionRecord(BudgetRecord):
    id: int
    amount: Decimal
    type: str
    category: Optional[str] = None
    description: Optional[str] = None
    date: datetime


class TransactionStat(BudgetRecord):
    type: str
    total: Decimal


class CategoryRecord(BudgetRecord):
    id: int
    name: str
    type: str
    budget: Optional[Decimal] = None


class CategorySpending(BudgetRecord):
    category: Optional[str] = None
    type: str
    total: Decimal


class MonthHistoryRecord(BudgetRecord):
    month: int
    year: int
    income: Decimal
    expense: Decimal


class YearHistoryRecord(BudgetRecord):
    year: int
    income: Decimal
    expense: Decimal


class UserSettingsRecord(BudgetRecord):
    currency: str
    monthly_budget: Optional[Decimal] = None


class BudgetDataAggregate(BudgetRecord):
    """
    Per-request bundle of fetched budget data.

    Every field starts unset. A fetch branch sets exactly one field, so an
    unset field means "not requested" or "that query failed". Use
    `to_prompt_dict()` to get only the fields that were filled in.
    """

    recent_transactions: Optional[List[TransactionRecord]] = None
    transaction_stats: Optional[List[TransactionStat]] = None
    categories: Optional[List[CategoryRecord]] = None
    category_spending: Optional[List[CategorySpending]] = None
    current_month_history: Optional[List[MonthHistoryRecord]] = None
    previous_month_history: Optional[List[MonthHistoryRecord]] = None
    current_year_history: Optional[List[YearHistoryRecord]] = None
    previous_year_history: Optional[List[YearHistoryRecord]] = None
    user_settings: Optional[UserSettingsRecord] = None

    def to_prompt_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class BudgetQueryResponse(BaseModel):
    answer: str
    relevant_data: Optional[BudgetDataAggregate] = None


# =========================
# CHAT
# =========================
class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    id: Optional[str] = None
    timestamp: Optional[datetime] = None


class ChatRequest(BaseModel):
    # Optional here so a missing message is answered with 400, not 422
    message: Optional[str] = None
    history: Optional[List[ChatMessage]] = None


class ChatResponse(BaseModel):
    response: str
