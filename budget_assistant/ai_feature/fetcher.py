import asyncio
import logging
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from sqlalchemy import select, func, and_, desc
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from budget_assistant.core import models, schemas
from budget_assistant.ai_feature.classifier import DataCategory, expand_categories


# -----------------------------------------------------------------------------
# FETCHER MODULE
# Purpose: load the requested slices of one user's budget data.
# Every query is scoped to owner_id == user_id. All queries for a request
# run concurrently, each on its own session, and each writes one field of
# the aggregate. A failed query leaves its field unset.
# -----------------------------------------------------------------------------

logger = logging.getLogger(__name__)

QueryFn = Callable[..., Awaitable[Any]]


def previous_month(year: int, month: int) -> Tuple[int, int]:
    """
    Return (year, month) of the month before the given one.

    Example:
        previous_month(2026, 1) -> (2025, 12)
    """
    if month == 1:
        return year - 1, 12
    return year, month - 1


# =========================
# Queries
# =========================
async def get_recent_transactions(
    db: AsyncSession, user_id: str, limit: int = 10
) -> List[schemas.TransactionRecord]:
    """Latest transactions, most recent first."""
    stmt = (
        select(models.Transaction)
        .where(models.Transaction.owner_id == user_id)
        .order_by(desc(models.Transaction.date), desc(models.Transaction.id))
        .limit(limit)
    )
    result = await db.execute(stmt)
    return [
        schemas.TransactionRecord.model_validate(tx) for tx in result.scalars().all()
    ]


async def get_transaction_stats(
    db: AsyncSession, user_id: str
) -> List[schemas.TransactionStat]:
    """
    Sum of amounts grouped by transaction type.

    Example:
        [{"type": "expense", "total": "812.40"}, {"type": "income", "total": "3000.00"}]
    """
    stmt = (
        select(
            models.Transaction.type,
            func.coalesce(func.sum(models.Transaction.amount), 0).label("total"),
        )
        .where(models.Transaction.owner_id == user_id)
        .group_by(models.Transaction.type)
        .order_by(models.Transaction.type)
    )
    result = await db.execute(stmt)
    return [
        schemas.TransactionStat(type=row.type, total=row.total) for row in result.all()
    ]


async def get_categories(
    db: AsyncSession, user_id: str
) -> List[schemas.CategoryRecord]:
    stmt = (
        select(models.Category)
        .where(models.Category.owner_id == user_id)
        .order_by(models.Category.name, models.Category.id)
    )
    result = await db.execute(stmt)
    return [
        schemas.CategoryRecord.model_validate(category)
        for category in result.scalars().all()
    ]


async def get_category_spending(
    db: AsyncSession, user_id: str
) -> List[schemas.CategorySpending]:
    """Sum of amounts grouped by (category, type)."""
    stmt = (
        select(
            models.Transaction.category,
            models.Transaction.type,
            func.coalesce(func.sum(models.Transaction.amount), 0).label("total"),
        )
        .where(models.Transaction.owner_id == user_id)
        .group_by(models.Transaction.category, models.Transaction.type)
        .order_by(models.Transaction.category, models.Transaction.type)
    )
    result = await db.execute(stmt)
    return [
        schemas.CategorySpending(category=row.category, type=row.type, total=row.total)
        for row in result.all()
    ]


async def get_month_history(
    db: AsyncSession, user_id: str, year: int, month: int
) -> List[schemas.MonthHistoryRecord]:
    stmt = (
        select(models.MonthHistory)
        .where(
            and_(
                models.MonthHistory.owner_id == user_id,
                models.MonthHistory.year == year,
                models.MonthHistory.month == month,
            )
        )
        .order_by(models.MonthHistory.id)
    )
    result = await db.execute(stmt)
    return [
        schemas.MonthHistoryRecord.model_validate(row)
        for row in result.scalars().all()
    ]


async def get_year_history(
    db: AsyncSession, user_id: str, year: int
) -> List[schemas.YearHistoryRecord]:
    stmt = (
        select(models.YearHistory)
        .where(
            and_(
                models.YearHistory.owner_id == user_id,
                models.YearHistory.year == year,
            )
        )
        .order_by(models.YearHistory.id)
    )
    result = await db.execute(stmt)
    return [
        schemas.YearHistoryRecord.model_validate(row) for row in result.scalars().all()
    ]


async def get_user_settings(
    db: AsyncSession, user_id: str
) -> Optional[schemas.UserSettingsRecord]:
    stmt = select(models.UserSettings).where(models.UserSettings.owner_id == user_id)
    result = await db.execute(stmt)
    row = result.scalars().first()
    return schemas.UserSettingsRecord.model_validate(row) if row else None


# =========================
# Fetcher
# =========================
class BudgetDataFetcher:
    """
    Fan-out/fan-in loader for BudgetDataAggregate.

    Args:
        session_factory: Process-wide async_sessionmaker.
        recent_limit: How many recent transactions to include.

    Example:
        fetcher = BudgetDataFetcher(AsyncSessionLocal)
        data = await fetcher.fetch({DataCategory.TRANSACTIONS}, user.id)
    """

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession], recent_limit: int = 10
    ):
        self.session_factory = session_factory
        self.recent_limit = recent_limit

    def plan(
        self, categories: Set[DataCategory], today: date
    ) -> List[Tuple[str, QueryFn, Dict[str, Any]]]:
        """List the (field, query, kwargs) jobs needed for the given categories."""
        wanted = expand_categories(categories)
        jobs: List[Tuple[str, QueryFn, Dict[str, Any]]] = []

        if DataCategory.TRANSACTIONS in wanted:
            jobs.append(
                (
                    "recent_transactions",
                    get_recent_transactions,
                    {"limit": self.recent_limit},
                )
            )
            jobs.append(("transaction_stats", get_transaction_stats, {}))

        if DataCategory.CATEGORIES in wanted:
            jobs.append(("categories", get_categories, {}))
            jobs.append(("category_spending", get_category_spending, {}))

        if DataCategory.MONTH_HISTORY in wanted:
            prev_year, prev_month = previous_month(today.year, today.month)
            jobs.append(
                (
                    "current_month_history",
                    get_month_history,
                    {"year": today.year, "month": today.month},
                )
            )
            jobs.append(
                (
                    "previous_month_history",
                    get_month_history,
                    {"year": prev_year, "month": prev_month},
                )
            )

        if DataCategory.YEAR_HISTORY in wanted:
            jobs.append(("current_year_history", get_year_history, {"year": today.year}))
            jobs.append(
                ("previous_year_history", get_year_history, {"year": today.year - 1})
            )

        if DataCategory.USER_SETTINGS in wanted:
            jobs.append(("user_settings", get_user_settings, {}))

        return jobs

    async def fetch(
        self,
        categories: Set[DataCategory],
        user_id: str,
        today: Optional[date] = None,
    ) -> schemas.BudgetDataAggregate:
        """
        Run every query the categories need and wait for all of them.

        Args:
            categories: Output of classify_query (SUMMARY means everything).
            user_id: Caller identity; every query is restricted to it.
            today: Anchor for month/year windows, defaults to date.today().

        Returns:
            BudgetDataAggregate with one field set per successful query.
        """
        today = today or date.today()
        aggregate = schemas.BudgetDataAggregate()

        await asyncio.gather(
            *(
                self._fill(aggregate, field, query, user_id, kwargs)
                for field, query, kwargs in self.plan(categories, today)
            )
        )
        return aggregate

    async def _fill(
        self,
        aggregate: schemas.BudgetDataAggregate,
        field: str,
        query: QueryFn,
        user_id: str,
        kwargs: Dict[str, Any],
    ) -> None:
        try:
            async with self.session_factory() as db:
                value = await query(db, user_id, **kwargs)
        except Exception as error:
            logger.warning(f"[User {user_id}] fetch {field} failed: {error}")
            return

        setattr(aggregate, field, value)
