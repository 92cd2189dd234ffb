import os
import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

# Settings are read at import time, so these must be in place first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./budget_assistant_test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("ALGORITHM", "HS256")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "30")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from budget_assistant.main import app
from budget_assistant.core import models
from budget_assistant.core.database import Base, get_db
from budget_assistant.core.security import create_access_token
from budget_assistant.api.endpoints.chat import get_assistant
from budget_assistant.ai_feature.completion import GeminiCompletionClient
from budget_assistant.ai_feature.fetcher import BudgetDataFetcher
from budget_assistant.ai_feature.service import BudgetAssistant

BUDGET_ANSWER = "You spent 170.50 so far this month, mostly on groceries."
ADVICE_ANSWER = "Try the 50/30/20 rule: needs, wants, savings."


# Fresh SQLite file per test; each fetch branch gets its own connection
@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# Gemini double: generate_content for budget answers, chats for advice
@pytest.fixture(scope="function")
def genai_client():
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(
        return_value=SimpleNamespace(text=BUDGET_ANSWER)
    )
    chat_session = MagicMock()
    chat_session.send_message = AsyncMock(return_value=SimpleNamespace(text=ADVICE_ANSWER))
    client.aio.chats.create.return_value = chat_session
    return client


@pytest.fixture(scope="function")
def completion(genai_client):
    return GeminiCompletionClient(
        genai_client,
        budget_model="test-budget-model",
        advice_model="test-advice-model",
        max_output_tokens=1000,
    )


@pytest.fixture(scope="function")
def fetcher(session_factory):
    return BudgetDataFetcher(session_factory, recent_limit=10)


@pytest.fixture(scope="function")
def assistant(fetcher, completion):
    return BudgetAssistant(fetcher, completion)


# Client
@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, assistant):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_assistant] = lambda: assistant

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


async def create_user(db_session: AsyncSession) -> models.User:
    user = models.User(
        email=f"test_{uuid.uuid4().hex[:8]}@gmail.com", password="not-a-real-hash"
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


# User
@pytest_asyncio.fixture(scope="function")
async def test_user(db_session: AsyncSession):
    return await create_user(db_session)


@pytest_asyncio.fixture(scope="function")
async def other_user(db_session: AsyncSession):
    return await create_user(db_session)


@pytest_asyncio.fixture(scope="function")
async def auth_headers_user(test_user):
    token = create_access_token({"user_id": test_user.id})
    return {"Authorization": f"Bearer {token}"}


async def seed_budget(db_session: AsyncSession, user_id: str, today: date):
    """
    12 transactions (2 income, 10 expenses), 3 categories, month history for
    `today` and the month before, year history for this and last year, settings.
    """
    start = datetime(today.year, today.month, today.day, 12, 0)
    for i in range(10):
        db_session.add(
            models.Transaction(
                owner_id=user_id,
                amount=Decimal("10.05") + i,
                type="expense",
                category="Groceries" if i % 2 == 0 else "Transport",
                description=f"expense {i}",
                date=start - timedelta(days=i),
            )
        )
    for i in range(2):
        db_session.add(
            models.Transaction(
                owner_id=user_id,
                amount=Decimal("1500.00"),
                type="income",
                category="Salary",
                description=f"salary {i}",
                date=start - timedelta(days=20 + i),
            )
        )

    db_session.add_all(
        [
            models.Category(owner_id=user_id, name="Groceries", type="expense", budget=Decimal("400")),
            models.Category(owner_id=user_id, name="Transport", type="expense", budget=Decimal("120")),
            models.Category(owner_id=user_id, name="Salary", type="income"),
        ]
    )

    prev_year, prev_month = (today.year - 1, 12) if today.month == 1 else (today.year, today.month - 1)
    db_session.add_all(
        [
            models.MonthHistory(
                owner_id=user_id, month=today.month, year=today.year,
                income=Decimal("1500.00"), expense=Decimal("170.50"),
            ),
            models.MonthHistory(
                owner_id=user_id, month=prev_month, year=prev_year,
                income=Decimal("1500.00"), expense=Decimal("900.00"),
            ),
            models.YearHistory(
                owner_id=user_id, year=today.year,
                income=Decimal("18000.00"), expense=Decimal("9000.00"),
            ),
            models.YearHistory(
                owner_id=user_id, year=today.year - 1,
                income=Decimal("16000.00"), expense=Decimal("11000.00"),
            ),
            models.UserSettings(owner_id=user_id, currency="EUR", monthly_budget=Decimal("1200.00")),
        ]
    )
    await db_session.commit()


@pytest_asyncio.fixture(scope="function")
async def budget_data(db_session: AsyncSession, test_user):
    await seed_budget(db_session, test_user.id, date.today())
    return test_user
