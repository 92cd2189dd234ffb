import uuid

from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    String,
    Numeric,
    TIMESTAMP,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from budget_assistant.core.database import Base


def _new_user_id() -> str:
    return uuid.uuid4().hex


def _owner_column():
    return Column(
        String,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


# =========================
# User
# =========================
class User(Base):
    __tablename__ = "users"

    # Opaque identity handed to the budget pipeline
    id = Column(String, primary_key=True, default=_new_user_id)

    email = Column(String, nullable=False, unique=True, index=True)
    password = Column(String, nullable=False)

    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # Relationships
    transactions = relationship(
        "Transaction",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    settings = relationship(
        "UserSettings",
        back_populates="owner",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


# =========================
# Transaction
# =========================
class Transaction(Base):
    """
    A single income or expense entry.

    `type` is either "income" or "expense"; amounts are stored positive
    and the type carries the sign.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)

    owner_id = _owner_column()

    amount = Column(Numeric(12, 2), nullable=False)
    type = Column(String, nullable=False, index=True)
    category = Column(String, index=True)

    description = Column(Text)

    date = Column(  # actual transaction time
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    created_at = Column(  # when we stored it
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    owner = relationship("User", back_populates="transactions")


# =========================
# Category
# =========================
class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)

    owner_id = _owner_column()

    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    budget = Column(Numeric(12, 2), nullable=True)  # planned monthly limit


# =========================
# History rollups
# =========================
class MonthHistory(Base):
    """Income/expense totals for one calendar month."""

    __tablename__ = "month_history"
    __table_args__ = (UniqueConstraint("owner_id", "year", "month"),)

    id = Column(Integer, primary_key=True, autoincrement=True)

    owner_id = _owner_column()

    month = Column(Integer, nullable=False)  # 1-12
    year = Column(Integer, nullable=False)
    income = Column(Numeric(12, 2), nullable=False, default=0)
    expense = Column(Numeric(12, 2), nullable=False, default=0)


class YearHistory(Base):
    """Income/expense totals for one calendar year."""

    __tablename__ = "year_history"
    __table_args__ = (UniqueConstraint("owner_id", "year"),)

    id = Column(Integer, primary_key=True, autoincrement=True)

    owner_id = _owner_column()

    year = Column(Integer, nullable=False)
    income = Column(Numeric(12, 2), nullable=False, default=0)
    expense = Column(Numeric(12, 2), nullable=False, default=0)


# =========================
# User settings
# =========================
class UserSettings(Base):
    __tablename__ = "user_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)

    owner_id = Column(
        String,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    currency = Column(String, nullable=False, default="USD")
    monthly_budget = Column(Numeric(12, 2), nullable=True)

    owner = relationship("User", back_populates="settings")
