# models.py
# Role: SQLAlchemy ORM models for the finance tracker domain.
#       Defines User (identity + password-reset state) and Transaction
#       (a single income/expense record owned by one user), plus the fixed
#       category enumeration that determines a transaction's type.

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    Float,
    Enum,
    ForeignKey,
)
from sqlalchemy.orm import relationship

from db import Base


def utcnow() -> datetime:
    """Naive UTC timestamp (the form stored in DateTime columns)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# -------------------------------------------------------------------
# Categories
# -------------------------------------------------------------------

class TransactionType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


class Category(str, enum.Enum):
    """
    The 16 fixed transaction categories.

    Each category belongs to exactly one group, and the group *is* the
    transaction type: a "rent" transaction is always an expense.
    """

    # income group
    SALARY = "salary"
    FREELANCE = "freelance"
    INVESTMENTS = "investments"
    OTHER_INCOME = "other_income"

    # expense group
    RENT = "rent"
    GROCERIES = "groceries"
    UTILITIES = "utilities"
    ENTERTAINMENT = "entertainment"
    TRANSPORTATION = "transportation"
    DINING = "dining"
    SHOPPING = "shopping"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    TRAVEL = "travel"
    PERSONAL = "personal"
    OTHER_EXPENSE = "other_expense"

    @property
    def type(self) -> TransactionType:
        if self in INCOME_CATEGORIES:
            return TransactionType.INCOME
        return TransactionType.EXPENSE


INCOME_CATEGORIES = frozenset({
    Category.SALARY,
    Category.FREELANCE,
    Category.INVESTMENTS,
    Category.OTHER_INCOME,
})

EXPENSE_CATEGORIES = frozenset(c for c in Category if c not in INCOME_CATEGORIES)


# -------------------------------------------------------------------
# Models
# -------------------------------------------------------------------

class User(Base):
    """
    ORM model for a registered user.

    reset_token and reset_token_expiry are either both set (a reset is
    pending) or both NULL.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String, nullable=False)

    # Always stored lower-cased, so uniqueness is case-insensitive
    email = Column(String, nullable=False, unique=True, index=True)

    # bcrypt hash, never the plaintext
    password_hash = Column(String, nullable=False)

    reset_token = Column(String, nullable=True, unique=True, index=True)
    reset_token_expiry = Column(DateTime, nullable=True)

    # Sessions issued before this instant are rejected (see app/deps.py)
    password_changed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    transactions = relationship(
        "Transaction",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def has_pending_reset(self) -> bool:
        return self.reset_token is not None

    def set_reset_token(self, token: str, expiry: datetime) -> None:
        self.reset_token = token
        self.reset_token_expiry = expiry

    def clear_reset_token(self) -> None:
        self.reset_token = None
        self.reset_token_expiry = None


class Transaction(Base):
    """
    ORM model representing a single financial transaction.

    Amounts are always positive; whether a row is income or expense is
    derived from its category (see Category.type), never stored twice.
    """

    __tablename__ = "transactions"

    # Primary key
    id = Column(Integer, primary_key=True, index=True)

    # Owner; fixed at creation
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    amount = Column(Float, nullable=False)

    category = Column(
        Enum(
            Category,
            native_enum=False,
            length=32,
            values_callable=lambda e: [member.value for member in e],
            validate_strings=True,
        ),
        nullable=False,
    )

    # Trimmed, non-empty free text
    description = Column(String, nullable=False)

    # Calendar date chosen by the user (used by monthly summaries)
    date = Column(Date, nullable=False)

    # Insertion time (used for default ordering)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    user = relationship("User", back_populates="transactions")

    @property
    def type(self) -> TransactionType:
        return Category(self.category).type
