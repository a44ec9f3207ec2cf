# app/services/transactions.py
#
# Transaction Store
# User-scoped list / create / delete, plus the JSON shape used by the API.
# The owner id always comes from the authenticated caller, never from the body.

import logging
import math
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.errors import NotFound, ValidationError
from models import Category, Transaction, TransactionType

logger = logging.getLogger(__name__)

# Largest id a 64-bit INTEGER column can hold
MAX_ID = 2**63 - 1


# ---- Parsing ----

def parse_transaction_id(raw: str) -> int:
    try:
        value = int(str(raw).strip())
    except ValueError:
        raise ValidationError("Invalid transaction ID")
    if value <= 0 or value > MAX_ID:
        raise ValidationError("Invalid transaction ID")
    return value


def parse_transaction_date(raw: Any) -> date:
    """
    Accepts a date, 'YYYY-MM-DD', or an ISO-8601 datetime string
    (e.g. '2025-03-01T00:00:00.000Z'); only the calendar date is kept.
    """
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw

    s = str(raw).strip()
    try:
        return date.fromisoformat(s)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValidationError("Invalid date")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


# ---- Store operations ----

def list_transactions(db: Session, user_id: int) -> List[Transaction]:
    """All of the user's transactions, most recently created first."""
    return (
        db.query(Transaction)
        .filter(Transaction.user_id == user_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .all()
    )


def create_transaction(
    db: Session,
    user_id: int,
    amount: Any,
    category: Optional[str],
    type: Optional[str],
    description: Optional[str],
    date: Any,
) -> Transaction:
    """
    Validate and insert one transaction for `user_id`.

    The category decides the group (income or expense); the supplied type
    must agree with it.
    """
    if any(_is_blank(v) for v in (amount, category, type, description, date)):
        raise ValidationError("Amount, category, type, description, and date are required")

    # JSON true/false would otherwise pass float()
    if isinstance(amount, bool):
        raise ValidationError("Amount must be greater than 0")
    try:
        amount_value = float(amount)
    except (TypeError, ValueError):
        raise ValidationError("Amount must be greater than 0")
    if not math.isfinite(amount_value) or amount_value <= 0:
        raise ValidationError("Amount must be greater than 0")

    try:
        category_value = Category(category)
    except ValueError:
        raise ValidationError("Invalid category")

    try:
        type_value = TransactionType(type)
    except ValueError:
        raise ValidationError("Type must be either income or expense")

    if category_value.type is not type_value:
        raise ValidationError("Category does not match transaction type")

    clean_description = str(description).strip()
    if not clean_description:
        raise ValidationError("Description cannot be empty")

    tx = Transaction(
        user_id=user_id,
        amount=amount_value,
        category=category_value,
        description=clean_description,
        date=parse_transaction_date(date),
    )
    db.add(tx)
    db.commit()
    db.refresh(tx)

    logger.info("Created transaction id=%s for user id=%s", tx.id, user_id)
    return tx


def delete_transaction(db: Session, user_id: int, transaction_id: int) -> None:
    """
    Delete a transaction owned by `user_id`.

    Someone else's transaction is reported exactly like a missing one.
    """
    deleted = (
        db.query(Transaction)
        .filter(Transaction.id == transaction_id, Transaction.user_id == user_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        db.rollback()
        raise NotFound("Transaction not found")

    db.commit()
    logger.info("Deleted transaction id=%s for user id=%s", transaction_id, user_id)


# ---- Serialization ----

def transaction_to_dict(tx: Transaction) -> Dict[str, Any]:
    return {
        "id": tx.id,
        "userId": tx.user_id,
        "amount": tx.amount,
        "category": Category(tx.category).value,
        "type": tx.type.value,
        "description": tx.description,
        "date": tx.date.isoformat(),
        "createdAt": tx.created_at.isoformat() if tx.created_at else None,
    }
