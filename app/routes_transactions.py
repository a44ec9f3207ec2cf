# routes_transactions.py
"""
Routes for the authenticated user's transactions (list, add, delete).
Every handler is scoped to the user resolved by the authorization gate.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.deps import get_current_user, get_db
from app.schemas import TransactionCreate
from app.services.transactions import (
    create_transaction,
    delete_transaction,
    list_transactions,
    parse_transaction_id,
    transaction_to_dict,
)
from models import User

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.get("")
def transactions_list(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Newest-created first."""
    transactions = list_transactions(db, user.id)
    return {
        "message": "Transactions retrieved successfully",
        "transactions": [transaction_to_dict(tx) for tx in transactions],
    }


@router.post("", status_code=201)
def transactions_add(
    body: TransactionCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    tx = create_transaction(
        db,
        user_id=user.id,
        amount=body.amount,
        category=body.category,
        type=body.type,
        description=body.description,
        date=body.date,
    )
    return {
        "message": "Transaction added successfully",
        "transaction": transaction_to_dict(tx),
    }


@router.delete("/{transaction_id}")
def transactions_delete(
    transaction_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # str on purpose: a malformed id is a 400 with our own message
    delete_transaction(db, user.id, parse_transaction_id(transaction_id))
    return {"message": "Transaction deleted successfully"}
