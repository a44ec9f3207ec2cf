# app/services/aggregation.py
"""
Derived metrics over a user's transactions.

All functions are pure: they take any iterable of transaction-like records
(objects with amount, category, type and date attributes) and never touch
the database. Nothing is cached; callers recompute on every read.

Note the asymmetry between the two grouped views:
- category_totals omits categories with no matching rows
- monthly_series always emits all 6 months, zero-filled
"""

from datetime import date
from typing import Any, Dict, Iterable, List

import pandas as pd

from models import Category, TransactionType

COLUMNS = ["amount", "category", "type", "date"]

MONTHS_IN_SERIES = 6


def _as_type(value: Any) -> str:
    return TransactionType(value).value


def _frame(transactions: Iterable[Any]) -> pd.DataFrame:
    """
    One row per transaction: amount (float), category and type (plain
    strings), date (calendar date).
    """
    rows = [
        {
            "amount": float(tx.amount),
            "category": Category(tx.category).value,
            "type": _as_type(tx.type),
            "date": tx.date,
        }
        for tx in transactions
    ]
    df = pd.DataFrame(rows, columns=COLUMNS)
    df["amount"] = pd.to_numeric(df["amount"]).astype(float)
    return df


def _sum_for_type(df: pd.DataFrame, type: str) -> float:
    if df.empty:
        return 0.0
    return float(df.loc[df["type"] == type, "amount"].sum())


def category_totals(transactions: Iterable[Any], type: Any) -> Dict[str, float]:
    """
    Sum of amount per category, restricted to one transaction type.

    Categories are listed in order of first appearance; categories without
    matching transactions are left out (not zero-filled).
    """
    df = _frame(transactions)
    df = df[df["type"] == _as_type(type)]
    if df.empty:
        return {}

    by_cat = df.groupby("category", sort=False)["amount"].sum()
    return {str(cat): float(total) for cat, total in by_cat.items()}


def total_income(transactions: Iterable[Any]) -> float:
    return _sum_for_type(_frame(transactions), TransactionType.INCOME.value)


def total_expenses(transactions: Iterable[Any]) -> float:
    return _sum_for_type(_frame(transactions), TransactionType.EXPENSE.value)


def balance(transactions: Iterable[Any]) -> float:
    """Income minus expenses (may be negative)."""
    df = _frame(transactions)
    income = _sum_for_type(df, TransactionType.INCOME.value)
    expenses = _sum_for_type(df, TransactionType.EXPENSE.value)
    return income - expenses


def month_window(reference_date: date, months: int = MONTHS_IN_SERIES) -> pd.PeriodIndex:
    """The `months` calendar months ending with the month of reference_date."""
    end = pd.Period(reference_date, freq="M")
    return pd.period_range(end=end, periods=months, freq="M")


def monthly_series(transactions: Iterable[Any], reference_date: date) -> List[Dict[str, Any]]:
    """
    Income/expense per calendar month for the 6 months ending at
    reference_date, oldest first.

    Months are matched on the transaction's own date (not its creation
    time); anything outside the window is ignored, and empty months are
    still returned with zeros.
    """
    window = month_window(reference_date)
    keys = [str(p) for p in window]  # 'YYYY-MM'

    df = _frame(transactions)
    if not df.empty:
        df["month"] = pd.to_datetime(df["date"]).dt.to_period("M").astype(str)
        df = df[df["month"].isin(keys)]

    if df.empty:
        monthly = pd.DataFrame(0.0, index=keys, columns=["income", "expense"])
    else:
        monthly = (
            df.groupby(["month", "type"])["amount"]
            .sum()
            .unstack(fill_value=0.0)
            .reindex(index=keys, columns=["income", "expense"], fill_value=0.0)
        )

    return [
        {
            "month": period.strftime("%b"),
            "period": key,
            "income": float(monthly.at[key, "income"]),
            "expense": float(monthly.at[key, "expense"]),
        }
        for period, key in zip(window, keys)
    ]


def summarize(transactions: Iterable[Any], reference_date: date) -> Dict[str, Any]:
    """Everything the dashboard shows, computed from one snapshot of rows."""
    rows = list(transactions)

    return {
        "totalIncome": total_income(rows),
        "totalExpenses": total_expenses(rows),
        "balance": balance(rows),
        "incomeByCategory": category_totals(rows, TransactionType.INCOME),
        "expensesByCategory": category_totals(rows, TransactionType.EXPENSE),
        "monthly": monthly_series(rows, reference_date),
        "transactionCount": len(rows),
    }
