"""
Individuazione delle spese ricorrenti (mensili) dai movimenti già importati.

Una spesa è ricorrente se, negli ultimi 90 giorni, la stessa descrizione
(primi 40 caratteri, minuscolo) compare:
  - in almeno 2 mesi diversi
  - in almeno 2 mesi consecutivi
  - con medie mensili che non si scostano dalla media di più del 30%
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

import pandas as pd

from riconcilia.config import (
    RECURRING_KEY_LENGTH,
    RECURRING_LOOKBACK_DAYS,
    RECURRING_MAX_VARIANCE,
    RECURRING_MIN_CONSECUTIVE_MONTHS,
)
from riconcilia.core.logging_config import get_logger
from riconcilia.core.models import FlowType, StoredTransaction
from riconcilia.core.store import LedgerStore

logger = get_logger(__name__)


@dataclass
class RecurringExpense:
    description_key: str
    category: str
    avg_amount: float
    frequency: str              # per ora solo MONTHLY
    last_date: date
    next_expected_date: date
    transaction_count: int


def description_key(description: str) -> str:
    return (description or "")[:RECURRING_KEY_LENGTH].lower().strip()


def build_expenses_df(transactions: List[StoredTransaction]) -> pd.DataFrame:
    """DataFrame delle sole uscite, ordinato per data, con chiave descrizione e mese."""
    rows = [
        {
            "date": pd.Timestamp(tx.date),
            "amount": float(tx.amount),
            "category": tx.category,
            "key": description_key(tx.description),
        }
        for tx in transactions
        if tx.type == FlowType.EXPENSE
    ]
    if not rows:
        return pd.DataFrame(columns=["date", "amount", "category", "key", "month"])

    df = pd.DataFrame(rows).sort_values("date", kind="stable").reset_index(drop=True)
    # Mese come intero progressivo: mesi consecutivi differiscono di 1
    df["month"] = df["date"].dt.year * 12 + df["date"].dt.month - 1
    return df


def _consecutive_months(months: List[int]) -> int:
    count = 1
    for prev, curr in zip(months, months[1:]):
        if curr - prev == 1:
            count += 1
    return count


def find_recurring(df: pd.DataFrame) -> List[RecurringExpense]:
    recurring = []
    if df.empty:
        return recurring

    for key, group in df.groupby("key", sort=False):
        monthly = group.groupby("month")["amount"].mean()
        months = sorted(monthly.index.tolist())

        if len(months) < 2:
            continue
        if _consecutive_months(months) < RECURRING_MIN_CONSECUTIVE_MONTHS:
            continue

        avg = monthly.mean()
        if avg == 0:
            continue
        max_variance = ((monthly - avg).abs() / avg).max()
        if max_variance >= RECURRING_MAX_VARIANCE:
            continue

        last = group["date"].iloc[-1]
        recurring.append(RecurringExpense(
            description_key=key,
            category=group["category"].iloc[0],
            avg_amount=round(float(avg), 2),
            frequency="MONTHLY",
            last_date=last.date(),
            next_expected_date=(last + pd.DateOffset(months=1)).date(),
            transaction_count=len(group),
        ))
    return recurring


def detect_recurring_expenses(store: LedgerStore, property_id: str, today: Optional[date] = None) -> List[RecurringExpense]:
    today = today or date.today()
    since = today - timedelta(days=RECURRING_LOOKBACK_DAYS)
    transactions = store.find_transactions(property_id, since, today)

    recurring = find_recurring(build_expenses_df(transactions))
    logger.info(
        "Spese ricorrenti individuate",
        property_id=property_id,
        transactions=len(transactions),
        recurring=len(recurring),
    )
    return recurring
