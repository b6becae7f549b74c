"""Per-user payment analytics computed from the ledger."""

from collections.abc import Sequence
from decimal import Decimal

from pydantic import BaseModel, Field

from .models import PaymentTransaction


class PaymentTotals(BaseModel):
    count: int = 0
    amount: Decimal = Decimal("0.00")


class PaymentAnalytics(BaseModel):
    total_transactions: int
    total_amount: Decimal
    by_payment_type: dict[str, PaymentTotals] = Field(default_factory=dict)
    monthly: dict[str, PaymentTotals] = Field(default_factory=dict)
    recent_transactions: list[PaymentTransaction] = Field(default_factory=list)


def summarize_transactions(
    transactions: Sequence[PaymentTransaction], recent_limit: int = 10
) -> PaymentAnalytics:
    """Aggregate transactions (newest first) by payment type and by month.

    Months are keyed ``YYYY-MM``; transactions without a timestamp only
    count toward the type and overall totals.
    """
    by_type: dict[str, PaymentTotals] = {}
    monthly: dict[str, PaymentTotals] = {}
    total = Decimal("0.00")

    for txn in transactions:
        total += txn.amount

        bucket = by_type.setdefault(txn.payment_type.value, PaymentTotals())
        bucket.count += 1
        bucket.amount += txn.amount

        if txn.created_at is not None:
            month = monthly.setdefault(txn.created_at.strftime("%Y-%m"), PaymentTotals())
            month.count += 1
            month.amount += txn.amount

    return PaymentAnalytics(
        total_transactions=len(transactions),
        total_amount=total,
        by_payment_type=by_type,
        monthly=dict(sorted(monthly.items())),
        recent_transactions=list(transactions[:recent_limit]),
    )
