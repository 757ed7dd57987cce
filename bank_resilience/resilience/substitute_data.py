"""
Substitute datasets served while emergency mode is active.

The figures are static; transactions are generated from a fixed seed so the
same call always yields the same list. Timestamps derive from `now`.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import Optional

from bank_resilience.models.banking import (
    Account,
    Address,
    FinancialSummary,
    Transaction,
    UserPreferences,
    UserProfile,
)

SAVINGS_GOAL = 1_500_000_000.0
TRANSACTION_SEED = 5314

_TRANSACTION_TEMPLATES = [
    ("deposit", "Direct Deposit - Salary", 250000.0, "income"),
    ("transfer", "Investment Transfer", -100000.0, "investment"),
    ("withdrawal", "ATM Withdrawal", -500.0, "cash"),
    ("purchase", "Amazon Purchase", -1249.99, "shopping"),
    ("deposit", "Dividend Payment", 45000.0, "investment"),
    ("transfer", "Wire Transfer", -25000.0, "transfer"),
    ("purchase", "Restaurant", -156.75, "dining"),
    ("deposit", "Interest Payment", 12500.0, "interest"),
]


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def get_substitute_accounts(now: Optional[datetime] = None) -> list[Account]:
    """Checking, investment and savings accounts of the demo customer."""
    updated = _now(now)
    return [
        Account(
            id="johnson_checking",
            account_name="Checking Account",
            account_number="****5314",
            balance=2847293.67,
            available_balance=2847293.67,
            account_type="checking",
            last_updated=updated,
            interest_rate=0.01,
            minimum_balance=0,
        ),
        Account(
            id="johnson_primary",
            account_name="Primary Investment Account",
            account_number="****7958",
            balance=743628491.82,
            available_balance=743628491.82,
            account_type="investment",
            last_updated=updated,
            interest_rate=0.045,
            minimum_balance=100000,
        ),
        Account(
            id="johnson_savings",
            account_name="High-Yield Savings",
            account_number="****1120",
            balance=268794736.51,
            available_balance=268794736.51,
            account_type="savings",
            last_updated=updated,
            interest_rate=0.035,
            minimum_balance=10000,
        ),
    ]


def get_substitute_transactions(
    limit: int = 20,
    now: Optional[datetime] = None,
) -> list[Transaction]:
    """
    Generate `limit` transactions, newest first.

    Dates start roughly five months before `now` and step back one day per
    transaction, alternating between the checking and investment accounts.
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")

    rng = random.Random(TRANSACTION_SEED)
    start = _now(now) - timedelta(days=150)
    transactions = []

    for i in range(limit):
        txn_type, description, amount, category = _TRANSACTION_TEMPLATES[
            i % len(_TRANSACTION_TEMPLATES)
        ]
        transactions.append(
            Transaction(
                id=f"mock_txn_{i + 1}",
                account_id="johnson_checking" if i % 2 == 0 else "johnson_primary",
                type=txn_type,
                description=description,
                amount=round(amount + rng.uniform(-50, 50), 2),
                category=category,
                date=start - timedelta(days=i),
                balance=round(rng.uniform(0, 1_000_000_000), 2),
                reference=f"REF{i + 1:06d}",
            )
        )

    return sorted(transactions, key=lambda txn: txn.date, reverse=True)


def get_substitute_user_profile(now: Optional[datetime] = None) -> UserProfile:
    """Profile of the demo customer."""
    return UserProfile(
        uid="mYFGjRgsARS0AheCdYUkzhMRLkk2",
        email="johnson.boseman@example.com",
        display_name="Johnson Boseman",
        first_name="Johnson",
        last_name="Boseman",
        account_type="premium",
        phone_number="+1 (555) 123-4567",
        address=Address(
            street="123 Wealth Avenue",
            city="Beverly Hills",
            state="CA",
            zip_code="90210",
            country="USA",
        ),
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        last_login=_now(now),
        preferences=UserPreferences(),
    )


def get_substitute_financial_summary(now: Optional[datetime] = None) -> FinancialSummary:
    """Summary derived from the substitute accounts."""
    total_balance = sum(account.balance for account in get_substitute_accounts(now))
    return FinancialSummary(
        total_balance=total_balance,
        total_available=total_balance,
        monthly_income=295000,
        monthly_expenses=45000,
        # Other assets on top of cash
        net_worth=total_balance * 1.15,
        investment_growth=0.087,
        savings_goal=SAVINGS_GOAL,
        savings_progress=total_balance / SAVINGS_GOAL,
        credit_score=850,
        last_updated=_now(now),
    )
