"""
Banking Display Models

Shapes of the substitute datasets served while emergency mode is active.
They mirror what the dashboard renders from the live backend, with
``mock_data`` set so the UI can label them.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Account(BaseModel):
    """A bank account as shown on the dashboard."""

    id: str
    account_name: str
    account_number: str = Field(..., description="Masked account number")
    balance: float
    available_balance: float
    account_type: str
    currency: str = "USD"
    status: str = "active"
    last_updated: datetime
    interest_rate: float
    minimum_balance: float
    mock_data: bool = True


class Transaction(BaseModel):
    """A single posted transaction."""

    id: str
    account_id: str
    type: str
    description: str
    amount: float
    category: str
    date: datetime
    status: str = "completed"
    balance: float = Field(..., description="Balance after the transaction")
    reference: str
    mock_data: bool = True


class Address(BaseModel):
    street: str
    city: str
    state: str
    zip_code: str
    country: str


class UserPreferences(BaseModel):
    currency: str = "USD"
    language: str = "en"
    notifications: bool = True
    two_factor_auth: bool = True


class UserProfile(BaseModel):
    """Profile of the signed-in customer."""

    uid: str
    email: str
    display_name: str
    first_name: str
    last_name: str
    role: str = "customer"
    account_type: str
    phone_number: str
    address: Address
    profile_image: Optional[str] = None
    created_at: datetime
    last_login: datetime
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    mock_data: bool = True


class FinancialSummary(BaseModel):
    """Aggregate figures for the dashboard overview."""

    total_balance: float
    total_available: float
    monthly_income: float
    monthly_expenses: float
    net_worth: float
    investment_growth: float
    savings_goal: float
    savings_progress: float
    credit_score: int
    last_updated: datetime
    mock_data: bool = True
