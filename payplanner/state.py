"""
Application State

The snapshot a front end renders: session fields, master data, the
current pay period and its copies, plus UI-transient selection flags.

DESIGN DECISION: State is an explicit object owned by PayPlannerStore,
not a global. Changes are announced through a small publish/subscribe
bus; nothing in scheduling/ or queries/ knows either exists.
"""

from datetime import datetime
from typing import Any, Callable, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

from payplanner.models.finance import (
    MasterBankAccount,
    MasterExpense,
    PayInfo,
    PayPeriod,
    PayPeriodBankAccount,
    PayPeriodExpense,
)
from payplanner.services.auth import Identity


STATE_CHANGED = "state_changed"


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event], Any]


class StateEventBus:
    """Synchronous publish/subscribe keyed by event name."""

    def __init__(self):
        self._subscribers: dict[str, list[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)

    def publish(self, name: str, payload: dict) -> list[Any]:
        """Call every handler for `name` in subscription order."""
        handlers = self._subscribers.get(name)
        if not handlers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event) for handler in list(handlers)]


class AppState(BaseModel):
    """Everything the front end can read."""
    model_config = ConfigDict(validate_assignment=True)

    # Session
    username: str = ""
    password: str = ""
    confirm_password: str = ""
    user: Optional[Identity] = None
    login_error: Optional[str] = None

    # Master data
    master_bank_accounts: list[MasterBankAccount] = Field(default_factory=list)
    master_expenses: list[MasterExpense] = Field(default_factory=list)
    pay_info: Optional[PayInfo] = None

    # Periods
    pay_periods: list[PayPeriod] = Field(default_factory=list)
    current_pay_period: Optional[PayPeriod] = None
    pay_period_bank_accounts: list[PayPeriodBankAccount] = Field(default_factory=list)
    pay_period_expenses: list[PayPeriodExpense] = Field(default_factory=list)

    # UI-transient selection
    selected_bank_account: Optional[MasterBankAccount] = None
    selected_expense: Optional[MasterExpense] = None
    selected_pay_period_bank_account: Optional[PayPeriodBankAccount] = None
    selected_pay_period_expense: Optional[PayPeriodExpense] = None
    new_bank_account_form_open: bool = False
    new_expense_form_open: bool = False

    loading: bool = False
    pay_period_loading: bool = False

    def clear_user_data(self) -> None:
        """Drop everything tied to the signed-in user."""
        defaults = AppState()
        for name in type(self).model_fields:
            if name not in ("username", "password", "confirm_password", "login_error"):
                setattr(self, name, getattr(defaults, name))
