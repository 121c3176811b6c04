"""
Account Module

The account holds balance, lifecycle state, interest policy and an
append-only history. Balance changes are delegated to the current state
object; the account only validates amounts and offers the reporting hooks
(history, notifications, fee and interest reporting) the states use.
"""

from decimal import Decimal
from dataclasses import dataclass
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple, Union
import logging

from .amounts import Number, ZERO, format_amount, to_decimal
from .config import get_config
from .events import EventDispatcher, EventSink, timestamped
from .interest import InterestPolicy
from .notifications import Observer
from .states import AccountState, AccountStatus, ActiveState, ClosedState, FrozenState


logger = logging.getLogger("account_engine.accounts")


class InvalidAmountError(ValueError):
    """Raised when a deposit or withdrawal amount is not positive"""
    pass


@dataclass(frozen=True)
class Client:
    """Account owner; identity never changes after registration"""
    name: str
    client_id: str
    
    def __str__(self) -> str:
        return f"{self.name} (ID: {self.client_id})"


class Reportable(ABC):
    """Capability to write account history and emit notifications"""
    
    @abstractmethod
    def add_history(self, event: str) -> None:
        pass
    
    @abstractmethod
    def notify(self, message: str) -> None:
        pass


class SettlementReporter(ABC):
    """Receives fee and interest amounts for settlement totals"""
    
    @abstractmethod
    def record_fee(self, amount: Decimal) -> None:
        pass
    
    @abstractmethod
    def record_interest(self, amount: Decimal) -> None:
        pass


ObserverLike = Union[Observer, Callable[[str], None]]


def validate_amount(amount: Number, label: str) -> Decimal:
    """Convert an amount and reject anything that is not strictly positive"""
    value = to_decimal(amount)
    if not value.is_finite() or value <= ZERO:
        raise InvalidAmountError(f"{label} must be > 0, got {amount}")
    return value


class Account(Reportable):
    """
    Bank account driven by a state machine.
    
    Deposits and withdrawals with a non-positive amount raise
    ``InvalidAmountError`` before any state is consulted. Every other
    outcome, including denials, is recorded in ``history``.
    """
    
    def __init__(
        self,
        account_id: str,
        client: Client,
        initial_balance: Number = ZERO,
        interest_policy: Optional[InterestPolicy] = None,
        reporter: Optional[SettlementReporter] = None,
        history_sink: Optional[EventSink] = None,
        overdraft_fee: Optional[Number] = None
    ):
        balance = to_decimal(initial_balance)
        if balance < ZERO:
            raise InvalidAmountError("Initial balance cannot be negative")
        
        self.account_id = account_id
        self._client = client
        self.balance = balance
        self.interest_policy = interest_policy
        self.reporter = reporter
        self.history_sink = history_sink
        if overdraft_fee is None:
            overdraft_fee = get_config().decimal("overdraft_fee")
        self.overdraft_fee = to_decimal(overdraft_fee)
        
        self._state: AccountState = ActiveState()
        self._history: List[str] = []
        self._dispatcher = EventDispatcher()
    
    def __repr__(self) -> str:
        return f"Account({self.account_id!r}, balance={self.balance}, status={self.status.value})"
    
    @property
    def client(self) -> Client:
        return self._client
    
    @property
    def state(self) -> AccountState:
        return self._state
    
    @property
    def status(self) -> AccountStatus:
        return self._state.status
    
    @property
    def history(self) -> Tuple[str, ...]:
        """Snapshot of the history; entries are only ever appended"""
        return tuple(self._history)
    
    def change_state(self, new_state: AccountState) -> None:
        if new_state is None:
            raise ValueError("State cannot be None")
        self._state = new_state
    
    # Operations
    
    def deposit(self, amount: Number) -> None:
        value = validate_amount(amount, "Deposit amount")
        self._state.deposit(self, value)
    
    def withdraw(self, amount: Number) -> None:
        value = validate_amount(amount, "Withdraw amount")
        self._state.withdraw(self, value)
    
    def check_balance(self) -> Decimal:
        return self.balance
    
    def process_month(self) -> None:
        self._state.process_month(self)
    
    def unfreeze(self) -> None:
        self._state.unfreeze(self)
    
    def freeze(self) -> None:
        """Suspend an active account"""
        if self.status == AccountStatus.ACTIVE:
            self.change_state(FrozenState())
            self.add_history("Account frozen. State changed -> Frozen.")
            self.notify("Account frozen.")
        else:
            self.add_history(f"Freeze denied: account is {self.status.value}.")
            self.notify(f"FREEZE_DENIED: Cannot freeze a {self.status.value} account")
    
    def close(self) -> None:
        """Close the account for good; overdrawn accounts must be settled first"""
        if self.status in (AccountStatus.ACTIVE, AccountStatus.FROZEN):
            self.change_state(ClosedState())
            self.add_history(f"Account closed with balance ${format_amount(self.balance)}. State changed -> Closed.")
            self.notify("Account closed.")
        elif self.status == AccountStatus.OVERDRAWN:
            self.add_history("Close denied: account is overdrawn.")
            self.notify(f"CLOSE_DENIED: Settle the overdraft first | Balance: ${format_amount(self.balance)}")
        else:
            self.add_history("Close called, but account is already closed.")
            self.notify("Account is already closed.")
    
    # Reporting
    
    def add_history(self, event: str) -> None:
        self._history.append(event)
        if self.history_sink is not None:
            self.history_sink.record(timestamped(f"[{self.account_id}] {event}"))
    
    def notify(self, message: str) -> None:
        self._dispatcher.publish(message)
    
    def add_observer(self, observer: ObserverLike) -> None:
        self._dispatcher.subscribe(_handler_for(observer))
    
    def remove_observer(self, observer: ObserverLike) -> None:
        self._dispatcher.unsubscribe(_handler_for(observer))
    
    def record_fee(self, amount: Decimal) -> None:
        if self.reporter is not None:
            self.reporter.record_fee(amount)
    
    def record_interest(self, amount: Decimal) -> None:
        if self.reporter is not None:
            self.reporter.record_interest(amount)


def _handler_for(observer: ObserverLike) -> Callable[[str], None]:
    if isinstance(observer, Observer):
        return observer.update
    return observer
