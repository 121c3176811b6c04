"""
Account State Module

State objects carry the behaviour of an account in each lifecycle state.
The account delegates deposit, withdraw, month-end and unfreeze to its
current state, and states perform the transitions.

Business-rule denials (withdrawing while overdrawn, operating on a closed or
frozen account) are recorded in history and notified, never raised.
"""

from decimal import Decimal
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

from .amounts import ZERO, format_amount

if TYPE_CHECKING:
    from .accounts import Account


class AccountStatus(Enum):
    """Account lifecycle states"""
    ACTIVE = "active"          # Normal operation
    OVERDRAWN = "overdrawn"    # Negative balance, withdrawals blocked
    FROZEN = "frozen"          # Temporarily suspended
    CLOSED = "closed"          # Permanently closed


class AccountState(ABC):
    """Behaviour of an account in one lifecycle state"""
    
    status: AccountStatus
    
    @abstractmethod
    def deposit(self, account: 'Account', amount: Decimal) -> None:
        pass
    
    @abstractmethod
    def withdraw(self, account: 'Account', amount: Decimal) -> None:
        pass
    
    @abstractmethod
    def process_month(self, account: 'Account') -> None:
        pass
    
    @abstractmethod
    def unfreeze(self, account: 'Account') -> None:
        pass
    
    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def apply_interest(account: 'Account') -> Decimal:
    """Apply month-end interest from the account's policy and report it"""
    policy = account.interest_policy
    if policy is None:
        account.add_history("Monthly processing: no interest policy configured.")
        return ZERO
    
    balance_before = account.balance
    interest = policy.calculate(balance_before)
    if interest > ZERO:
        account.balance = balance_before + interest
        account.add_history(
            f"Monthly interest applied: ${format_amount(interest)} | Balance: ${format_amount(account.balance)}"
        )
        account.record_interest(interest)
        account.notify(
            f"INTEREST_APPLIED: ${format_amount(interest)} | Balance Before: ${format_amount(balance_before)} "
            f"| Balance After: ${format_amount(account.balance)}"
        )
        return interest
    
    account.add_history("Monthly processing: no interest applied.")
    return ZERO


class ActiveState(AccountState):
    """Normal operation; overdrawing moves the account to Overdrawn"""
    
    status = AccountStatus.ACTIVE
    
    def deposit(self, account: 'Account', amount: Decimal) -> None:
        account.balance = account.balance + amount
        account.add_history(f"Deposited: ${format_amount(amount)} | Balance: ${format_amount(account.balance)}")
        account.notify(f"Deposit recorded. New balance: ${format_amount(account.balance)}")
    
    def withdraw(self, account: 'Account', amount: Decimal) -> None:
        new_balance = account.balance - amount
        if account.balance >= amount:
            account.balance = new_balance
            account.add_history(f"Withdrawal: ${format_amount(amount)} | Balance: ${format_amount(new_balance)}")
            account.notify(f"Withdrawal executed. New balance: ${format_amount(new_balance)}")
            return
        
        # Not clamped: the shortfall becomes the overdraft
        account.balance = new_balance
        account.add_history(
            f"Withdrawal exceeded funds. Overdraft triggered. Amount: ${format_amount(amount)} "
            f"| Balance: ${format_amount(new_balance)}"
        )
        account.change_state(OverdrawnState())
        account.add_history("State changed -> Overdrawn")
        account.notify(
            f"OVERDRAFT: Withdrawal of ${format_amount(amount)} exceeded funds. "
            f"Account entered Overdrawn with balance ${format_amount(new_balance)}"
        )
    
    def process_month(self, account: 'Account') -> None:
        if account.balance < ZERO:
            account.change_state(OverdrawnState())
            account.add_history("Detected negative balance during month-end. State changed -> Overdrawn")
            account.notify("Delegating month-end processing to Overdrawn.")
            account.state.process_month(account)
            return
        
        apply_interest(account)
        account.notify(f"Monthly summary: balance ${format_amount(account.balance)}")
    
    def unfreeze(self, account: 'Account') -> None:
        account.add_history("Unfreeze called, but account is already active.")
        account.notify("Account is already active.")


class OverdrawnState(AccountState):
    """
    Negative balance. The overdraft fee is charged once per overdraft
    episode, on the first deposit or month-end after entering the state.
    A new instance is created on every entry so the flag never carries over.
    """
    
    status = AccountStatus.OVERDRAWN
    
    def __init__(self):
        self.fee_applied = False
    
    def __repr__(self) -> str:
        return f"OverdrawnState(fee_applied={self.fee_applied})"
    
    def _charge_fee(self, account: 'Account', label: str) -> None:
        if self.fee_applied:
            return
        fee = account.overdraft_fee
        balance_before = account.balance
        account.balance = balance_before - fee
        self.fee_applied = True
        account.add_history(f"{label} fee applied: ${format_amount(fee)} | Balance: ${format_amount(account.balance)}")
        account.record_fee(fee)
        account.notify(
            f"OVERDRAFT_FEE: ${format_amount(fee)} | Balance Before Fee: ${format_amount(balance_before)} "
            f"| Balance After Fee: ${format_amount(account.balance)}"
        )
    
    def deposit(self, account: 'Account', amount: Decimal) -> None:
        self._charge_fee(account, "Overdraft")
        
        account.balance = account.balance + amount
        account.add_history(f"Deposit while overdrawn: ${format_amount(amount)} | Balance: ${format_amount(account.balance)}")
        
        if account.balance >= ZERO:
            account.change_state(ActiveState())
            account.add_history("State changed -> Active (balance recovered).")
            account.notify(
                f"STATE_CHANGE: Overdrawn -> Active | Reason: Balance recovered to ${format_amount(account.balance)}"
            )
        else:
            account.notify(f"Deposit received, account remains Overdrawn. Balance ${format_amount(account.balance)}")
    
    def withdraw(self, account: 'Account', amount: Decimal) -> None:
        account.add_history(f"Withdrawal denied: account is overdrawn. Attempted: ${format_amount(amount)}")
        account.notify(
            f"WITHDRAWAL_DENIED: ${format_amount(amount)} | Reason: Account overdrawn "
            f"| Current Balance: ${format_amount(account.balance)}"
        )
    
    def process_month(self, account: 'Account') -> None:
        self._charge_fee(account, "Month-end overdraft")
        
        if account.balance >= ZERO:
            apply_interest(account)
            account.change_state(ActiveState())
            account.add_history("State changed -> Active.")
            account.notify("STATE_CHANGE: Overdrawn -> Active | Reason: Month-end balance recovery")
        else:
            account.add_history("Monthly processing: account remains overdrawn. No interest applied.")
            account.notify(f"MONTHLY_SUMMARY: Account remains overdrawn | Balance: ${format_amount(account.balance)}")
    
    def unfreeze(self, account: 'Account') -> None:
        account.add_history("Unfreeze operation denied: account is overdrawn.")
        account.notify("UNFREEZE_DENIED: Cannot unfreeze an overdrawn account")


class FrozenState(AccountState):
    """Temporarily suspended; only unfreeze has an effect"""
    
    status = AccountStatus.FROZEN
    
    def deposit(self, account: 'Account', amount: Decimal) -> None:
        account.add_history(f"Deposit denied: account is frozen. Attempted: ${format_amount(amount)}")
        account.notify("The deposit on a frozen account was blocked.")
    
    def withdraw(self, account: 'Account', amount: Decimal) -> None:
        account.add_history(f"Withdrawal denied: account is frozen. Attempted: ${format_amount(amount)}")
        account.notify("The withdrawal on a frozen account was blocked.")
    
    def process_month(self, account: 'Account') -> None:
        account.add_history("Monthly processing: account frozen. No interest or fees applied.")
        account.notify(f"Monthly summary: account FROZEN. Balance ${format_amount(account.balance)}")
    
    def unfreeze(self, account: 'Account') -> None:
        account.change_state(ActiveState())
        account.add_history("Account unfrozen. State changed -> Active.")
        account.notify("Account reactivated.")


class ClosedState(AccountState):
    """Terminal; every operation is blocked"""
    
    status = AccountStatus.CLOSED
    
    def deposit(self, account: 'Account', amount: Decimal) -> None:
        account.add_history("Cannot deposit to a closed account.")
        account.notify("The deposit to a closed account was blocked.")
    
    def withdraw(self, account: 'Account', amount: Decimal) -> None:
        account.add_history("Cannot withdraw from a closed account.")
        account.notify("The withdrawal from a closed account was blocked.")
    
    def process_month(self, account: 'Account') -> None:
        account.add_history("No monthly processing for closed accounts.")
        account.notify("The month-end processing of a closed account was blocked.")
    
    def unfreeze(self, account: 'Account') -> None:
        account.add_history("Cannot unfreeze a closed account.")
        account.notify("The unfreeze of a closed account was blocked.")
