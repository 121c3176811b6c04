"""
Access Control Module

The access guard sits between the service layers and the account. It
checks the PIN on client operations; month-end processing and the
privileged system channel (service fees, reward payouts) need no PIN.

No PIN value is special: "0000" is an ordinary PIN. Internal money
movements use ``system_withdraw`` / ``system_deposit`` instead of a
bypass credential.
"""

from decimal import Decimal
from abc import abstractmethod
from typing import Optional
import logging

from .accounts import Account, Reportable
from .amounts import Number, format_amount, to_decimal
from .config import get_config
from .logging_config import log_action


logger = logging.getLogger("account_engine.access")


class AccountOperations(Reportable):
    """
    Outward face of an account chain: the access guard and every service
    layer implement it.
    """
    
    @abstractmethod
    def deposit(self, amount: Number, pin: str) -> None:
        pass
    
    @abstractmethod
    def withdraw(self, amount: Number, pin: str) -> None:
        pass
    
    @abstractmethod
    def check_balance(self, pin: str) -> Decimal:
        """Current balance, or the denial sentinel when the PIN is wrong"""
        pass
    
    @abstractmethod
    def process_month(self) -> None:
        pass
    
    @property
    @abstractmethod
    def balance(self) -> Decimal:
        """Balance for internal checks; not PIN protected"""
        pass
    
    @property
    @abstractmethod
    def balance_denied(self) -> Decimal:
        """Sentinel returned by ``check_balance`` on a failed PIN"""
        pass
    
    @abstractmethod
    def system_withdraw(self, amount: Number) -> None:
        """Privileged withdrawal straight against the account"""
        pass
    
    @abstractmethod
    def system_deposit(self, amount: Number) -> None:
        """Privileged deposit straight into the account"""
        pass
    
    @abstractmethod
    def record_fee(self, amount: Decimal) -> None:
        """Count a collected fee towards settlement totals"""
        pass


class PinAuthenticator:
    """Compares a PIN against the stored secret by exact equality"""
    
    def __init__(self, stored_pin: str):
        if not isinstance(stored_pin, str) or not stored_pin:
            raise ValueError("PIN must be a non-empty string")
        self._stored_pin = stored_pin
    
    def validate(self, input_pin: Optional[str]) -> bool:
        return input_pin is not None and self._stored_pin == input_pin


class AccessGuard(AccountOperations):
    """PIN-gated proxy in front of an account"""
    
    def __init__(self, account: Account, authenticator: PinAuthenticator,
                 balance_denied: Optional[Number] = None):
        self.account = account
        self.authenticator = authenticator
        if balance_denied is None:
            balance_denied = get_config().decimal("balance_denied_sentinel")
        self._balance_denied = to_decimal(balance_denied)
        self.failed_attempts = 0
    
    def _deny(self, operation: str) -> None:
        self.failed_attempts += 1
        log_action(logger, "warning", f"Incorrect PIN, {operation} not completed",
                   account_id=self.account.account_id, action=f"{operation}_denied")
        self.account.notify(f"Failed {operation} attempt due to incorrect PIN.")
    
    def deposit(self, amount: Number, pin: str) -> None:
        if self.authenticator.validate(pin):
            self.account.deposit(amount)
        else:
            self._deny("deposit")
    
    def withdraw(self, amount: Number, pin: str) -> None:
        if self.authenticator.validate(pin):
            self.account.withdraw(amount)
        else:
            self._deny("withdrawal")
    
    def check_balance(self, pin: str) -> Decimal:
        if self.authenticator.validate(pin):
            return self.account.check_balance()
        self._deny("balance check")
        return self._balance_denied
    
    def process_month(self) -> None:
        self.account.process_month()
    
    @property
    def balance(self) -> Decimal:
        return self.account.balance
    
    @property
    def balance_denied(self) -> Decimal:
        return self._balance_denied
    
    def system_withdraw(self, amount: Number) -> None:
        balance_before = self.account.balance
        self.account.withdraw(amount)
        # Only movements the state actually allowed
        if self.account.balance != balance_before:
            self.account.add_history(
                f"System withdrawal: ${format_amount(amount)} | Balance: ${format_amount(self.account.balance)}"
            )
    
    def system_deposit(self, amount: Number) -> None:
        balance_before = self.account.balance
        self.account.deposit(amount)
        if self.account.balance != balance_before:
            self.account.add_history(
                f"System deposit: ${format_amount(amount)} | Balance: ${format_amount(self.account.balance)}"
            )
    
    def record_fee(self, amount: Decimal) -> None:
        self.account.record_fee(amount)
    
    def add_history(self, event: str) -> None:
        self.account.add_history(event)
    
    def notify(self, message: str) -> None:
        self.account.notify(message)
