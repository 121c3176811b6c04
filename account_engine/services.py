"""
Service Layer Module

Optional services decorate an account chain: fraud monitoring, premium
alerts and a rewards program. Each layer wraps exactly one inner layer,
forwards every operation by default and charges its own monthly fee.

Monthly fees go through the privileged system channel, straight to the
account, so charging one service's fee never triggers another layer's
side effects. A fee counts towards settlement totals only when the
balance actually went down; a blocked account (overdrawn, frozen, closed)
is not charged.

Services are requested as an ordered list, outermost first: the first
service listed charges its fee first at month-end.
"""

from decimal import Decimal, ROUND_FLOOR
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Type, TypeVar, Union

from .access import AccessGuard, AccountOperations
from .accounts import InvalidAmountError
from .amounts import Number, format_amount, to_decimal
from .config import EngineConfig, get_config


class ServiceType(Enum):
    """Services that can be added to an account"""
    FRAUD_MONITOR = "fraud_monitor"
    PREMIUM_ALERTS = "premium_alerts"
    REWARDS = "rewards"


class AccountService(AccountOperations):
    """Base layer: forwards everything to the wrapped layer"""
    
    service_name = "Account Service"
    
    def __init__(self, inner: AccountOperations, monthly_fee: Number):
        self.inner = inner
        self.monthly_fee = to_decimal(monthly_fee)
    
    def deposit(self, amount: Number, pin: str) -> None:
        self.inner.deposit(amount, pin)
    
    def withdraw(self, amount: Number, pin: str) -> None:
        self.inner.withdraw(amount, pin)
    
    def check_balance(self, pin: str) -> Decimal:
        return self.inner.check_balance(pin)
    
    def process_month(self) -> None:
        self.inner.process_month()
    
    @property
    def balance(self) -> Decimal:
        return self.inner.balance
    
    @property
    def balance_denied(self) -> Decimal:
        return self.inner.balance_denied
    
    def system_withdraw(self, amount: Number) -> None:
        self.inner.system_withdraw(amount)
    
    def system_deposit(self, amount: Number) -> None:
        self.inner.system_deposit(amount)
    
    def record_fee(self, amount: Decimal) -> None:
        self.inner.record_fee(amount)
    
    def add_history(self, event: str) -> None:
        self.inner.add_history(event)
    
    def notify(self, message: str) -> None:
        self.inner.notify(message)
    
    def charge_monthly_fee(self) -> bool:
        """
        Withdraw this service's fee and record it if the balance went down.
        
        Returns:
            True if the fee was collected
        """
        fee = self.monthly_fee
        self.notify(f"SERVICE_FEE_PENDING: {self.service_name} - ${format_amount(fee)}")
        
        balance_before = self.balance
        self.system_withdraw(fee)
        
        if self.balance < balance_before:
            self.record_fee(fee)
            self.add_history(f"{self.service_name} fee applied: ${format_amount(fee)}")
            self.notify(f"SERVICE_FEE_APPLIED: {self.service_name} - ${format_amount(fee)}")
            return True
        
        self.add_history(f"{self.service_name} fee not collected: charge was denied.")
        self.notify(f"SERVICE_FEE_DENIED: {self.service_name} - ${format_amount(fee)} | Account cannot be charged")
        return False


class FraudMonitorService(AccountService):
    """Flags large movements; monitoring only, never blocks"""
    
    service_name = "Anti-Fraud Protection"
    
    def __init__(self, inner: AccountOperations, monthly_fee: Number, alert_threshold: Number):
        super().__init__(inner, monthly_fee)
        self.alert_threshold = to_decimal(alert_threshold)
        self.alerts_raised = 0
    
    def _inspect(self, amount: Number, operation: str) -> None:
        value = to_decimal(amount)
        if value > self.alert_threshold:
            self.alerts_raised += 1
            self.add_history(f"Suspicious {operation} detected: ${format_amount(value)}")
            self.notify(f"FRAUD_ALERT: Large {operation} of ${format_amount(value)} requires verification")
    
    def deposit(self, amount: Number, pin: str) -> None:
        self._inspect(amount, "deposit")
        super().deposit(amount, pin)
    
    def withdraw(self, amount: Number, pin: str) -> None:
        self._inspect(amount, "withdrawal")
        super().withdraw(amount, pin)
    
    def process_month(self) -> None:
        self.charge_monthly_fee()
        super().process_month()


class PremiumAlertsService(AccountService):
    """Sends an alert after every successful client operation"""
    
    service_name = "Premium Alerts"
    
    def deposit(self, amount: Number, pin: str) -> None:
        balance_before = self.balance
        super().deposit(amount, pin)
        if self.balance != balance_before:
            self.notify(f"PREMIUM ALERT: Deposit of ${format_amount(amount)} completed")
    
    def withdraw(self, amount: Number, pin: str) -> None:
        balance_before = self.balance
        super().withdraw(amount, pin)
        if self.balance != balance_before:
            self.notify(f"PREMIUM ALERT: Withdrawal of ${format_amount(amount)} completed")
    
    def check_balance(self, pin: str) -> Decimal:
        balance = super().check_balance(pin)
        if balance != self.balance_denied:
            self.notify(f"PREMIUM ALERT: Balance checked - ${format_amount(balance)}")
        return balance
    
    def process_month(self) -> None:
        self.charge_monthly_fee()
        super().process_month()


class RewardsService(AccountService):
    """Earns points on successful movements; points redeem for cash"""
    
    service_name = "Rewards Program"
    
    def __init__(self, inner: AccountOperations, monthly_fee: Number,
                 points_rate: Number, cash_rate: Number):
        super().__init__(inner, monthly_fee)
        self.points_rate = to_decimal(points_rate)
        self.cash_rate = to_decimal(cash_rate)
        self._reward_points = 0
    
    @property
    def reward_points(self) -> int:
        return self._reward_points
    
    def _earn(self, amount: Number) -> int:
        earned = int((to_decimal(amount) * self.points_rate).to_integral_value(rounding=ROUND_FLOOR))
        self._reward_points += earned
        self.add_history(f"Reward points earned: {earned} | Total: {self._reward_points}")
        if earned > 0:
            self.notify(f"Rewards: Earned {earned} points! Total: {self._reward_points}")
        return earned
    
    def deposit(self, amount: Number, pin: str) -> None:
        balance_before = self.balance
        super().deposit(amount, pin)
        if self.balance != balance_before:
            self._earn(amount)
    
    def withdraw(self, amount: Number, pin: str) -> None:
        balance_before = self.balance
        super().withdraw(amount, pin)
        if self.balance != balance_before:
            self._earn(amount)
    
    def redeem_points(self, points: int) -> bool:
        """
        Exchange points for a cash deposit.
        
        Args:
            points: Number of points to redeem
            
        Returns:
            True if the points were redeemed
            
        Raises:
            InvalidAmountError: If points is not positive
        """
        if points <= 0:
            raise InvalidAmountError(f"Points to redeem must be > 0, got {points}")
        
        if points > self._reward_points:
            self.notify(f"Rewards: Insufficient points. Available: {self._reward_points}")
            return False
        
        cash_value = points * self.cash_rate
        balance_before = self.balance
        self.system_deposit(cash_value)
        if self.balance == balance_before:
            self.notify("Rewards: Redemption blocked by account status. Points kept.")
            return False
        
        self._reward_points -= points
        self.add_history(f"Points redeemed: {points} for ${format_amount(cash_value)}")
        self.notify(f"Rewards: Redeemed {points} points for ${format_amount(cash_value)}")
        return True
    
    def process_month(self) -> None:
        self.charge_monthly_fee()
        self.notify(f"Rewards program: Current points: {self._reward_points}")
        super().process_month()


ServiceSpec = Union[ServiceType, str]
L = TypeVar("L", bound=AccountOperations)


def parse_service(service: ServiceSpec) -> ServiceType:
    if isinstance(service, ServiceType):
        return service
    try:
        return ServiceType(str(service).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown service: {service}") from None


def create_service(service: ServiceSpec, inner: AccountOperations,
                   config: Optional[EngineConfig] = None) -> AccountService:
    """Wrap ``inner`` in one service layer configured from settings"""
    config = config or get_config()
    service_type = parse_service(service)
    
    if service_type == ServiceType.FRAUD_MONITOR:
        return FraudMonitorService(
            inner,
            config.decimal("fraud_monitor_fee"),
            config.decimal("fraud_alert_threshold")
        )
    if service_type == ServiceType.PREMIUM_ALERTS:
        return PremiumAlertsService(inner, config.decimal("premium_alerts_fee"))
    return RewardsService(
        inner,
        config.decimal("rewards_fee"),
        config.decimal("rewards_points_rate"),
        config.decimal("rewards_cash_rate")
    )


def build_service_chain(guard: AccessGuard, services: Optional[Sequence[ServiceSpec]] = None,
                        config: Optional[EngineConfig] = None) -> AccountOperations:
    """
    Compose services around an access guard.
    
    Args:
        guard: Innermost layer
        services: Requested services, outermost first
        config: Settings for fees and rates
        
    Returns:
        The outermost layer (the guard itself when no services are requested)
    """
    service_types = [parse_service(service) for service in services or []]
    if len(set(service_types)) != len(service_types):
        raise ValueError("Each service can be added to an account only once")
    
    chain: AccountOperations = guard
    for service_type in reversed(service_types):
        chain = create_service(service_type, chain, config)
    return chain


def iter_layers(chain: AccountOperations) -> Iterator[AccountOperations]:
    """Walk the chain from the outermost layer down to the access guard"""
    layer: Optional[AccountOperations] = chain
    while layer is not None:
        yield layer
        layer = layer.inner if isinstance(layer, AccountService) else None


def find_layer(chain: AccountOperations, layer_type: Type[L]) -> Optional[L]:
    for layer in iter_layers(chain):
        if isinstance(layer, layer_type):
            return layer
    return None


def service_names(chain: AccountOperations) -> List[str]:
    return [layer.service_name for layer in iter_layers(chain) if isinstance(layer, AccountService)]
