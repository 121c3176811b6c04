"""
Interest Policy Module

Interchangeable month-end interest policies. A policy maps the month-end
balance to the interest earned; it never mutates the account. Three plans
are provided: a flat periodic rate with a minimum balance, a tiered rate
with balance bonuses, and an annual rate paid once per year on the average
balance.
"""

from decimal import Decimal
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from .amounts import Number, ZERO, to_decimal
from .config import EngineConfig, get_config


class InterestPlan(Enum):
    """Interest plans offered at account opening"""
    MONTHLY = "monthly"    # Flat monthly rate above a minimum balance
    PREMIUM = "premium"    # Base rate plus balance-tier bonus
    ANNUAL = "annual"      # Paid at year end on the average balance


class InterestPolicy(ABC):
    """Computes month-end interest for a balance"""
    
    @abstractmethod
    def calculate(self, balance: Number) -> Decimal:
        """Return the interest earned by ``balance``; never negative"""
        pass
    
    def observe_period(self, period: int, balance: Number) -> None:
        """Hook called once per settlement period before month-end (default no-op)"""
        pass
    
    def end_period(self, period: int) -> None:
        """Hook called after a successful month-end (default no-op)"""
        pass


class PeriodicInterest(InterestPolicy):
    """
    Fixed rate applied every period when the balance is positive and
    meets the minimum balance.
    """
    
    def __init__(self, rate: Number, minimum_balance: Number = ZERO):
        self.rate = to_decimal(rate)
        self.minimum_balance = to_decimal(minimum_balance)
        if self.rate < ZERO:
            raise ValueError("Interest rate cannot be negative")
    
    def calculate(self, balance: Number) -> Decimal:
        balance = to_decimal(balance)
        if balance > ZERO and balance >= self.minimum_balance:
            return balance * self.rate
        return ZERO


class TieredInterest(InterestPolicy):
    """
    Base rate plus a bonus for higher balances. The bonus of the highest
    threshold reached applies; no minimum balance is required.
    """
    
    def __init__(self, base_rate: Number, threshold_1: Number, threshold_2: Number,
                 bonus_rate_1: Number, bonus_rate_2: Number):
        self.base_rate = to_decimal(base_rate)
        self.threshold_1 = to_decimal(threshold_1)
        self.threshold_2 = to_decimal(threshold_2)
        self.bonus_rate_1 = to_decimal(bonus_rate_1)
        self.bonus_rate_2 = to_decimal(bonus_rate_2)
        
        if self.threshold_2 < self.threshold_1:
            raise ValueError("Second bonus threshold must not be below the first")
    
    def rate_for(self, balance: Decimal) -> Decimal:
        """Effective rate for a positive balance"""
        if balance >= self.threshold_2:
            return self.base_rate + self.bonus_rate_2
        if balance >= self.threshold_1:
            return self.base_rate + self.bonus_rate_1
        return self.base_rate
    
    def calculate(self, balance: Number) -> Decimal:
        balance = to_decimal(balance)
        if balance <= ZERO:
            return ZERO
        return balance * self.rate_for(balance)


class AnnualInterest(InterestPolicy):
    """
    Pays once per year, in the last period, if the average of the recorded
    period balances reaches the threshold.
    
    The policy does not track time. Its owner must record one balance per
    period and advance ``current_period`` (1..periods_per_year) before each
    ``calculate`` call; ``observe_period`` does both. A year ends when
    ``end_period`` sees the last period or when periods start over.
    """
    
    def __init__(self, rate: Number, average_threshold: Number, periods_per_year: int = 12):
        if periods_per_year < 1:
            raise ValueError("periods_per_year must be at least 1")
        self.rate = to_decimal(rate)
        self.average_threshold = to_decimal(average_threshold)
        self.periods_per_year = periods_per_year
        self._running_total = ZERO
        self._periods_recorded = 0
        self._current_period = 1
    
    @property
    def current_period(self) -> int:
        return self._current_period
    
    @current_period.setter
    def current_period(self, period: int) -> None:
        if period < 1 or period > self.periods_per_year:
            raise ValueError(f"period must be 1..{self.periods_per_year}")
        self._current_period = period
    
    @property
    def periods_recorded(self) -> int:
        return self._periods_recorded
    
    def record_period_balance(self, balance: Number) -> None:
        """Record one period-end balance; non-positive or NaN values are ignored"""
        balance = to_decimal(balance)
        if balance.is_nan() or balance <= ZERO:
            return
        self._running_total += balance
        self._periods_recorded += 1
    
    def reset(self) -> None:
        """Drop the samples of the current year"""
        self._running_total = ZERO
        self._periods_recorded = 0
    
    def observe_period(self, period: int, balance: Number) -> None:
        # Periods only move forward within a year; going back means a new year
        if period <= self._current_period:
            self.reset()
        self.current_period = period
        self.record_period_balance(balance)
    
    def end_period(self, period: int) -> None:
        if period == self.periods_per_year:
            self.reset()
    
    def average_balance(self) -> Optional[Decimal]:
        if self._periods_recorded == 0:
            return None
        return self._running_total / self._periods_recorded
    
    def calculate(self, balance: Number) -> Decimal:
        if self._current_period != self.periods_per_year or self._periods_recorded == 0:
            return ZERO
        
        balance = to_decimal(balance)
        average = self.average_balance()
        interest = ZERO
        if average >= self.average_threshold and balance > ZERO:
            interest = balance * self.rate
        
        # Each year is independent
        self.reset()
        return interest


def create_interest_policy(plan: InterestPlan, config: Optional[EngineConfig] = None) -> InterestPolicy:
    """Build the policy for an interest plan from configuration"""
    config = config or get_config()
    
    if plan == InterestPlan.MONTHLY:
        return PeriodicInterest(
            config.decimal("monthly_interest_rate"),
            config.decimal("monthly_minimum_balance")
        )
    if plan == InterestPlan.PREMIUM:
        return TieredInterest(
            config.decimal("premium_base_rate"),
            config.decimal("premium_threshold_1"),
            config.decimal("premium_threshold_2"),
            config.decimal("premium_bonus_rate_1"),
            config.decimal("premium_bonus_rate_2")
        )
    if plan == InterestPlan.ANNUAL:
        return AnnualInterest(
            config.decimal("annual_interest_rate"),
            config.decimal("annual_average_threshold"),
            config.periods_per_year
        )
    raise ValueError(f"Unsupported interest plan: {plan}")
