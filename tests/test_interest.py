"""
Test suite for interest module

Tests the flat periodic, tiered and annual interest policies and the plan
factory. Policies must be pure except for the annual accumulator.
"""

import pytest
from decimal import Decimal

from account_engine.config import EngineConfig
from account_engine.interest import (
    InterestPlan, PeriodicInterest, TieredInterest, AnnualInterest,
    create_interest_policy
)


class TestPeriodicInterest:
    """Test flat periodic interest"""
    
    def test_pays_rate_above_minimum(self):
        """Test interest on a balance above the minimum"""
        policy = PeriodicInterest(Decimal('0.01'), Decimal('500'))
        
        assert policy.calculate(Decimal('1000')) == Decimal('10.00')
    
    def test_minimum_balance_is_inclusive(self):
        """Test that a balance equal to the minimum earns interest"""
        policy = PeriodicInterest(Decimal('0.01'), Decimal('500'))
        
        assert policy.calculate(Decimal('500')) == Decimal('5.00')
    
    def test_below_minimum_earns_nothing(self):
        """Test no interest below the minimum balance"""
        policy = PeriodicInterest(Decimal('0.01'), Decimal('500'))
        
        assert policy.calculate(Decimal('499.99')) == Decimal('0')
    
    def test_non_positive_balance_earns_nothing(self):
        """Test no interest for zero or negative balances, even with no minimum"""
        policy = PeriodicInterest(Decimal('0.01'), Decimal('-100'))
        
        assert policy.calculate(Decimal('0')) == Decimal('0')
        assert policy.calculate(Decimal('-50')) == Decimal('0')
    
    def test_accepts_plain_numbers(self):
        """Test ints and floats are converted"""
        policy = PeriodicInterest(0.01, 500)
        
        assert policy.calculate(1000) == Decimal('10.00')
    
    def test_negative_rate_rejected(self):
        """Test that a negative rate is rejected"""
        with pytest.raises(ValueError, match="cannot be negative"):
            PeriodicInterest(Decimal('-0.01'))
    
    def test_calculation_is_pure(self):
        """Test repeated calls give the same answer"""
        policy = PeriodicInterest(Decimal('0.02'), Decimal('0'))
        
        first = policy.calculate(Decimal('250'))
        second = policy.calculate(Decimal('250'))
        
        assert first == second == Decimal('5.00')


class TestTieredInterest:
    """Test tiered bonus interest"""
    
    def setup_method(self):
        """Set up test fixtures"""
        self.policy = TieredInterest(
            Decimal('0.015'), Decimal('100000'), Decimal('500000'),
            Decimal('0.005'), Decimal('0.01')
        )
    
    def test_base_rate_below_first_threshold(self):
        """Test only the base rate applies to small balances"""
        assert self.policy.calculate(Decimal('1000')) == Decimal('15.000')
    
    def test_first_bonus_at_threshold(self):
        """Test the first bonus applies at exactly the first threshold"""
        assert self.policy.calculate(Decimal('100000')) == Decimal('2000.000')
    
    def test_second_bonus_wins(self):
        """Test the higher threshold's bonus applies when both are met"""
        assert self.policy.calculate(Decimal('500000')) == Decimal('12500.000')
    
    def test_non_positive_balance(self):
        """Test no interest on zero or negative balances"""
        assert self.policy.calculate(Decimal('0')) == Decimal('0')
        assert self.policy.calculate(Decimal('-10')) == Decimal('0')
    
    def test_thresholds_must_be_ordered(self):
        """Test that inverted thresholds are rejected"""
        with pytest.raises(ValueError, match="must not be below"):
            TieredInterest(Decimal('0.01'), Decimal('500'), Decimal('100'), Decimal('0.01'), Decimal('0.02'))


class TestAnnualInterest:
    """Test annual batched interest"""
    
    def setup_method(self):
        """Set up test fixtures"""
        self.policy = AnnualInterest(Decimal('0.12'), Decimal('50000'), periods_per_year=12)
    
    def test_no_payout_before_year_end(self):
        """Test periods 1..11 always return zero"""
        for period in range(1, 12):
            self.policy.observe_period(period, Decimal('100000'))
            assert self.policy.calculate(Decimal('100000')) == Decimal('0')
        
        assert self.policy.periods_recorded == 11
    
    def test_pays_at_year_end_when_average_meets_threshold(self):
        """Test payout in the last period"""
        for period in range(1, 13):
            self.policy.observe_period(period, Decimal('60000'))
        
        assert self.policy.calculate(Decimal('60000')) == Decimal('7200.00')
    
    def test_resets_after_year_end(self):
        """Test a second immediate call with no new samples returns zero"""
        for period in range(1, 13):
            self.policy.observe_period(period, Decimal('60000'))
        
        assert self.policy.calculate(Decimal('60000')) > Decimal('0')
        assert self.policy.periods_recorded == 0
        assert self.policy.calculate(Decimal('60000')) == Decimal('0')
    
    def test_resets_even_without_payout(self):
        """Test the accumulator resets when the average is below threshold"""
        self.policy.current_period = 12
        self.policy.record_period_balance(Decimal('100'))
        
        assert self.policy.calculate(Decimal('100')) == Decimal('0')
        assert self.policy.periods_recorded == 0
    
    def test_average_below_threshold(self):
        """Test no payout when the average misses the threshold"""
        for period, balance in enumerate(['90000', '10000', '20000'], start=10):
            self.policy.observe_period(period, Decimal(balance))
        
        # Average is 40000
        assert self.policy.calculate(Decimal('90000')) == Decimal('0')
    
    def test_non_positive_balance_at_year_end(self):
        """Test no payout when the current balance is not positive"""
        for period in range(1, 13):
            self.policy.observe_period(period, Decimal('80000'))
        
        assert self.policy.calculate(Decimal('0')) == Decimal('0')
    
    def test_ignores_invalid_samples(self):
        """Test non-positive and NaN samples are not recorded"""
        self.policy.record_period_balance(Decimal('0'))
        self.policy.record_period_balance(Decimal('-500'))
        self.policy.record_period_balance(float('nan'))
        self.policy.record_period_balance(Decimal('70000'))
        
        assert self.policy.periods_recorded == 1
        assert self.policy.average_balance() == Decimal('70000')
    
    def test_year_end_without_samples(self):
        """Test year end with nothing recorded pays nothing"""
        self.policy.current_period = 12
        
        assert self.policy.calculate(Decimal('100000')) == Decimal('0')
    
    def test_new_year_drops_stale_samples(self):
        """Test samples from an unfinished year do not carry into the next"""
        for period in range(1, 12):
            self.policy.observe_period(period, Decimal('10000'))
        
        self.policy.observe_period(1, Decimal('90000'))
        
        assert self.policy.periods_recorded == 1
        assert self.policy.average_balance() == Decimal('90000')
    
    def test_end_period_closes_year(self):
        """Test the last period closes the year without a calculate call"""
        for period in range(1, 13):
            self.policy.observe_period(period, Decimal('60000'))
        
        self.policy.end_period(11)
        assert self.policy.periods_recorded == 12
        
        self.policy.end_period(12)
        assert self.policy.periods_recorded == 0
    
    def test_period_range_validated(self):
        """Test periods outside 1..N are rejected"""
        with pytest.raises(ValueError, match="period must be 1..12"):
            self.policy.current_period = 0
        with pytest.raises(ValueError, match="period must be 1..12"):
            self.policy.current_period = 13
    
    def test_short_year(self):
        """Test a custom number of periods per year"""
        policy = AnnualInterest(Decimal('0.10'), Decimal('1000'), periods_per_year=4)
        for period in range(1, 5):
            policy.observe_period(period, Decimal('2000'))
        
        assert policy.calculate(Decimal('2000')) == Decimal('200.00')


class TestInterestPlanFactory:
    """Test building policies from configuration"""
    
    def setup_method(self):
        """Set up test fixtures"""
        self.config = EngineConfig()
    
    def test_monthly_plan(self):
        """Test the monthly plan defaults"""
        policy = create_interest_policy(InterestPlan.MONTHLY, self.config)
        
        assert isinstance(policy, PeriodicInterest)
        assert policy.rate == Decimal('0.01')
        assert policy.minimum_balance == Decimal('1000.00')
    
    def test_premium_plan(self):
        """Test the premium plan defaults"""
        policy = create_interest_policy(InterestPlan.PREMIUM, self.config)
        
        assert isinstance(policy, TieredInterest)
        assert policy.calculate(Decimal('200000')) == Decimal('4000.000')
    
    def test_annual_plan(self):
        """Test the annual plan defaults"""
        policy = create_interest_policy(InterestPlan.ANNUAL, self.config)
        
        assert isinstance(policy, AnnualInterest)
        assert policy.periods_per_year == 12
        assert policy.rate == Decimal('0.12')
