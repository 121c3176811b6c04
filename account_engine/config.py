"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from decimal import Decimal
from pydantic_settings import BaseSettings
from typing import Optional


class EngineConfig(BaseSettings):
    """Account engine configuration"""
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    
    # Account rules
    overdraft_fee: str = "100.00"
    balance_denied_sentinel: str = "-1"
    
    # Service layer fees and parameters
    fraud_monitor_fee: str = "50.00"
    fraud_alert_threshold: str = "10000.00"
    premium_alerts_fee: str = "25.00"
    rewards_fee: str = "30.00"
    rewards_points_rate: str = "0.01"    # Points per unit of currency moved
    rewards_cash_rate: str = "0.10"      # Cash paid per redeemed point
    
    # Interest plans
    monthly_interest_rate: str = "0.01"
    monthly_minimum_balance: str = "1000.00"
    premium_base_rate: str = "0.015"
    premium_threshold_1: str = "100000.00"
    premium_threshold_2: str = "500000.00"
    premium_bonus_rate_1: str = "0.005"
    premium_bonus_rate_2: str = "0.01"
    annual_interest_rate: str = "0.12"
    annual_average_threshold: str = "50000.00"
    periods_per_year: int = 12
    
    # Push notifications
    push_webhook_url: Optional[str] = None  # If None, pushes go to the log
    push_timeout: float = 5.0
    
    class Config:
        env_prefix = "ACCOUNT_ENGINE_"
        env_file = ".env"
        case_sensitive = False
    
    def decimal(self, name: str) -> Decimal:
        """Read a monetary or rate setting as Decimal"""
        return Decimal(getattr(self, name))


# Global configuration instance
config = EngineConfig()


def get_config() -> EngineConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> EngineConfig:
    """Reload configuration from environment"""
    global config
    config = EngineConfig()
    return config
