"""
Demo simulation: three clients, a month of operations and one settlement
cycle, ending with portfolio and totals.
"""

from typing import Dict, List, Optional
import logging

from .amounts import format_amount
from .bank import BankFacade
from .config import EngineConfig, get_config
from .events import EventSink, LoggingEventSink
from .interest import InterestPlan
from .notifications import build_push_notifier
from .services import ServiceType
from .settlement import CycleSummary


logger = logging.getLogger("account_engine.simulation")


def build_demo_bank(config: Optional[EngineConfig] = None,
                    system_sink: Optional[EventSink] = None) -> BankFacade:
    """Bank with three clients and one account each"""
    config = config or get_config()
    bank = BankFacade(
        config=config,
        system_sink=system_sink or LoggingEventSink(),
        observers=[build_push_notifier(config)]
    )
    
    bank.register_client("Juan Perez", "CL001")
    bank.register_client("Maria Garcia", "CL002")
    bank.register_client("Carlos Lopez", "CL003")
    
    bank.create_account("CL001", 5000, "1234", InterestPlan.MONTHLY)
    bank.create_account(
        "CL002", 15000, "5678", InterestPlan.ANNUAL,
        [ServiceType.FRAUD_MONITOR, ServiceType.PREMIUM_ALERTS, ServiceType.REWARDS]
    )
    bank.create_account("CL003", 100000, "9999", InterestPlan.PREMIUM, [ServiceType.PREMIUM_ALERTS])
    return bank


def simulate_month(bank: BankFacade) -> None:
    """Client operations of one month, including an overdraft and a wrong PIN"""
    bank.deposit("CL001-ACC-1", 1000, "1234")
    bank.withdraw("CL001-ACC-1", 500, "1234")
    bank.check_balance("CL001-ACC-1", "1234")
    
    bank.deposit("CL002-ACC-1", 15000, "5678")
    
    bank.withdraw("CL001-ACC-1", 6000, "1234")
    
    bank.deposit("CL003-ACC-1", 5000, "9999")
    bank.withdraw("CL003-ACC-1", 2000, "9999")
    
    bank.withdraw("CL001-ACC-1", 100, "0000")


def run_simulation(cycles: int = 1, config: Optional[EngineConfig] = None,
                   system_sink: Optional[EventSink] = None) -> Dict[str, object]:
    """
    Run the demo and return a report.
    
    Args:
        cycles: Number of settlement cycles to run after the month of operations
        config: Engine settings
        system_sink: Destination for the operations log (defaults to logging)
        
    Returns:
        Cycle summaries and client portfolios
    """
    bank = build_demo_bank(config, system_sink)
    simulate_month(bank)
    
    summaries: List[CycleSummary] = []
    for cycle_number in range(1, cycles + 1):
        summaries.append(bank.process_cycle(cycle_number))
    
    portfolios = [bank.client_portfolio(client.client_id) for client in bank.all_clients()]
    for portfolio in portfolios:
        logger.info(
            f"Portfolio of {portfolio['client'].name}: {portfolio['total_accounts']} accounts "
            f"| Total balance ${format_amount(portfolio['total_balance'])}"
        )
    
    return {
        "summaries": summaries,
        "portfolios": portfolios,
        "clients": len(bank.all_clients())
    }
