#!/usr/bin/env python3
"""
Account Engine Entry Point

Runs the demo simulation: client operations for one month followed by
month-end settlement. The operations log goes to the configured logger.
"""

import sys

from account_engine.amounts import format_amount
from account_engine.config import get_config
from account_engine.logging_config import setup_logging
from account_engine.simulation import run_simulation


if __name__ == "__main__":
    config = get_config()
    setup_logging(config.log_level, log_format=config.log_format)
    
    cycles = int(sys.argv[1]) if len(sys.argv) > 1 else 1
    
    try:
        report = run_simulation(cycles, config)
    except Exception as e:
        print(f"Error during simulation: {e}")
        sys.exit(1)
    
    for summary in report["summaries"]:
        print(f"Cycle {summary.cycle_number}: "
              f"{summary.accounts_processed} accounts settled, "
              f"{summary.accounts_failed} failed")
        print(f"  Month-end transactions: {summary.transaction_count}")
        print(f"  Client transactions:    {summary.client_transactions}")
        print(f"  Fees collected:         ${format_amount(summary.total_fees)}")
        print(f"  Interest paid:          ${format_amount(summary.total_interest)}")
    
    for portfolio in report["portfolios"]:
        print(f"{portfolio['client'].name}: {portfolio['total_accounts']} accounts "
              f"| Total balance ${format_amount(portfolio['total_balance'])}")
    print(f"Clients in system: {report['clients']}")
