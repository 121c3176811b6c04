"""
Test suite for the demo simulation
"""

from decimal import Decimal

from account_engine.config import EngineConfig
from account_engine.events import InMemoryEventSink
from account_engine.simulation import build_demo_bank, run_simulation, simulate_month
from account_engine.states import AccountStatus


class TestSimulation:
    """Test the end-to-end demo"""
    
    def setup_method(self):
        """Set up test fixtures"""
        self.config = EngineConfig()
        self.sink = InMemoryEventSink()
    
    def test_month_of_operations(self):
        """Test the scripted month leaves the expected balances"""
        bank = build_demo_bank(self.config, self.sink)
        simulate_month(bank)
        
        first = bank.find_account("CL001-ACC-1").account
        # 5000 + 1000 - 500 - 6000 overdraws; wrong PIN withdrawal ignored
        assert first.balance == Decimal('-500')
        assert first.status == AccountStatus.OVERDRAWN
        assert bank.find_account("CL002-ACC-1").account.balance == Decimal('30000')
        assert bank.find_account("CL003-ACC-1").account.balance == Decimal('103000')
        assert bank.transaction_count == 8
        assert self.sink.matching("FRAUD_ALERT: Large deposit of $15000.00")
    
    def test_run_simulation(self):
        """Test the report after one settlement cycle"""
        report = run_simulation(1, self.config, self.sink)
        
        summary = report["summaries"][0]
        assert summary.client_transactions == 8
        assert summary.accounts_processed == 3
        # Overdraft 100, fraud 50, premium alerts 25 twice, rewards 30
        assert summary.total_fees == Decimal('230')
        # Premium: (103000 - 25) * 2%; annual pays nothing in period 1
        assert summary.total_interest == Decimal('2059.50')
        assert report["clients"] == 3
        assert [p["total_accounts"] for p in report["portfolios"]] == [1, 1, 1]
