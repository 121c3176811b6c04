"""
Settlement Module

Month-end batch processing across every registered account. The
orchestrator owns the per-cycle totals (transactions, fees collected,
interest paid); accounts report fees and interest to it directly while
their chains run month-end.

A failure in one account is logged and recorded; the batch always goes on
to the remaining accounts.
"""

from decimal import Decimal
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional
import logging

from .access import AccessGuard, AccountOperations
from .accounts import Account, Client, SettlementReporter
from .amounts import ZERO, format_amount
from .config import EngineConfig, get_config
from .events import EventSink, InMemoryEventSink
from .logging_config import log_action


logger = logging.getLogger("account_engine.settlement")


@dataclass
class AccountRecord:
    """Registry entry: an account and the chain clients talk to"""
    account_id: str
    client: Client
    account: Account
    guard: AccessGuard
    chain: AccountOperations


class AccountRegistry:
    """In-memory registry of accounts, kept in registration order"""
    
    def __init__(self):
        self._records: Dict[str, AccountRecord] = {}
    
    def register(self, record: AccountRecord) -> None:
        if record.account_id in self._records:
            raise ValueError(f"Account {record.account_id} is already registered")
        self._records[record.account_id] = record
    
    def lookup(self, account_id: str) -> Optional[AccountRecord]:
        return self._records.get(account_id)
    
    def all_accounts(self) -> List[AccountRecord]:
        return list(self._records.values())
    
    def accounts_for_client(self, client_id: str) -> List[AccountRecord]:
        return [record for record in self._records.values() if record.client.client_id == client_id]
    
    def remove(self, account_id: str) -> bool:
        return self._records.pop(account_id, None) is not None
    
    def __len__(self) -> int:
        return len(self._records)
    
    def __iter__(self) -> Iterator[AccountRecord]:
        return iter(self.all_accounts())


@dataclass
class AccountFailure:
    """One account whose month-end processing raised"""
    account_id: str
    error: str


@dataclass
class CycleSummary:
    """Outcome of one settlement cycle"""
    cycle_number: int
    accounts_processed: int
    transaction_count: int
    total_fees: Decimal
    total_interest: Decimal
    client_transactions: int = 0  # Recorded between the previous cycle and this one
    failures: List[AccountFailure] = field(default_factory=list)
    
    @property
    def accounts_failed(self) -> int:
        return len(self.failures)
    
    @property
    def accounts_attempted(self) -> int:
        return self.accounts_processed + self.accounts_failed
    
    def to_dict(self) -> Dict[str, object]:
        return {
            "cycle_number": self.cycle_number,
            "accounts_processed": self.accounts_processed,
            "accounts_failed": self.accounts_failed,
            "transaction_count": self.transaction_count,
            "client_transactions": self.client_transactions,
            "total_fees": str(self.total_fees),
            "total_interest": str(self.total_interest),
            "failures": [{"account_id": f.account_id, "error": f.error} for f in self.failures]
        }


class SettlementOrchestrator(SettlementReporter):
    """
    Runs month-end processing for every account in the registry and keeps
    the totals of the current cycle.
    """
    
    def __init__(
        self,
        registry: AccountRegistry,
        system_sink: Optional[EventSink] = None,
        config: Optional[EngineConfig] = None
    ):
        self.registry = registry
        self.system_sink = system_sink or InMemoryEventSink()
        self.config = config or get_config()
        self.transaction_count = 0
        self.total_fees = ZERO
        self.total_interest = ZERO
        self.cycles_run = 0
    
    def reset_totals(self) -> None:
        self.transaction_count = 0
        self.total_fees = ZERO
        self.total_interest = ZERO
    
    def record_transaction(self) -> None:
        self.transaction_count += 1
    
    def record_fee(self, amount: Decimal) -> None:
        self.total_fees += amount
        self.system_sink.record_system(
            "FEE_RECORDED",
            f"Fee: ${format_amount(amount)} | Total Fees: ${format_amount(self.total_fees)}"
        )
    
    def record_interest(self, amount: Decimal) -> None:
        self.total_interest += amount
        self.system_sink.record_system(
            "INTEREST_RECORDED",
            f"Interest: ${format_amount(amount)} | Total Interest: ${format_amount(self.total_interest)}"
        )
    
    def period_for(self, cycle_number: int) -> int:
        """Position of a cycle within the year, 1..periods_per_year"""
        periods = self.config.periods_per_year
        return (cycle_number - 1) % periods + 1
    
    def _settle(self, record: AccountRecord, period: int) -> None:
        account = record.account
        if account.interest_policy is not None:
            account.interest_policy.observe_period(period, account.balance)
        record.chain.process_month()
        if account.interest_policy is not None:
            account.interest_policy.end_period(period)
    
    def process_cycle(self, cycle_number: int) -> CycleSummary:
        """
        Run month-end for every registered account.
        
        Args:
            cycle_number: Sequential cycle number, starting at 1
            
        Returns:
            Summary with totals and per-account failures
        """
        if cycle_number < 1:
            raise ValueError("cycle_number must be >= 1")
        
        client_transactions = self.transaction_count
        self.reset_totals()
        period = self.period_for(cycle_number)
        records = self.registry.all_accounts()
        
        self.system_sink.record_system(
            "MONTHLY_PROCESSING_START",
            f"Cycle {cycle_number} (period {period}) for {len(records)} accounts"
        )
        log_action(logger, "info", f"Settlement cycle {cycle_number} started",
                   action="cycle_start", cycle=cycle_number, extra={"accounts": len(records)})
        
        processed = 0
        failures: List[AccountFailure] = []
        for record in records:
            self.system_sink.record_system("ACCOUNT_PROCESSING_START", f"Processing account: {record.account_id}")
            fees_before = self.total_fees
            interest_before = self.total_interest
            try:
                self._settle(record, period)
            except Exception as e:
                # A failed account contributes nothing to the cycle totals
                self.total_fees = fees_before
                self.total_interest = interest_before
                failures.append(AccountFailure(record.account_id, str(e)))
                self.system_sink.record_system(
                    "ACCOUNT_PROCESSING_ERROR",
                    f"Error processing account {record.account_id}: {e}"
                )
                logger.exception(f"Month-end processing failed for account {record.account_id}",
                                 extra={"account_id": record.account_id, "cycle": cycle_number})
                continue
            
            processed += 1
            self.record_transaction()
            self.system_sink.record_system("ACCOUNT_PROCESSING_END", f"Completed processing account: {record.account_id}")
        
        self.cycles_run += 1
        summary = CycleSummary(
            cycle_number=cycle_number,
            accounts_processed=processed,
            transaction_count=self.transaction_count,
            total_fees=self.total_fees,
            total_interest=self.total_interest,
            client_transactions=client_transactions,
            failures=failures
        )
        
        self.system_sink.record_system(
            "MONTHLY_PROCESSING_END",
            f"Cycle {cycle_number} | Accounts Processed: {summary.accounts_processed} "
            f"| Accounts Failed: {summary.accounts_failed} | Transactions: {summary.transaction_count} "
            f"| Fees Collected: ${format_amount(summary.total_fees)} "
            f"| Interest Paid: ${format_amount(summary.total_interest)}"
        )
        log_action(logger, "info", f"Settlement cycle {cycle_number} completed",
                   action="cycle_end", cycle=cycle_number, extra=summary.to_dict())
        return summary
