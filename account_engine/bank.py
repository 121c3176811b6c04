"""
Bank Facade Module

High-level entry point: registers clients, opens accounts with their
interest plan and services, routes client operations through each
account's chain and runs settlement cycles.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Union
import logging

from .access import AccessGuard, PinAuthenticator
from .accounts import Account, Client
from .amounts import Number, ZERO, format_amount
from .config import EngineConfig, get_config
from .events import EventSink, InMemoryEventSink
from .interest import InterestPlan, create_interest_policy
from .notifications import Observer, SinkObserver
from .services import RewardsService, ServiceSpec, build_service_chain, find_layer, service_names
from .settlement import AccountRecord, AccountRegistry, CycleSummary, SettlementOrchestrator


logger = logging.getLogger("account_engine.bank")


class ClientNotFoundError(KeyError):
    """Raised when a client id is not registered"""
    pass


class AccountNotFoundError(KeyError):
    """Raised when an account id is not registered"""
    pass


class DuplicateClientError(ValueError):
    """Raised when a client id is registered twice"""
    pass


class BankFacade:
    """
    Wires accounts, access guards, service chains and settlement together.
    
    Every deposit, withdrawal and balance check routed through the facade
    counts as one transaction for the current cycle, whether or not it was
    allowed.
    """
    
    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        system_sink: Optional[EventSink] = None,
        observers: Optional[Sequence[Observer]] = None
    ):
        self.config = config or get_config()
        self.system_sink = system_sink or InMemoryEventSink()
        self.registry = AccountRegistry()
        self.orchestrator = SettlementOrchestrator(self.registry, self.system_sink, self.config)
        self._clients: Dict[str, Client] = {}
        self._account_counters: Dict[str, int] = {}
        
        # Every account reports into the system sink, plus any extra observers
        self.observers: List[Observer] = [SinkObserver(self.system_sink)]
        self.observers.extend(observers or [])
        
        self.system_sink.record_system("SYSTEM_START", "Account engine initialized")
    
    # Clients
    
    def register_client(self, name: str, client_id: str) -> Client:
        if not name or not client_id:
            raise ValueError("Client name and id are required")
        if client_id in self._clients:
            raise DuplicateClientError(f"Client already registered: {client_id}")
        
        client = Client(name=name, client_id=client_id)
        self._clients[client_id] = client
        self._account_counters[client_id] = 0
        self.system_sink.record_system("CLIENT_REGISTERED", f"Client: {name} (ID: {client_id})")
        logger.info(f"Client registered: {client}")
        return client
    
    def get_client(self, client_id: str) -> Client:
        client = self._clients.get(client_id)
        if client is None:
            raise ClientNotFoundError(f"Client not found: {client_id}")
        return client
    
    def all_clients(self) -> List[Client]:
        return list(self._clients.values())
    
    # Accounts
    
    def create_account(
        self,
        client_id: str,
        initial_balance: Number,
        pin: str,
        interest_plan: Union[InterestPlan, str] = InterestPlan.MONTHLY,
        services: Optional[Sequence[ServiceSpec]] = None
    ) -> str:
        """
        Open an account for a registered client.
        
        Args:
            client_id: Owner of the account
            initial_balance: Opening balance, not negative
            pin: Secret required for client operations
            interest_plan: Interest plan (enum or its value, case-insensitive)
            services: Services to add, outermost first
            
        Returns:
            The new account id, ``{client_id}-ACC-{n}``
        """
        client = self.get_client(client_id)
        plan = interest_plan if isinstance(interest_plan, InterestPlan) else InterestPlan(str(interest_plan).lower())
        
        account_id = f"{client_id}-ACC-{self._account_counters[client_id] + 1}"
        account = Account(
            account_id=account_id,
            client=client,
            initial_balance=initial_balance,
            interest_policy=create_interest_policy(plan, self.config),
            reporter=self.orchestrator,
            history_sink=self.system_sink,
            overdraft_fee=self.config.decimal("overdraft_fee")
        )
        for observer in self.observers:
            account.add_observer(observer)
        
        guard = AccessGuard(account, PinAuthenticator(pin), self.config.decimal("balance_denied_sentinel"))
        chain = build_service_chain(guard, services, self.config)
        
        self.registry.register(AccountRecord(account_id, client, account, guard, chain))
        self._account_counters[client_id] += 1
        
        services_text = ", ".join(service_names(chain)) or "No additional services"
        self.system_sink.record_system(
            "ACCOUNT_CREATED",
            f"Account: {account_id} | Client: {client.name} | Balance: ${format_amount(account.balance)} "
            f"| Interest: {plan.value} | Services: {services_text}"
        )
        return account_id
    
    def find_account(self, account_id: str) -> AccountRecord:
        record = self.registry.lookup(account_id)
        if record is None:
            raise AccountNotFoundError(f"Account not found: {account_id}")
        return record
    
    def client_accounts(self, client_id: str) -> List[AccountRecord]:
        self.get_client(client_id)
        return self.registry.accounts_for_client(client_id)
    
    # Client operations
    
    def deposit(self, account_id: str, amount: Number, pin: str) -> None:
        record = self.find_account(account_id)
        try:
            self.system_sink.record_system("DEPOSIT_ATTEMPT", f"Account: {account_id} | Amount: ${format_amount(amount)}")
            record.chain.deposit(amount, pin)
        finally:
            self.orchestrator.record_transaction()
    
    def withdraw(self, account_id: str, amount: Number, pin: str) -> None:
        record = self.find_account(account_id)
        try:
            self.system_sink.record_system("WITHDRAWAL_ATTEMPT", f"Account: {account_id} | Amount: ${format_amount(amount)}")
            record.chain.withdraw(amount, pin)
        finally:
            self.orchestrator.record_transaction()
    
    def check_balance(self, account_id: str, pin: str) -> Decimal:
        record = self.find_account(account_id)
        self.system_sink.record_system("BALANCE_CHECK", f"Account: {account_id}")
        try:
            return record.chain.check_balance(pin)
        finally:
            self.orchestrator.record_transaction()
    
    def redeem_points(self, account_id: str, points: int) -> bool:
        record = self.find_account(account_id)
        rewards = find_layer(record.chain, RewardsService)
        if rewards is None:
            raise ValueError(f"Account {account_id} is not enrolled in the rewards program")
        self.system_sink.record_system("POINTS_REDEMPTION", f"Account: {account_id} | Points: {points}")
        return rewards.redeem_points(points)
    
    def reward_points(self, account_id: str) -> int:
        rewards = find_layer(self.find_account(account_id).chain, RewardsService)
        return rewards.reward_points if rewards is not None else 0
    
    # Administration
    
    def freeze_account(self, account_id: str) -> None:
        record = self.find_account(account_id)
        record.account.freeze()
        self.system_sink.record_system("ACCOUNT_FREEZE", f"Account: {account_id} | Status: {record.account.status.value}")
    
    def unfreeze_account(self, account_id: str) -> None:
        record = self.find_account(account_id)
        record.account.unfreeze()
        self.system_sink.record_system("ACCOUNT_UNFREEZE", f"Account: {account_id} | Status: {record.account.status.value}")
    
    def close_account(self, account_id: str) -> None:
        record = self.find_account(account_id)
        record.account.close()
        self.system_sink.record_system("ACCOUNT_CLOSE", f"Account: {account_id} | Status: {record.account.status.value}")
    
    # Settlement and reporting
    
    def process_cycle(self, cycle_number: int) -> CycleSummary:
        return self.orchestrator.process_cycle(cycle_number)
    
    def client_portfolio(self, client_id: str) -> Dict[str, object]:
        """Client, number of accounts and combined balance"""
        records = self.client_accounts(client_id)
        total_balance = sum((record.account.balance for record in records), ZERO)
        
        self.system_sink.record_system(
            "PORTFOLIO_QUERY",
            f"Client: {client_id} | Accounts: {len(records)} | Total Balance: ${format_amount(total_balance)}"
        )
        return {
            "client": self._clients[client_id],
            "total_accounts": len(records),
            "total_balance": total_balance,
            "accounts": [record.account_id for record in records]
        }
    
    @property
    def transaction_count(self) -> int:
        return self.orchestrator.transaction_count
    
    @property
    def total_fees(self) -> Decimal:
        return self.orchestrator.total_fees
    
    @property
    def total_interest(self) -> Decimal:
        return self.orchestrator.total_interest
