"""Dashboard view model.

The one object the presentation layer observes. It picks the backing store
from the auth state, keeps the selected month's transactions current (live
feed in remote mode, explicit reloads in local mode), recomputes the snapshot
and cash-flow series on every change, and exposes the mutation API.

All state changes happen on the event loop that drives the view model, and
only through :meth:`DashboardViewModel._publish`. Store failures are caught
here, logged, and turned into a ``False`` return or an error state; they
never propagate to observers.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Callable, Optional, Union

from financeflow.config import Settings
from financeflow.database.base import TransactionStore
from financeflow.domain import aggregator
from financeflow.domain.aggregator import aggregate_month
from financeflow.domain.carry_forward import CarryForwardService
from financeflow.domain.cash_flow import project_cash_flow
from financeflow.domain.collaborators import AuthProvider, BudgetProvider, StaticBudgetProvider
from financeflow.domain.entities import (
    ZERO,
    CarryForwardResult,
    CashFlowSeries,
    DashboardState,
    DataSourceMode,
    Month,
    MonthlySnapshot,
    Transaction,
    TransactionStatus,
)
from financeflow.domain.errors import AuthRequiredError, DomainError, LoadingTimeoutError, auth_required
from financeflow.domain.rules import AmountLike
from financeflow.domain.transaction import TransactionService
from financeflow.logging_config import get_logger
from financeflow.services.subscription import SubscriptionManager

logger = get_logger(__name__)

StateListener = Callable[[DashboardState], None]
RemoteStoreFactory = Callable[[Optional[str]], TransactionStore]


class DashboardViewModel:
    """Observable dashboard state plus the transaction mutation API."""

    def __init__(
        self,
        local_store: TransactionStore,
        remote_store_factory: RemoteStoreFactory,
        auth: AuthProvider,
        budget_provider: Optional[BudgetProvider] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], date] = date.today,
        subscriptions: Optional[SubscriptionManager] = None,
        month: Optional[Month] = None,
    ):
        """Initialize the view model.

        Args:
            local_store: Store used while signed out
            remote_store_factory: Builds the remote store for a signed-in principal
            auth: Signed-in/signed-out signal
            budget_provider: Source of the monthly budget
            settings: Category sets, limits and timeouts
            clock: Returns today's date
            subscriptions: Live feed manager (one is created when omitted)
            month: Initially selected month (defaults to the current month)
        """
        self.settings = settings or Settings()
        self.local_store = local_store
        self.remote_store_factory = remote_store_factory
        self.auth = auth
        self.budget_provider = budget_provider or StaticBudgetProvider()
        self.clock = clock
        self.subscriptions = subscriptions or SubscriptionManager(self.settings.loading_timeout)

        self._listeners: list[StateListener] = []
        self._remote_store: Optional[TransactionStore] = None
        self._remove_auth_listener: Optional[Callable[[], None]] = None
        self._load_generation = 0
        self._disposed = False

        month = month or Month.from_date(clock())
        self._state = DashboardState(
            mode=DataSourceMode.LOCAL,
            selected_month=month,
            snapshot=MonthlySnapshot.empty(month),
            cash_flow=self._empty_cash_flow(month),
        )

    # Observable state
    @property
    def state(self) -> DashboardState:
        return self._state

    @property
    def mode(self) -> DataSourceMode:
        return self._state.mode

    @property
    def selected_month(self) -> Month:
        return self._state.selected_month

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    @property
    def snapshot(self) -> MonthlySnapshot:
        return self._state.snapshot

    @property
    def cash_flow(self) -> CashFlowSeries:
        return self._state.cash_flow

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._state.snapshot.transactions

    @property
    def disposed(self) -> bool:
        return self._disposed

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register an observer called with the new state on every change.

        Returns:
            Callable that removes the observer
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _publish(self, **changes) -> None:
        if self._disposed:
            return
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("State listener failed")

    # Lifecycle
    async def start(self) -> None:
        """Pick the data source from the current auth state and load the month."""
        self._remove_auth_listener = self.auth.add_listener(self._on_auth_changed)
        principal = self.auth.current_principal()
        await self._switch_mode(
            DataSourceMode.REMOTE if principal else DataSourceMode.LOCAL, principal
        )

    async def dispose(self) -> None:
        """Tear down the live feed and stop reacting to auth changes."""
        self._disposed = True
        if self._remove_auth_listener is not None:
            self._remove_auth_listener()
            self._remove_auth_listener = None
        await self.subscriptions.shutdown()
        self._listeners.clear()

    async def _on_auth_changed(self, principal: Optional[str]) -> None:
        if self._disposed:
            return
        await self._switch_mode(
            DataSourceMode.REMOTE if principal else DataSourceMode.LOCAL, principal
        )

    async def _switch_mode(self, mode: DataSourceMode, principal: Optional[str] = None) -> None:
        """Change the data source. The only place the mode is ever assigned."""
        if self._disposed:
            return
        self.subscriptions.unsubscribe()
        self._remote_store = self.remote_store_factory(principal) if mode == DataSourceMode.REMOTE else None
        if mode != self.mode:
            logger.info("Switching data source", extra={"mode": mode.value})
        self._publish(
            mode=mode,
            snapshot=MonthlySnapshot.empty(self.selected_month),
            cash_flow=self._empty_cash_flow(self.selected_month),
        )
        await self.reload()

    def _active_store(self) -> TransactionStore:
        if self.mode == DataSourceMode.REMOTE:
            if self._remote_store is None:
                raise AuthRequiredError(auth_required("use the remote store"))
            return self._remote_store
        return self.local_store

    # Loading
    async def set_selected_month(self, month: Month) -> None:
        """Select a month and reload (resubscribing in remote mode)."""
        if self._disposed:
            return
        self._publish(
            selected_month=month,
            snapshot=MonthlySnapshot.empty(month),
            cash_flow=self._empty_cash_flow(month),
        )
        await self.reload()

    async def refresh(self) -> None:
        """Retry after an error: reconnect the live feed if signed in, else reload."""
        principal = self.auth.current_principal()
        if principal and self.mode == DataSourceMode.LOCAL:
            await self._switch_mode(DataSourceMode.REMOTE, principal)
        else:
            await self.reload()

    async def reload(self) -> None:
        """Load the selected month from the active store."""
        if self._disposed:
            return
        self._load_generation += 1
        generation = self._load_generation
        month = self.selected_month
        self._publish(loading=True, error=None)

        if self.mode == DataSourceMode.REMOTE:
            async def on_snapshot(transactions: list[Transaction]) -> None:
                await self._apply_transactions(transactions, generation)

            await self.subscriptions.subscribe(
                self._active_store(),
                month,
                on_snapshot=on_snapshot,
                on_error=self._on_subscription_error,
                on_timeout=self._on_loading_timeout,
            )
            return

        self.subscriptions.unsubscribe()
        try:
            transactions = await self.local_store.list_transactions(month)
        except DomainError as e:
            if self._is_stale(generation):
                return
            logger.error("Failed to load transactions", extra={"month": str(month), "error": str(e)})
            self._reset_to_empty(f"Could not load transactions: {e}")
            return
        await self._apply_transactions(transactions, generation)

    def _is_stale(self, generation: int) -> bool:
        return self._disposed or generation != self._load_generation

    async def _apply_transactions(self, transactions: list[Transaction], generation: int) -> None:
        if self._is_stale(generation):
            return
        month = self.selected_month
        today = self.clock()
        bills = await self._upcoming_bills(today)
        budget = await self._monthly_budget(month)
        if self._is_stale(generation):
            return

        try:
            snapshot = aggregate_month(
                transactions,
                month,
                reset_categories=self.settings.reset_categories,
                recent_limit=self.settings.recent_limit,
                payee_limit=self.settings.payee_limit,
            )
            cash_flow = project_cash_flow(snapshot.transactions, bills, month, today)
        except (ArithmeticError, TypeError, ValueError) as e:
            logger.exception("Aggregation failed", extra={"month": str(month)})
            self._reset_to_empty(f"Could not compute dashboard: {e}")
            return

        self._publish(
            snapshot=snapshot,
            cash_flow=cash_flow,
            budget=budget,
            loading=False,
            error=None,
        )

    async def _upcoming_bills(self, today: date) -> list[Transaction]:
        try:
            return await self._active_store().list_upcoming_bills(
                after=today, limit=self.settings.upcoming_bills_limit
            )
        except DomainError as e:
            logger.warning("Upcoming bills unavailable", extra={"error": str(e)})
            return []

    async def _monthly_budget(self, month: Month) -> Decimal:
        try:
            return await self.budget_provider.get_monthly_budget(month)
        except DomainError as e:
            logger.warning("Budget unavailable", extra={"month": str(month), "error": str(e)})
            return ZERO

    def _reset_to_empty(self, error: str) -> None:
        month = self.selected_month
        self._publish(
            snapshot=MonthlySnapshot.empty(month),
            cash_flow=self._empty_cash_flow(month),
            loading=False,
            error=error,
        )

    def _empty_cash_flow(self, month: Month) -> CashFlowSeries:
        return project_cash_flow((), (), month, self.clock())

    async def _on_subscription_error(self, error: DomainError) -> None:
        if self._disposed:
            return
        logger.warning("Live updates failed, falling back to local store", extra={"error": str(error)})
        await self._switch_mode(DataSourceMode.LOCAL)
        self._publish(error=f"Live updates unavailable: {error}")

    def _on_loading_timeout(self, error: LoadingTimeoutError) -> None:
        # Not an error state: the feed stays open and may still deliver
        if self.loading:
            logger.info("Loading timed out", extra={"error": str(error)})
            self._publish(loading=False)

    # Mutations
    async def add_transaction(self, txn: Transaction) -> bool:
        """Add a transaction. Returns True on success."""
        return await self._mutate(
            "add transaction", lambda service: service.create_transaction(txn)
        )

    async def update_transaction(self, txn: Transaction) -> bool:
        """Replace a stored transaction. Returns True on success."""
        return await self._mutate(
            "update transaction", lambda service: service.update_transaction(txn), txn.id
        )

    async def delete_transaction(self, txn: Union[Transaction, str]) -> bool:
        """Delete a transaction (or transaction ID). Returns True on success."""
        transaction_id = txn.id if isinstance(txn, Transaction) else txn
        return await self._mutate(
            "delete transaction",
            lambda service: service.delete_transaction(transaction_id),
            transaction_id,
        )

    async def record_payment(self, txn: Transaction, amount: AmountLike) -> bool:
        """Record a payment against ``txn`` through the active store.

        The paid amount grows by ``amount`` and is clamped to the transaction
        amount; the status follows from the new paid amount.
        """
        return await self._mutate(
            "record payment", lambda service: service.record_payment(txn, amount), txn.id
        )

    async def _mutate(self, operation: str, action, transaction_id: Optional[str] = None) -> bool:
        if self._disposed:
            return False
        mode = self.mode
        try:
            # The write stays bound to the store active when it was issued
            store = self._active_store()
            await action(TransactionService(store))
        except DomainError as e:
            logger.error(
                "Failed to %s",
                operation,
                extra={"transaction_id": transaction_id, "mode": mode.value, "error": str(e)},
            )
            return False

        if mode == DataSourceMode.LOCAL and self.mode == DataSourceMode.LOCAL:
            await self.reload()
        return True

    async def process_monthly_carry_forward(self) -> CarryForwardResult:
        """Carry unpaid obligations of the selected month into the next month."""
        if self._disposed:
            return CarryForwardResult(success=False, error="View model disposed")
        mode = self.mode
        try:
            store = self._active_store()
        except AuthRequiredError as e:
            logger.error("Carry-forward unavailable", extra={"error": str(e)})
            return CarryForwardResult(success=False, error=str(e))

        service = CarryForwardService(
            store, self.settings.carry_forward_categories, self.settings.reset_categories
        )
        result = await service.process_monthly_carry_forward(self.transactions, self.selected_month)
        if result.success and mode == DataSourceMode.LOCAL and self.mode == DataSourceMode.LOCAL:
            await self.reload()
        return result

    # Query helpers
    def unpaid_transactions(self) -> list[Transaction]:
        return aggregator.unpaid_transactions(self.transactions)

    def carried_forward_transactions(self) -> list[Transaction]:
        return aggregator.carried_forward_transactions(self.transactions)

    def by_category(self, category: str) -> list[Transaction]:
        return aggregator.by_category(self.transactions, category)

    def by_status(self, status: TransactionStatus) -> list[Transaction]:
        return aggregator.by_status(self.transactions, status)

    def category_totals(self) -> dict[str, Decimal]:
        return dict(self.snapshot.category_totals)
