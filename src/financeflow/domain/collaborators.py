"""External collaborators consumed by the view model: auth and budgets."""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Awaitable, Callable, Optional

from financeflow.domain.entities import Month

AuthListener = Callable[[Optional[str]], Awaitable[None]]


class AuthProvider(ABC):
    """Signed-in/signed-out signal.

    Only the principal identifier is consumed; sign-in flows live elsewhere.
    """

    @abstractmethod
    def current_principal(self) -> Optional[str]:
        """Return the signed-in user ID, or None."""
        pass

    @abstractmethod
    def add_listener(self, listener: AuthListener) -> Callable[[], None]:
        """Register a coroutine called with the new principal on every change.

        Returns:
            Callable that removes the listener
        """
        pass


class InMemoryAuthProvider(AuthProvider):
    """Auth state held in memory. Used by the CLI and tests."""

    def __init__(self, principal: Optional[str] = None):
        self._principal = principal
        self._listeners: list[AuthListener] = []

    def current_principal(self) -> Optional[str]:
        return self._principal

    def add_listener(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def sign_in(self, principal: str) -> None:
        await self._set(principal)

    async def sign_out(self) -> None:
        await self._set(None)

    async def _set(self, principal: Optional[str]) -> None:
        if principal == self._principal:
            return
        self._principal = principal
        for listener in list(self._listeners):
            await listener(principal)


class BudgetProvider(ABC):
    """Source of the monthly budget figure."""

    @abstractmethod
    async def get_monthly_budget(self, month: Month) -> Decimal:
        pass


class StaticBudgetProvider(BudgetProvider):
    """Budgets from a fixed per-month mapping with a fallback default."""

    def __init__(self, budgets: Optional[dict[Month, Decimal]] = None, default: Decimal = Decimal("0")):
        self.budgets = dict(budgets or {})
        self.default = default

    async def get_monthly_budget(self, month: Month) -> Decimal:
        return self.budgets.get(month, self.default)
