"""Service layer: live subscriptions and the dashboard view model."""

from financeflow.services.subscription import SubscriptionManager, SubscriptionState
from financeflow.services.view_model import DashboardViewModel

__all__ = ["SubscriptionManager", "SubscriptionState", "DashboardViewModel"]
