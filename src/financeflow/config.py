"""Application configuration."""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_CARRY_FORWARD_CATEGORIES = ("Bills", "Rent", "Utilities", "Loan", "Credit Card")
DEFAULT_RESET_CATEGORIES = ("Food", "Groceries", "Entertainment", "Shopping", "Transport")


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """Interpret a comma-separated environment variable as a tuple of names."""
    value = os.getenv(name)
    if value is None:
        return default
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _env_number(name: str, default, cast):
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return cast(value)
    except ValueError as e:
        raise ValueError(f"Invalid value for {name}: '{value}'") from e


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the aggregation core.

    Attributes:
        database_path: SQLite file for the local store (None uses the default location)
        carry_forward_categories: Obligations rolled into next month while unpaid
        reset_categories: Accumulators that start from zero every month
        loading_timeout: Seconds before a pending load is forced to finish
        recent_limit: Length of the recent-transactions list
        upcoming_bills_limit: Maximum bills fetched for the forecast
        payee_limit: Number of frequent payees reported
        log_level: Console log level name
        log_dir: Directory for the rotating JSON log (None disables it)
        dev_mode: Verbose console format
    """

    database_path: Optional[str] = None
    carry_forward_categories: tuple[str, ...] = DEFAULT_CARRY_FORWARD_CATEGORIES
    reset_categories: tuple[str, ...] = DEFAULT_RESET_CATEGORIES
    loading_timeout: float = 5.0
    recent_limit: int = 5
    upcoming_bills_limit: int = 30
    payee_limit: int = 3
    log_level: str = "WARNING"
    log_dir: Optional[str] = None
    dev_mode: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from FINANCEFLOW_* environment variables."""
        return cls(
            database_path=os.getenv("FINANCEFLOW_DB_PATH"),
            carry_forward_categories=_env_list(
                "FINANCEFLOW_CARRY_FORWARD_CATEGORIES", DEFAULT_CARRY_FORWARD_CATEGORIES
            ),
            reset_categories=_env_list("FINANCEFLOW_RESET_CATEGORIES", DEFAULT_RESET_CATEGORIES),
            loading_timeout=_env_number("FINANCEFLOW_LOADING_TIMEOUT", 5.0, float),
            recent_limit=_env_number("FINANCEFLOW_RECENT_LIMIT", 5, int),
            upcoming_bills_limit=_env_number("FINANCEFLOW_UPCOMING_BILLS_LIMIT", 30, int),
            payee_limit=_env_number("FINANCEFLOW_PAYEE_LIMIT", 3, int),
            log_level=os.getenv("FINANCEFLOW_LOG_LEVEL", "WARNING").upper(),
            log_dir=os.getenv("FINANCEFLOW_LOG_DIR"),
            dev_mode=_env_bool("FINANCEFLOW_DEV_MODE"),
        )
