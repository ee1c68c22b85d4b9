"""Runtime settings for the domain services."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class CoreSettings:
    """Tunables shared by the domain services.

    Attributes:
        max_conflict_retries: Attempts for counter and stock compare-and-set
            writes before ConcurrentModificationConflict is raised
        retry_backoff_seconds: Base delay between attempts (doubles each time)
        allow_negative_stock: If True, stock may go below zero (a warning is
            logged); otherwise InsufficientStockError is raised
        number_padding: Minimum digits in formatted document numbers
    """

    max_conflict_retries: int = 5
    retry_backoff_seconds: float = 0.05
    allow_negative_stock: bool = False
    number_padding: int = 4

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CoreSettings":
        """Build settings from INVOICEKIT_* environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        retries = env.get("INVOICEKIT_MAX_CONFLICT_RETRIES")
        backoff = env.get("INVOICEKIT_RETRY_BACKOFF")
        negative = env.get("INVOICEKIT_ALLOW_NEGATIVE_STOCK")
        padding = env.get("INVOICEKIT_NUMBER_PADDING")

        settings = cls(
            max_conflict_retries=int(retries) if retries else defaults.max_conflict_retries,
            retry_backoff_seconds=float(backoff) if backoff else defaults.retry_backoff_seconds,
            allow_negative_stock=(
                negative.strip().lower() in _TRUE_VALUES if negative else defaults.allow_negative_stock
            ),
            number_padding=int(padding) if padding else defaults.number_padding,
        )
        if settings.max_conflict_retries < 1:
            raise ValueError("INVOICEKIT_MAX_CONFLICT_RETRIES must be at least 1")
        return settings
