# inventory/services/retry.py

from __future__ import annotations

import functools
import logging

from django.conf import settings

from inventory.exceptions import InsufficientBatchQuantity

logger = logging.getLogger(__name__)


def retry_on_batch_race(attempts: int | None = None):
    """
    Re-run a whole atomic allocation when a batch changed underneath it.

    Apply OUTSIDE transaction.atomic so each attempt starts from a fresh
    transaction (or savepoint) and re-reads its batches. InsufficientStock is a
    real shortfall and passes straight through.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            max_attempts = attempts or getattr(settings, "INVENTORY_ALLOCATION_RETRIES", 3)
            attempt = 1
            while True:
                try:
                    return func(*args, **kwargs)
                except InsufficientBatchQuantity as exc:
                    if attempt >= max_attempts:
                        raise
                    logger.warning(
                        "Batch quantity changed mid-allocation; retrying",
                        extra={
                            "operation": func.__name__,
                            "attempt": attempt,
                            "batch_id": exc.batch_id,
                        },
                    )
                    attempt += 1

        return wrapper

    return decorator
