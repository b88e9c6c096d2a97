import logging
import time

from django.conf import settings

from core.exceptions import ConcurrencyConflict, StorageUnavailable

logger = logging.getLogger(__name__)


def call_with_retry(func, *args, retries=None, backoff=None, sleep=time.sleep, **kwargs):
    """Call a ledger operation with the caller-side retry policy.

    - ConcurrencyConflict: retried once (the next attempt reads fresh data).
    - StorageUnavailable: retried up to ``retries`` times, sleeping
      ``backoff * 2**n`` between attempts, then re-raised.
    - Anything else propagates immediately.

    Each attempt is a complete atomic operation, so retrying never double-applies.
    """
    if retries is None:
        retries = settings.LEDGER_STORAGE_RETRIES
    if backoff is None:
        backoff = settings.LEDGER_RETRY_BACKOFF_SECONDS

    conflict_retried = False
    storage_attempt = 0

    while True:
        try:
            return func(*args, **kwargs)
        except ConcurrencyConflict:
            if conflict_retried:
                raise
            conflict_retried = True
            logger.info("Retrying %s after concurrency conflict", func.__name__)
        except StorageUnavailable:
            if storage_attempt >= retries:
                logger.error("Giving up on %s after %d storage retries", func.__name__, retries)
                raise
            delay = backoff * (2 ** storage_attempt)
            storage_attempt += 1
            logger.warning(
                "Storage unavailable in %s, retry %d/%d in %.2fs",
                func.__name__, storage_attempt, retries, delay,
            )
            sleep(delay)
