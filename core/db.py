"""Storage boundary for ledger operations.

Ledger services are written as ``@storage_boundary`` around
``@transaction.atomic``: the atomic block rolls everything back on any error
(including a statement timeout), and the boundary turns driver level failures
into ``StorageUnavailable`` so callers only ever see ledger errors.
"""

import logging
from functools import wraps

from django.db import InterfaceError, OperationalError

from core.exceptions import StorageUnavailable

logger = logging.getLogger(__name__)

# Largest value a PositiveIntegerField holds on every supported backend.
MAX_POSITIVE_INT = 2_147_483_647


def storage_boundary(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (OperationalError, InterfaceError) as exc:
            logger.warning("Storage failure in %s: %s", func.__qualname__, exc)
            raise StorageUnavailable(f"Storage unavailable: {exc}") from exc

    return wrapper
