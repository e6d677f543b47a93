"""Rate limiting configuration."""

from __future__ import annotations

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address

from classboard.core.config import settings

logger = logging.getLogger(__name__)

# memory:// by default; point RATE_LIMIT_STORAGE_URI at Redis when running
# several API processes behind one address.
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    default_limits=["1000/hour"],
)
logger.info(f"Rate limiter configured with storage {settings.RATE_LIMIT_STORAGE_URI}")


def get_limiter() -> Limiter:
    """Get limiter instance."""
    return limiter
