"""
================================================================================
HELPERS - Common Utility Functions
================================================================================

PURPOSE:
--------
Provide common helper utilities:
  - Request ID generation (correlation across log lines)
  - Time measurement

================================================================================
"""

import logging
import time
import uuid
from contextlib import contextmanager

logger = logging.getLogger(__name__)


def generate_request_id() -> str:
    """Generate unique request ID (UUID v4)."""
    return str(uuid.uuid4())


@contextmanager
def measure_time(operation_name: str):
    """
    Context manager to measure execution time.

    Usage:
        with measure_time("index document"):
            ...
        # Logs: "✓ index document completed in 125.5ms"
    """
    start_time = time.perf_counter()
    logger.debug("Starting: %s", operation_name)

    try:
        yield
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.debug("✓ %s completed in %.1fms", operation_name, duration_ms)
