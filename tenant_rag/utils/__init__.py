"""
================================================================================
UTILS PACKAGE - Utility Functions and Helpers
================================================================================

Modules:
  - helpers: request ids, timing
  - deadline: per-call time budget shared by every external call
  - logging_setup: text / JSON log formatting

USAGE:
------
    from tenant_rag.utils import Deadline, generate_request_id

    deadline = Deadline(timeout=5.0)
    vector = await deadline.run(provider.embed(text), cap=settings.embeddings_timeout)

================================================================================
"""

from .deadline import Deadline, DeadlineExceeded
from .helpers import generate_request_id, measure_time
from .logging_setup import configure_logging

__all__ = [
    "Deadline",
    "DeadlineExceeded",
    "generate_request_id",
    "measure_time",
    "configure_logging",
]
