"""
Provider wiring.

ServiceContainer builds the embedder, vector index, completion providers and
optional embedding cache named in Settings, and owns their lifecycle.
"""

from .service_container import ServiceContainer

__all__ = ["ServiceContainer"]
