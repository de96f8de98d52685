"""Job queue transports."""

from __future__ import annotations

import os
from typing import Optional

from ..config import AutomationConfig, load_config
from .base import BaseTransport
from .inmemory import InMemoryTransport

TRANSPORT_ENV = "AUDITFLOW_TRANSPORT"


def get_transport(
    backend: Optional[str] = None, config: Optional[AutomationConfig] = None
) -> BaseTransport:
    """Build the queue transport named by ``backend``, the env, or the config.

    The Redis backend is imported lazily so the ``redis`` extra is only
    needed when it is selected.
    """

    config = config or load_config()
    name = (backend or os.getenv(TRANSPORT_ENV) or config.transport.backend).lower()

    if name == "inmemory":
        return InMemoryTransport()
    if name == "redis":
        from .redis import RedisTransport

        return RedisTransport(config.transport.redis)
    raise ValueError(f"Unsupported transport backend: {name}")


__all__ = ["BaseTransport", "InMemoryTransport", "get_transport"]
