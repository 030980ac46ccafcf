"""
=============================================================================
COMPUTE SERVICES
=============================================================================

The per-request computation lives behind ComputeService. Listener and
Session never import a concrete service; LineServer looks one up by name:

    service = get_service("fibonacci")
    service.compute(service.parse("10"))   # 55

Adding a service means subclassing ComputeService and adding it to
SERVICES below. Nothing else changes.

=============================================================================
"""

from typing import Callable, Dict

from ..errors import ConfigError
from .base import ComputeService
from .factorial import FactorialService
from .fibonacci import FibonacciService


SERVICES: Dict[str, Callable[[], ComputeService]] = {
    "fibonacci": FibonacciService,
    "factorial": FactorialService,
}


def available_services() -> list[str]:
    """Names accepted by get_service(), sorted."""
    return sorted(SERVICES)


def get_service(name: str) -> ComputeService:
    """
    Instantiate a compute service by name.

    Raises:
        ConfigError: If no service is registered under `name`.
    """
    factory = SERVICES.get(name.lower())
    if factory is None:
        raise ConfigError(
            f"Unknown service {name!r}. Available: {', '.join(available_services())}"
        )
    return factory()


__all__ = [
    "ComputeService",
    "FibonacciService",
    "FactorialService",
    "SERVICES",
    "available_services",
    "get_service",
]
