"""
=============================================================================
COMPUTE SERVICE INTERFACE
=============================================================================

The session does not know what it computes. It hands a parsed argument to
a ComputeService and writes back whatever comes out.

=============================================================================
THE CONTRACT
=============================================================================

    class MyService(ComputeService):
        def parse(self, raw: str):        # text → argument
            ...                           # raise ArgumentFormatError

        def compute(self, argument):      # argument → value
            ...                           # raise DomainError

Both methods must be pure. Several session threads call the same instance
at the same time, and nothing guards it.

    ┌─────────────┐   raw    ┌─────────┐ argument ┌───────────┐  value
    │   Session   │─────────►│ parse() │─────────►│ compute() │────────►
    └─────────────┘          └────┬────┘          └─────┬─────┘
                                  │                     │
                      ArgumentFormatError          DomainError
                                  ▼                     ▼
                       "Error format: raw"   "Error domain: raw"

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Any

from ..protocol.request import parse_integer


class ComputeService(ABC):
    """
    Abstract base class for the per-request computation.

    The default parse() accepts optionally signed decimal integers.
    Override it for services that take something else.
    """

    def parse(self, raw: str) -> Any:
        """
        Turn raw request text into this service's argument.

        Raises:
            ArgumentFormatError: If the text is not a valid argument.
        """
        return parse_integer(raw)

    @abstractmethod
    def compute(self, argument: Any) -> Any:
        """
        Compute the answer for one parsed argument.

        Returns:
            Any value; the session sends str(value).

        Raises:
            DomainError: If the argument is well-formed but unsupported.
        """
        pass

    @property
    def name(self) -> str:
        """Get the service name for logging."""
        return self.__class__.__name__
