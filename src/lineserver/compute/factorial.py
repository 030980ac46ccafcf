"""Factorials: an alternative compute service."""

import math

from ..errors import DomainError
from .base import ComputeService


class FactorialService(ComputeService):
    """n! for 0 <= n <= max_argument."""

    def __init__(self, max_argument: int = 1_000):
        self.max_argument = max_argument

    def compute(self, argument: int) -> int:
        if argument < 0:
            raise DomainError(argument, "negative argument")
        if argument > self.max_argument:
            raise DomainError(argument, f"argument above {self.max_argument}")
        return math.factorial(argument)
