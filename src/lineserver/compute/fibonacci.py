"""Fibonacci numbers: the default compute service."""

from ..errors import DomainError
from .base import ComputeService


class FibonacciService(ComputeService):
    """
    Returns the n-th Fibonacci number, fib(0) = 0, fib(1) = 1.

        fib(10) = 55
        fib(50) = 12586269025

    Negative indices have no value here and raise DomainError. Indices
    above `max_index` also raise DomainError: Python integers never
    overflow, but a request for fib(10**9) would pin a session thread for
    minutes.
    """

    def __init__(self, max_index: int = 10_000):
        self.max_index = max_index

    def compute(self, argument: int) -> int:
        if argument < 0:
            raise DomainError(argument, "negative index")
        if argument > self.max_index:
            raise DomainError(argument, f"index above {self.max_index}")

        a, b = 0, 1
        for _ in range(argument):
            a, b = b, a + b
        return a
