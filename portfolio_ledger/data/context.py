"""In-process execution context.

StaticContext holds the caller identity and logical height explicitly. Hosts
that have their own identity and clock implement ExecutionContext instead.
"""

from contextlib import contextmanager
from typing import Iterator

from portfolio_ledger.data.base import ExecutionContext


class StaticContext(ExecutionContext):
    """Execution context whose caller and height are set by the host.

    Example:
        >>> ctx = StaticContext(caller="alice", height=100)
        >>> ctx.advance(145)
        >>> ctx.height
        245
        >>> with ctx.acting_as("bob"):
        ...     ctx.caller
        'bob'
    """

    def __init__(self, caller: str, height: int = 0):
        if height < 0:
            raise ValueError(f"height must be non-negative, got {height}")
        self._caller = caller
        self._height = height

    @property
    def caller(self) -> str:
        return self._caller

    @property
    def height(self) -> int:
        return self._height

    def set_caller(self, caller: str) -> None:
        self._caller = caller

    def advance(self, blocks: int = 1) -> int:
        """Move the height forward; it never moves backwards."""
        if blocks < 0:
            raise ValueError(f"height is monotonic, cannot advance by {blocks}")
        self._height += blocks
        return self._height

    @contextmanager
    def acting_as(self, caller: str) -> Iterator["StaticContext"]:
        """Temporarily switch the caller identity."""
        previous = self._caller
        self._caller = caller
        try:
            yield self
        finally:
            self._caller = previous
