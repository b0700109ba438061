"""Operations layer: the functions the CLI (and any other front end) calls.

Each function takes an :class:`OperationContext` and returns an
:class:`OperationResult`; none of them raise for expected failures.
"""

from vectorsync.ops.context import OperationContext
from vectorsync.ops.result import OperationError, OperationResult, PagedResult

__all__ = [
    "OperationContext",
    "OperationError",
    "OperationResult",
    "PagedResult",
]
