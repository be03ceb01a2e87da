# ==============================================================================
# Operation Results
# ==============================================================================
"""
Result type returned at the cache manager boundary.

Every operation resolves to one of:
- OK: completed (a read found a value, a write or delete was applied)
- MISS: a read found nothing, or its payload could not be decoded
- ERROR: the backing store or serializer failed; the failure was logged
- FATAL: no shard handle could be acquired; callers must see the error
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class OpStatus(str, Enum):
    """Outcome of a cache manager operation."""

    OK = "ok"
    MISS = "miss"
    ERROR = "error"
    FATAL = "fatal"


@dataclass(frozen=True)
class OpResult:
    """
    Outcome of a cache manager operation.

    Attributes:
        status: Outcome category
        value: Value produced by a successful read
        error: Exception behind a MISS, ERROR or FATAL outcome, if any
    """

    status: OpStatus
    value: Any = None
    error: Optional[BaseException] = None

    @classmethod
    def ok(cls, value: Any = None) -> "OpResult":
        return cls(OpStatus.OK, value)

    @classmethod
    def miss(cls, error: Optional[BaseException] = None) -> "OpResult":
        return cls(OpStatus.MISS, None, error)

    @classmethod
    def failed(cls, error: BaseException) -> "OpResult":
        return cls(OpStatus.ERROR, None, error)

    @classmethod
    def fatal(cls, error: BaseException) -> "OpResult":
        return cls(OpStatus.FATAL, None, error)

    @property
    def is_ok(self) -> bool:
        return self.status is OpStatus.OK

    def unwrap(self) -> Any:
        """Return the value, re-raising the error of a FATAL outcome."""
        if self.status is OpStatus.FATAL and self.error is not None:
            raise self.error
        return self.value
