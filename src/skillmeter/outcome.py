"""Tagged lookup outcomes.

Operations that may legitimately find nothing return ``Present`` or
``Absent`` instead of ``None``; operations that swallow a collaborator
failure return ``Failed`` so the caller can see what was downgraded.

    match scorer.evaluate("docx"):
        case Present(value=score):
            ...
        case Absent(reason=reason):
            ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Present(Generic[T]):
    """A value was found."""

    value: T

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class Absent:
    """Nothing to return; not an error."""

    reason: str = ""

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class Failed:
    """A collaborator raised and the error was caught."""

    error: BaseException

    def __bool__(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__
