"""
Outcome of a best-effort pipeline step: a value, an error, or neither (skipped).

Steps that must never abort the analysis return a StepOutcome instead of
raising; the orchestrator inspects it, keeps the value, and logs the error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from backend_docscan.core.exceptions import DocScanError

T = TypeVar("T")


@dataclass(frozen=True)
class StepOutcome(Generic[T]):
    value: T | None = None
    error: DocScanError | None = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.skipped

    @classmethod
    def success(cls, value: T) -> "StepOutcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: DocScanError) -> "StepOutcome[T]":
        return cls(error=error)

    @classmethod
    def skip(cls) -> "StepOutcome[T]":
        return cls(skipped=True)

    def value_or(self, default: T) -> T:
        return self.value if self.ok and self.value is not None else default
