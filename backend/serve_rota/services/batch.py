"""Result of a best-effort batch: what went through and, per input, why the rest did not."""
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")
I = TypeVar("I")


@dataclass
class FailedItem(Generic[I]):
    input: I
    error: str  # DomainError.code
    detail: str

    def to_dict(self) -> dict[str, Any]:
        return {"input": self.input, "error": self.error, "detail": self.detail}


@dataclass
class BatchResult(Generic[I, T]):
    succeeded: list[T] = field(default_factory=list)
    failed: list[FailedItem[I]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed
