from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from ..core.enums import DeleteOutcome

T = TypeVar("T")


@dataclass(frozen=True)
class DeleteResult(Generic[T]):
    """Which branch a delete took: deactivated because in use, or removed."""

    outcome: DeleteOutcome
    record: T

    @property
    def deleted(self) -> bool:
        return self.outcome == DeleteOutcome.DELETED
