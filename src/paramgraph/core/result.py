"""
Result Type Implementation.

Guard checks and editor gestures report their outcome as a value
(Ok / Rejected) instead of raising: a rejected connection is an expected
outcome the editor shows to the user, not an exceptional control flow.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class RejectionReason(StrEnum):
    """Why a proposed edge mutation was not applied."""
    SELF_LOOP = "self_loop"
    DUPLICATE_EDGE = "duplicate_edge"
    WOULD_CREATE_CYCLE = "would_create_cycle"
    UNKNOWN_OPTION = "unknown_option"
    UNKNOWN_PARAMETER = "unknown_parameter"
    MISSING_EDGE = "missing_edge"
    PERSISTENCE_FAILURE = "persistence_failure"
    DISCARDED = "discarded"

    @property
    def is_retryable(self) -> bool:
        """Only a remote failure can succeed when the same request is repeated."""
        return self is RejectionReason.PERSISTENCE_FAILURE


@dataclass(frozen=True)
class Ok(Generic[T]):
    """
    Represents an admitted mutation or a successful gesture.
    """
    value: T

    def is_ok(self) -> bool:
        return True

    def is_rejected(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Rejected:
    """
    Represents a refused mutation, with a reason and a human readable message.
    """
    reason: RejectionReason
    message: str = ""

    def is_ok(self) -> bool:
        return False

    def is_rejected(self) -> bool:
        return True

    def unwrap(self):
        raise ValueError(f"Called unwrap on Rejected({self.reason.value}): {self.message}")

    def __str__(self) -> str:
        return self.message or self.reason.value


Result = Union[Ok[T], Rejected]
