"""
Tagged operation results.

Every exposed operation returns either ``Ok(value)`` or ``Err(error)`` so
callers branch on the tag instead of probing ad hoc response fields::

    match service.start_attempt("alice"):
        case Ok(value=number):
            ...
        case Err(error=AttemptLimitExceeded()):
            ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from .errors import AssessmentError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: AssessmentError

    @property
    def ok(self) -> bool:
        return False

    @property
    def kind(self) -> str:
        return self.error.kind

    def unwrap(self):
        raise self.error

    def to_dict(self) -> dict:
        return self.error.to_dict()


Result = Union[Ok[T], Err]
