"""Per-file and per-batch outcome records."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .errors import CipherErrorKind, FailureKind


class TransformState(enum.Enum):
    IDLE = "idle"
    TRANSFORMING = "transforming"
    VALIDATING = "validating"
    COMMITTING = "committing"
    ABORTED = "aborted"


@dataclass(frozen=True)
class TransformResult:
    """
    Terminal state of one transformation.

    A committed result carries the output bytes; an aborted one carries the
    failure kind (plus the cipher sub-kind for engine failures) and a reason
    string. Nothing else is retained between calls.
    """

    state: TransformState
    output: Optional[bytes] = None
    failure: Optional[FailureKind] = None
    cipher_kind: Optional[CipherErrorKind] = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.state is TransformState.COMMITTING

    @classmethod
    def committed(cls, output: bytes) -> "TransformResult":
        return cls(state=TransformState.COMMITTING, output=output)

    @classmethod
    def aborted(
        cls,
        failure: FailureKind,
        reason: str,
        cipher_kind: Optional[CipherErrorKind] = None,
    ) -> "TransformResult":
        return cls(
            state=TransformState.ABORTED,
            failure=failure,
            cipher_kind=cipher_kind,
            reason=reason,
        )


@dataclass(frozen=True)
class FileOutcome:
    source: Path
    destination: Path
    committed: bool
    failure: Optional[FailureKind] = None
    cipher_kind: Optional[CipherErrorKind] = None
    reason: str = ""

    @classmethod
    def from_result(cls, source: Path, destination: Path, result: TransformResult) -> "FileOutcome":
        return cls(
            source=source,
            destination=destination,
            committed=result.ok,
            failure=result.failure,
            cipher_kind=result.cipher_kind,
            reason=result.reason,
        )

    @classmethod
    def io_failure(cls, source: Path, destination: Path, reason: str) -> "FileOutcome":
        return cls(
            source=source,
            destination=destination,
            committed=False,
            failure=FailureKind.IO,
            reason=reason,
        )

    @property
    def status(self) -> str:
        if self.committed:
            return "SUCCESS!"
        if self.cipher_kind is not None:
            return f"FAIL! [{self.failure.value}: {self.cipher_kind.value}] {self.reason}"
        return f"FAIL! [{self.failure.value}] {self.reason}"


@dataclass(frozen=True)
class BatchReport:
    outcomes: Tuple[FileOutcome, ...] = ()

    @property
    def ok(self) -> bool:
        # An empty batch has nothing to fail.
        return all(outcome.committed for outcome in self.outcomes)

    @property
    def committed(self) -> Tuple[FileOutcome, ...]:
        return tuple(o for o in self.outcomes if o.committed)

    @property
    def failures(self) -> Tuple[FileOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.committed)

    def as_dict(self) -> dict[str, str]:
        return {str(o.source): o.status for o in self.outcomes}


__all__ = ["BatchReport", "FileOutcome", "TransformResult", "TransformState"]
