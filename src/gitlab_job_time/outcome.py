"""Display outcomes for a job's previous run."""

from __future__ import annotations

import enum
from dataclasses import dataclass

DEFAULT_LABEL = "Load Last Build Time"


class OutcomeKind(enum.Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"
    UNKNOWN = "unknown"
    UNRESOLVABLE = "unresolvable"


_TEMPLATES = {
    OutcomeKind.RUNNING: "Last Pipeline Running",
    OutcomeKind.SUCCEEDED: "Previously took {duration}",
    OutcomeKind.FAILED: "Previously failed after {duration}",
    OutcomeKind.CANCELED: "Previously canceled after {duration}",
}

# Used when GitLab reported no start or finish time.
_UNTIMED = {
    OutcomeKind.SUCCEEDED: "Previously succeeded",
    OutcomeKind.FAILED: "Previously failed",
    OutcomeKind.CANCELED: "Previously canceled",
}


@dataclass(frozen=True)
class Outcome:
    """The classified result of one resolution.

    ``duration`` is a formatted ``MM:SS``/``H:MM:SS`` string for finished
    jobs, ``None`` when GitLab gave no start or finish time. ``status`` keeps
    the raw GitLab status for :attr:`OutcomeKind.UNKNOWN`.
    """

    kind: OutcomeKind
    duration: str | None = None
    status: str | None = None

    @classmethod
    def running(cls) -> Outcome:
        return cls(OutcomeKind.RUNNING)

    @classmethod
    def succeeded(cls, duration: str | None) -> Outcome:
        return cls(OutcomeKind.SUCCEEDED, duration)

    @classmethod
    def failed(cls, duration: str | None) -> Outcome:
        return cls(OutcomeKind.FAILED, duration)

    @classmethod
    def canceled(cls, duration: str | None) -> Outcome:
        return cls(OutcomeKind.CANCELED, duration)

    @classmethod
    def unknown(cls, status: str) -> Outcome:
        return cls(OutcomeKind.UNKNOWN, status=status)

    @classmethod
    def unresolvable(cls) -> Outcome:
        return cls(OutcomeKind.UNRESOLVABLE)

    @property
    def label(self) -> str:
        if self.duration is None and self.kind in _UNTIMED:
            return _UNTIMED[self.kind]
        template = _TEMPLATES.get(self.kind)
        if template is None:
            return DEFAULT_LABEL
        return template.format(duration=self.duration)

    def __str__(self) -> str:
        return self.label
