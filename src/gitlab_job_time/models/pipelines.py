"""Commit status models."""

from __future__ import annotations

from datetime import datetime, timezone

from .base import GitLabModel


def _as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC, which is what GitLab reports."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CommitStatus(GitLabModel):
    """One job entry from ``/repository/commits/:sha/statuses``."""

    id: int | None = None
    name: str = ""
    stage: str = ""
    status: str = ""
    ref: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    allow_failure: bool = False

    @property
    def elapsed_ms(self) -> float | None:
        """Milliseconds between start and finish, or ``None`` if either is missing."""
        if self.started_at is None or self.finished_at is None:
            return None
        return (_as_utc(self.finished_at) - _as_utc(self.started_at)).total_seconds() * 1000
