"""Match a job against GitLab commit statuses and classify the result."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from .models.pipelines import CommitStatus
from .outcome import Outcome

logger = logging.getLogger(__name__)

RUNNING_STATES = frozenset({"created", "pending", "running"})


def format_time(ms: float) -> str:
    """Format a duration in milliseconds as ``MM:SS`` or ``H:MM:SS``."""
    seconds = max(0, math.floor(ms / 1000 + 0.5))
    minutes, seconds = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes:02d}:{seconds:02d}"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def _duration(status: CommitStatus) -> str | None:
    elapsed = status.elapsed_ms
    return None if elapsed is None else format_time(elapsed)


def classify_status(status: CommitStatus) -> Outcome:
    """Map a single status record to its outcome."""
    if status.status in RUNNING_STATES:
        return Outcome.running()
    if status.status == "success":
        return Outcome.succeeded(_duration(status))
    if status.status == "failed":
        return Outcome.failed(_duration(status))
    if status.status == "canceled":
        return Outcome.canceled(_duration(status))
    logger.error("Unknown job status: %s", status.status)
    return Outcome.unknown(status.status)


def find_status(statuses: Iterable[Any], name: str | None) -> CommitStatus | None:
    """Return the first record named ``name``, skipping anything that isn't a job object."""
    if not name:
        return None
    for raw in statuses:
        if not isinstance(raw, dict) or raw.get("name") != name:
            continue
        try:
            return CommitStatus.model_validate(raw)
        except ValidationError:
            logger.debug("Skipping malformed status record: %r", raw)
    return None


def classify(statuses: Iterable[Any], name: str | None) -> Outcome | None:
    """Classify the first status named ``name``; ``None`` when nothing matches."""
    match = find_status(statuses, name)
    if match is None:
        return None
    return classify_status(match)
