"""Errors raised while resolving a job's previous run."""

from __future__ import annotations


class JobTimeError(Exception):
    """Base exception for job-time resolution."""


class TransportError(JobTimeError):
    """Raised when a GitLab request does not produce a usable 200 response.

    ``status_code`` is ``0`` when the request never got a response.
    """

    def __init__(self, status_code: int, body: str = "", reason: str = "") -> None:
        self.status_code = status_code
        self.body = body
        self.reason = reason
        label = f"{status_code} {reason}".strip() if status_code else reason or "network failure"
        super().__init__(f"GitLab request failed ({label}): {body}")


class GitLabAuthError(TransportError):
    """Raised on 401/403 authentication failures."""

    def __init__(self, status_code: int, body: str = "") -> None:
        reason = "Unauthorized" if status_code == 401 else "Forbidden"
        super().__init__(status_code, body, reason)


class GitLabNotFoundError(TransportError):
    """Raised on 404 responses."""

    def __init__(self, body: str = "") -> None:
        super().__init__(404, body, "Not Found")


class MissingDataError(JobTimeError):
    """Raised when GitLab answered without a body."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"GitLab didn't return data in 'GET {path}'")


class MissingFieldError(JobTimeError):
    """Raised when a GitLab body lacks a required field."""

    def __init__(self, path: str, field: str) -> None:
        self.path = path
        self.field = field
        super().__init__(f"GitLab didn't return '{field}' in 'GET {path}'")


class NoCommitError(JobTimeError):
    """Raised when the page carries no recognisable commit link."""

    def __init__(self) -> None:
        super().__init__("Couldn't figure out what the current commit is")


class NoParentError(JobTimeError):
    """Raised for a root commit, which has no earlier run to compare against."""

    def __init__(self, sha: str) -> None:
        self.sha = sha
        super().__init__(f"Couldn't find parent commits for {sha}")


class BadResponseShapeError(JobTimeError):
    """Raised when the statuses endpoint does not return a list."""

    def __init__(self, received: object) -> None:
        self.received = received
        super().__init__(
            f"Expected a list of job statuses, got {type(received).__name__}"
        )
