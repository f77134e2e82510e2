"""Base model for the GitLab payloads we read."""

from __future__ import annotations

from pydantic import BaseModel


class GitLabModel(BaseModel):
    """Lenient, read-only view of a GitLab API object; unknown fields are dropped."""

    model_config = {"extra": "ignore", "frozen": True}
