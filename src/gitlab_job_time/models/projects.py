"""Project model."""

from __future__ import annotations

from .base import GitLabModel


class Project(GitLabModel):
    id: int
    name: str = ""
    path_with_namespace: str = ""
    web_url: str = ""
