"""Repository models: commits."""

from __future__ import annotations

from .base import GitLabModel


class Commit(GitLabModel):
    id: str = ""
    short_id: str = ""
    title: str = ""
    parent_ids: list[str] = []
    web_url: str = ""

    @property
    def first_parent(self) -> str | None:
        return self.parent_ids[0] if self.parent_ids else None
