"""gitlab-job-time configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_URL = "https://gitlab.com"


@dataclass
class GitLabConfig:
    """Connection settings for the GitLab instance, loaded from environment variables."""

    url: str = DEFAULT_URL
    token: str = ""
    timeout: float | None = None
    ssl_verify: bool = True

    @classmethod
    def from_env(cls) -> GitLabConfig:
        url = os.getenv("GITLAB_URL", "").rstrip("/") or DEFAULT_URL
        token = (
            os.getenv("GITLAB_TOKEN")
            or os.getenv("GITLAB_PAT")
            or os.getenv("GITLAB_PERSONAL_ACCESS_TOKEN")
            or os.getenv("GITLAB_API_TOKEN", "")
        )
        raw_timeout = os.getenv("GITLAB_TIMEOUT", "")
        timeout = float(raw_timeout) if raw_timeout else None
        ssl_verify = os.getenv("GITLAB_SSL_VERIFY", "true").lower() not in (
            "false",
            "0",
            "no",
        )

        return cls(
            url=url,
            token=token,
            timeout=timeout,
            ssl_verify=ssl_verify,
        )

    def validate(self) -> None:
        if not self.url:
            msg = "GITLAB_URL must not be empty"
            raise ValueError(msg)
        if not self.url.startswith(("http://", "https://")):
            msg = f"GITLAB_URL must be an http(s) URL, got {self.url!r}"
            raise ValueError(msg)
