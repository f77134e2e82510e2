"""GitLab API client using httpx."""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import httpx

from .config import GitLabConfig
from .exceptions import (
    GitLabAuthError,
    GitLabNotFoundError,
    MissingDataError,
    MissingFieldError,
    TransportError,
)
from .models.projects import Project
from .models.repositories import Commit

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v4"
TOKEN_HEADER = "PRIVATE_TOKEN"


class ProjectIDCache:
    """Namespace to project-id lookups for one client session.

    Entries hold either the pending lookup or the resolved id. The entry is
    stored before the lookup first suspends, so concurrent callers for the
    same key share one request.
    """

    def __init__(self) -> None:
        self._entries: dict[str, asyncio.Future[int] | int] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> asyncio.Future[int] | int | None:
        return self._entries.get(key)

    def put(self, key: str, entry: asyncio.Future[int] | int) -> None:
        self._entries[key] = entry

    def discard(self, key: str) -> None:
        self._entries.pop(key, None)


class GitLabClient:
    """Async, read-only client for the handful of GitLab REST v4 endpoints we need.

    The token is passed per call; the client never stores it.
    """

    def __init__(
        self,
        config: GitLabConfig | None = None,
        cache: ProjectIDCache | None = None,
    ) -> None:
        self.config = config or GitLabConfig.from_env()
        self.config.validate()
        self.project_ids = cache if cache is not None else ProjectIDCache()
        self._client = httpx.AsyncClient(
            base_url=self.config.url,
            headers={"Accept": "application/json"},
            timeout=self.config.timeout,
            verify=self.config.ssl_verify,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitLabClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── HTTP helpers ──────────────────────────────────────────────

    @staticmethod
    def _encode_id(project_id: str | int) -> str:
        """Encode a project ID. Numeric IDs pass through; paths are URL-encoded."""
        if isinstance(project_id, int):
            return str(project_id)
        try:
            return str(int(project_id))
        except ValueError:
            return quote(project_id, safe="")

    async def get_json(
        self,
        path: str,
        token: str,
        host: str | None = None,
        *,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """GET ``path`` and return the decoded JSON body.

        Anything other than a 200 carrying JSON (or an empty body, returned as
        ``None``) raises :class:`TransportError`. ``host`` overrides the
        configured GitLab URL for this one request.
        """
        url = f"{host.rstrip('/')}{path}" if host else path
        logger.debug("GET %s%s", host or self.config.url, path)
        try:
            resp = await self._client.get(url, params=params, headers={TOKEN_HEADER: token})
        except httpx.HTTPError as e:
            raise TransportError(0, str(e), type(e).__name__) from e

        if resp.status_code in (401, 403):
            raise GitLabAuthError(resp.status_code, resp.text)
        if resp.status_code == 404:
            raise GitLabNotFoundError(resp.text)
        if resp.status_code != 200:
            raise TransportError(resp.status_code, resp.text, resp.reason_phrase or "")

        if not resp.content:
            return None

        content_type = resp.headers.get("content-type", "")
        if "text/html" in content_type:
            msg = "Unexpected HTML response, check URL and authentication"
            raise TransportError(resp.status_code, resp.text[:500], msg)

        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(
                resp.status_code,
                resp.text[:500],
                f"JSON parse error: {e}",
            ) from e

    # ── Projects ──────────────────────────────────────────────────

    async def get_project_id(self, namespace: str, token: str) -> int:
        """Resolve ``namespace`` (e.g. ``group/project``) to its numeric project ID."""
        encoded = quote(namespace, safe="")
        entry = self.project_ids.get(encoded)
        if entry is None:
            entry = asyncio.ensure_future(self._fetch_project_id(encoded, token))
            self.project_ids.put(encoded, entry)
            entry.add_done_callback(lambda fut: self._settle(encoded, fut))
        if isinstance(entry, int):
            return entry
        return await asyncio.shield(entry)

    def _settle(self, encoded: str, fut: asyncio.Future[int]) -> None:
        if self.project_ids.get(encoded) is not fut:
            return
        if fut.cancelled() or fut.exception() is not None:
            self.project_ids.discard(encoded)
        else:
            self.project_ids.put(encoded, fut.result())

    async def _fetch_project_id(self, encoded: str, token: str) -> int:
        path = f"{API_PREFIX}/projects/{encoded}/"
        data = await self.get_json(path, token)
        if data is None:
            raise MissingDataError(path)
        if not isinstance(data, dict) or not data.get("id"):
            logger.debug("Project payload without id: %r", data)
            raise MissingFieldError(path, "id")
        return Project.model_validate(data).id

    # ── Commits ───────────────────────────────────────────────────

    async def get_commit(self, sha: str, project: str | int, token: str) -> Commit:
        enc = self._encode_id(project)
        data = await self.get_json(
            f"{API_PREFIX}/projects/{enc}/repository/commits/{quote(sha, safe='')}", token
        )
        if data is None:
            raise MissingDataError(f"/projects/{enc}/repository/commits/{sha}")
        return Commit.model_validate(data)

    async def get_commit_status(
        self,
        sha: str,
        project: str | int,
        token: str,
        stage: str | None = None,
        name: str | None = None,
    ) -> Any:
        """Fetch the CI statuses of ``sha``.

        ``stage`` and ``name`` are passed to GitLab as filters, but GitLab may
        ignore them, so the raw decoded body is returned unfiltered.
        """
        enc = self._encode_id(project)
        params: dict[str, Any] = {}
        if stage:
            params["stage"] = stage
        if name:
            params["name"] = name
        return await self.get_json(
            f"{API_PREFIX}/projects/{enc}/repository/commits/{quote(sha, safe='')}/statuses",
            token,
            params=params or None,
        )
