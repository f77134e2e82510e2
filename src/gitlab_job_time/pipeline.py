"""Resolve one job row to the outcome of that job's previous run.

The previous run is taken from the first parent of the commit shown on the
page: the current commit's own pipeline is usually the one still in progress.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Protocol

from .client import GitLabClient
from .dom import Node, find_current_commit, find_job_name, find_stage
from .exceptions import BadResponseShapeError, JobTimeError, NoCommitError, NoParentError
from .outcome import Outcome
from .resolver import classify

logger = logging.getLogger(__name__)


class CredentialProvider(Protocol):
    def get_token(self) -> str | None: ...

    def prompt_for_token(self) -> str | None: ...


class PipelineState(enum.Enum):
    START = "start"
    CONTEXT_EXTRACTED = "context_extracted"
    PROJECT_RESOLVED = "project_resolved"
    COMMIT_FETCHED = "commit_fetched"
    STATUS_FETCHED = "status_fetched"
    RESOLVED = "resolved"
    FAILED = "failed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class JobContext:
    commit: str | None
    stage: str | None
    name: str | None


@dataclass(frozen=True)
class Resolution:
    """What one pipeline run produced.

    ``last_step`` is the furthest state reached before ``state`` was entered.
    A ``FAILED`` run with ``outcome`` set is displayed like any other outcome;
    a ``FAILED`` run without one (no commit on the page) must be shown as an
    error. ``ABORTED`` runs display nothing.
    """

    state: PipelineState
    last_step: PipelineState
    context: JobContext | None = None
    outcome: Outcome | None = None
    error: Exception | None = None
    parent: str | None = None

    @property
    def is_hard_stop(self) -> bool:
        return isinstance(self.error, NoCommitError)


def extract_context(document: Node, anchor: Node) -> JobContext:
    return JobContext(
        commit=find_current_commit(document),
        stage=find_stage(anchor),
        name=find_job_name(anchor),
    )


class ResolutionPipeline:
    """Turns an activated job row into a :class:`Resolution`.

    One instance serves a whole page; runs may overlap and only share the
    client's project-id cache.
    """

    def __init__(
        self,
        client: GitLabClient,
        credentials: CredentialProvider,
        namespace: str,
        document: Node,
    ) -> None:
        self.client = client
        self.credentials = credentials
        self.namespace = namespace
        self.document = document

    def _token(self) -> str | None:
        return self.credentials.get_token() or self.credentials.prompt_for_token()

    async def resolve(self, anchor: Node) -> Resolution:
        context = extract_context(self.document, anchor)
        if not context.commit:
            error = NoCommitError()
            logger.error("%s", error)
            return Resolution(PipelineState.FAILED, PipelineState.START, context, error=error)

        step = PipelineState.CONTEXT_EXTRACTED
        token = self._token()
        if not token:
            logger.debug("No GitLab token available; nothing to do")
            return Resolution(PipelineState.ABORTED, step, context)

        parent = None
        try:
            project = await self.client.get_project_id(self.namespace, token)
            step = PipelineState.PROJECT_RESOLVED

            commit = await self.client.get_commit(context.commit, project, token)
            step = PipelineState.COMMIT_FETCHED
            parent = commit.first_parent
            if parent is None:
                raise NoParentError(context.commit)
            logger.debug(
                "Found %d parents for %s. Using %s.",
                len(commit.parent_ids),
                context.commit,
                parent,
            )

            statuses = await self.client.get_commit_status(
                parent, project, token, stage=context.stage, name=context.name
            )
            step = PipelineState.STATUS_FETCHED
            if not isinstance(statuses, list):
                raise BadResponseShapeError(statuses)

            outcome = classify(statuses, context.name)
        except (JobTimeError, TypeError, ValueError) as e:
            logger.error("Couldn't resolve the last run of %r: %s", context.name, e)
            return Resolution(
                PipelineState.FAILED,
                step,
                context,
                outcome=Outcome.unresolvable(),
                error=e,
                parent=parent,
            )

        if outcome is None:
            logger.info("No status named %r on %s", context.name, parent)
            outcome = Outcome.unresolvable()
        return Resolution(PipelineState.RESOLVED, step, context, outcome=outcome, parent=parent)
