"""Show how long each job of a GitLab pipeline took the last time it ran."""

import asyncio
import logging
import sys
from typing import TextIO

import click
from dotenv import load_dotenv

from .client import GitLabClient
from .config import GitLabConfig
from .dom import find_duration_anchors, find_job_name, parse_html, project_from_path
from .pipeline import PipelineState, Resolution, ResolutionPipeline


class SessionCredentials:
    """Token holder for one CLI session; prompts at most until a token is given."""

    def __init__(self, token: str | None = None) -> None:
        self.token = token or None

    def get_token(self) -> str | None:
        return self.token

    def prompt_for_token(self) -> str | None:
        token = click.prompt(
            "Please enter a GitLab API token (create one under "
            "User Settings > Access Tokens)",
            default="",
            show_default=False,
            hide_input=True,
            err=True,
        ).strip()
        self.token = token or None
        return self.token


def render(resolution: Resolution) -> str | None:
    """One output line for a resolved row; ``None`` for rows that produced nothing."""
    if resolution.state is PipelineState.ABORTED or resolution.outcome is None:
        return None
    context = resolution.context
    stage = (context.stage if context else None) or "?"
    name = (context.name if context else None) or "?"
    return f"{stage} / {name}: {resolution.outcome.label}"


async def resolve_page(
    markup: str,
    namespace: str,
    config: GitLabConfig,
    credentials: SessionCredentials,
    job: str | None = None,
) -> list[Resolution]:
    document = parse_html(markup)
    anchors = find_duration_anchors(document)
    async with GitLabClient(config) as client:
        pipeline = ResolutionPipeline(client, credentials, namespace, document)
        if job is not None:
            anchors = [a for a in anchors if find_job_name(a) == job]
        if not anchors:
            return []
        # Resolve the first row alone so a token prompt happens once.
        first = await pipeline.resolve(anchors[0])
        if first.state is not PipelineState.RESOLVED and first.outcome is None:
            return [first]
        rest = await asyncio.gather(*(pipeline.resolve(a) for a in anchors[1:]))
        return [first, *rest]


@click.command()
@click.argument("page", type=click.File("r", encoding="utf-8"))
@click.option("--page-url", help="URL the page was saved from; used to find the project")
@click.option("--project", help="Project path, e.g. 'my-group/my-project'")
@click.option("--job", help="Only resolve the job with this name")
@click.option("--gitlab-url", envvar="GITLAB_URL", help="GitLab instance URL")
@click.option("--gitlab-token", envvar="GITLAB_TOKEN", help="GitLab personal access token")
@click.option("-v", "--verbose", is_flag=True, help="Log requests and decisions")
def main(
    page: TextIO,
    page_url: str | None,
    project: str | None,
    job: str | None,
    gitlab_url: str | None,
    gitlab_token: str | None,
    verbose: bool,
) -> None:
    """Report the previous run of every job on a saved GitLab pipeline PAGE."""
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = GitLabConfig.from_env()
    if gitlab_url:
        config.url = gitlab_url.rstrip("/")
    try:
        config.validate()
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    namespace = project or (project_from_path(page_url) if page_url else None)
    if not namespace:
        raise click.UsageError("Pass --project or a --page-url the project can be read from")

    credentials = SessionCredentials(gitlab_token or config.token)
    resolutions = asyncio.run(resolve_page(page.read(), namespace, config, credentials, job))
    if not resolutions:
        raise click.UsageError("No pipeline jobs found on the page")

    if any(r.is_hard_stop for r in resolutions):
        click.echo(
            "Sorry, we couldn't figure out what the current commit is. "
            "Run with --verbose for details.",
            err=True,
        )
        sys.exit(1)

    for resolution in resolutions:
        line = render(resolution)
        if line is not None:
            click.echo(line)


if __name__ == "__main__":
    main()
