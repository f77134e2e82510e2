"""Tests for the command-line driver."""

from __future__ import annotations

import httpx
import pytest
import respx
from click.testing import CliRunner

from gitlab_job_time import main

BASE = "https://gitlab.example.com/api/v4"
ENV = {
    "GITLAB_URL": "https://gitlab.example.com",
    "GITLAB_TOKEN": None,
    "GITLAB_PAT": None,
    "GITLAB_PERSONAL_ACCESS_TOKEN": None,
    "GITLAB_API_TOKEN": None,
}


def _record(name: str, stage: str, status: str) -> dict:
    return {
        "name": name,
        "stage": stage,
        "status": status,
        "started_at": "2024-01-01T00:00:00Z",
        "finished_at": "2024-01-01T00:05:30Z",
    }


@pytest.fixture
def page_file(tmp_path, pipeline_page):
    path = tmp_path / "pipeline.html"
    path.write_text(pipeline_page, encoding="utf-8")
    return str(path)


@pytest.fixture
def history():
    with respx.mock(base_url=BASE, assert_all_called=False) as router:
        router.get("/projects/my-group%2Fmy-project/").mock(
            return_value=httpx.Response(200, json={"id": 42})
        )
        router.get("/projects/42/repository/commits/abc123").mock(
            return_value=httpx.Response(200, json={"id": "abc123", "parent_ids": ["def456"]})
        )
        router.get("/projects/42/repository/commits/def456/statuses").mock(
            return_value=httpx.Response(
                200,
                json=[
                    _record("compile", "build", "canceled"),
                    _record("unit-tests", "test", "failed"),
                    _record("lint", "test", "success"),
                ],
            )
        )
        yield router


def _invoke(args, **kwargs):
    return CliRunner().invoke(main, args, env=ENV, **kwargs)


def test_reports_every_job(history, page_file):
    result = _invoke([page_file, "--project", "my-group/my-project", "--gitlab-token", "t"])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [
        "build / compile: Previously canceled after 05:30",
        "test / unit-tests: Previously failed after 05:30",
        "test / lint: Previously took 05:30",
    ]


def test_single_job(history, page_file):
    result = _invoke(
        [page_file, "--project", "my-group/my-project", "--gitlab-token", "t", "--job", "lint"]
    )
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "test / lint: Previously took 05:30"


def test_project_from_page_url(history, page_file):
    result = _invoke(
        [
            page_file,
            "--page-url",
            "https://gitlab.example.com/my-group/my-project/-/pipelines/9",
            "--gitlab-token",
            "t",
            "--job",
            "unit-tests",
        ]
    )
    assert result.exit_code == 0, result.output
    assert "Previously failed after 05:30" in result.output


def test_page_from_stdin(history, pipeline_page):
    result = _invoke(
        ["-", "--project", "my-group/my-project", "--gitlab-token", "t", "--job", "compile"],
        input=pipeline_page,
    )
    assert result.exit_code == 0, result.output
    assert "build / compile: Previously canceled after 05:30" in result.output


def test_prompts_for_token(history, page_file):
    result = _invoke(
        [page_file, "--project", "my-group/my-project", "--job", "lint"],
        input="typed-token\n",
    )
    assert result.exit_code == 0, result.output
    assert "test / lint: Previously took 05:30" in result.output
    request = history.calls.last.request
    assert request.headers["PRIVATE_TOKEN"] == "typed-token"


def test_declined_prompt_does_nothing(history, page_file):
    result = _invoke([page_file, "--project", "my-group/my-project"], input="\n")
    assert result.exit_code == 0, result.output
    assert "Previously" not in result.output
    assert not history.calls


def test_missing_commit_exits_with_error(tmp_path):
    page = tmp_path / "page.html"
    page.write_text(
        '<table class="ci-table pipeline"><tr><td>job</td>'
        '<td><p class="duration">1</p></td></tr></table>',
        encoding="utf-8",
    )
    with respx.mock(base_url=BASE) as router:
        result = _invoke([str(page), "--project", "my-group/my-project", "--gitlab-token", "t"])
        assert not router.calls
    assert result.exit_code == 1
    assert "couldn't figure out what the current commit is" in result.output


def test_requires_project(page_file):
    result = _invoke([page_file, "--gitlab-token", "t"])
    assert result.exit_code == 2
    assert "--project" in result.output


def test_requires_pipeline_table(tmp_path):
    page = tmp_path / "page.html"
    page.write_text("<html><body>Sign in</body></html>", encoding="utf-8")
    result = _invoke([str(page), "--project", "my-group/my-project", "--gitlab-token", "t"])
    assert result.exit_code == 2
    assert "No pipeline jobs" in result.output
