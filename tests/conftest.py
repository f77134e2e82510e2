"""Shared test fixtures for gitlab-job-time."""

from __future__ import annotations

import pytest
import respx

from gitlab_job_time.client import GitLabClient
from gitlab_job_time.config import GitLabConfig
from gitlab_job_time.dom import Element, parse_html

TEST_URL = "https://gitlab.example.com"
TEST_TOKEN = "test-token"
TEST_PROJECT = "my-group/my-project"

PIPELINE_PAGE = """\
<html>
<body>
<div class="info-well">
  <div class="branch-info">
    <span>Commit</span>
    <a class="commit-sha" href="/my-group/my-project/commit/abc123">abc123</a>
  </div>
</div>
<table class="table ci-table pipeline">
  <thead><tr><th>Job</th><th>Duration</th></tr></thead>
  <tbody>
    <tr class="stage-row">
      <td colspan="2"><a name="build"></a><strong>build</strong></td>
    </tr>
    <tr>
      <td>compile</td>
      <td><p class="duration">00:42</p></td>
    </tr>
    <tr class="stage-row">
      <td colspan="2"><a name="test"></a><strong>test</strong></td>
    </tr>
    <tr>
      <td>
        <a href="/my-group/my-project/-/jobs/7">unit-tests</a>
      </td>
      <!-- duration -->
      <td><p class="duration">05:10</p></td>
    </tr>
    <tr>
      <td>lint</td>
      <td><p class="duration">00:20</p></td>
    </tr>
  </tbody>
</table>
</body>
</html>
"""


@pytest.fixture
def config() -> GitLabConfig:
    return GitLabConfig(url=TEST_URL, token=TEST_TOKEN)


@pytest.fixture
def client(config: GitLabConfig) -> GitLabClient:
    return GitLabClient(config)


@pytest.fixture
def mock_api() -> respx.MockRouter:
    with respx.mock(base_url=f"{TEST_URL}/api/v4", assert_all_called=False) as router:
        yield router


@pytest.fixture
def document() -> Element:
    return parse_html(PIPELINE_PAGE)


@pytest.fixture
def pipeline_page() -> str:
    return PIPELINE_PAGE
