from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.fakes import FakeGitHub, FakeResponse, repo_json
from vanity.config import Config
from vanity.models import Repository


@pytest.fixture
def config() -> Config:
    return Config(generate_docs=False)


@pytest.fixture
def fake_github(monkeypatch: pytest.MonkeyPatch):  # type: ignore[no-untyped-def]
    """Install a routing fake for `requests.request`; call it with `{url: FakeResponse}`."""

    def install(routes: dict[str, FakeResponse]) -> FakeGitHub:
        fake = FakeGitHub(routes)
        monkeypatch.setattr("vanity.github_client.requests.request", fake)
        return fake

    return install


@pytest.fixture
def sample_repo(tmp_path: Path) -> Repository:
    repo = Repository.from_api(repo_json("foo"))
    repo.dir = str(tmp_path / "foo")
    repo.commit = "abc1234"
    return repo
