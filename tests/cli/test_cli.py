"""End-to-end CLI tests with an in-process remote."""

from __future__ import annotations

import json
from pathlib import Path

import pygit2
import pytest
import yaml
from click.testing import CliRunner
from fakes import FakeRemote

from glfind.cli.main import cli
from glfind.projects.models import Project

CATALOG = [
    Project(
        path="platform/api-gateway", name="api-gateway", description="Edge routing for the public API"
    ),
    Project(path="platform/billing", name="billing", description="Invoices"),
    Project(path="sandbox/toy", name="toy"),
    Project(path="archive/legacy-api", name="legacy-api", archived=True),
]


@pytest.fixture
def env(tmp_path: Path) -> dict[str, str]:
    return {
        "GLF__CACHE__DIR": str(tmp_path / "cache"),
        "GLF__GITLAB__URL": None,
        "GLF__GITLAB__TOKEN": None,
    }


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {"gitlab": {"url": "https://gl.example.com"}, "excluded_paths": ["sandbox/*"]}
        )
    )
    return path


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote(CATALOG, starred={"platform/billing"})


def _invoke(args, env, config_path, remote=None):
    obj = {"remote": remote} if remote is not None else {}
    return CliRunner().invoke(cli, ["--config", str(config_path), *args], env=env, obj=obj)


class TestSearch:
    def test_first_search_builds_index_and_returns_json(self, env, config_path, remote) -> None:
        # When
        result = _invoke(["search", "--json", "--scores", "api"], env, config_path, remote)

        # Then
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["query"] == "api"
        paths = [r["path"] for r in data["results"]]
        assert paths[0] == "platform/api-gateway"
        assert "archive/legacy-api" in paths  # JSON includes hidden projects
        first = data["results"][0]
        assert first["url"] == "https://gl.example.com/platform/api-gateway"
        assert "score" in first
        assert set(first) >= {"name", "description", "starred", "excluded", "archived", "member"}

    def test_empty_query_lists_starred_first_and_hides_excluded(self, env, config_path, remote) -> None:
        result = _invoke(["search"], env, config_path, remote)

        assert result.exit_code == 0, result.output
        lines = [line for line in result.output.splitlines() if " > " in line]
        assert lines[0].startswith("[platform] > billing")
        assert not any("toy" in line for line in lines)
        assert not any("legacy-api" in line for line in lines)

    def test_show_hidden(self, env, config_path, remote) -> None:
        result = _invoke(["search", "--show-hidden"], env, config_path, remote)
        assert "toy" in result.stdout
        assert "legacy-api" in result.stdout

    def test_limit(self, env, config_path, remote) -> None:
        result = _invoke(["search", "--json", "--limit", "1"], env, config_path, remote)
        assert len(json.loads(result.stdout)["results"]) == 1


class TestHistoryCommands:
    def test_record_then_show(self, env, config_path) -> None:
        # Given
        for _ in range(2):
            assert _invoke(["record", "platform/billing", "-q", "bill"], env, config_path).exit_code == 0

        # When
        result = _invoke(["history", "show", "--json"], env, config_path)

        # Then
        data = json.loads(result.stdout)
        assert data["total_selections"] == 2
        assert data["entries"][0]["path"] == "platform/billing"

    def test_recorded_pick_lifts_ranking(self, env, config_path, remote) -> None:
        _invoke(["search", "--json"], env, config_path, remote)
        for _ in range(5):
            _invoke(["record", "platform/api-gateway"], env, config_path)

        result = _invoke(["search", "--json"], env, config_path, remote)

        # Starred billing keeps its bonus; history lifts the gateway above the rest
        paths = [r["path"] for r in json.loads(result.stdout)["results"]]
        assert paths[:2] == ["platform/billing", "platform/api-gateway"]

    def test_clear_with_yes(self, env, config_path) -> None:
        _invoke(["record", "platform/billing"], env, config_path)

        result = _invoke(["history", "clear", "--yes"], env, config_path)

        assert result.exit_code == 0
        data = json.loads(_invoke(["history", "show", "--json"], env, config_path).stdout)
        assert data["total_selections"] == 0


class TestSyncAndGo:
    def test_sync_full(self, env, config_path, remote) -> None:
        result = _invoke(["sync", "--full"], env, config_path, remote)
        assert result.exit_code == 0, result.output
        assert "Connected as tester" in result.output
        assert "4 projects indexed" in result.output

    def test_sync_stops_when_remote_unreachable(self, env, config_path) -> None:
        # Given
        remote = FakeRemote(CATALOG, unreachable=True)

        # When
        result = _invoke(["sync", "--full"], env, config_path, remote)

        # Then
        assert result.exit_code == 1
        assert "connection refused" in result.output
        assert remote.requests == []

    def test_sync_without_remote_config_fails(self, env, config_path) -> None:
        result = _invoke(["sync"], env, config_path)
        assert result.exit_code == 1
        assert "gitlab.token" in result.output

    def test_go_prints_url_and_records(self, env, config_path, remote) -> None:
        # When
        result = _invoke(["go", "--no-open", "billing"], env, config_path, remote)

        # Then
        assert result.exit_code == 0, result.output
        assert "https://gl.example.com/platform/billing" in result.stdout
        history = json.loads(_invoke(["history", "show", "--json"], env, config_path).stdout)
        assert history["entries"][0]["path"] == "platform/billing"

    def test_go_dot_opens_current_checkout(self, env, config_path, tmp_path, monkeypatch) -> None:
        # Given
        repo = pygit2.init_repository(str(tmp_path / "billing"))
        repo.remotes.create("origin", "git@gl.example.com:platform/billing.git")
        monkeypatch.chdir(tmp_path / "billing")

        # When
        result = _invoke(["go", "--no-open", "."], env, config_path)

        # Then
        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == "https://gl.example.com/platform/billing"

    def test_go_without_match(self, env, config_path, remote) -> None:
        result = _invoke(["go", "--no-open", "zzzzqqq"], env, config_path, remote)
        assert result.exit_code == 1


class TestExcludeCommands:
    def test_add_list_remove(self, env, config_path) -> None:
        assert _invoke(["exclude", "add", "archive/*"], env, config_path).exit_code == 0
        assert yaml.safe_load(config_path.read_text())["excluded_paths"] == ["sandbox/*", "archive/*"]

        listed = _invoke(["exclude", "list"], env, config_path)
        assert listed.stdout.split() == ["sandbox/*", "archive/*"]

        assert _invoke(["exclude", "remove", "archive/*"], env, config_path).exit_code == 0
        assert _invoke(["exclude", "remove", "archive/*"], env, config_path).exit_code == 1
