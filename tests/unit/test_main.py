"""Unit tests for the CLI entrypoint (GitHub client replaced by a mock)."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import Mock

import pytest

from atlas_demo_bootstrap.bootstrap import main as main_module
from atlas_demo_bootstrap.bootstrap.errors import RemoteOperationError
from atlas_demo_bootstrap.bootstrap.github.stage_field import STAGE_OPTIONS

_ENV_VARS = (
    "BOOTSTRAP_GITHUB_TOKEN",
    "GH_TOKEN",
    "GITHUB_TOKEN",
    "TEMPLATE_REPO",
    "KANBAN_TEMPLATE",
    "REPO_VISIBILITY",
    "ISSUE_TEMPLATE",
    "DEBUG",
    "LOG_LEVEL",
    "STRICT_STAGE_ASSIGNMENT",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GITHUB_TOKEN", "test-token")
    monkeypatch.setenv("OWNER", "acme")
    monkeypatch.chdir(tmp_path)

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def patched_client(mock_github: Mock, monkeypatch: pytest.MonkeyPatch) -> Mock:
    mock_github.list_project_fields.return_value = [
        {
            "id": "F1",
            "name": "Stage",
            "type": "ProjectV2SingleSelectField",
            "options": [{"id": f"O{i}", "name": n} for i, n in enumerate(STAGE_OPTIONS, 1)],
        }
    ]

    def _factory(**kwargs: Any) -> Mock:
        return mock_github

    monkeypatch.setattr(main_module, "GitHubClient", _factory)
    return mock_github


def test_success_prints_summary(patched_client: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    assert main_module.main(["demo"]) == 0

    out = capsys.readouterr().out
    assert "==> Creating repo from template: acme/atlas-demo-template → acme/demo" in out
    assert out.endswith(
        "\nRepo: https://github.com/acme/demo\n"
        "Project: https://github.com/orgs/acme/projects/42\n"
        "Issue: https://github.com/acme/demo/issues/1\n"
    )
    patched_client.close.assert_called_once()


def test_malformed_kanban_template_exits_before_remote_calls(
    patched_client: Mock, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("KANBAN_TEMPLATE", "abc")

    assert main_module.main(["demo"]) == 1

    err = capsys.readouterr().err
    assert "error: KANBAN_TEMPLATE must be a number" in err
    patched_client.create_repository_from_template.assert_not_called()


def test_step_failure_exits_non_zero_with_step_name(
    patched_client: Mock, capsys: pytest.CaptureFixture[str]
) -> None:
    patched_client.copy_project.side_effect = RemoteOperationError("copy_project", "forbidden")

    assert main_module.main(["demo"]) == 1

    err = capsys.readouterr().err
    assert "error: [copy project] copy_project: forbidden" in err


def test_missing_token_is_a_configuration_error(
    patched_client: Mock, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.delenv("GITHUB_TOKEN")

    assert main_module.main(["demo"]) == 2
    assert "Configuration error" in capsys.readouterr().err
    patched_client.create_repository_from_template.assert_not_called()


def test_missing_repo_name_is_a_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        main_module.main([])
    assert excinfo.value.code == 2
