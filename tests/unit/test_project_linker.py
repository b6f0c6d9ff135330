"""Unit tests for adding the issue to the board and setting its Stage."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from atlas_demo_bootstrap.bootstrap.errors import RemoteOperationError, StageAssignmentError
from atlas_demo_bootstrap.bootstrap.github.client import ProjectRef
from atlas_demo_bootstrap.bootstrap.github.project_linker import ProjectLinker

ISSUE_URL = "https://github.com/acme/demo/issues/1"


def test_link_adds_item_then_sets_stage(mock_github: Mock, project: ProjectRef) -> None:
    result = ProjectLinker(github=mock_github).link(
        project=project, content_url=ISSUE_URL, field_id="F1", option_id="O1"
    )

    mock_github.add_project_item.assert_called_once_with(project_id="PVT_1", content_url=ISSUE_URL)
    mock_github.set_item_single_select.assert_called_once_with(
        project_id="PVT_1", item_id="PVTI_1", field_id="F1", option_id="O1"
    )
    assert result.item_id == "PVTI_1"
    assert result.stage_set is True
    assert result.stage_error is None


def test_stage_failure_is_reported_not_raised(mock_github: Mock, project: ProjectRef) -> None:
    mock_github.set_item_single_select.side_effect = RemoteOperationError(
        "set_item_single_select", "GitHub GraphQL error: option not found"
    )

    result = ProjectLinker(github=mock_github).link(
        project=project, content_url=ISSUE_URL, field_id="F1", option_id="O1"
    )

    assert result.item_id == "PVTI_1"
    assert result.stage_set is False
    assert result.stage_error is not None
    assert "option not found" in result.stage_error


def test_stage_failure_is_fatal_in_strict_mode(mock_github: Mock, project: ProjectRef) -> None:
    mock_github.set_item_single_select.side_effect = RemoteOperationError(
        "set_item_single_select", "boom"
    )

    with pytest.raises(StageAssignmentError):
        ProjectLinker(github=mock_github, strict=True).link(
            project=project, content_url=ISSUE_URL, field_id="F1", option_id="O1"
        )


def test_item_add_failure_propagates(mock_github: Mock, project: ProjectRef) -> None:
    mock_github.add_project_item.side_effect = RemoteOperationError("add_project_item", "nope")

    with pytest.raises(RemoteOperationError):
        ProjectLinker(github=mock_github).link(
            project=project, content_url=ISSUE_URL, field_id="F1", option_id="O1"
        )

    mock_github.set_item_single_select.assert_not_called()
