"""Unit tests for Stage field reconciliation (mocked GitHub)."""

from __future__ import annotations

from typing import Any
from unittest.mock import Mock, call

import pytest

from atlas_demo_bootstrap.bootstrap.errors import StageFieldError
from atlas_demo_bootstrap.bootstrap.github.client import ProjectRef
from atlas_demo_bootstrap.bootstrap.github.stage_field import STAGE_OPTIONS, FieldReconciler


def _stage(options: list[tuple[str, str]], *, field_id: str = "F1") -> dict[str, Any]:
    return {
        "id": field_id,
        "name": "Stage",
        "dataType": "SINGLE_SELECT",
        "options": [{"id": oid, "name": name} for name, oid in options],
    }


def _all_options() -> list[tuple[str, str]]:
    return [(name, f"O{i}") for i, name in enumerate(STAGE_OPTIONS, start=1)]


def test_single_existing_option_leads_to_five_creates(
    mock_github: Mock, project: ProjectRef
) -> None:
    before = {
        "fields": [
            {
                "name": "Stage",
                "type": "SingleSelect",
                "id": "F1",
                "options": [{"name": "Backlog", "id": "O1"}],
            }
        ]
    }
    after = {"fields": [_stage(_all_options())]}
    mock_github.list_project_fields.side_effect = [before, after]

    result = FieldReconciler(github=mock_github).reconcile(project)

    assert mock_github.create_field_option.call_count == 5
    assert mock_github.create_field_option.call_args_list == [
        call(project_id="PVT_1", field_id="F1", name=name) for name in STAGE_OPTIONS[1:]
    ]
    mock_github.create_field.assert_not_called()
    assert result.default_option_id == "O1"
    assert result.field_id == "F1"
    assert result.options_created == STAGE_OPTIONS[1:]


def test_reconcile_is_idempotent_when_all_options_present(
    mock_github: Mock, project: ProjectRef
) -> None:
    listing = {"fields": {"nodes": [_stage(_all_options())]}}
    mock_github.list_project_fields.return_value = listing

    reconciler = FieldReconciler(github=mock_github)
    first = reconciler.reconcile(project)
    second = reconciler.reconcile(project)

    mock_github.create_field_option.assert_not_called()
    mock_github.create_field.assert_not_called()
    assert first == second
    assert set(first.option_ids) == set(STAGE_OPTIONS)


def test_missing_field_is_created_once_with_required_options_in_order(
    mock_github: Mock, project: ProjectRef
) -> None:
    status = {"id": "F9", "name": "Status", "dataType": "SINGLE_SELECT", "options": []}
    mock_github.list_project_fields.side_effect = [
        [status],
        [status, _stage(_all_options(), field_id="F2")],
    ]
    mock_github.create_field.return_value = "F2-from-create"

    result = FieldReconciler(github=mock_github).reconcile(project)

    mock_github.create_field.assert_called_once_with(
        project_id="PVT_1", name="Stage", options=list(STAGE_OPTIONS)
    )
    mock_github.create_field_option.assert_not_called()
    assert result.field_created is True
    # Ids come from the fresh listing, not from the create response.
    assert result.field_id == "F2"
    assert result.default_option_id == "O1"


def test_only_missing_options_are_created_and_extras_are_kept(
    mock_github: Mock, project: ProjectRef
) -> None:
    existing = [("Done", "D"), ("Icebox", "X"), ("Backlog", "B"), ("Review", "R")]
    final = existing + [("Refinement", "N1"), ("Ready", "N2"), ("In Progress", "N3")]
    mock_github.list_project_fields.side_effect = [[_stage(existing)], [_stage(final)]]

    result = FieldReconciler(github=mock_github).reconcile(project)

    created = [c.kwargs["name"] for c in mock_github.create_field_option.call_args_list]
    assert created == ["Refinement", "Ready", "In Progress"]
    assert result.option_ids == {
        "Done": "D",
        "Backlog": "B",
        "Review": "R",
        "Refinement": "N1",
        "Ready": "N2",
        "In Progress": "N3",
    }
    assert result.default_option_id == "B"


def test_option_names_are_compared_exactly(mock_github: Mock, project: ProjectRef) -> None:
    existing = [("backlog", "b"), ("Backlog ", "b2")] + _all_options()[1:]
    final = existing + [("Backlog", "B")]
    mock_github.list_project_fields.side_effect = [[_stage(existing)], [_stage(final)]]

    result = FieldReconciler(github=mock_github).reconcile(project)

    mock_github.create_field_option.assert_called_once_with(
        project_id="PVT_1", field_id="F1", name="Backlog"
    )
    assert result.default_option_id == "B"


def test_first_matching_field_is_canonical(mock_github: Mock, project: ProjectRef) -> None:
    listing = [
        {"id": "T", "name": "Stage", "dataType": "TEXT"},
        _stage(_all_options(), field_id="FIRST"),
        _stage([], field_id="SECOND") | {"name": "stage"},
    ]
    mock_github.list_project_fields.return_value = listing

    result = FieldReconciler(github=mock_github).reconcile(project)

    assert result.field_id == "FIRST"
    mock_github.create_field_option.assert_not_called()


def test_missing_default_option_after_reconcile_is_fatal(
    mock_github: Mock, project: ProjectRef
) -> None:
    # The platform accepted the create but the fresh listing still lacks Backlog.
    mock_github.list_project_fields.side_effect = [
        [_stage(_all_options()[1:])],
        [_stage(_all_options()[1:])],
    ]

    with pytest.raises(StageFieldError, match="Backlog"):
        FieldReconciler(github=mock_github).reconcile(project)


def test_field_missing_after_create_is_fatal(mock_github: Mock, project: ProjectRef) -> None:
    mock_github.list_project_fields.return_value = []
    mock_github.create_field.return_value = "F1"

    with pytest.raises(StageFieldError):
        FieldReconciler(github=mock_github).reconcile(project)


def test_default_option_must_be_required(mock_github: Mock) -> None:
    with pytest.raises(ValueError):
        FieldReconciler(github=mock_github, required_options=("A", "B"), default_option="C")
