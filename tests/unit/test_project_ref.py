"""Unit tests for template project reference parsing."""

from __future__ import annotations

import pytest

from atlas_demo_bootstrap.bootstrap.errors import ProjectReferenceError
from atlas_demo_bootstrap.bootstrap.project_ref import parse_project_number


@pytest.mark.parametrize(
    "reference",
    [
        "18",
        "https://host/orgs/acme/projects/18",
        "https://github.com/users/someone/projects/18",
    ],
)
def test_parse_project_number_accepts_number_and_url(reference: str) -> None:
    assert parse_project_number(reference) == 18


@pytest.mark.parametrize(
    "reference",
    [
        "abc",
        "",
        "https://github.com/orgs/acme/projects/18/views/1",
        "https://github.com/orgs/acme/projects/",
        "18\n",
        "-18",
    ],
)
def test_parse_project_number_rejects_malformed(reference: str) -> None:
    with pytest.raises(ProjectReferenceError):
        parse_project_number(reference)
