"""Test configuration and fixtures."""

from unittest.mock import Mock

import pytest

from atlas_demo_bootstrap.bootstrap.github.client import (
    CreatedIssue,
    CreatedRepository,
    GitHubClient,
    ProjectRef,
)


@pytest.fixture
def project() -> ProjectRef:
    """Provide a copied project's identifiers."""
    return ProjectRef(
        id="PVT_1",
        number=42,
        url="https://github.com/orgs/acme/projects/42",
        title="Demo Project – demo",
        owner="acme",
    )


@pytest.fixture
def mock_github(project: ProjectRef) -> Mock:
    """Provide a GitHub client fake whose calls all succeed."""
    github = Mock(spec=GitHubClient)
    github.owner = "acme"
    github.create_repository_from_template.return_value = CreatedRepository(
        full_name="acme/demo", url="https://github.com/acme/demo"
    )
    github.copy_project.return_value = project
    github.create_label.return_value = True
    github.create_issue.return_value = CreatedIssue(
        repository="acme/demo", number=1, url="https://github.com/acme/demo/issues/1"
    )
    github.get_issue_body.return_value = "Body"
    github.add_project_item.return_value = "PVTI_1"
    return github
