"""GitHub API client wrapper for the demo bootstrap.

Wraps PyGithub (repositories, labels, issue creation) and a `requests` session
(issue bodies over REST, Projects v2 over GraphQL) behind one typed surface.
Every method maps to a single remote capability. The client never retries;
failures surface as `RemoteOperationError` tagged with the method name.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse, urlunparse

import requests
from github import Auth, Github, GithubException, UnknownObjectException

from atlas_demo_bootstrap.bootstrap.errors import (
    IssueTemplateNotFound,
    RemoteOperationError,
    RemoteUnavailableError,
)

logger = logging.getLogger(__name__)

NEW_OPTION_COLOR = "GRAY"


@dataclass(frozen=True, slots=True)
class CreatedRepository:
    full_name: str
    url: str


@dataclass(frozen=True, slots=True)
class ProjectRef:
    """Identifiers of a Projects (v2) board."""

    id: str
    number: int
    url: str
    title: str
    owner: str


@dataclass(frozen=True, slots=True)
class CreatedIssue:
    repository: str
    number: int
    url: str


_OWNER_PROJECT_QUERY = """
query($login: String!, $number: Int!) {
  repositoryOwner(login: $login) {
    id
    ... on ProjectV2Owner {
      projectV2(number: $number) { id }
    }
  }
}
"""

_OWNER_ID_QUERY = """
query($login: String!) {
  repositoryOwner(login: $login) { id }
}
"""

_COPY_PROJECT_MUTATION = """
mutation($projectId: ID!, $ownerId: ID!, $title: String!) {
  copyProjectV2(input: {
    projectId: $projectId
    ownerId: $ownerId
    title: $title
    includeDraftIssues: false
  }) {
    projectV2 { id number url title }
  }
}
"""

_PROJECT_FIELDS_QUERY = """
query($projectId: ID!) {
  node(id: $projectId) {
    ... on ProjectV2 {
      fields(first: 100) {
        nodes {
          __typename
          ... on ProjectV2FieldCommon { id name dataType }
          ... on ProjectV2SingleSelectField { options { id name } }
        }
      }
    }
  }
}
"""

_FIELD_OPTIONS_QUERY = """
query($fieldId: ID!) {
  node(id: $fieldId) {
    ... on ProjectV2SingleSelectField {
      name
      options { name color description }
    }
  }
}
"""

_UPDATE_FIELD_OPTIONS_MUTATION = """
mutation($fieldId: ID!, $name: String!, $options: [ProjectV2SingleSelectFieldOptionInput!]!) {
  updateProjectV2Field(input: {
    fieldId: $fieldId
    name: $name
    singleSelectOptions: $options
  }) {
    projectV2Field {
      ... on ProjectV2SingleSelectField { id }
    }
  }
}
"""

_CREATE_FIELD_MUTATION = """
mutation($projectId: ID!, $name: String!, $options: [ProjectV2SingleSelectFieldOptionInput!]!) {
  createProjectV2Field(input: {
    projectId: $projectId
    dataType: SINGLE_SELECT
    name: $name
    singleSelectOptions: $options
  }) {
    projectV2Field {
      ... on ProjectV2SingleSelectField { id }
    }
  }
}
"""

_RESOURCE_QUERY = """
query($url: URI!) {
  resource(url: $url) {
    __typename
    ... on Issue { id }
    ... on PullRequest { id }
  }
}
"""

_ADD_ITEM_MUTATION = """
mutation($projectId: ID!, $contentId: ID!) {
  addProjectV2ItemById(input: { projectId: $projectId, contentId: $contentId }) {
    item { id }
  }
}
"""

_SET_SINGLE_SELECT_MUTATION = """
mutation($projectId: ID!, $itemId: ID!, $fieldId: ID!, $optionId: String!) {
  updateProjectV2ItemFieldValue(input: {
    projectId: $projectId
    itemId: $itemId
    fieldId: $fieldId
    value: { singleSelectOptionId: $optionId }
  }) {
    projectV2Item { id }
  }
}
"""


def _http_error_message(error: requests.HTTPError) -> str:
    response = error.response
    if response is None:
        return str(error)
    return f"HTTP {response.status_code}: {response.text}"


def _github_error_message(error: GithubException) -> str:
    return f"HTTP {error.status}: {error.data}"


@contextmanager
def _remote_call(operation: str) -> Iterator[None]:
    """Translate transport and API failures into tagged bootstrap errors."""

    try:
        yield
    except RemoteOperationError:
        raise
    except (requests.Timeout, requests.ConnectionError) as e:
        raise RemoteUnavailableError(operation, str(e)) from e
    except requests.HTTPError as e:
        raise RemoteOperationError(operation, _http_error_message(e)) from e
    except requests.RequestException as e:
        raise RemoteOperationError(operation, str(e)) from e
    except GithubException as e:
        raise RemoteOperationError(operation, _github_error_message(e)) from e


def _json_object(resp: requests.Response, operation: str) -> dict[str, Any]:
    try:
        payload = resp.json()
    except ValueError as e:
        raise RemoteOperationError(
            operation, f"HTTP {resp.status_code}: response body is not JSON"
        ) from e
    if not isinstance(payload, dict):
        raise RemoteOperationError(operation, "Unexpected response: expected a JSON object")
    return payload


def _is_already_exists(error: GithubException) -> bool:
    if error.status != 422:
        return False
    data = error.data
    if isinstance(data, dict):
        errors = data.get("errors")
        if isinstance(errors, list):
            for item in errors:
                if isinstance(item, dict) and item.get("code") == "already_exists":
                    return True
    return "already_exists" in str(data)


def _strip_front_matter(text: str) -> str:
    """Drop a leading `---`-delimited YAML front matter block from a markdown template."""

    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != "---":
        return text
    for index in range(1, len(lines)):
        if lines[index].strip() == "---":
            return "".join(lines[index + 1 :]).lstrip("\n")
    return text


class GitHubClient:
    """Typed wrapper over the GitHub operations the bootstrap needs."""

    def __init__(
        self,
        *,
        token: str,
        owner: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        session: requests.Session | None = None,
        github_api: Github | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")
        if not owner.strip():
            raise ValueError("owner is required")

        self._owner = owner.strip()
        self._rest_base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "atlas-demo-bootstrap",
            }
        )
        # One attempt per call: no PyGithub retries or rate-limit sleeps.
        self._github = github_api or Github(
            auth=Auth.Token(token),
            base_url=self._rest_base_url,
            timeout=max(1, math.ceil(timeout)),
            retry=None,
        )

    @property
    def owner(self) -> str:
        return self._owner

    def _repo_url(self, *, repository: str, path: str) -> str:
        repository = repository.strip().strip("/")
        path = path.lstrip("/")
        if not path:
            return f"{self._rest_base_url}/repos/{repository}"
        return f"{self._rest_base_url}/repos/{repository}/{path}"

    def _graphql_url(self) -> str:
        """Derive the GitHub GraphQL endpoint from the configured REST base URL.

        GitHub.com:
            REST: https://api.github.com
            GQL:  https://api.github.com/graphql

        GitHub Enterprise typically exposes REST as:
            https://github.example.com/api/v3
        and GraphQL as:
            https://github.example.com/api/graphql
        """

        parsed = urlparse(self._rest_base_url)
        path = parsed.path.rstrip("/")

        if path.endswith("/api/v3"):
            path = path[: -len("/api/v3")] + "/api/graphql"
        elif path.endswith("/api"):
            path = path[: -len("/api")] + "/api/graphql"
        elif path == "":
            path = "/graphql"
        else:
            path = path + "/graphql"

        return urlunparse(parsed._replace(path=path))

    def _graphql(self, *, operation: str, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        with _remote_call(operation):
            resp = self._session.post(
                self._graphql_url(),
                json={"query": query, "variables": variables},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            payload = _json_object(resp, operation)

        errors = payload.get("errors")
        if errors:
            messages = []
            if isinstance(errors, list):
                for item in errors:
                    if isinstance(item, dict):
                        msg = item.get("message")
                        if isinstance(msg, str):
                            messages.append(msg)
            message = "; ".join(messages) if messages else "Unknown GraphQL error"
            raise RemoteOperationError(operation, f"GitHub GraphQL error: {message}")

        data = payload.get("data")
        if not isinstance(data, dict):
            raise RemoteOperationError(operation, "GraphQL response has no data")
        return data

    def _owner_node(
        self, *, operation: str, login: str, project_number: int | None
    ) -> dict[str, Any]:
        if project_number is None:
            data = self._graphql(
                operation=operation, query=_OWNER_ID_QUERY, variables={"login": login}
            )
        else:
            data = self._graphql(
                operation=operation,
                query=_OWNER_PROJECT_QUERY,
                variables={"login": login, "number": project_number},
            )
        node = data.get("repositoryOwner")
        if not isinstance(node, dict) or not isinstance(node.get("id"), str):
            raise RemoteOperationError(operation, f"Owner not found: {login}")
        return node

    # Repositories

    def create_repository_from_template(
        self, *, name: str, template: str, private: bool
    ) -> CreatedRepository:
        if not name.strip():
            raise ValueError("repository name is required")

        with _remote_call("create_repository_from_template"):
            template_repo = self._github.get_repo(template)
            try:
                target: Any = self._github.get_organization(self._owner)
            except UnknownObjectException:
                target = self._github.get_user()
                if target.login.lower() != self._owner.lower():
                    raise RemoteOperationError(
                        "create_repository_from_template",
                        f"{self._owner} is neither an organization nor the authenticated user",
                    ) from None
            repo = target.create_repo_from_template(name, template_repo, private=private)

        logger.info(
            "Repository generated from template",
            extra={"repo": repo.full_name, "template": template, "private": private},
        )
        return CreatedRepository(full_name=repo.full_name, url=repo.html_url)

    # Projects

    def copy_project(
        self,
        *,
        template_number: int,
        source_owner: str,
        target_owner: str,
        title: str,
    ) -> ProjectRef:
        source = self._owner_node(
            operation="copy_project", login=source_owner, project_number=template_number
        )
        template = source.get("projectV2")
        if not isinstance(template, dict) or not isinstance(template.get("id"), str):
            raise RemoteOperationError(
                "copy_project", f"Project {template_number} not found for {source_owner}"
            )

        if target_owner.lower() == source_owner.lower():
            target_id = source["id"]
        else:
            target_id = self._owner_node(
                operation="copy_project", login=target_owner, project_number=None
            )["id"]

        data = self._graphql(
            operation="copy_project",
            query=_COPY_PROJECT_MUTATION,
            variables={"projectId": template["id"], "ownerId": target_id, "title": title},
        )
        project = (data.get("copyProjectV2") or {}).get("projectV2")
        if not isinstance(project, dict):
            raise RemoteOperationError("copy_project", "Unexpected response: missing projectV2")

        project_id = project.get("id")
        number = project.get("number")
        if not isinstance(project_id, str) or not isinstance(number, int):
            raise RemoteOperationError("copy_project", "Unexpected response: missing id/number")

        url = project.get("url")
        return ProjectRef(
            id=project_id,
            number=number,
            url=url if isinstance(url, str) else "",
            title=str(project.get("title") or title),
            owner=target_owner,
        )

    def list_project_fields(self, *, project_id: str) -> Any:
        """Return the raw field listing for a project.

        The shape is whatever GitHub returns; callers decode it with
        `decode_field_listing`.
        """

        data = self._graphql(
            operation="list_project_fields",
            query=_PROJECT_FIELDS_QUERY,
            variables={"projectId": project_id},
        )
        node = data.get("node")
        if not isinstance(node, dict):
            raise RemoteOperationError("list_project_fields", f"Project not found: {project_id}")
        return node

    def create_field_option(self, *, project_id: str, field_id: str, name: str) -> None:
        """Append a single-select option to a field.

        GitHub only accepts the full option list, so the current options are
        re-sent by name, color and description alongside the new one. Their ids
        are not preserved: GitHub recreates every option, which gives existing
        options new ids and clears the values items had for this field. Callers
        must re-list the field to obtain authoritative ids.
        """

        data = self._graphql(
            operation="create_field_option",
            query=_FIELD_OPTIONS_QUERY,
            variables={"fieldId": field_id},
        )
        node = data.get("node")
        if not isinstance(node, dict) or not isinstance(node.get("name"), str):
            raise RemoteOperationError("create_field_option", f"Field not found: {field_id}")

        options: list[dict[str, str]] = []
        for option in node.get("options") or []:
            if not isinstance(option, dict):
                continue
            options.append(
                {
                    "name": str(option.get("name") or ""),
                    "color": str(option.get("color") or NEW_OPTION_COLOR),
                    "description": str(option.get("description") or ""),
                }
            )
        options.append({"name": name, "color": NEW_OPTION_COLOR, "description": ""})

        self._graphql(
            operation="create_field_option",
            query=_UPDATE_FIELD_OPTIONS_MUTATION,
            variables={"fieldId": field_id, "name": node["name"], "options": options},
        )
        logger.debug(
            "Field option created",
            extra={"project_id": project_id, "field_id": field_id, "option": name},
        )

    def create_field(self, *, project_id: str, name: str, options: list[str]) -> str:
        data = self._graphql(
            operation="create_field",
            query=_CREATE_FIELD_MUTATION,
            variables={
                "projectId": project_id,
                "name": name,
                "options": [
                    {"name": o, "color": NEW_OPTION_COLOR, "description": ""} for o in options
                ],
            },
        )
        field = (data.get("createProjectV2Field") or {}).get("projectV2Field")
        field_id = field.get("id") if isinstance(field, dict) else None
        if not isinstance(field_id, str):
            raise RemoteOperationError("create_field", "Unexpected response: missing field id")
        logger.debug(
            "Field created",
            extra={"project_id": project_id, "field_id": field_id, "options": options},
        )
        return field_id

    def add_project_item(self, *, project_id: str, content_url: str) -> str:
        data = self._graphql(
            operation="add_project_item",
            query=_RESOURCE_QUERY,
            variables={"url": content_url},
        )
        resource = data.get("resource")
        content_id = resource.get("id") if isinstance(resource, dict) else None
        if not isinstance(content_id, str):
            raise RemoteOperationError(
                "add_project_item", f"No issue or pull request at {content_url}"
            )

        data = self._graphql(
            operation="add_project_item",
            query=_ADD_ITEM_MUTATION,
            variables={"projectId": project_id, "contentId": content_id},
        )
        item = (data.get("addProjectV2ItemById") or {}).get("item")
        item_id = item.get("id") if isinstance(item, dict) else None
        if not isinstance(item_id, str):
            raise RemoteOperationError("add_project_item", "Unexpected response: missing item id")
        return item_id

    def set_item_single_select(
        self, *, project_id: str, item_id: str, field_id: str, option_id: str
    ) -> None:
        self._graphql(
            operation="set_item_single_select",
            query=_SET_SINGLE_SELECT_MUTATION,
            variables={
                "projectId": project_id,
                "itemId": item_id,
                "fieldId": field_id,
                "optionId": option_id,
            },
        )

    # Labels and issues

    def create_label(self, *, repository: str, name: str, color: str, description: str) -> bool:
        """Create a label. Returns False when it already exists."""

        with _remote_call("create_label"):
            repo = self._github.get_repo(repository)
            try:
                repo.create_label(name=name, color=color.lstrip("#"), description=description)
            except GithubException as e:
                if _is_already_exists(e):
                    logger.debug("Label already exists", extra={"repo": repository, "label": name})
                    return False
                raise
        return True

    def get_issue_template_body(self, *, repository: str, template: str) -> str:
        """Return the body of `.github/ISSUE_TEMPLATE/<template>.md` without its front matter."""

        url = self._repo_url(
            repository=repository, path=f"contents/.github/ISSUE_TEMPLATE/{template}.md"
        )
        with _remote_call("create_issue"):
            resp = self._session.get(
                url,
                headers={"Accept": "application/vnd.github.raw+json"},
                timeout=self._timeout,
            )
            if resp.status_code == 404:
                raise IssueTemplateNotFound("create_issue", f"Issue template not found: {template}")
            resp.raise_for_status()
        return _strip_front_matter(resp.text)

    def create_issue(
        self,
        *,
        repository: str,
        title: str,
        body: str | None,
        labels: list[str] | None,
        template: str | None = None,
    ) -> CreatedIssue:
        """Create an issue. A template, when given, supplies the body."""

        if not title.strip():
            raise ValueError("Issue title is required")

        if template:
            body = self.get_issue_template_body(repository=repository, template=template)

        with _remote_call("create_issue"):
            repo = self._github.get_repo(repository)
            issue = repo.create_issue(title=title, body=body or "", labels=labels or [])

        return CreatedIssue(repository=repository, number=issue.number, url=issue.html_url)

    def get_issue_body(self, *, repository: str, number: int) -> str:
        if number <= 0:
            raise ValueError("issue number must be a positive integer")
        with _remote_call("get_issue_body"):
            resp = self._session.get(
                self._repo_url(repository=repository, path=f"issues/{number}"),
                timeout=self._timeout,
            )
            resp.raise_for_status()
            data = _json_object(resp, "get_issue_body")
        body = data.get("body")
        return body if isinstance(body, str) else ""

    def update_issue_body(self, *, repository: str, number: int, body: str) -> None:
        if number <= 0:
            raise ValueError("issue number must be a positive integer")
        with _remote_call("update_issue_body"):
            resp = self._session.patch(
                self._repo_url(repository=repository, path=f"issues/{number}"),
                json={"body": body},
                timeout=self._timeout,
            )
            resp.raise_for_status()

    def close(self) -> None:
        self._session.close()
        self._github.close()
