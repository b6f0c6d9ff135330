"""Configuration for the demo bootstrap.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

The GitHub token is read from `BOOTSTRAP_GITHUB_TOKEN` first, then the usual
`GH_TOKEN` / `GITHUB_TOKEN` variables shared with the GitHub CLI.
"""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_OWNER = "raid-consulting"
DEFAULT_KANBAN_TEMPLATE = "https://github.com/orgs/raid-consulting/projects/18"


class BootstrapSettings(BaseSettings):
    """Settings for one bootstrap run.

    Environment variables:
    - BOOTSTRAP_GITHUB_TOKEN / GH_TOKEN / GITHUB_TOKEN
    - GITHUB_BASE_URL          (optional)
    - OWNER                    (optional)
    - TEMPLATE_REPO            (optional, defaults to `<OWNER>/atlas-demo-template`)
    - KANBAN_TEMPLATE          (optional, project number or `.../projects/<number>` URL)
    - REPO_VISIBILITY          (optional)
    - ISSUE_TEMPLATE           (optional, empty disables the template attempt)
    - DEBUG                    (optional)
    - LOG_LEVEL                (optional)
    - REQUEST_TIMEOUT_SECONDS  (optional)
    - STRICT_STAGE_ASSIGNMENT  (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `BootstrapSettings(_env_file=path_to_env)`.
    """

    github_token: str = Field(
        default="",
        validation_alias=AliasChoices("BOOTSTRAP_GITHUB_TOKEN", "GH_TOKEN", "GITHUB_TOKEN"),
        description="GitHub token used for API authentication",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )

    owner: str = Field(
        default=DEFAULT_OWNER,
        validation_alias="OWNER",
        description="Account (org or user) that owns the new repository and project",
    )
    template_repo: str = Field(
        default="",
        validation_alias="TEMPLATE_REPO",
        description="Template repository in the form 'owner/repo'",
    )
    kanban_template: str = Field(
        default=DEFAULT_KANBAN_TEMPLATE,
        validation_alias="KANBAN_TEMPLATE",
        description="Template project: a bare number or a URL ending in /projects/<number>",
    )
    repo_visibility: Literal["public", "private"] = Field(
        default="public",
        validation_alias="REPO_VISIBILITY",
    )
    issue_template: str = Field(
        default="feature",
        validation_alias="ISSUE_TEMPLATE",
        description="Issue template name under .github/ISSUE_TEMPLATE (without extension)",
    )

    debug: bool = Field(default=False, validation_alias="DEBUG")
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="REQUEST_TIMEOUT_SECONDS",
        description="Timeout applied to every GitHub API call",
    )
    strict_stage_assignment: bool = Field(
        default=False,
        validation_alias="STRICT_STAGE_ASSIGNMENT",
        description="Treat a failure to set the issue's Stage on the board as fatal",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _require_github_auth(self) -> BootstrapSettings:
        if not self.github_token.strip():
            raise ValueError("BOOTSTRAP_GITHUB_TOKEN (or GH_TOKEN / GITHUB_TOKEN) is required")
        return self

    @model_validator(mode="after")
    def _default_template_repo(self) -> BootstrapSettings:
        if not self.owner.strip():
            raise ValueError("OWNER must be non-empty")
        if not self.template_repo.strip():
            self.template_repo = f"{self.owner}/atlas-demo-template"
        return self

    @property
    def effective_log_level(self) -> str:
        """DEBUG wins over LOG_LEVEL."""

        return "DEBUG" if self.debug else self.log_level

    @property
    def private_repository(self) -> bool:
        return self.repo_visibility == "private"
