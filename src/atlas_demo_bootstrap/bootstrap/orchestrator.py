"""Bootstrap run sequencing.

The run is a strict linear state machine:

    init -> repo_created -> project_ready -> field_reconciled -> labels_ready
         -> issue_created -> linked -> done

Each step reads the identifiers earlier steps wrote into `BootstrapContext`
and writes its own. A fatal error stops the run at the failing step; nothing
created so far is rolled back, so the repository, project and issue stay in
place for inspection.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from atlas_demo_bootstrap.bootstrap.errors import BootstrapError, RemoteOperationError
from atlas_demo_bootstrap.bootstrap.github.client import GitHubClient, ProjectRef
from atlas_demo_bootstrap.bootstrap.github.issue_seeder import IssueSeeder, IssueSpec
from atlas_demo_bootstrap.bootstrap.github.project_linker import ProjectLinker
from atlas_demo_bootstrap.bootstrap.github.stage_field import (
    STAGE_DEFAULT_OPTION,
    FieldReconciler,
)
from atlas_demo_bootstrap.bootstrap.project_ref import parse_project_number
from atlas_demo_bootstrap.labels import DEMO_LABEL_SPECS, LabelSpec

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BootstrapStage(str, Enum):
    INIT = "init"
    REPO_CREATED = "repo_created"
    PROJECT_READY = "project_ready"
    FIELD_RECONCILED = "field_reconciled"
    LABELS_READY = "labels_ready"
    ISSUE_CREATED = "issue_created"
    LINKED = "linked"
    DONE = "done"


ALLOWED_TRANSITIONS: dict[BootstrapStage, set[BootstrapStage]] = {
    BootstrapStage.INIT: {BootstrapStage.REPO_CREATED},
    BootstrapStage.REPO_CREATED: {BootstrapStage.PROJECT_READY},
    BootstrapStage.PROJECT_READY: {BootstrapStage.FIELD_RECONCILED},
    BootstrapStage.FIELD_RECONCILED: {BootstrapStage.LABELS_READY},
    BootstrapStage.LABELS_READY: {BootstrapStage.ISSUE_CREATED},
    BootstrapStage.ISSUE_CREATED: {BootstrapStage.LINKED},
    BootstrapStage.LINKED: {BootstrapStage.DONE},
    BootstrapStage.DONE: set(),
}

# Human-facing name of the step that moves the run into each stage.
STEP_NAMES: dict[BootstrapStage, str] = {
    BootstrapStage.REPO_CREATED: "create repository",
    BootstrapStage.PROJECT_READY: "copy project",
    BootstrapStage.FIELD_RECONCILED: "reconcile Stage field",
    BootstrapStage.LABELS_READY: "create labels",
    BootstrapStage.ISSUE_CREATED: "create starter issue",
    BootstrapStage.LINKED: "link issue to project",
}


class IllegalTransitionError(ValueError):
    pass


class StageFailed(BootstrapError):
    """A fatal error stopped the run. `stage` is the last stage reached."""

    def __init__(self, *, stage: BootstrapStage, step: str, cause: Exception) -> None:
        super().__init__(f"[{step}] {cause}")
        self.stage = stage
        self.step = step
        self.cause = cause


@dataclass(slots=True)
class BootstrapContext:
    """Run-scoped values handed from one step to the next. Never persisted."""

    repo_name: str
    owner: str
    template_number: int
    stage: BootstrapStage = BootstrapStage.INIT

    repository_full_name: str | None = None
    repository_url: str | None = None
    project: ProjectRef | None = None
    stage_field_id: str | None = None
    stage_default_option_id: str | None = None
    issue_number: int | None = None
    issue_url: str | None = None
    item_id: str | None = None
    stage_assignment_error: str | None = None
    label_failures: tuple[str, ...] = ()

    def advance(self, to: BootstrapStage) -> None:
        allowed = ALLOWED_TRANSITIONS.get(self.stage, set())
        if to not in allowed:
            raise IllegalTransitionError(f"Illegal transition: {self.stage.value} -> {to.value}")
        self.stage = to

    def summary_lines(self) -> list[str]:
        project_url = self.project.url if self.project is not None else ""
        lines = [
            f"Repo: {self.repository_url or ''}",
            f"Project: {project_url}",
            f"Issue: {self.issue_url or ''}",
        ]
        if self.stage_assignment_error:
            lines.append(
                f"Warning: Stage was not set on the project item ({self.stage_assignment_error})"
            )
        return lines


def _print_progress(message: str) -> None:
    print(f"==> {message}", flush=True)


def _required(value: T | None, name: str) -> T:
    if value is None:
        raise IllegalTransitionError(f"{name} has not been produced yet")
    return value


class BootstrapOrchestrator:
    """Sequence repository, project, field, labels, issue and link for one demo repo."""

    def __init__(
        self,
        *,
        github: GitHubClient,
        owner: str,
        template_repo: str,
        kanban_template: str,
        private: bool = False,
        labels: tuple[LabelSpec, ...] = DEMO_LABEL_SPECS,
        issue_spec: IssueSpec | None = None,
        strict_stage_assignment: bool = False,
        progress: Callable[[str], None] = _print_progress,
    ) -> None:
        # Parsed up front so a bad reference fails before anything is created.
        self._template_number = parse_project_number(kanban_template)
        self._github = github
        self._owner = owner
        self._template_repo = template_repo
        self._private = private
        self._labels = labels
        self._issue_spec = issue_spec or IssueSpec()
        self._progress = progress

        self._reconciler = FieldReconciler(github=github)
        self._seeder = IssueSeeder(github=github)
        self._linker = ProjectLinker(github=github, strict=strict_stage_assignment)

    @property
    def template_number(self) -> int:
        return self._template_number

    def run(self, repo_name: str) -> BootstrapContext:
        if not repo_name.strip():
            raise ValueError("repository name is required")

        ctx = BootstrapContext(
            repo_name=repo_name, owner=self._owner, template_number=self._template_number
        )
        self._step(ctx, BootstrapStage.REPO_CREATED, self._create_repository)
        self._step(ctx, BootstrapStage.PROJECT_READY, self._copy_project)
        self._step(ctx, BootstrapStage.FIELD_RECONCILED, self._reconcile_stage_field)
        self._step(ctx, BootstrapStage.LABELS_READY, self._create_labels)
        self._step(ctx, BootstrapStage.ISSUE_CREATED, self._seed_issue)
        self._step(ctx, BootstrapStage.LINKED, self._link_issue)
        ctx.advance(BootstrapStage.DONE)
        return ctx

    def _step(
        self,
        ctx: BootstrapContext,
        to: BootstrapStage,
        action: Callable[[BootstrapContext], None],
    ) -> None:
        step = STEP_NAMES[to]
        try:
            action(ctx)
        except BootstrapError as e:
            logger.error(
                "Bootstrap step failed",
                extra={"step": step, "stage": ctx.stage.value, "error": str(e)},
            )
            raise StageFailed(stage=ctx.stage, step=step, cause=e) from e
        ctx.advance(to)
        logger.debug("Bootstrap stage reached", extra={"stage": to.value})

    def _create_repository(self, ctx: BootstrapContext) -> None:
        full_name = f"{self._owner}/{ctx.repo_name}"
        self._progress(f"Creating repo from template: {self._template_repo} → {full_name}")
        repo = self._github.create_repository_from_template(
            name=ctx.repo_name, template=self._template_repo, private=self._private
        )
        ctx.repository_full_name = repo.full_name
        ctx.repository_url = repo.url
        self._progress(f"Repo created: {repo.url}")

    def _copy_project(self, ctx: BootstrapContext) -> None:
        title = f"Demo Project – {ctx.repo_name}"
        self._progress(f"Copying project template {ctx.template_number} → {title}")
        ctx.project = self._github.copy_project(
            template_number=ctx.template_number,
            source_owner=self._owner,
            target_owner=self._owner,
            title=title,
        )
        self._progress(f"Project copied: {ctx.project.url} (number {ctx.project.number})")
        logger.debug("Project copied", extra={"project_id": ctx.project.id})

    def _reconcile_stage_field(self, ctx: BootstrapContext) -> None:
        project = _required(ctx.project, "project")
        self._progress("Ensuring Stage field exists with required options")
        reconciled = self._reconciler.reconcile(project)
        ctx.stage_field_id = reconciled.field_id
        ctx.stage_default_option_id = reconciled.default_option_id
        logger.debug(
            "Stage field ready",
            extra={
                "field_id": reconciled.field_id,
                "default_option_id": reconciled.default_option_id,
            },
        )

    def _create_labels(self, ctx: BootstrapContext) -> None:
        repository = _required(ctx.repository_full_name, "repository")
        self._progress("Creating labels")
        failures: list[str] = []
        for spec in self._labels:
            try:
                self._github.create_label(
                    repository=repository,
                    name=spec.name,
                    color=spec.color,
                    description=spec.description,
                )
            except RemoteOperationError as e:
                logger.warning(
                    "Could not create label", extra={"label": spec.name, "error": str(e)}
                )
                failures.append(spec.name)
        ctx.label_failures = tuple(failures)

    def _seed_issue(self, ctx: BootstrapContext) -> None:
        repository = _required(ctx.repository_full_name, "repository")
        self._progress("Creating starter demo issue")
        seeded = self._seeder.seed(repository=repository, spec=self._issue_spec)
        ctx.issue_number = seeded.number
        ctx.issue_url = seeded.url
        source = "from template" if seeded.from_template else "inline"
        self._progress(f"Issue created ({source}): {seeded.url}")

    def _link_issue(self, ctx: BootstrapContext) -> None:
        project = _required(ctx.project, "project")
        issue_url = _required(ctx.issue_url, "issue url")
        field_id = _required(ctx.stage_field_id, "Stage field id")
        option_id = _required(ctx.stage_default_option_id, "Stage default option id")

        self._progress("Linking issue to project")
        result = self._linker.link(
            project=project, content_url=issue_url, field_id=field_id, option_id=option_id
        )
        ctx.item_id = result.item_id
        ctx.stage_assignment_error = result.stage_error
        if result.stage_set:
            self._progress(f"Stage set to {STAGE_DEFAULT_OPTION}")
