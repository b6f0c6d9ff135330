"""Reconciliation of the project's Stage field.

A copied template project usually carries the Stage field already, but the
copy may drop or rename options. `FieldReconciler` brings the field to the
required shape without deleting, renaming or reordering anything that exists:

1. list fields and pick the first single-select field named `Stage`
   (case-insensitive);
2. create the missing options (exact-name comparison), or the whole field if
   it is absent;
3. re-list the fields and read authoritative ids from that fresh listing;
4. resolve the default option id, failing hard if it is missing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from atlas_demo_bootstrap.bootstrap.errors import StageFieldError
from atlas_demo_bootstrap.bootstrap.github.client import GitHubClient, ProjectRef
from atlas_demo_bootstrap.bootstrap.github.fields import (
    ProjectField,
    decode_field_listing,
    find_single_select_field,
)

logger = logging.getLogger(__name__)

STAGE_FIELD_NAME = "Stage"
STAGE_OPTIONS: tuple[str, ...] = ("Backlog", "Refinement", "Ready", "In Progress", "Review", "Done")
STAGE_DEFAULT_OPTION = "Backlog"


@dataclass(frozen=True, slots=True)
class ReconciledField:
    """Authoritative identifiers of the reconciled field."""

    field_id: str
    option_ids: dict[str, str]
    default_option_id: str
    field_created: bool = False
    options_created: tuple[str, ...] = ()


class FieldReconciler:
    """Ensure a single-select field with a required option set exists on a project."""

    def __init__(
        self,
        *,
        github: GitHubClient,
        field_name: str = STAGE_FIELD_NAME,
        required_options: tuple[str, ...] = STAGE_OPTIONS,
        default_option: str = STAGE_DEFAULT_OPTION,
    ) -> None:
        if default_option not in required_options:
            raise ValueError("default_option must be one of required_options")
        self._github = github
        self._field_name = field_name
        self._required_options = required_options
        self._default_option = default_option

    def _find_field(self, project: ProjectRef) -> ProjectField | None:
        raw = self._github.list_project_fields(project_id=project.id)
        return find_single_select_field(decode_field_listing(raw), self._field_name)

    def reconcile(self, project: ProjectRef) -> ReconciledField:
        existing = self._find_field(project)

        field_created = False
        created: list[str] = []
        if existing is None:
            logger.info(
                "Field missing; creating it",
                extra={"project_number": project.number, "field": self._field_name},
            )
            self._github.create_field(
                project_id=project.id,
                name=self._field_name,
                options=list(self._required_options),
            )
            field_created = True
        else:
            present = set(existing.option_names)
            for name in self._required_options:
                if name in present:
                    continue
                self._github.create_field_option(
                    project_id=project.id, field_id=existing.id, name=name
                )
                created.append(name)
            if created:
                logger.info(
                    "Created missing field options",
                    extra={
                        "project_number": project.number,
                        "field_id": existing.id,
                        "options": created,
                    },
                )

        # Ids returned by create calls are not trusted; read them back.
        current = self._find_field(project)
        if current is None:
            raise StageFieldError(
                f"Project {project.number} has no single-select '{self._field_name}' field "
                "after reconciliation."
            )

        default_id = current.option_id(self._default_option)
        if default_id is None:
            raise StageFieldError(
                f"Template project must have {self._field_name} option '{self._default_option}'."
            )

        option_ids: dict[str, str] = {}
        for option in current.options:
            if option.name in self._required_options:
                option_ids.setdefault(option.name, option.id)
        logger.debug(
            "Field reconciled",
            extra={
                "field_id": current.id,
                "default_option": self._default_option,
                "default_option_id": default_id,
            },
        )
        return ReconciledField(
            field_id=current.id,
            option_ids=option_ids,
            default_option_id=default_id,
            field_created=field_created,
            options_created=tuple(created),
        )
