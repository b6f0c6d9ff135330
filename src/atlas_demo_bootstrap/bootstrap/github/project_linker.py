"""Adding the starter issue to the project board and setting its Stage."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from atlas_demo_bootstrap.bootstrap.errors import RemoteOperationError, StageAssignmentError
from atlas_demo_bootstrap.bootstrap.github.client import GitHubClient, ProjectRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LinkResult:
    item_id: str
    stage_set: bool
    stage_error: str | None = None


class ProjectLinker:
    """Add content to a project, then set a single-select field on the new item.

    Adding the item is required. Setting the field is best-effort unless
    `strict` is set: a failure is logged and reported in the result.
    """

    def __init__(self, *, github: GitHubClient, strict: bool = False) -> None:
        self._github = github
        self._strict = strict

    def link(
        self,
        *,
        project: ProjectRef,
        content_url: str,
        field_id: str,
        option_id: str,
    ) -> LinkResult:
        item_id = self._github.add_project_item(project_id=project.id, content_url=content_url)
        logger.debug("Project item added", extra={"item_id": item_id, "url": content_url})

        try:
            self._github.set_item_single_select(
                project_id=project.id,
                item_id=item_id,
                field_id=field_id,
                option_id=option_id,
            )
        except RemoteOperationError as e:
            if self._strict:
                raise StageAssignmentError(f"Could not set Stage on item {item_id}: {e}") from e
            logger.warning(
                "Could not set Stage on project item",
                extra={"item_id": item_id, "field_id": field_id, "error": str(e)},
            )
            return LinkResult(item_id=item_id, stage_set=False, stage_error=str(e))

        return LinkResult(item_id=item_id, stage_set=True)
