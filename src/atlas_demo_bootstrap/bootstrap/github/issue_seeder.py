"""Starter issue creation.

The issue is created from the repository's issue template when possible and
from an inline body otherwise. Either way the Atlas control block is then
appended to the body, once: the append is skipped when the marker is already
present, so repeated seeding against the same issue leaves the body unchanged.

The append is a read-modify-write of the whole body. A concurrent edit between
the read and the write is lost; acceptable for a single-operator bootstrap.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from atlas_demo_bootstrap.bootstrap.errors import IssueSeedingError, RemoteOperationError
from atlas_demo_bootstrap.bootstrap.github.client import CreatedIssue, GitHubClient

logger = logging.getLogger(__name__)

CONTROL_BLOCK_MARKER = "ATLAS:REFINE"

ATLAS_CONTROL_BLOCK = """<details>
<summary>For Atlas (machine-readable)</summary>

```atlas
ATLAS:REFINE
OUTPUTS: codex_prompt, acceptance_criteria, environment

STATE:
  COMPLETE:
    MOVE: Ready
    ADD: [ready, atlas-prepared]
    REMOVE: [atlas, feedback-requested]
  INCOMPLETE:
    MOVE: Backlog
    ADD: [feedback-requested]

REVIEW:
  PASS:
    MOVE: Done
  FAIL:
    MOVE: Ready
    ADD: [needs-fix]
```
</details>"""

STARTER_ISSUE_TITLE = "Demo – add About link to header"
STARTER_ISSUE_LABELS: tuple[str, ...] = ("atlas", "p2", "tshirt-s")
STARTER_ISSUE_TEMPLATE = "feature"

STARTER_ISSUE_BODY = """Why
- Validate the loop end-to-end with a harmless change.

What
- Add "About" link in header pointing to /about.

Out of scope
- Styling beyond current nav pattern.
- About page content.

Draft ACs
- AC-1: Header shows "About" on desktop.
- AC-2: Clicking "About" opens /about.
- AC-3: No console errors on load.

Meta
- Priority: p2
- Size: tshirt-s"""


@dataclass(frozen=True, slots=True)
class IssueSpec:
    """What to create. `template` of None skips the template attempt."""

    title: str = STARTER_ISSUE_TITLE
    labels: tuple[str, ...] = STARTER_ISSUE_LABELS
    fallback_body: str = STARTER_ISSUE_BODY
    template: str | None = STARTER_ISSUE_TEMPLATE
    control_block: str = ATLAS_CONTROL_BLOCK
    marker: str = CONTROL_BLOCK_MARKER


@dataclass(frozen=True, slots=True)
class SeededIssue:
    number: int
    url: str
    from_template: bool
    block_appended: bool


def append_control_block(body: str, block: str, marker: str) -> str:
    """Return `body` with `block` appended, or `body` unchanged if `marker` is present."""

    if marker in body:
        return body
    if not body.strip():
        return block
    return body.rstrip("\n") + "\n\n" + block


class IssueSeeder:
    def __init__(self, *, github: GitHubClient) -> None:
        self._github = github

    def _create(self, repository: str, spec: IssueSpec) -> tuple[CreatedIssue, bool]:
        labels = list(spec.labels)
        if spec.template:
            try:
                issue = self._github.create_issue(
                    repository=repository,
                    title=spec.title,
                    body=None,
                    labels=labels,
                    template=spec.template,
                )
                return issue, True
            except RemoteOperationError as e:
                logger.info(
                    "Issue template unavailable; falling back to inline body",
                    extra={"repo": repository, "template": spec.template, "error": str(e)},
                )

        try:
            issue = self._github.create_issue(
                repository=repository,
                title=spec.title,
                body=spec.fallback_body,
                labels=labels,
            )
        except RemoteOperationError as e:
            raise IssueSeedingError(f"Could not create starter issue in {repository}: {e}") from e
        return issue, False

    def ensure_control_block(
        self, *, repository: str, number: int, block: str, marker: str
    ) -> bool:
        """Append the control block unless the marker is already there. Returns True if written."""

        current = self._github.get_issue_body(repository=repository, number=number)
        updated = append_control_block(current, block, marker)
        if updated == current:
            logger.debug(
                "Control block already present", extra={"repo": repository, "issue_number": number}
            )
            return False
        self._github.update_issue_body(repository=repository, number=number, body=updated)
        return True

    def seed(self, *, repository: str, spec: IssueSpec | None = None) -> SeededIssue:
        spec = spec or IssueSpec()
        issue, from_template = self._create(repository, spec)
        logger.info(
            "Starter issue created",
            extra={
                "repo": repository,
                "issue_number": issue.number,
                "from_template": from_template,
            },
        )
        appended = self.ensure_control_block(
            repository=repository,
            number=issue.number,
            block=spec.control_block,
            marker=spec.marker,
        )
        return SeededIssue(
            number=issue.number,
            url=issue.url,
            from_template=from_template,
            block_appended=appended,
        )
