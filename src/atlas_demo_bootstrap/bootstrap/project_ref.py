"""Template project reference parsing.

A template project can be configured either as its owner-scoped number
(`18`) or as the project URL (`https://github.com/orgs/acme/projects/18`).
"""

from __future__ import annotations

import re

from atlas_demo_bootstrap.bootstrap.errors import ProjectReferenceError

_PROJECT_URL_RE = re.compile(r"/projects/([0-9]+)\Z")
_BARE_NUMBER_RE = re.compile(r"[0-9]+")


def parse_project_number(reference: str) -> int:
    """Return the project number from a bare number or a `.../projects/<n>` URL."""

    match = _PROJECT_URL_RE.search(reference)
    if match is not None:
        return int(match.group(1))
    if _BARE_NUMBER_RE.fullmatch(reference):
        return int(reference)
    raise ProjectReferenceError(
        f"KANBAN_TEMPLATE must be a number or .../projects/<number> (got: {reference})"
    )
