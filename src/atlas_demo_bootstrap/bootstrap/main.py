"""CLI entrypoint for the demo bootstrap.

Usage: atlas-demo-bootstrap <new-repo-name>

Exit codes: 0 success, 1 a bootstrap step failed, 2 usage or configuration error.
"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from atlas_demo_bootstrap import __version__
from atlas_demo_bootstrap.bootstrap.config import BootstrapSettings
from atlas_demo_bootstrap.bootstrap.errors import ProjectReferenceError
from atlas_demo_bootstrap.bootstrap.github.client import GitHubClient
from atlas_demo_bootstrap.bootstrap.github.issue_seeder import IssueSpec
from atlas_demo_bootstrap.bootstrap.logging import configure_logging
from atlas_demo_bootstrap.bootstrap.orchestrator import BootstrapOrchestrator, StageFailed

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="atlas-demo-bootstrap",
        description=(
            "Create a demo repository from a template, copy the template project board, "
            "ensure its Stage field, seed labels and a starter issue, and link them."
        ),
    )
    parser.add_argument(
        "--version", action="version", version=f"atlas-demo-bootstrap {__version__}"
    )
    parser.add_argument("repo_name", help="Name of the repository to create under OWNER")
    return parser


def _error(message: str) -> None:
    print(f"error: {message}", file=sys.stderr, flush=True)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    repo_name = args.repo_name.strip()
    if not repo_name:
        parser.error("repo_name must be non-empty")

    try:
        settings = BootstrapSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your environment or .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.effective_log_level)

    github = GitHubClient(
        token=settings.github_token,
        owner=settings.owner,
        base_url=settings.github_base_url,
        timeout=settings.request_timeout_seconds,
    )
    try:
        orchestrator = BootstrapOrchestrator(
            github=github,
            owner=settings.owner,
            template_repo=settings.template_repo,
            kanban_template=settings.kanban_template,
            private=settings.private_repository,
            issue_spec=IssueSpec(template=settings.issue_template or None),
            strict_stage_assignment=settings.strict_stage_assignment,
        )
        ctx = orchestrator.run(repo_name)
    except ProjectReferenceError as e:
        _error(str(e))
        return 1
    except StageFailed as e:
        _error(str(e))
        return 1
    finally:
        github.close()

    logger.info(
        "Bootstrap complete",
        extra={
            "repo": ctx.repository_full_name,
            "issue_url": ctx.issue_url,
            "item_id": ctx.item_id,
        },
    )
    print()
    for line in ctx.summary_lines():
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
