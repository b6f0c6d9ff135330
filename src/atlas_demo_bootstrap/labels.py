"""Shared GitHub label conventions for demo repositories.

Labels are stable, human-readable names so that repos can be bootstrapped
idempotently (create if missing) and the Atlas control block can refer to them.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LabelSpec:
    name: str
    color: str
    description: str


DEMO_LABEL_COLOR = "0366d6"

DEMO_LABEL_NAMES: tuple[str, ...] = (
    "atlas",
    "feedback-requested",
    "ready",
    "wip",
    "needs-fix",
    "ci-failed",
    "passed-AC",
    "bug",
    "p0",
    "p1",
    "p2",
    "tshirt-s",
    "tshirt-m",
    "tshirt-l",
)

DEMO_LABEL_SPECS: tuple[LabelSpec, ...] = tuple(
    LabelSpec(name=name, color=DEMO_LABEL_COLOR, description="") for name in DEMO_LABEL_NAMES
)
