"""Atlas demo bootstrap.

Provisions a demo environment on GitHub in one pass:
- repository generated from a template repository
- project board copied from a template project, with a reconciled Stage field
- standard labels
- a starter issue carrying the Atlas control block, linked to the board
"""

__version__ = "0.1.0"

from atlas_demo_bootstrap.bootstrap.config import BootstrapSettings

__all__ = ["__version__", "BootstrapSettings"]
