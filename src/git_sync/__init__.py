"""git-sync: keep a local directory in sync with a remote git branch.

This package provides the command-line interface, the polling loop, and the
sync operation that clones, pulls and resets a destination checkout, plus
the optional permission and callback steps that follow each sync.
"""

from . import (
    cli,
    config,
    constants,
    daemon,
    errors,
    git_wrapper,
    ops,
)

__all__ = [
    "cli",
    "config",
    "constants",
    "daemon",
    "errors",
    "git_wrapper",
    "ops",
]
