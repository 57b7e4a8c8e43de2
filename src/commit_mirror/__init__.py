"""Commit Mirror: replay unpushed git commits into a derived log repository.

This package provides the command-line interface, the incremental sync/dedup
pipeline, and the debounced watch loop that re-runs it whenever the source
repository changes.
"""

from . import (
    cli,
    committer,
    config,
    constants,
    daemon,
    errors,
    extractor,
    git_wrapper,
    log_writer,
    models,
    pipeline,
    resolver,
)

__all__ = [
    "cli",
    "committer",
    "config",
    "constants",
    "daemon",
    "errors",
    "extractor",
    "git_wrapper",
    "log_writer",
    "models",
    "pipeline",
    "resolver",
]
