import os
from pathlib import Path

"""Global constants and path definitions for Commit Mirror.

This module defines the filesystem layout (adhering to XDG standards where applicable),
application identifiers, and the on-disk record format shared by the log writer and
its tests.
"""

# --- Identity ---
APP_NAME = "commit-mirror"
"""str: The human-readable application name."""

LOCAL_CONFIG_NAME = "commit-mirror.toml"
"""str: Per-repository configuration file looked up in the source repository root."""

PYPROJECT_SECTION = "tool.commit-mirror"
"""str: The pyproject.toml table used when no local config file exists."""

# --- Paths ---
_XDG_STATE = os.environ.get("XDG_STATE_HOME")
_BASE_STATE = Path(_XDG_STATE) if _XDG_STATE else Path.home() / ".local/state"

STATE_DIR = _BASE_STATE / "commit-mirror"
"""Path: The directory for runtime state data (watch-mode logs)."""

LOG_FILE = STATE_DIR / "mirror.log"
"""Path: The file path for the watch loop's rotating log."""

# --- Configuration Paths ---
_XDG_CONFIG = os.environ.get("XDG_CONFIG_HOME")
CONFIG_DIR: Path = (
    Path(_XDG_CONFIG) if _XDG_CONFIG else Path.home() / ".config"
) / "commit-mirror"
"""Path: The directory for user configuration files."""

CONFIG_FILE: Path = CONFIG_DIR / "config.toml"
"""Path: The main configuration file path."""

# --- Git / Logic Constants ---
DEFAULT_BRANCH = "main"
"""str: The local branch whose unpushed commits are mirrored."""

DEFAULT_REMOTE = "origin"
"""str: The remote whose tracking branch marks the last synchronized point."""

DEFAULT_DEBOUNCE_SECONDS = 1.0
"""float: Quiet window before a burst of change notifications triggers a sync."""

HASH_PREFIX = "Commit Hash: "
"""str: Leading label of the line that identifies a record block."""

RECORD_TEMPLATE = (
    HASH_PREFIX + "{hash}\n"
    "Commit Message: {message}\n"
    "Author: {author}\n"
    "Commit Date: {date}\n"
    "---\n"
)
"""str: The text block appended to a log file for each mirrored commit."""

ORDER_CHOICES = ("chronological", "backend")
"""tuple[str, ...]: Supported processing orders for resolved commits."""

KEY_CHOICES = ("basename", "path")
"""tuple[str, ...]: Supported policies for deriving log-file names from paths."""
