import logging
import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .constants import (
    APP_NAME,
    CONFIG_FILE,
    DEFAULT_BRANCH,
    DEFAULT_DEBOUNCE_SECONDS,
    DEFAULT_REMOTE,
    KEY_CHOICES,
    LOCAL_CONFIG_NAME,
    ORDER_CHOICES,
    PYPROJECT_SECTION,
)

logger = logging.getLogger(APP_NAME)


def parse_size(value: int | str) -> int:
    """Converts human-readable size strings (e.g., '100MB') to bytes."""
    if isinstance(value, int):
        return value
    match = re.match(r"^(\d+(?:\.\d+)?)\s*([kmg]b?)$", str(value).strip().lower())
    if not match:
        raise ValueError(f"Invalid size format '{value}'")
    num, unit = float(match.group(1)), match.group(2)
    multiplier = {
        "k": 1024,
        "kb": 1024,
        "m": 1024**2,
        "mb": 1024**2,
        "g": 1024**3,
        "gb": 1024**3,
    }
    return int(num * multiplier[unit])


def parse_duration(value: int | float | str) -> float:
    """Converts human-readable durations (e.g., '500ms', '1s', '2m') to seconds."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value < 0:
            raise ValueError(f"Negative duration '{value}'")
        return float(value)
    match = re.match(
        r"^(\d+(?:\.\d+)?)\s*(ms|s|sec|m|min)s?$", str(value).strip().lower()
    )
    if not match:
        raise ValueError(f"Invalid duration format '{value}'")
    num, unit = float(match.group(1)), match.group(2)
    multiplier = {"ms": 0.001, "s": 1, "sec": 1, "m": 60, "min": 60}
    return num * multiplier[unit]


def _parse_choice(value: Any, choices: tuple[str, ...]) -> str:
    normalized = str(value).strip().lower()
    if normalized not in choices:
        raise ValueError(f"Expected one of {', '.join(choices)}, got '{value}'")
    return normalized


@dataclass
class SourceConfig:
    """Source repository settings.

    Attributes:
        branch (str): The local branch whose unpushed commits are mirrored.
        remote (str): The remote whose tracking branch marks the synced point.
    """

    branch: str = DEFAULT_BRANCH
    remote: str = DEFAULT_REMOTE


@dataclass
class MirrorConfig:
    """Mirroring policy settings.

    Attributes:
        order (str): 'chronological' (oldest first) or 'backend' (newest first).
        key (str): 'basename' or 'path'; how log-file names derive from paths.
    """

    order: str = "chronological"
    key: str = "basename"


@dataclass
class WatchConfig:
    """Continuous mode settings.

    Attributes:
        debounce (float): Quiet window in seconds before a sync is triggered.
        run_on_start (bool): Whether to sync once as soon as watching begins.
    """

    debounce: float = DEFAULT_DEBOUNCE_SECONDS
    run_on_start: bool = True


@dataclass
class LimitsConfig:
    """Resource limitation settings.

    Attributes:
        max_log_size (int): Max bytes for the watch log before rotation.
    """

    max_log_size: int = 5 * 1024 * 1024


@dataclass
class Config:
    """Global configuration aggregator.

    Attributes:
        source (SourceConfig): Source repository settings.
        mirror (MirrorConfig): Mirroring policy.
        watch (WatchConfig): Continuous mode settings.
        limits (LimitsConfig): Resource limits.
    """

    source: SourceConfig = field(default_factory=SourceConfig)
    mirror: MirrorConfig = field(default_factory=MirrorConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)

    # Cache for the base global configuration
    _global_cache: "Config | None" = None

    @classmethod
    def load(cls, repo_path: Path | None = None) -> "Config":
        """Loads and merges configuration from defaults, global, and local sources.

        Args:
            repo_path (Path | None): The source repository root to search for
                                     local config.

        Returns:
            Config: The fully merged configuration object.
        """
        # 1. Load or Retrieve Global Config
        if cls._global_cache is None:
            instance = cls()
            if CONFIG_FILE.exists():
                instance._merge_from_file(CONFIG_FILE)
            cls._global_cache = instance

        # Copy every section so local overrides never leak into the cache
        cached = cls._global_cache
        instance = cls(
            source=replace(cached.source),
            mirror=replace(cached.mirror),
            watch=replace(cached.watch),
            limits=replace(cached.limits),
        )

        # 2. Load Local Config (if applicable)
        if repo_path:
            local_toml = repo_path / LOCAL_CONFIG_NAME
            pyproject = repo_path / "pyproject.toml"

            if local_toml.exists():
                instance._merge_from_file(local_toml)
            elif pyproject.exists():
                instance._merge_from_file(pyproject, section=PYPROJECT_SECTION)

        return instance

    def _merge_from_file(self, path: Path, section: str | None = None) -> None:
        """Parses a TOML file and merges it into the current instance.

        Args:
            path (Path): Path to the TOML file.
            section (str | None): Dot-separated section path (e.g., 'tool.commit-mirror').
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)

            if section:
                for key in section.split("."):
                    data = data.get(key, {})

            if not data:
                return

            if "source" in data:
                self.source = self._update_dataclass(
                    "source", self.source, data["source"]
                )
            if "mirror" in data:
                self.mirror = self._update_dataclass(
                    "mirror", self.mirror, data["mirror"]
                )
            if "watch" in data:
                self.watch = self._update_dataclass("watch", self.watch, data["watch"])
            if "limits" in data:
                self.limits = self._update_dataclass(
                    "limits", self.limits, data["limits"]
                )

        except tomllib.TOMLDecodeError as e:
            logger.error(f"Config syntax error in {path}: {e}")
        except OSError as e:
            logger.warning(f"Failed to load config from {path}: {e}")

    @staticmethod
    def _update_dataclass(section_name: str, instance: Any, updates: dict) -> Any:
        """Updates a dataclass, warning on invalid keys and parsing human-readable formats."""
        valid_keys = instance.__dataclass_fields__.keys()
        filtered_updates = {}

        invalid_keys = set(updates.keys()) - set(valid_keys)
        if invalid_keys:
            logger.warning(
                f"Unknown config keys in [{section_name}]: "
                f"{', '.join(sorted(invalid_keys))}. Ignoring."
            )

        for k, v in updates.items():
            if k not in valid_keys:
                continue

            try:
                if k == "max_log_size":
                    filtered_updates[k] = parse_size(v)
                elif k == "debounce":
                    filtered_updates[k] = parse_duration(v)
                elif k == "order":
                    filtered_updates[k] = _parse_choice(v, ORDER_CHOICES)
                elif k == "key":
                    filtered_updates[k] = _parse_choice(v, KEY_CHOICES)
                elif k == "run_on_start":
                    if not isinstance(v, bool):
                        raise ValueError(f"Expected true or false, got '{v}'")
                    filtered_updates[k] = v
                else:
                    if not isinstance(v, str) or not v.strip():
                        raise ValueError(f"Expected a non-empty string, got '{v}'")
                    filtered_updates[k] = v.strip()
            except ValueError as e:
                logger.warning(
                    f"Config error in [{section_name}].{k}: {e}. Falling back to default."
                )

        return replace(instance, **filtered_updates)
