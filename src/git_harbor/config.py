import logging
import re
import tomllib
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any

from .constants import (
    APP_NAME,
    CONFIG_FILE,
    DEFAULT_HOST,
    DESTINATION_PREFIXES,
    LOCAL_CONFIG_NAME,
    PROTOCOLS,
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


def parse_protocol(value: str) -> str:
    """Normalizes a clone protocol name, rejecting anything but ssh/https."""
    proto = str(value).strip().lower()
    if proto not in PROTOCOLS:
        raise ValueError(f"Invalid protocol '{value}' (expected ssh or https)")
    return proto


def parse_names(value: Any) -> list[str]:
    """Validates a list of owner names, dropping blanks."""
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError("Expected a list of names")
    return [v.strip() for v in value if v.strip()]


@dataclass
class CoreConfig:
    """Core application settings.

    Attributes:
        protocol (str): Clone protocol, 'ssh' or 'https'.
        destination (str | None): Destination root. None means a timestamped
            directory under the current working directory.
        host (str): The GitHub hostname used by `gh`.
    """

    protocol: str = "ssh"
    destination: str | None = None
    host: str = DEFAULT_HOST


@dataclass
class OwnersConfig:
    """Owner selection settings.

    Attributes:
        organizations (list[str]): Organizations processed after the user.
    """

    organizations: list[str] = field(default_factory=list)


@dataclass
class IncludeConfig:
    """Inclusion policy switches.

    Attributes:
        forks (bool): Replicate forked repositories.
        archived (bool): Replicate archived repositories.
        wikis (bool): Replicate wikis alongside mirrors.
        lfs (bool): Fetch Git LFS objects into mirrors.
    """

    forks: bool = False
    archived: bool = False
    wikis: bool = True
    lfs: bool = True


@dataclass
class LimitsConfig:
    """Resource limitation settings.

    Attributes:
        max_log_size (int): Max bytes for log files before rotation.
    """

    max_log_size: int = 5 * 1024 * 1024


@dataclass(frozen=True)
class SyncOptions:
    """Flat view of every option the pipelines consume."""

    include_forks: bool
    include_archived: bool
    include_wikis: bool
    include_lfs: bool
    protocol: str
    destination_root: Path | None


@dataclass
class Config:
    """Global configuration aggregator.

    Attributes:
        core (CoreConfig): Core settings.
        owners (OwnersConfig): Owner selection.
        include (IncludeConfig): Inclusion policy.
        limits (LimitsConfig): Resource limits.
    """

    core: CoreConfig = field(default_factory=CoreConfig)
    owners: OwnersConfig = field(default_factory=OwnersConfig)
    include: IncludeConfig = field(default_factory=IncludeConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)

    @classmethod
    def load(cls, work_dir: Path | None = None) -> "Config":
        """Loads and merges configuration from defaults, global, and local sources.

        Args:
            work_dir (Path | None): Directory searched for a local harbor.toml.

        Returns:
            Config: The fully merged configuration object.
        """
        instance = cls()
        if CONFIG_FILE.exists():
            instance._merge_from_file(CONFIG_FILE)

        if work_dir:
            local_toml = work_dir / LOCAL_CONFIG_NAME
            if local_toml.exists():
                instance._merge_from_file(local_toml)

        return instance

    @property
    def options(self) -> SyncOptions:
        dest = self.core.destination
        return SyncOptions(
            include_forks=self.include.forks,
            include_archived=self.include.archived,
            include_wikis=self.include.wikis,
            include_lfs=self.include.lfs,
            protocol=self.core.protocol,
            destination_root=Path(dest).expanduser() if dest else None,
        )

    def destination_root(self, mode: str, now: datetime | None = None) -> Path:
        """Resolves the destination root for a pipeline.

        Args:
            mode (str): The pipeline mode (mirror or working).
            now (datetime | None): Timestamp for the default directory name.

        Returns:
            Path: The configured destination, or
                  ./github-backup-<ts> / ./github-repos-<ts> when unset.
        """
        if self.options.destination_root:
            return self.options.destination_root.resolve()
        stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
        return Path.cwd() / f"{DESTINATION_PREFIXES[mode]}-{stamp}"

    def _merge_from_file(self, path: Path) -> None:
        """Parses a TOML file and merges it into the current instance.

        Args:
            path (Path): Path to the TOML file.
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)

            if not data:
                return

            if "core" in data:
                self.core = self._update_dataclass("core", self.core, data["core"])
            if "owners" in data:
                self.owners = self._update_dataclass(
                    "owners", self.owners, data["owners"]
                )
            if "include" in data:
                self.include = self._update_dataclass(
                    "include", self.include, data["include"]
                )
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
        """Updates a dataclass, warning on invalid keys and values."""
        if not isinstance(updates, dict):
            logger.warning(
                f"Config error in [{section_name}]: expected a table, "
                f"got {updates!r}. Ignoring."
            )
            return instance

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
                elif k == "protocol":
                    filtered_updates[k] = parse_protocol(v)
                elif k == "organizations":
                    filtered_updates[k] = parse_names(v)
                elif k in ("destination", "host") and not isinstance(v, str):
                    raise ValueError(f"Expected a string, got {v!r}")
                elif section_name == "include" and not isinstance(v, bool):
                    raise ValueError(f"Expected true/false, got {v!r}")
                else:
                    filtered_updates[k] = v
            except ValueError as e:
                logger.warning(
                    f"Config error in [{section_name}].{k}: {e}. "
                    "Falling back to default."
                )

        return replace(instance, **filtered_updates)
