"""Scan configuration for dirsift."""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

log = logging.getLogger(__name__)

CONFIG_DIR = Path(os.path.expanduser("~/.dirsift"))
CONFIG_FILE = CONFIG_DIR / "config.json"

# Scanned in this order; user folders get the deep policy, the rest shallow
USER_ROOTS = [
    "Desktop",
    "Documents",
    "Downloads",
    "Pictures",
    "Movies",
    "Music",
    "Library/Caches",
    "Library/Application Support",
    "Library/Logs",
    "Library/Containers",
    "Library/Safari",
    "Library/Mail",
    "Applications",
]

SYSTEM_ROOTS = [
    "/Applications",
    "/Library",
    "/usr",
    "/opt",
    "/private/var",
    "/Users/Shared",
]


def expand_path(path: str) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expanduser(os.path.expandvars(path)))


def default_roots(home: Optional[Path] = None) -> list[str]:
    """Return the ordered list of roots scanned by a full session."""
    home = home or Path.home()
    return [str(home / rel) for rel in USER_ROOTS] + list(SYSTEM_ROOTS)


class ScanConfig(BaseModel):
    """Tunables for a scan session."""

    max_depth: int = Field(4, ge=1, description="Walk depth for roots under the home directory")
    shallow_depth: int = Field(1, ge=1, description="Walk depth for system/shared roots")
    deep_max_entries: int = Field(100_000, ge=1, description="Entry ceiling for deep roots")
    shallow_max_entries: int = Field(10_000, ge=1, description="Entry ceiling for shallow roots")
    nested_max_entries: int = Field(
        10_000, ge=1, description="Entry ceiling for summing one directory the walk does not descend"
    )
    batch_size: int = Field(100, ge=1)
    batch_delay: float = Field(0.01, ge=0, description="Seconds to pause between batches")
    root_delay: float = Field(0.1, ge=0, description="Seconds to pause between roots")
    deep_timeout: float = Field(120.0, gt=0, description="Per-root timeout for deep roots")
    shallow_timeout: float = Field(60.0, gt=0, description="Per-root timeout for shallow roots")
    max_logs: int = Field(300, ge=1)
    top_n: int = Field(10, ge=1)
    roots: list[str] = Field(default_factory=list, description="Overrides the default root list")
    home: Optional[str] = Field(None, description="Home directory used for the deep/shallow split")
    use_trash: bool = True

    def home_path(self) -> Path:
        return expand_path(self.home) if self.home else Path.home()

    def resolved_roots(self) -> list[str]:
        if self.roots:
            return [str(expand_path(r)) for r in self.roots]
        return default_roots(self.home_path())

    def is_deep_root(self, root: str) -> bool:
        """Roots under the home directory are scanned deep."""
        home = str(self.home_path()).rstrip("/")
        return root == home or root.startswith(home + "/")

    def depth_for(self, root: str) -> int:
        return self.max_depth if self.is_deep_root(root) else self.shallow_depth

    def entry_limit_for(self, root: str) -> int:
        return self.deep_max_entries if self.is_deep_root(root) else self.shallow_max_entries

    def timeout_for(self, root: str) -> float:
        return self.deep_timeout if self.is_deep_root(root) else self.shallow_timeout


def config_path() -> Path:
    """Config file location, overridable with DIRSIFT_CONFIG."""
    override = os.environ.get("DIRSIFT_CONFIG")
    return expand_path(override) if override else CONFIG_FILE


def load_config(path: Optional[Path] = None) -> ScanConfig:
    """Load configuration from disk, falling back to defaults."""
    path = path or config_path()
    if not path.exists():
        return ScanConfig()
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        log.warning("Ignoring unreadable config %s: %s", path, e)
        return ScanConfig()
    if not isinstance(data, dict):
        log.warning("Ignoring config %s: expected a JSON object", path)
        return ScanConfig()
    try:
        return ScanConfig(**data)
    except ValidationError as e:
        log.warning("Ignoring invalid config %s: %s", path, e)
        return ScanConfig()
