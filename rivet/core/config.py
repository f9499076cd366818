"""
Rivet configuration

RivetConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional
import os

from .constants import (
    APP_DIR_NAME,
    DEFAULT_DESCRIPTION,
    DEFAULT_DEV,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_TITLE,
    PUBLIC_DIR,
)
from .errors import ConfigError

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class RivetConfig:
    """
    Configuration for a Rivet application.

    Attributes:
        project_root: Project directory (contains app/, public/, init.py).
            Always resolved to an absolute path on construction.
        app_dir: Name of the routes directory under the project root.
        host: Bind address.
        port: Bind port.
        dev: Development mode (hot reload, module invalidation).
        title: Document title used when a loader supplies no metadata.
        description: Document description fallback.
    """

    project_root: Path = field(default_factory=Path.cwd)
    app_dir: str = APP_DIR_NAME
    host: str = DEFAULT_HOST
    port: int = int(DEFAULT_PORT)
    dev: bool = False
    title: str = DEFAULT_TITLE
    description: str = DEFAULT_DESCRIPTION

    def __post_init__(self) -> None:
        # watchfiles reports absolute paths; keep the root comparable
        object.__setattr__(self, "project_root", Path(self.project_root).resolve())
        if not 0 < self.port < 65536:
            raise ConfigError(f"Port out of range: {self.port}")

    @property
    def app_path(self) -> Path:
        """Absolute path to the app directory."""
        return self.project_root / self.app_dir

    @property
    def public_path(self) -> Path:
        """Absolute path to the public assets directory."""
        return self.project_root / PUBLIC_DIR

    @classmethod
    def from_env(
        cls,
        project_root: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
        **overrides,
    ) -> "RivetConfig":
        """
        Build a config from ``RIVET_*`` environment variables.

        Args:
            project_root: Project directory (defaults to the current directory)
            environ: Environment mapping (defaults to ``os.environ``)
            **overrides: Explicit values that win over the environment

        Raises:
            ConfigError: If a variable cannot be parsed
        """
        env = os.environ if environ is None else environ

        port_raw = env.get("RIVET_PORT", DEFAULT_PORT)
        try:
            port = int(port_raw)
        except ValueError as e:
            raise ConfigError(f"RIVET_PORT must be an integer, got {port_raw!r}") from e

        values = {
            "project_root": Path(project_root) if project_root else Path.cwd(),
            "app_dir": env.get("RIVET_APP_DIR", APP_DIR_NAME),
            "host": env.get("RIVET_HOST", DEFAULT_HOST),
            "port": port,
            "dev": _parse_bool("RIVET_DEV", env.get("RIVET_DEV", DEFAULT_DEV)),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigError(f"{name} must be a boolean flag, got {raw!r}")
