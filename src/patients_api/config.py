"""
Runtime configuration read from environment variables.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_CLIENT_DIR = Path(__file__).parent / "client"
DEFAULT_DATA_FILE = "patients-data.json"

_TRUTHY = {"1", "true", "yes", "on"}


def _default_client_dir() -> Path:
    return DEFAULT_CLIENT_DIR


@dataclass(frozen=True)
class Config:
    """
    Settings for one application instance.

    :param base_path: URL prefix stripped before routing, e.g. ``"/api"``.
    :param enable_persistence: Whether the repository is backed by a JSON file.
    :param data_file: Location of the JSON snapshot file.
    :param client_dir: Directory the static browser client is served from.
    :param log_level: Root log level name used by :func:`patients_api.app.main`.
    """

    base_path: str = ""
    enable_persistence: bool = False
    data_file: Path = Path(DEFAULT_DATA_FILE)
    client_dir: Path = field(default_factory=_default_client_dir)
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_path", normalize_base_path(self.base_path))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Config":
        """
        Build a :class:`Config` from ``PATIENTS_*`` environment variables.

        :param environ: Mapping to read instead of ``os.environ`` (for testing).
        """
        env = os.environ if environ is None else environ

        return cls(
            base_path=env.get("PATIENTS_BASE_PATH", ""),
            enable_persistence=(
                env.get("PATIENTS_ENABLE_PERSISTENCE", "").strip().lower() in _TRUTHY
            ),
            data_file=Path(env.get("PATIENTS_DATA_FILE", DEFAULT_DATA_FILE)),
            client_dir=Path(env.get("PATIENTS_CLIENT_DIR", str(DEFAULT_CLIENT_DIR))),
            log_level=env.get("PATIENTS_LOG_LEVEL", "INFO").strip().upper(),
        )


def normalize_base_path(base_path: str) -> str:
    """
    Return ``base_path`` with one leading slash and no trailing slash.

    An empty or ``"/"`` base path means no prefix and is returned as ``""``.
    """
    stripped = base_path.strip().strip("/")
    return f"/{stripped}" if stripped else ""
