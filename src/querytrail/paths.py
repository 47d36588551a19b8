"""
Where QueryTrail keeps its files.

Layout under the project root (the working directory unless overridden):

.querytrail/
├── querytrail.db        # default SQLite query store
└── logs/                # opt-in rotating log files
"""

from pathlib import Path
from typing import Optional


class QueryTrailPaths:
    """Resolves data paths lazily so a changed working directory is honored."""

    DATA_DIR = ".querytrail"
    STORE_DB_NAME = "querytrail.db"
    LOGS_DIR = "logs"

    def __init__(self, project_root: Optional[Path] = None):
        self._project_root = project_root

    @property
    def project_root(self) -> Path:
        return self._project_root if self._project_root is not None else Path.cwd()

    @property
    def data_dir(self) -> Path:
        return self.project_root / self.DATA_DIR

    @property
    def store_db(self) -> Path:
        return self.data_dir / self.STORE_DB_NAME

    @property
    def logs_dir(self) -> Path:
        return self.data_dir / self.LOGS_DIR

    def ensure_dirs(self) -> None:
        self.logs_dir.mkdir(parents=True, exist_ok=True)


_default_paths: Optional[QueryTrailPaths] = None


def get_paths(project_root: Optional[Path] = None) -> QueryTrailPaths:
    """Shared paths for the working directory, or fresh ones for `project_root`."""
    global _default_paths
    if project_root is not None:
        return QueryTrailPaths(project_root)
    if _default_paths is None:
        _default_paths = QueryTrailPaths()
    return _default_paths


def reset_paths() -> None:
    """Forget the shared instance (tests)."""
    global _default_paths
    _default_paths = None
