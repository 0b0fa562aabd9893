from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from datanexus.core.config import AppPaths
from datanexus.core.errors import ProjectNotInitializedError
from datanexus.infrastructure.db.sqlite import initialize_schema

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class InitResult:
    paths_created: list[Path]
    db_path: Path


class ProjectService:
    def __init__(self, paths: AppPaths) -> None:
        self.paths = paths

    def init_project(self) -> InitResult:
        paths_created: list[Path] = []

        for path in (self.paths.data_dir, self.paths.captures_dir):
            if not path.exists():
                paths_created.append(path)
            path.mkdir(parents=True, exist_ok=True)

        initialize_schema(self.paths.db_path)

        return InitResult(paths_created=paths_created, db_path=self.paths.db_path)

    def is_initialized(self) -> bool:
        return self.paths.db_path.exists()

    def require_initialized(self) -> None:
        if not self.is_initialized():
            raise ProjectNotInitializedError(
                f"Project is not initialized. Run 'datanexus init' first in {self.paths.project_root}"
            )
        self.init_project()

    def reset_store(self) -> InitResult:
        """Delete the store file (and its WAL side files) and recreate an empty one."""
        for suffix in ("", "-wal", "-shm"):
            candidate = self.paths.db_path.with_name(self.paths.db_path.name + suffix)
            if candidate.exists():
                candidate.unlink()
                logger.warning("Removed %s", candidate)
        return self.init_project()
