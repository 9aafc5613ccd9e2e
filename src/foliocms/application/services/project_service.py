from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from foliocms.core.config import AppPaths
from foliocms.core.files import ensure_directory
from foliocms.domain.content_catalog import asset_buckets
from foliocms.infrastructure.db.sqlite import initialize_schema


@dataclass(slots=True)
class InitResult:
    paths_created: list[Path]
    db_path: Path


class ProjectService:
    def __init__(self, paths: AppPaths) -> None:
        self.paths = paths

    def init_project(self) -> InitResult:
        paths_created: list[Path] = []

        bucket_dirs = [self.paths.storage_dir / bucket for bucket in sorted(asset_buckets())]
        for path in (self.paths.folio_dir, self.paths.storage_dir, *bucket_dirs):
            if not path.exists():
                paths_created.append(path)
            ensure_directory(path)

        initialize_schema(self.paths.db_path)

        return InitResult(paths_created=paths_created, db_path=self.paths.db_path)

    def is_initialized(self) -> bool:
        return self.paths.db_path.exists()
