from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console

from foliocms.application.services.project_service import ProjectService
from foliocms.application.wiring import AppServices, build_services
from foliocms.core.config import AppPaths, AppSettings
from foliocms.core.errors import ProjectNotInitializedError


@dataclass(slots=True)
class CLIContext:
    paths: AppPaths
    settings: AppSettings
    console: Console

    def require_services(self) -> AppServices:
        if not ProjectService(self.paths).is_initialized():
            raise ProjectNotInitializedError(
                f"Project is not initialized. Run 'folio init' first in {self.paths.project_root}"
            )
        return build_services(self.paths, self.settings)
