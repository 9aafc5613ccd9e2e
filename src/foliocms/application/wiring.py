from __future__ import annotations

from dataclasses import dataclass

from foliocms.application.services.activity_log_service import ActivityLogWriter
from foliocms.application.services.asset_sync_service import AssetSynchronizer
from foliocms.application.services.content_cache import ContentCache
from foliocms.application.services.content_service import ContentService
from foliocms.application.services.deletion_protocol import GuardedDeletionProtocol, PurgeFunction
from foliocms.application.services.health_service import HealthService
from foliocms.application.services.purge_service import PurgeService
from foliocms.application.services.session_service import SessionService
from foliocms.core.config import AppPaths, AppSettings
from foliocms.infrastructure.auth.identity import LocalIdentityProvider
from foliocms.infrastructure.db.repos.activity_log_repo import ActivityLogRepo
from foliocms.infrastructure.functions.purge_client import (
    HttpPurgeFunctionClient,
    InProcessPurgeFunctionClient,
)
from foliocms.infrastructure.storage.object_store import LocalObjectStore


@dataclass(slots=True)
class AppServices:
    paths: AppPaths
    settings: AppSettings
    object_store: LocalObjectStore
    activity_log: ActivityLogWriter
    cache: ContentCache
    content: ContentService
    identity: LocalIdentityProvider
    sessions: SessionService
    purge: PurgeService
    purge_function: PurgeFunction
    health: HealthService

    def new_deletion_protocol(self) -> GuardedDeletionProtocol:
        return GuardedDeletionProtocol(
            identity=self.identity,
            purge_function=self.purge_function,
            activity_log=self.activity_log,
            cache=self.cache,
            countdown_seconds=self.settings.deletion_countdown_seconds,
        )


def build_services(paths: AppPaths, settings: AppSettings) -> AppServices:
    object_store = LocalObjectStore(paths.storage_dir, settings.public_base_url)
    activity_log = ActivityLogWriter(ActivityLogRepo(paths.db_path))
    cache = ContentCache()
    identity = LocalIdentityProvider.from_settings(settings)
    purge = PurgeService(paths.db_path, object_store)

    if settings.purge_function_url:
        purge_function: PurgeFunction = HttpPurgeFunctionClient(
            settings.purge_function_url,
            token=settings.purge_function_token,
            timeout_seconds=settings.purge_timeout_seconds,
        )
    else:
        purge_function = InProcessPurgeFunctionClient(lambda payload: purge.handle(payload)[1])

    return AppServices(
        paths=paths,
        settings=settings,
        object_store=object_store,
        activity_log=activity_log,
        cache=cache,
        content=ContentService(paths.db_path, AssetSynchronizer(object_store), activity_log, cache),
        identity=identity,
        sessions=SessionService(identity, activity_log),
        purge=purge,
        purge_function=purge_function,
        health=HealthService(paths.db_path, object_store),
    )
