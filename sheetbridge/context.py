from __future__ import annotations

from dataclasses import dataclass

from .config.loader import SyncConfig
from .portal.client import PortalClient
from .services.coordinator import ExecutionCoordinator
from .services.locator import SourceLocator
from .services.pipeline import SyncPipeline
from .services.publisher import OutputPublisher
from .services.scheduler import IntervalScheduler
from .services.status import StatusTracker
from .storage.object_store import ObjectStore, S3ObjectStore

"""Process-owned wiring of the pipeline components.

One AppContext per process; the CLI builds it after loading the config.
Tests pass their own ``store`` / ``portal`` doubles.
"""

__all__ = ["AppContext", "build_context"]


@dataclass(frozen=True)
class AppContext:
    cfg: SyncConfig
    store: ObjectStore
    portal: PortalClient
    tracker: StatusTracker
    coordinator: ExecutionCoordinator
    locator: SourceLocator
    publisher: OutputPublisher
    pipeline: SyncPipeline
    scheduler: IntervalScheduler


def build_context(
    cfg: SyncConfig,
    store: ObjectStore | None = None,
    portal: PortalClient | None = None,
) -> AppContext:
    if store is None:
        store = S3ObjectStore(cfg.storage.bucket, cfg.storage.region, cfg.storage.endpoint_url)
    if portal is None:
        portal = PortalClient(cfg.portal)
    tracker = StatusTracker()
    coordinator = ExecutionCoordinator(tracker)
    locator = SourceLocator(store, cfg.paths.work_dir, cfg.storage.sibling_cleanup)
    publisher = OutputPublisher(store, portal, cfg)
    pipeline = SyncPipeline(cfg, coordinator, locator, publisher)
    scheduler = IntervalScheduler(
        pipeline,
        interval_minutes=cfg.schedule.interval_minutes,
        run_on_startup=cfg.schedule.run_on_startup,
        startup_delay_seconds=cfg.schedule.startup_delay_seconds,
    )
    return AppContext(
        cfg=cfg,
        store=store,
        portal=portal,
        tracker=tracker,
        coordinator=coordinator,
        locator=locator,
        publisher=publisher,
        pipeline=pipeline,
        scheduler=scheduler,
    )
