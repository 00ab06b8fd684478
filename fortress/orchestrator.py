"""
Main Orchestrator for Fortress Ledger

Ties the components together for any UI layer:
1. Storage: pick primary or fallback store once, load the document
2. Ledger: model, allocation engine, milestone scheduler
3. Reminders: periodic due-milestone check
4. Export: dated backups of the whole ledger

DESIGN DECISION: The orchestrator is the only place that knows about
settings and concrete storage classes. Everything below it receives
its collaborators explicitly, which keeps every component testable
with in-memory stores and a fixed clock.
"""

from datetime import date
from typing import Optional

from fortress.allocation import AllocationEngine
from fortress.audit import AuditLogger
from fortress.config import Settings, get_settings
from fortress.export import ExportService, ExportSnapshot
from fortress.ledger import LedgerModel
from fortress.milestones import (
    MilestoneScheduler,
    NotificationSurface,
    ReminderService,
)
from fortress.services.clock import Clock, SystemClock
from fortress.services.storage import (
    BackendKind,
    BlobStore,
    DurableStoreAdapter,
    KeyValueBlobStore,
    SandboxedFileStore,
)


class FortressApp:
    """
    All ledger components for one session.

    Build with create_app(); tear down with close().
    """

    def __init__(
        self,
        adapter: DurableStoreAdapter,
        model: LedgerModel,
        engine: AllocationEngine,
        scheduler: MilestoneScheduler,
        reminders: ReminderService,
        exporter: ExportService,
        audit_logger: AuditLogger,
        clock: Clock,
        reminders_enabled: bool = True,
    ):
        self.adapter = adapter
        self.model = model
        self.engine = engine
        self.scheduler = scheduler
        self.reminders = reminders
        self.exporter = exporter
        self.audit_logger = audit_logger
        self.clock = clock
        self.reminders_enabled = reminders_enabled

    @property
    def backend_kind(self) -> BackendKind:
        return self.adapter.backend_kind

    async def start_reminders(self) -> bool:
        if not self.reminders_enabled:
            return False
        return await self.reminders.start()

    def export(self, now: Optional[date] = None) -> ExportSnapshot:
        return self.exporter.export_snapshot(self.model.document, now or self.clock.now())

    async def close(self) -> bool:
        """
        Stop reminders and retry any unsaved write.

        Returns True if everything in memory is durable.
        """
        await self.reminders.stop()
        if self.model.has_unsaved_changes:
            update = await self.model.flush()
            return update.saved
        return True


def create_stores(settings: Settings) -> tuple[BlobStore, BlobStore]:
    """Primary and fallback blob stores from settings."""
    storage = settings.storage
    primary = SandboxedFileStore(storage.data_dir, write_attempts=storage.write_attempts)
    fallback = KeyValueBlobStore(
        storage.resolved_fallback_path,
        capacity_bytes=storage.fallback_capacity_bytes,
    )
    return primary, fallback


async def create_app(
    settings: Optional[Settings] = None,
    primary: Optional[BlobStore] = None,
    fallback: Optional[BlobStore] = None,
    notifier: Optional[NotificationSurface] = None,
    clock: Optional[Clock] = None,
) -> FortressApp:
    """
    Factory function to create and open all application components.

    Args:
        settings: Defaults to get_settings()
        primary/fallback: Blob stores to use instead of the configured ones
        notifier: Where reminders go (structured log by default)
        clock: Source of "today" (system date by default)

    Returns:
        An opened FortressApp. Reminders are not started; call
        start_reminders() when the UI is ready.
    """
    settings = settings or get_settings()
    app_settings = settings.app
    reminder_settings = settings.reminders
    clock = clock or SystemClock()

    if primary is None or fallback is None:
        default_primary, default_fallback = create_stores(settings)
        primary = primary or default_primary
        fallback = fallback or default_fallback

    audit_logger = AuditLogger(buffer_size=app_settings.audit_buffer_size)

    adapter = DurableStoreAdapter(
        primary,
        fallback,
        document_key=settings.storage.document_key,
        audit_logger=audit_logger,
    )
    await adapter.initialize()

    model = LedgerModel(adapter, audit_logger=audit_logger)
    await model.open()

    engine = AllocationEngine(model, clock=clock, audit_logger=audit_logger)
    scheduler = MilestoneScheduler(model)
    reminders = ReminderService(
        scheduler,
        notifier=notifier,
        clock=clock,
        interval_seconds=reminder_settings.interval_seconds,
        audit_logger=audit_logger,
    )
    exporter = ExportService(prefix=app_settings.export_prefix, audit_logger=audit_logger)

    return FortressApp(
        adapter=adapter,
        model=model,
        engine=engine,
        scheduler=scheduler,
        reminders=reminders,
        exporter=exporter,
        audit_logger=audit_logger,
        clock=clock,
        reminders_enabled=reminder_settings.enabled,
    )
