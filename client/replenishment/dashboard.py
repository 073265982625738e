"""
Dashboard quick processing.

Skips forecast review: sends the order-generation batch directly, either for
the current selection or for every alert of one supplier, then reconciles
the result, re-queries the store and clears the selection.

Also hosts the selection-driven "mark in process" batch, which assigns the
selected alerts to the configured operator.

`processing` stays set until the whole action, store refresh and selection
clear included, has finished.
"""

from collections.abc import Sequence

import structlog

from alerts.selection import SelectionTracker
from alerts.store import AlertStore
from core.config import Settings, get_settings
from integrations.base import BackendError, PipelineRequest, ReplenishmentBackend
from replenishment.notices import NoticeBoard
from replenishment.pipeline import ActionResult, Completed, Failed, Ignored, Rejected
from replenishment.reconciler import BatchReconciler

logger = structlog.get_logger()


class QuickProcessor:
    def __init__(
        self,
        backend: ReplenishmentBackend,
        store: AlertStore,
        selection: SelectionTracker,
        notices: NoticeBoard,
        reconciler: BatchReconciler | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.backend = backend
        self.store = store
        self.selection = selection
        self.notices = notices
        self.reconciler = reconciler if reconciler is not None else BatchReconciler(backend, notices)
        self.horizon_days = settings.forecast_horizon_days
        self.operator_id = settings.operator_id
        self.notes = settings.dashboard_notes
        self.in_process_notes = settings.in_process_notes
        self.processing = False

    async def process_selected(self) -> ActionResult:
        if self.processing:
            return Ignored("processing already in progress")
        if self.selection.size() == 0:
            return self._reject("Select at least one alert to process.")
        return await self._process(self.selection.ids(), notes=self.notes)

    async def process_supplier(self, supplier_id: int) -> ActionResult:
        """Order every pending alert of one supplier, selected or not."""
        if self.processing:
            return Ignored("processing already in progress")
        group = self.store.group_for(supplier_id)
        if group is None or not group.alerts:
            return self._reject("There are no pending alerts for this supplier.")
        return await self._process(
            group.alert_ids,
            notes=f"Automatic processing - supplier: {group.supplier_name}",
            label=group.supplier_name,
        )

    async def mark_in_process(self) -> ActionResult:
        """Move the selected alerts to EN_PROCESO under the configured operator."""
        if self.processing:
            return Ignored("processing already in progress")
        if self.selection.size() == 0:
            return self._reject("Select at least one alert.")
        if self.operator_id is None:
            return self._reject("An operator id must be configured to take over alerts.")

        alert_ids = self.selection.ids()
        self.processing = True
        try:
            try:
                outcome = await self.backend.mark_in_process(alert_ids, self.operator_id, self.in_process_notes)
            except BackendError as exc:
                logger.warning("dashboard.mark_in_process_failed", error=str(exc))
                self.notices.error("Error", "Could not mark the alerts as in process.")
                return Failed(exc)

            logger.info("dashboard.marked_in_process", alerts=len(alert_ids), updated=outcome.total_updated)
            self.notices.success("Success", outcome.message or f"{outcome.total_updated} alerts marked as in process")
            await self._refresh_and_clear()
            return Completed()
        finally:
            self.processing = False

    async def _process(self, alert_ids: Sequence[int], notes: str, label: str | None = None) -> ActionResult:
        request = PipelineRequest(
            alert_ids=tuple(alert_ids),
            horizon_days=self.horizon_days,
            operator_id=self.operator_id,
            notes=notes,
        )
        self.processing = True
        try:
            self.notices.info("Processing", f"Processing {len(request.alert_ids)} alerts...")
            logger.info("dashboard.processing_started", alerts=len(request.alert_ids), supplier=label)
            try:
                result = await self.backend.generate_orders(request)
            except BackendError as exc:
                logger.warning("dashboard.processing_failed", error=str(exc))
                self.notices.error("Error", "Could not complete the automatic processing.")
                return Failed(exc)

            await self.reconciler.reconcile(result, label=label)
            await self._refresh_and_clear()
            return Completed()
        finally:
            self.processing = False

    async def _refresh_and_clear(self) -> None:
        try:
            await self.store.refresh(self.backend)
        except BackendError as exc:
            logger.warning("dashboard.refresh_failed", error=str(exc))
            self.notices.error("Error", "Could not reload the alerts.")
        self.selection.clear()

    def _reject(self, reason: str) -> Rejected:
        self.notices.warn("Attention", reason)
        return Rejected(reason)
