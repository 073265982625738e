"""
Pipeline Orchestrator: the guided replenishment workflow.

Stages:
  SELECTING → REVIEWING_FORECASTS → ORDERS_GENERATED

  1. Operator selects alerts (individually or per supplier)
  2. "generate forecasts" → one read-only forecast batch call; the selection
     is captured at this point and becomes the set that gets ordered
  3. "generate orders" → one order-generation batch call over the captured
     ids; creates purchase orders, so it is never repeated implicitly
  4. The reconciler interprets the batch and fetches order summaries; the
     alert store is then re-queried

There is no backward transition. `reset()` starts a new run; responses that
belong to a run that was reset are discarded when they arrive.

Remote failures are terminal for the current action only: one error notice,
stage unchanged, selection / captured ids / forecasts kept for a retry.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

import structlog

from alerts.selection import SelectionTracker
from alerts.store import AlertStore
from core.config import Settings, get_settings
from core.observers import ListenerHub
from integrations.base import BackendError, PipelineRequest, ReplenishmentBackend
from replenishment.forecasts import ForecastReview, SupplierForecastBundle
from replenishment.notices import NoticeBoard
from replenishment.reconciler import BatchReconciler, BatchSummary
from replenishment.results import BatchResult

logger = structlog.get_logger()


class PipelineStage(str, Enum):
    SELECTING = "SELECTING"
    REVIEWING_FORECASTS = "REVIEWING_FORECASTS"
    ORDERS_GENERATED = "ORDERS_GENERATED"

    @property
    def index(self) -> int:
        """0-based step number shown by the stepper."""
        return list(PipelineStage).index(self)


# ── Action results ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Completed:
    stage: PipelineStage | None = None


@dataclass(frozen=True)
class Rejected:
    """Refused client-side; nothing was sent."""

    reason: str


@dataclass(frozen=True)
class Ignored:
    """Re-entrant call while a request is outstanding, or a stale response."""

    reason: str


@dataclass(frozen=True)
class Failed:
    error: BackendError


ActionResult = Completed | Rejected | Ignored | Failed


# ── Orchestrator ──────────────────────────────────────────────────────────


class PipelineOrchestrator:
    """Drives one guided workflow run at a time."""

    def __init__(
        self,
        backend: ReplenishmentBackend,
        store: AlertStore | None = None,
        selection: SelectionTracker | None = None,
        notices: NoticeBoard | None = None,
        reconciler: BatchReconciler | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.backend = backend
        self.store = store if store is not None else AlertStore()
        self.selection = selection if selection is not None else SelectionTracker(self.store)
        self.notices = notices if notices is not None else NoticeBoard()
        self.reconciler = reconciler if reconciler is not None else BatchReconciler(backend, self.notices)
        self.operator_id = settings.operator_id
        self.notes = settings.workflow_notes

        self.loading = False  # alert load / forecast stage
        self.processing = False  # order-generation stage
        self.refreshing = False  # set with `loading` while the store reloads

        self._horizon_days = settings.forecast_horizon_days
        self._stage = PipelineStage.SELECTING
        self._captured_ids: tuple[int, ...] = ()
        self._forecasts: dict[int, SupplierForecastBundle] = {}
        self._run = 0
        self._hub: ListenerHub[PipelineStage] = ListenerHub()
        self.logger = logger.bind(component="pipeline")

    # ── State ─────────────────────────────────────────────────────────

    @property
    def stage(self) -> PipelineStage:
        return self._stage

    @property
    def step(self) -> int:
        return self._stage.index

    @property
    def horizon_days(self) -> int:
        return self._horizon_days

    @property
    def captured_alert_ids(self) -> tuple[int, ...]:
        return self._captured_ids

    @property
    def forecasts(self) -> dict[int, SupplierForecastBundle]:
        return dict(self._forecasts)

    @property
    def result(self) -> BatchResult | None:
        return self.reconciler.view.result

    @property
    def summary(self) -> BatchSummary | None:
        return self.reconciler.view.summary

    def forecast_review(self) -> ForecastReview:
        return ForecastReview(bundles=dict(self._forecasts))

    def estimated_total(self) -> float:
        return self.selection.estimated_total()

    def subscribe(self, listener: Callable[[PipelineStage], None]) -> Callable[[], None]:
        """Listen to stage transitions."""
        return self._hub.subscribe(listener)

    # ── Actions ───────────────────────────────────────────────────────

    def set_horizon(self, days: int) -> ActionResult:
        if self._stage is not PipelineStage.SELECTING:
            return self._reject("The forecast horizon can only change before forecasts are generated")
        if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
            return self._reject("The forecast horizon must be a positive number of days")
        self._horizon_days = days
        return Completed(self._stage)

    async def load_alerts(self, preselect: Iterable[object] | None = None) -> ActionResult:
        """Replace the store with a fresh backend snapshot.

        `preselect` adds ids (e.g. from a deep link) once the snapshot is in.
        """
        if self.loading:
            return Ignored("alerts are already loading")
        run = self._run
        self.loading = self.refreshing = True
        try:
            alerts = await self.backend.fetch_dashboard_alerts()
        except BackendError as exc:
            if run != self._run:
                return Ignored("stale response discarded")
            self.loading = self.refreshing = False
            self.logger.warning("pipeline.load_failed", error=str(exc))
            self.notices.error("Error", "Could not load the alerts.")
            return Failed(exc)
        if run != self._run:
            return Ignored("stale response discarded")
        self.loading = self.refreshing = False
        self.store.replace(alerts)
        if preselect is not None:
            self.selection.preselect(preselect)
        return Completed(self._stage)

    async def generate_forecasts(self) -> ActionResult:
        """SELECTING → REVIEWING_FORECASTS."""
        if self.refreshing:
            self.notices.info("Please wait", "Alerts are still loading. Try again in a moment.")
            return Ignored("alerts are reloading")
        if self.loading:
            return Ignored("a request for this stage is already outstanding")
        if self._stage is not PipelineStage.SELECTING:
            return self._reject("Forecasts were already generated for this run. Start a new one.")
        if self.selection.size() == 0:
            return self._reject("Select at least one alert.")
        try:
            request = PipelineRequest(alert_ids=self.selection.ids(), horizon_days=self._horizon_days)
        except ValueError as exc:
            return self._reject(str(exc))

        run = self._run
        self.loading = True
        self.logger.info(
            "pipeline.forecasts_requested",
            alerts=len(request.alert_ids),
            horizon_days=request.horizon_days,
        )
        try:
            bundles = await self.backend.generate_forecasts(request)
        except BackendError as exc:
            if run != self._run:
                return Ignored("stale response discarded")
            self.loading = False
            self.logger.warning("pipeline.forecasts_failed", error=str(exc))
            self.notices.error("Error", "Could not generate the forecasts.")
            return Failed(exc)
        if run != self._run:
            self.logger.info("pipeline.stale_forecasts_discarded")
            return Ignored("stale response discarded")

        self.loading = False
        self._captured_ids = request.alert_ids
        self._forecasts = dict(bundles)
        self._set_stage(PipelineStage.REVIEWING_FORECASTS)
        self.notices.success("Success", "Forecasts generated.")
        self.logger.info("pipeline.forecasts_generated", suppliers=len(self._forecasts))
        return Completed(self._stage)

    async def generate_orders(self) -> ActionResult:
        """REVIEWING_FORECASTS → ORDERS_GENERATED, over the captured ids."""
        if self.processing:
            return Ignored("a request for this stage is already outstanding")
        if self._stage is not PipelineStage.REVIEWING_FORECASTS:
            return self._reject("Generate and review forecasts before creating orders.")

        request = PipelineRequest(
            alert_ids=self._captured_ids,
            horizon_days=self._horizon_days,
            operator_id=self.operator_id,
            notes=self.notes,
        )
        run = self._run
        self.processing = True
        self.logger.info("pipeline.orders_requested", alerts=len(request.alert_ids))
        try:
            result = await self.backend.generate_orders(request)
        except BackendError as exc:
            if run != self._run:
                return Ignored("stale response discarded")
            self.processing = False
            self.logger.warning("pipeline.orders_failed", error=str(exc))
            self.notices.error("Error", "Could not complete the processing.")
            return Failed(exc)
        if run != self._run:
            self.logger.info("pipeline.stale_batch_discarded")
            return Ignored("stale response discarded")

        self.processing = False
        self._set_stage(PipelineStage.ORDERS_GENERATED)
        await self.reconciler.reconcile(result)
        if run == self._run:
            await self.load_alerts()
        return Completed(PipelineStage.ORDERS_GENERATED)

    def reset(self) -> None:
        """Start a new run: SELECTING, empty selection, no forecasts or results."""
        self._run += 1
        self.loading = self.refreshing = False
        self.processing = False
        self._captured_ids = ()
        self._forecasts = {}
        self.selection.clear()
        self.reconciler.clear()
        self._set_stage(PipelineStage.SELECTING)
        self.logger.info("pipeline.reset", run=self._run)

    async def start_new(self) -> ActionResult:
        self.reset()
        return await self.load_alerts()

    # ── Internals ─────────────────────────────────────────────────────

    def _reject(self, reason: str) -> Rejected:
        self.notices.warn("Attention", reason)
        return Rejected(reason)

    def _set_stage(self, stage: PipelineStage) -> None:
        if stage is self._stage:
            return
        self.logger.info("pipeline.stage_changed", from_stage=self._stage.value, to_stage=stage.value)
        self._stage = stage
        self._hub.notify(stage)
