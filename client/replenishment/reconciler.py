"""
Batch Result Reconciler. Turns an order-generation batch into the results
view the operator sees.

Steps, in order:
  1. classify the batch (total success / partial success / total failure)
  2. publish one notice for that outcome
  3. only if the batch produced purchase orders, fetch their summaries
     (exactly one request, after the batch call has resolved)

A partial batch still shows the orders it produced.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from integrations.base import BackendError, ReplenishmentBackend
from replenishment.notices import NoticeBoard
from replenishment.results import (
    BatchOutcome,
    BatchResult,
    OrderSummary,
    OutcomeKind,
    PartialSuccess,
    TotalFailure,
    TotalSuccess,
    classify_batch,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class BatchSummary:
    """UI-facing interpretation of one BatchResult."""

    outcome: BatchOutcome
    headline: str
    total: int
    succeeded: int
    failed: int
    duration: str
    forecast_ids: tuple[int, ...] = ()
    optimization_ids: tuple[int, ...] = ()
    order_ids: tuple[int, ...] = ()
    # Unordered; the server does not pair these with failed alert ids.
    diagnostics: tuple[str, ...] = ()

    @property
    def kind(self) -> OutcomeKind:
        return self.outcome.kind

    @property
    def success(self) -> bool:
        return self.outcome.kind == OutcomeKind.TOTAL_SUCCESS


def format_duration(elapsed_ms: int) -> str:
    """`65000` -> `"1m 5s"`, `4200` -> `"4s"`."""
    seconds = max(0, int(elapsed_ms)) // 1000
    minutes, secs = divmod(seconds, 60)
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def _headline(outcome: BatchOutcome) -> str:
    if isinstance(outcome, TotalSuccess):
        return f"Processing completed: {outcome.succeeded} succeeded, {len(outcome.order_ids)} orders generated"
    if isinstance(outcome, PartialSuccess):
        return f"{outcome.succeeded} succeeded, {outcome.failed} failed"
    if outcome.failed == 0:
        return "No alerts were processed"
    return f"No alerts could be processed: {outcome.failed} failed"


def interpret_batch(result: BatchResult) -> BatchSummary:
    """Pure interpretation of a batch result."""
    outcome = classify_batch(result)
    if result.reported_success is not None and result.reported_success != result.success:
        logger.warning(
            "reconciler.success_flag_mismatch",
            reported=result.reported_success,
            failed=result.failed,
        )
    return BatchSummary(
        outcome=outcome,
        headline=_headline(outcome),
        total=result.total,
        succeeded=result.succeeded,
        failed=result.failed,
        duration=format_duration(result.elapsed_ms),
        forecast_ids=tuple(result.forecast_ids),
        optimization_ids=tuple(result.optimization_ids),
        order_ids=tuple(result.order_ids),
        diagnostics=tuple(result.error_messages),
    )


@dataclass
class ResultsView:
    """What the results panel renders."""

    result: BatchResult | None = None
    summary: BatchSummary | None = None
    order_summaries: list[OrderSummary] = field(default_factory=list)
    loading_orders: bool = False

    @property
    def ordered_total(self) -> float:
        return round(sum(o.total for o in self.order_summaries), 2)


class BatchReconciler:
    """Owns the results view of the current workflow run."""

    def __init__(self, backend: ReplenishmentBackend, notices: NoticeBoard):
        self.backend = backend
        self.notices = notices
        self.view = ResultsView()
        self._generation = 0

    @property
    def loading_orders(self) -> bool:
        return self.view.loading_orders

    async def reconcile(self, result: BatchResult, label: str | None = None) -> BatchSummary:
        summary = interpret_batch(result)
        self._generation += 1
        generation = self._generation
        self.view = ResultsView(result=result, summary=summary)
        self._announce(summary, label)
        logger.info(
            "reconciler.batch_interpreted",
            outcome=summary.kind.value,
            total=summary.total,
            succeeded=summary.succeeded,
            failed=summary.failed,
            orders=len(summary.order_ids),
        )

        if summary.order_ids:
            await self._load_order_summaries(summary.order_ids, generation)
        return summary

    def clear(self) -> None:
        """Drop the current results; a summary fetch still in flight is discarded."""
        self._generation += 1
        self.view = ResultsView()

    async def _load_order_summaries(self, order_ids: Sequence[int], generation: int) -> None:
        view = self.view
        if view.loading_orders:
            return
        view.loading_orders = True
        try:
            summaries = await self.backend.fetch_order_summaries(list(order_ids))
        except BackendError as exc:
            view.loading_orders = False
            if generation != self._generation:
                return
            logger.warning("reconciler.order_summaries_failed", error=str(exc))
            self.notices.error("Error", "Could not load the details of the generated orders")
            return
        view.loading_orders = False
        if generation != self._generation:
            logger.info("reconciler.stale_order_summaries_discarded", orders=list(order_ids))
            return
        view.order_summaries = list(summaries)

    def _announce(self, summary: BatchSummary, label: str | None) -> None:
        detail = f"{label}: {summary.headline}" if label else summary.headline
        outcome = summary.outcome
        if isinstance(outcome, TotalSuccess):
            self.notices.success("Success", detail)
        elif isinstance(outcome, PartialSuccess):
            self.notices.warn("Completed with errors", detail)
        elif isinstance(outcome, TotalFailure):
            self.notices.error("Processing failed", detail)
