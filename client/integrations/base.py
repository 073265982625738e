"""
Replenishment Backend: Abstract Base Class

The workflow core talks to the forecasting platform only through this
interface, so the orchestrator, the store and the reconciler never know
whether they are driven by the REST API or by an in-process double.

Timeouts, authentication and connection handling belong to the
implementation, not to its callers.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from alerts.models import Alert, InProcessBatch
from core.config import DEFAULT_FORECAST_HORIZON_DAYS
from replenishment.forecasts import SupplierForecastBundle
from replenishment.results import BatchResult, OrderSummary

logger = structlog.get_logger()


# ── Endpoints ──────────────────────────────────────────────────────────────


class Endpoint(str, Enum):
    """Remote operations consumed by the workflow."""

    DASHBOARD_ALERTS = "dashboard_alerts"
    FORECAST_BATCH = "forecast_batch"  # read-only, safe to repeat
    ORDER_BATCH = "order_batch"  # creates purchase orders, not idempotent
    ORDER_SUMMARIES = "order_summaries"
    MARK_IN_PROCESS = "mark_in_process"  # changes alert state, not retried


class BackendError(RuntimeError):
    """Raised for any transport, HTTP status or payload failure of a remote call."""

    def __init__(self, endpoint: Endpoint, message: str, status_code: int | None = None):
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code

    def __str__(self) -> str:
        status = f" (HTTP {self.status_code})" if self.status_code is not None else ""
        return f"{self.endpoint.value}: {self.args[0]}{status}"


# ── Request container ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class PipelineRequest:
    """
    Arguments of one forecast or order-generation call.

    Built fresh from a snapshot of the selection for every invocation and
    never mutated afterwards.
    """

    alert_ids: tuple[int, ...]
    horizon_days: int = DEFAULT_FORECAST_HORIZON_DAYS
    operator_id: int | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if not self.alert_ids:
            raise ValueError("At least one alert must be selected")
        if isinstance(self.horizon_days, bool) or not isinstance(self.horizon_days, int):
            raise ValueError("Forecast horizon must be a whole number of days")
        if self.horizon_days <= 0:
            raise ValueError("Forecast horizon must be a positive number of days")

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "alertaIds": list(self.alert_ids),
            "horizonteTiempo": self.horizon_days,
        }
        if self.operator_id is not None:
            payload["usuarioId"] = self.operator_id
        if self.notes:
            payload["observaciones"] = self.notes
        return payload

    def forecast_payload(self) -> dict[str, Any]:
        """The forecast endpoint only takes ids and horizon."""
        return {"alertaIds": list(self.alert_ids), "horizonteTiempo": self.horizon_days}


# ── Abstract backend ──────────────────────────────────────────────────────


class ReplenishmentBackend(ABC):
    """
    Remote collaborator of the replenishment workflow.

    Every method raises BackendError on failure and never returns partial
    data for a failed call.
    """

    def __init__(self) -> None:
        self.logger = logger.bind(backend=type(self).__name__)

    @abstractmethod
    async def fetch_dashboard_alerts(self) -> list[Alert]:
        """Current pending alerts with product / supplier / cost fields."""
        ...

    @abstractmethod
    async def generate_forecasts(self, request: PipelineRequest) -> dict[int, SupplierForecastBundle]:
        """Run forecasts for the request's alerts, grouped by supplier id."""
        ...

    @abstractmethod
    async def generate_orders(self, request: PipelineRequest) -> BatchResult:
        """Run forecast → optimization → purchase-order creation as one batch."""
        ...

    @abstractmethod
    async def fetch_order_summaries(self, order_ids: Sequence[int]) -> list[OrderSummary]:
        """Display summaries for generated purchase orders."""
        ...

    @abstractmethod
    async def mark_in_process(
        self, alert_ids: Sequence[int], operator_id: int, notes: str | None = None
    ) -> InProcessBatch:
        """Assign the alerts to `operator_id` and move them to EN_PROCESO."""
        ...

    async def aclose(self) -> None:
        """Release transport resources. No-op by default."""
        return None
