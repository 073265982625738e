"""
Batch results of the order-generation endpoint and the purchase-order
summaries fetched for them.

A batch ends in exactly one of three outcomes:
  - TotalSuccess:   no failed alerts
  - PartialSuccess: some alerts failed, some succeeded
  - TotalFailure:   nothing succeeded

Partial failure is a normal terminal outcome, not an error.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, TypeAdapter


class BatchResult(BaseModel):
    """Server summary of one order-generation batch. Immutable once parsed."""

    started_at: datetime | None = Field(default=None, alias="fechaInicio")
    finished_at: datetime | None = Field(default=None, alias="fechaFin")
    elapsed_ms: int = Field(default=0, alias="tiempoEjecucionMs")
    total: int = Field(default=0, alias="totalProcesadas")
    succeeded: int = Field(default=0, alias="exitosos")
    failed: int = Field(default=0, alias="fallidos")
    succeeded_alert_ids: list[int] = Field(default_factory=list, alias="alertasExitosas")
    failed_alert_ids: list[int] = Field(default_factory=list, alias="alertasFallidas")
    # Not positionally matched to failed_alert_ids; treat as unordered diagnostics.
    error_messages: list[str] = Field(default_factory=list, alias="mensajesError")
    notes: str | None = Field(default=None, alias="observaciones")
    reported_success: bool | None = Field(default=None, alias="exitoTotal")
    forecast_ids: list[int] = Field(default_factory=list, alias="prediccionesGeneradas")
    optimization_ids: list[int] = Field(default_factory=list, alias="optimizacionesGeneradas")
    order_ids: list[int] = Field(default_factory=list, alias="ordenesGeneradas")

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def success(self) -> bool:
        """True only when at least one alert succeeded and none failed."""
        return self.failed == 0 and self.succeeded > 0


# ── Purchase-order summaries ───────────────────────────────────────────────


class OrderSupplier(BaseModel):
    supplier_id: int = Field(alias="proveedorId")
    trade_name: str = Field(default="", alias="nombreComercial")
    legal_name: str | None = Field(default=None, alias="razonSocial")
    tax_id: str | None = Field(default=None, alias="ruc")
    lead_time_days: int | None = Field(default=None, alias="tiempoEntrega")

    model_config = {"populate_by_name": True, "frozen": True}


class OrderLine(BaseModel):
    product_id: int = Field(alias="productoId")
    name: str = Field(default="", alias="nombre")
    sku: str | None = Field(default=None, alias="codigoSKU")
    quantity: int = Field(default=0, alias="cantidadSolicitada")
    unit_price: float = Field(default=0.0, alias="precioUnitario")
    subtotal: float = 0.0

    model_config = {"populate_by_name": True, "frozen": True}


class OrderSummary(BaseModel):
    order_id: int = Field(alias="ordenId")
    order_number: str = Field(default="", alias="numeroOrden")
    supplier: OrderSupplier | None = Field(default=None, alias="proveedor")
    order_date: str | None = Field(default=None, alias="fechaOrden")
    expected_delivery: str | None = Field(default=None, alias="fechaEntregaEsperada")
    total: float = Field(default=0.0, alias="totalOrden")
    status: str = Field(default="", alias="estadoOrden")
    product_count: int = Field(default=0, alias="cantidadProductos")
    lines: list[OrderLine] = Field(default_factory=list, alias="productos")
    auto_generated: bool = Field(default=False, alias="generadaAutomaticamente")
    notes: str | None = Field(default=None, alias="observaciones")

    model_config = {"populate_by_name": True, "frozen": True}


ORDER_SUMMARIES_ADAPTER = TypeAdapter(list[OrderSummary])


# ── Outcomes ───────────────────────────────────────────────────────────────


class OutcomeKind(str, Enum):
    TOTAL_SUCCESS = "total_success"
    PARTIAL_SUCCESS = "partial_success"
    TOTAL_FAILURE = "total_failure"


@dataclass(frozen=True)
class TotalSuccess:
    succeeded: int
    order_ids: tuple[int, ...]
    kind: OutcomeKind = OutcomeKind.TOTAL_SUCCESS


@dataclass(frozen=True)
class PartialSuccess:
    succeeded: int
    failed: int
    failed_alert_ids: tuple[int, ...]
    order_ids: tuple[int, ...]
    kind: OutcomeKind = OutcomeKind.PARTIAL_SUCCESS


@dataclass(frozen=True)
class TotalFailure:
    failed: int
    failed_alert_ids: tuple[int, ...]
    kind: OutcomeKind = OutcomeKind.TOTAL_FAILURE


BatchOutcome = TotalSuccess | PartialSuccess | TotalFailure


def classify_batch(result: BatchResult) -> BatchOutcome:
    """Map a batch result onto exactly one outcome variant.

    A batch in which nothing succeeded, the empty batch included, is a
    total failure.
    """
    order_ids = tuple(result.order_ids)
    if result.succeeded == 0:
        return TotalFailure(failed=result.failed, failed_alert_ids=tuple(result.failed_alert_ids))
    if result.failed == 0:
        return TotalSuccess(succeeded=result.succeeded, order_ids=order_ids)
    return PartialSuccess(
        succeeded=result.succeeded,
        failed=result.failed,
        failed_alert_ids=tuple(result.failed_alert_ids),
        order_ids=order_ids,
    )
