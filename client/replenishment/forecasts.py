"""
Forecast review models: per-supplier forecast bundles returned by the
forecast batch endpoint, plus a small read-only helper used while the
operator reviews them before committing orders.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field, TypeAdapter


class ForecastQuality(str, Enum):
    """Quality band the backend assigns from MAPE."""

    EXCELLENT = "EXCELENTE"  # MAPE < 10%
    GOOD = "BUENA"  # 10-20%
    FAIR = "REGULAR"  # 20-50%
    POOR = "MALA"  # > 50%


ACCEPTABLE_QUALITY = frozenset({ForecastQuality.EXCELLENT, ForecastQuality.GOOD})


class ProductForecast(BaseModel):
    product_id: int = Field(alias="productoId")
    product_name: str = Field(alias="nombreProducto")
    sku: str | None = Field(default=None, alias="codigoSKU")
    product_code: str | None = Field(default=None, alias="codigoProducto")
    forecast_id: int | None = Field(default=None, alias="prediccionId")
    historical_values: list[float] = Field(default_factory=list, alias="valoresHistoricos")
    predicted_values: list[float] = Field(default_factory=list, alias="valoresPredichos")
    historical_dates: list[str] = Field(default_factory=list, alias="fechasHistoricas")
    predicted_dates: list[str] = Field(default_factory=list, alias="fechasPredichas")
    mae: float = 0.0
    mape: float = 0.0
    rmse: float = 0.0
    quality: ForecastQuality = Field(alias="calidadPrediccion")
    horizon_days: int = Field(alias="horizonteUsado")
    algorithm: str = Field(default="", alias="algoritmoUsado")
    has_trend: bool = Field(default=False, alias="tieneTendencia")
    has_seasonality: bool = Field(default=False, alias="tieneEstacionalidad")
    economic_order_qty: float | None = Field(default=None, alias="cantidadOptimaPedido")
    reorder_point: float | None = Field(default=None, alias="puntoReorden")
    warnings: list[str] = Field(default_factory=list, alias="advertencias")
    recommendations: list[str] = Field(default_factory=list, alias="recomendaciones")

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def predicted_total(self) -> float:
        return sum(self.predicted_values)

    def describe(self) -> str:
        """One-line diagnostic text for a forecast row."""
        return (
            f"algorithm={self.algorithm} MAE={self.mae:.2f} RMSE={self.rmse:.2f} "
            f"horizon={self.horizon_days}d trend={'yes' if self.has_trend else 'no'} "
            f"seasonality={'yes' if self.has_seasonality else 'no'}"
        )


class AggregateMetrics(BaseModel):
    mean_mae: float = Field(default=0.0, alias="maePromedio")
    mean_mape: float = Field(default=0.0, alias="mapePromedio")
    mean_rmse: float = Field(default=0.0, alias="rmsePromedio")
    overall_quality: str | None = Field(default=None, alias="calidadGeneral")
    total_products: int = Field(default=0, alias="totalProductos")
    excellent: int = Field(default=0, alias="prediccionesExcelentes")
    good: int = Field(default=0, alias="prediccionesBuenas")
    fair: int = Field(default=0, alias="prediccionesRegulares")
    poor: int = Field(default=0, alias="prediccionesMalas")
    acceptable_pct: float = Field(default=0.0, alias="porcentajeAceptable")

    model_config = {"populate_by_name": True, "frozen": True}


class SupplierForecastBundle(BaseModel):
    supplier_id: int = Field(alias="proveedorId")
    supplier_name: str = Field(default="", alias="nombreProveedor")
    supplier_tax_id: str | None = Field(default=None, alias="rucProveedor")
    supplier_contact: str | None = Field(default=None, alias="contactoProveedor")
    supplier_email: str | None = Field(default=None, alias="emailProveedor")
    supplier_phone: str | None = Field(default=None, alias="telefonoProveedor")
    forecasts: list[ProductForecast] = Field(default_factory=list, alias="predicciones")
    metrics: AggregateMetrics | None = Field(default=None, alias="metricas")
    total_alerts: int = Field(default=0, alias="totalAlertas")
    successful_forecasts: int = Field(default=0, alias="prediccionesExitosas")
    failed_forecasts: int = Field(default=0, alias="prediccionesFallidas")

    model_config = {"populate_by_name": True, "frozen": True}


_BUNDLES_ADAPTER = TypeAdapter(dict[int, SupplierForecastBundle])


def parse_forecast_bundles(payload: object) -> dict[int, SupplierForecastBundle]:
    """Validate the `{supplierId: bundle}` mapping. JSON object keys arrive as strings."""
    return _BUNDLES_ADAPTER.validate_python(payload)


@dataclass(frozen=True)
class ForecastReview:
    """Read-only view over the bundles received for one workflow run."""

    bundles: Mapping[int, SupplierForecastBundle]

    def ordered(self) -> list[SupplierForecastBundle]:
        return [self.bundles[k] for k in self.bundles]

    @property
    def total_products(self) -> int:
        return sum(len(b.forecasts) for b in self.bundles.values())

    @property
    def failed_forecasts(self) -> int:
        return sum(b.failed_forecasts for b in self.bundles.values())

    def covered_product_ids(self) -> set[int]:
        return {f.product_id for b in self.bundles.values() for f in b.forecasts}

    def needs_attention(self) -> list[ProductForecast]:
        """Forecasts outside the acceptable quality band or carrying warnings."""
        return [
            f
            for b in self.bundles.values()
            for f in b.forecasts
            if f.quality not in ACCEPTABLE_QUALITY or f.warnings
        ]
