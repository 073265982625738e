"""
Test Configuration: fixtures for alert snapshots, a scripted backend and
the workflow containers.

`FakeBackend` is an in-process ReplenishmentBackend: every call is recorded,
responses are scripted per test, and a call can be held open with an
asyncio.Event to exercise re-entrancy and stale-response handling.
"""

import asyncio
from collections.abc import Sequence
from datetime import datetime

import pytest

from alerts.models import Alert, InProcessBatch
from alerts.selection import SelectionTracker
from alerts.store import AlertStore
from core import config as config_module
from integrations.base import BackendError, Endpoint, PipelineRequest, ReplenishmentBackend
from replenishment.forecasts import SupplierForecastBundle
from replenishment.notices import NoticeBoard
from replenishment.results import BatchResult, OrderSummary


def make_alert(
    alert_id: int,
    supplier_id: int | None = 1,
    supplier_name: str = "Acme",
    criticality: str = "ALTA",
    suggested_quantity: int | None = 10,
    unit_cost: float | None = 2.5,
    state: str = "PENDIENTE",
) -> Alert:
    """Build an alert the way the dashboard endpoint serves it."""
    product: dict = {
        "productoId": 1000 + alert_id,
        "nombre": f"Product {alert_id}",
        "codigoSKU": f"SKU-{alert_id}",
        "costoAdquisicion": unit_cost,
    }
    if supplier_id is not None:
        product["proveedor"] = {"proveedorId": supplier_id, "nombreComercial": supplier_name}
    return Alert.model_validate(
        {
            "alertaId": alert_id,
            "tipoAlerta": "STOCK_BAJO",
            "nivelCriticidad": criticality,
            "mensaje": f"Low stock for product {alert_id}",
            "producto": product,
            "stockActual": 2,
            "stockMinimo": 5,
            "cantidadSugerida": suggested_quantity,
            "estado": state,
            "fechaGeneracion": datetime(2024, 3, 1, 8, 0).isoformat(),
        }
    )


def make_bundle(supplier_id: int, product_ids: Sequence[int] = (), quality: str = "BUENA") -> SupplierForecastBundle:
    return SupplierForecastBundle.model_validate(
        {
            "proveedorId": supplier_id,
            "nombreProveedor": f"Supplier {supplier_id}",
            "predicciones": [
                {
                    "productoId": pid,
                    "nombreProducto": f"Product {pid}",
                    "valoresPredichos": [1.0, 2.0, 3.0],
                    "calidadPrediccion": quality,
                    "horizonteUsado": 30,
                    "algoritmoUsado": "SARIMA",
                }
                for pid in product_ids
            ],
            "totalAlertas": len(product_ids),
            "prediccionesExitosas": len(product_ids),
        }
    )


def make_result(succeeded: int, failed: int, order_ids: Sequence[int] = (), **extra) -> BatchResult:
    return BatchResult.model_validate(
        {
            "totalProcesadas": succeeded + failed,
            "exitosos": succeeded,
            "fallidos": failed,
            "tiempoEjecucionMs": 65000,
            "ordenesGeneradas": list(order_ids),
            **extra,
        }
    )


def make_order(order_id: int, total: float = 100.0) -> OrderSummary:
    return OrderSummary.model_validate(
        {
            "ordenId": order_id,
            "numeroOrden": f"OC-{order_id}",
            "proveedor": {"proveedorId": 1, "nombreComercial": "Acme"},
            "totalOrden": total,
            "estadoOrden": "BORRADOR",
            "cantidadProductos": 1,
        }
    )


class FakeBackend(ReplenishmentBackend):
    """Scripted backend that records every call it receives."""

    def __init__(self, alerts: Sequence[Alert] = ()):
        super().__init__()
        self.alerts = list(alerts)
        self.bundles: dict[int, SupplierForecastBundle] = {}
        self.result: BatchResult = make_result(1, 0)
        self.orders: list[OrderSummary] = []
        self.in_process = InProcessBatch(success=True, total_updated=0, message="")
        self.failures: dict[Endpoint, BackendError] = {}
        self.gates: dict[Endpoint, asyncio.Event] = {}
        self.calls: list[tuple[Endpoint, object]] = []

    def fail(self, endpoint: Endpoint, message: str = "boom", status_code: int | None = 500) -> None:
        self.failures[endpoint] = BackendError(endpoint, message, status_code=status_code)

    def hold(self, endpoint: Endpoint) -> asyncio.Event:
        """Keep calls to `endpoint` pending until the returned event is set."""
        gate = asyncio.Event()
        self.gates[endpoint] = gate
        return gate

    def calls_to(self, endpoint: Endpoint) -> list[object]:
        return [arg for ep, arg in self.calls if ep == endpoint]

    async def _respond(self, endpoint: Endpoint, arg: object, value):
        self.calls.append((endpoint, arg))
        gate = self.gates.get(endpoint)
        if gate is not None:
            await gate.wait()
        if endpoint in self.failures:
            raise self.failures[endpoint]
        return value

    async def fetch_dashboard_alerts(self) -> list[Alert]:
        return await self._respond(Endpoint.DASHBOARD_ALERTS, None, list(self.alerts))

    async def generate_forecasts(self, request: PipelineRequest) -> dict[int, SupplierForecastBundle]:
        return await self._respond(Endpoint.FORECAST_BATCH, request, dict(self.bundles))

    async def generate_orders(self, request: PipelineRequest) -> BatchResult:
        return await self._respond(Endpoint.ORDER_BATCH, request, self.result)

    async def fetch_order_summaries(self, order_ids: Sequence[int]) -> list[OrderSummary]:
        return await self._respond(Endpoint.ORDER_SUMMARIES, list(order_ids), list(self.orders))

    async def mark_in_process(self, alert_ids: Sequence[int], operator_id: int, notes: str | None = None) -> InProcessBatch:
        return await self._respond(Endpoint.MARK_IN_PROCESS, (tuple(alert_ids), operator_id, notes), self.in_process)


@pytest.fixture(autouse=True)
def local_settings(monkeypatch):
    """Every test starts from local defaults and a fresh settings cache."""
    for name in ("APP_ENV", "DEBUG", "API_BASE_URL", "API_TOKEN", "FORECAST_HORIZON_DAYS", "OPERATOR_ID"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("APP_ENV", "test")
    config_module.get_settings.cache_clear()
    yield
    config_module.get_settings.cache_clear()


@pytest.fixture
def alerts():
    """Five alerts: three for Acme (1), one for Globex (2), one without supplier."""
    return [
        make_alert(7, supplier_id=1, criticality="CRITICA", suggested_quantity=10, unit_cost=2.0),
        make_alert(8, supplier_id=2, supplier_name="Globex", criticality="MEDIA", suggested_quantity=4, unit_cost=5.0),
        make_alert(9, supplier_id=1, criticality="ALTA", suggested_quantity=3, unit_cost=1.5),
        make_alert(10, supplier_id=None, criticality="BAJA"),
        make_alert(11, supplier_id=1, criticality="ALTA", suggested_quantity=None, unit_cost=3.0),
    ]


@pytest.fixture
def store(alerts):
    return AlertStore(alerts)


@pytest.fixture
def selection(store):
    return SelectionTracker(store)


@pytest.fixture
def notices():
    return NoticeBoard()


@pytest.fixture
def backend(alerts):
    return FakeBackend(alerts)


@pytest.fixture
def alert_factory():
    return make_alert


@pytest.fixture
def bundle_factory():
    return make_bundle


@pytest.fixture
def result_factory():
    return make_result


@pytest.fixture
def order_factory():
    return make_order
