"""
Alerts REST API Client

HTTP implementation of ReplenishmentBackend against the forecasting
platform's `/alertas-inventario` endpoints.

Retry policy:
  - GETs (alert list, order summaries) retry on connection-level errors
  - POSTs are sent exactly once; order generation creates purchase orders
    and marking in process reassigns alerts, so neither may be replayed
    behind the operator's back
"""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from alerts.models import Alert, InProcessBatch
from core.config import get_settings
from integrations.base import BackendError, Endpoint, PipelineRequest, ReplenishmentBackend
from replenishment.forecasts import SupplierForecastBundle, parse_forecast_bundles
from replenishment.results import ORDER_SUMMARIES_ADAPTER, BatchResult, OrderSummary

T = TypeVar("T")

ALERTS_PATH = "/alertas-inventario"
DASHBOARD_PATH = f"{ALERTS_PATH}/dashboard"
FORECAST_BATCH_PATH = f"{ALERTS_PATH}/procesar/con-detalles"
ORDER_BATCH_PATH = f"{ALERTS_PATH}/procesar/automatico"
ORDER_SUMMARIES_PATH = f"{ALERTS_PATH}/procesar/resumen-ordenes"
MARK_IN_PROCESS_PATH = f"{ALERTS_PATH}/batch/marcar-en-proceso"


class AlertsApiClient(ReplenishmentBackend):
    """Client for the alert-processing endpoints of the backend."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__()
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        token = settings.api_token if token is None else token
        self.headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    # ── Public operations ─────────────────────────────────────────────

    async def fetch_dashboard_alerts(self) -> list[Alert]:
        async def send() -> list[Alert]:
            payload = await self._get_json(DASHBOARD_PATH)
            if not isinstance(payload, list):
                raise ValueError("expected a list of alerts")
            return [Alert.model_validate(item) for item in payload]

        return await self._call(Endpoint.DASHBOARD_ALERTS, send)

    async def generate_forecasts(self, request: PipelineRequest) -> dict[int, SupplierForecastBundle]:
        async def send() -> dict[int, SupplierForecastBundle]:
            payload = await self._post_json(FORECAST_BATCH_PATH, request.forecast_payload())
            return parse_forecast_bundles(payload)

        return await self._call(Endpoint.FORECAST_BATCH, send)

    async def generate_orders(self, request: PipelineRequest) -> BatchResult:
        async def send() -> BatchResult:
            payload = await self._post_json(ORDER_BATCH_PATH, request.to_payload())
            return BatchResult.model_validate(payload)

        return await self._call(Endpoint.ORDER_BATCH, send)

    async def fetch_order_summaries(self, order_ids: Sequence[int]) -> list[OrderSummary]:
        if not order_ids:
            return []

        async def send() -> list[OrderSummary]:
            params = {"ordenIds": ",".join(str(i) for i in order_ids)}
            payload = await self._get_json(ORDER_SUMMARIES_PATH, params=params)
            return ORDER_SUMMARIES_ADAPTER.validate_python(payload)

        return await self._call(Endpoint.ORDER_SUMMARIES, send)

    async def mark_in_process(
        self, alert_ids: Sequence[int], operator_id: int, notes: str | None = None
    ) -> InProcessBatch:
        if not alert_ids:
            raise ValueError("At least one alert must be selected")
        body: dict[str, Any] = {"alertaIds": list(alert_ids), "usuarioId": operator_id}
        if notes:
            body["observaciones"] = notes

        async def send() -> InProcessBatch:
            payload = await self._post_json(MARK_IN_PROCESS_PATH, body)
            return InProcessBatch.model_validate(payload)

        return await self._call(Endpoint.MARK_IN_PROCESS, send)

    # ── Transport ─────────────────────────────────────────────────────

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(min=1, max=10),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        async with self._client() as client:
            response = await client.get(path, params=params)
            response.raise_for_status()
            return response.json()

    async def _post_json(self, path: str, body: dict[str, Any]) -> Any:
        async with self._client() as client:
            response = await client.post(path, json=body)
            response.raise_for_status()
            return response.json()

    async def _call(self, endpoint: Endpoint, send: Callable[[], Awaitable[T]]) -> T:
        """Run one operation, translating every failure into BackendError."""
        try:
            result = await send()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            self.logger.warning("api.http_error", endpoint=endpoint.value, status=status)
            raise BackendError(endpoint, _error_detail(exc.response), status_code=status) from exc
        except httpx.HTTPError as exc:
            self.logger.warning("api.transport_error", endpoint=endpoint.value, error=str(exc))
            raise BackendError(endpoint, f"{type(exc).__name__}: {exc}") from exc
        except ValueError as exc:
            # JSON decode errors and pydantic validation errors
            self.logger.warning("api.invalid_payload", endpoint=endpoint.value, error=str(exc))
            raise BackendError(endpoint, f"Invalid response payload: {exc}") from exc
        self.logger.debug("api.call_completed", endpoint=endpoint.value)
        return result


def _error_detail(response: httpx.Response) -> str:
    """Best-effort error message from a failed response body."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "mensaje", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    text = response.text.strip()
    if text:
        return text[:200]
    return response.reason_phrase or "request failed"
