"""
Backend integration package.

The replenishment workflow reaches the forecasting platform only through
`ReplenishmentBackend`:
  - AlertsApiClient   (REST API over httpx)

Usage:
    from integrations import AlertsApiClient, PipelineRequest

    backend = AlertsApiClient()
    alerts = await backend.fetch_dashboard_alerts()
    bundles = await backend.generate_forecasts(PipelineRequest(alert_ids=(7, 9)))
"""

from integrations.alerts_api import AlertsApiClient
from integrations.base import (
    BackendError,
    Endpoint,
    PipelineRequest,
    ReplenishmentBackend,
)

__all__ = [
    "AlertsApiClient",
    "BackendError",
    "Endpoint",
    "PipelineRequest",
    "ReplenishmentBackend",
]
