"""
Alert Store: the shared snapshot of active alerts.

The store is only ever replaced wholesale from a complete backend response.
Terminal alerts (resolved / ignored) are dropped on replace so they leave
the selection pool after the next refresh. Supplier groups are rebuilt from
every new snapshot.
"""

from collections.abc import Callable, Iterable

import structlog

from alerts.grouping import SupplierGroup, find_group, group_by_supplier
from alerts.models import Alert, Criticality
from core.observers import ListenerHub
from integrations.base import ReplenishmentBackend

logger = structlog.get_logger()


class AlertStore:
    """Holds the current alert snapshot and its derived supplier groups."""

    def __init__(self, alerts: Iterable[Alert] = ()):
        self._alerts: tuple[Alert, ...] = ()
        self._by_id: dict[int, Alert] = {}
        self._groups: list[SupplierGroup] = []
        self._hub: ListenerHub["AlertStore"] = ListenerHub()
        self._apply(alerts)

    # ── Read side ─────────────────────────────────────────────────────

    @property
    def alerts(self) -> tuple[Alert, ...]:
        return self._alerts

    @property
    def groups(self) -> list[SupplierGroup]:
        return list(self._groups)

    def get(self, alert_id: int) -> Alert | None:
        return self._by_id.get(alert_id)

    def ids(self) -> set[int]:
        return set(self._by_id)

    def group_for(self, supplier_id: int) -> SupplierGroup | None:
        return find_group(self._groups, supplier_id)

    def criticality_counts(self) -> dict[Criticality, int]:
        counts = {level: 0 for level in Criticality}
        for alert in self._alerts:
            counts[alert.criticality] += 1
        return counts

    def __len__(self) -> int:
        return len(self._alerts)

    # ── Write side ────────────────────────────────────────────────────

    def subscribe(self, listener: Callable[["AlertStore"], None]) -> Callable[[], None]:
        return self._hub.subscribe(listener)

    def replace(self, alerts: Iterable[Alert]) -> None:
        """Swap in a complete snapshot and notify listeners."""
        self._apply(alerts)
        logger.info(
            "alert_store.replaced",
            alerts=len(self._alerts),
            suppliers=len(self._groups),
        )
        self._hub.notify(self)

    async def refresh(self, backend: ReplenishmentBackend) -> None:
        """Re-query the backend and replace the snapshot.

        Errors propagate; the previous snapshot stays in place on failure.
        """
        alerts = await backend.fetch_dashboard_alerts()
        self.replace(alerts)

    def _apply(self, alerts: Iterable[Alert]) -> None:
        active: list[Alert] = []
        seen: set[int] = set()
        for alert in alerts:
            if alert.state.is_terminal or alert.alert_id in seen:
                continue
            seen.add(alert.alert_id)
            active.append(alert)
        self._alerts = tuple(active)
        self._by_id = {a.alert_id: a for a in active}
        self._groups = group_by_supplier(self._alerts)
