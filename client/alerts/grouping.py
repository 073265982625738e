"""
Supplier Grouping. Derives per-supplier views over the alert snapshot.

Groups are a pure function of the input sequence:
  - suppliers appear in first-seen order
  - alerts keep their input order inside a group
  - alerts without a supplier belong to no group

Nothing here is cached or patched; callers rebuild from a fresh snapshot.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import structlog

from alerts.models import Alert

logger = structlog.get_logger()


@dataclass(frozen=True)
class SupplierGroup:
    """Read-only aggregate of the alerts that share one supplier."""

    supplier_id: int
    supplier_name: str
    alerts: tuple[Alert, ...]
    total_alerts: int
    total_suggested_quantity: int
    by_criticality: dict[str, int] = field(default_factory=dict)
    estimated_cost: float = 0.0

    @property
    def alert_ids(self) -> tuple[int, ...]:
        return tuple(a.alert_id for a in self.alerts)


def group_by_supplier(alerts: Iterable[Alert]) -> list[SupplierGroup]:
    """Group alerts by supplier id in a single pass."""
    buckets: dict[int, list[Alert]] = {}
    skipped = 0
    for alert in alerts:
        supplier_id = alert.supplier_id
        if supplier_id is None:
            skipped += 1
            continue
        buckets.setdefault(supplier_id, []).append(alert)

    if skipped:
        logger.debug("grouping.alerts_without_supplier", count=skipped)

    return [_build_group(supplier_id, members) for supplier_id, members in buckets.items()]


def _build_group(supplier_id: int, members: Sequence[Alert]) -> SupplierGroup:
    by_criticality: dict[str, int] = {}
    for alert in members:
        key = alert.criticality.value
        by_criticality[key] = by_criticality.get(key, 0) + 1

    return SupplierGroup(
        supplier_id=supplier_id,
        supplier_name=members[0].supplier_name,
        alerts=tuple(members),
        total_alerts=len(members),
        total_suggested_quantity=sum(a.suggested_quantity or 0 for a in members),
        by_criticality=by_criticality,
        estimated_cost=round(sum(a.estimated_cost for a in members), 2),
    )


def find_group(groups: Iterable[SupplierGroup], supplier_id: int) -> SupplierGroup | None:
    return next((g for g in groups if g.supplier_id == supplier_id), None)
