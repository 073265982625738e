"""
Selection Tracker: the operator's set of selected alert ids.

The set is independent of the store's lifecycle: ids whose alert disappeared
are harmless until the next store replace prunes them. Insertion order is
kept so requests list ids in the order the operator picked them.
"""

from collections.abc import Callable, Iterable

import structlog

from alerts.store import AlertStore
from core.observers import ListenerHub

logger = structlog.get_logger()


class SelectionTracker:
    """Mutable set of selected alert ids with per-supplier bulk toggles."""

    def __init__(self, store: AlertStore):
        self._store = store
        self._ids: dict[int, None] = {}
        # supplier id -> ids added by the last bulk select of that supplier
        self._bulk_added: dict[int, set[int]] = {}
        self._hub: ListenerHub["SelectionTracker"] = ListenerHub()
        self._unsubscribe_store = store.subscribe(self._on_store_replaced)

    # ── Queries ───────────────────────────────────────────────────────

    def size(self) -> int:
        return len(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def contains(self, alert_id: int) -> bool:
        return alert_id in self._ids

    def ids(self) -> tuple[int, ...]:
        return tuple(self._ids)

    def is_supplier_selected(self, supplier_id: int) -> bool:
        group = self._store.group_for(supplier_id)
        if group is None or not group.alerts:
            return False
        return all(a.alert_id in self._ids for a in group.alerts)

    def estimated_total(self) -> float:
        """Estimated purchase cost of the selected alerts still in the store."""
        total = 0.0
        for alert_id in self._ids:
            alert = self._store.get(alert_id)
            if alert is not None:
                total += alert.estimated_cost
        return round(total, 2)

    # ── Mutations ─────────────────────────────────────────────────────

    def subscribe(self, listener: Callable[["SelectionTracker"], None]) -> Callable[[], None]:
        return self._hub.subscribe(listener)

    def toggle(self, alert_id: int, included: bool) -> None:
        if self._set(alert_id, included):
            self._forget_bulk(alert_id)
            self._hub.notify(self)

    def toggle_for_supplier(self, supplier_id: int, included: bool) -> None:
        """Select or deselect every alert of one supplier group.

        Deselecting right after a bulk select only removes the ids that the
        bulk select added, so ids picked individually beforehand survive.
        Without a prior bulk select, or once an alert of the group has been
        toggled individually since, the whole group is removed.
        """
        group = self._store.group_for(supplier_id)
        if group is None:
            return
        changed = False
        if included:
            added = self._bulk_added.setdefault(supplier_id, set())
            for alert in group.alerts:
                if self._set(alert.alert_id, True):
                    added.add(alert.alert_id)
                    changed = True
        else:
            targets = self._bulk_added.pop(supplier_id, None)
            if targets is None:
                targets = set(group.alert_ids)
            for alert in group.alerts:
                if alert.alert_id in targets:
                    changed = self._set(alert.alert_id, False) or changed
        if changed:
            self._hub.notify(self)

    def preselect(self, alert_ids: Iterable[object]) -> int:
        """Add ids handed in from outside (e.g. a deep link). Non-integers are skipped."""
        changed = False
        added = 0
        for raw in alert_ids:
            try:
                alert_id = int(raw)
            except (TypeError, ValueError):
                continue
            if self._set(alert_id, True):
                changed = True
                added += 1
        if changed:
            self._hub.notify(self)
        return added

    def clear(self) -> None:
        self._bulk_added.clear()
        if not self._ids:
            return
        self._ids.clear()
        self._hub.notify(self)

    def prune(self, valid_ids: Iterable[int]) -> list[int]:
        """Drop ids that are not in `valid_ids`. Returns the dropped ids."""
        valid = set(valid_ids)
        stale = [alert_id for alert_id in self._ids if alert_id not in valid]
        for alert_id in stale:
            self._set(alert_id, False)
        if stale:
            logger.info("selection.pruned_stale_ids", dropped=stale)
            self._hub.notify(self)
        return stale

    def detach(self) -> None:
        """Stop following store replacements."""
        self._unsubscribe_store()

    def _set(self, alert_id: int, included: bool) -> bool:
        if included:
            if alert_id in self._ids:
                return False
            self._ids[alert_id] = None
            return True
        if alert_id not in self._ids:
            return False
        del self._ids[alert_id]
        for added in self._bulk_added.values():
            added.discard(alert_id)
        return True

    def _forget_bulk(self, alert_id: int) -> None:
        """Drop the bulk record of any supplier group that contains `alert_id`."""
        for supplier_id in list(self._bulk_added):
            group = self._store.group_for(supplier_id)
            if group is None or alert_id in group.alert_ids:
                del self._bulk_added[supplier_id]

    def _on_store_replaced(self, store: AlertStore) -> None:
        self.prune(store.ids())
