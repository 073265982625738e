"""Tests for dashboard quick processing."""

import asyncio

import pytest

from alerts.models import InProcessBatch
from core.config import get_settings
from integrations.base import Endpoint
from replenishment.dashboard import QuickProcessor
from replenishment.notices import NoticeSeverity
from replenishment.pipeline import Completed, Failed, Ignored, Rejected


@pytest.fixture
def processor(backend, store, selection, notices):
    return QuickProcessor(backend, store, selection, notices)


class TestProcessSelected:
    @pytest.mark.asyncio
    async def test_processes_selection_and_clears_it(self, processor, backend, selection, result_factory):
        backend.result = result_factory(2, 0, [101])
        selection.toggle(8, True)
        selection.toggle(7, True)

        assert await processor.process_selected() == Completed()

        request = backend.calls_to(Endpoint.ORDER_BATCH)[0]
        assert request.alert_ids == (8, 7)
        assert request.notes == "Automatic processing from dashboard"
        assert selection.size() == 0
        assert [ep for ep, _ in backend.calls] == [
            Endpoint.ORDER_BATCH,
            Endpoint.ORDER_SUMMARIES,
            Endpoint.DASHBOARD_ALERTS,
        ]

    @pytest.mark.asyncio
    async def test_empty_selection_is_refused(self, processor, backend, notices):
        assert isinstance(await processor.process_selected(), Rejected)
        assert backend.calls == []
        assert len(notices.of(NoticeSeverity.WARN)) == 1

    @pytest.mark.asyncio
    async def test_failure_posts_one_error_and_keeps_selection(self, processor, backend, selection, notices):
        backend.fail(Endpoint.ORDER_BATCH)
        selection.toggle(7, True)

        assert isinstance(await processor.process_selected(), Failed)
        assert selection.ids() == (7,)
        assert len(notices.of(NoticeSeverity.ERROR)) == 1
        assert not processor.processing

    @pytest.mark.asyncio
    async def test_reentrant_call_is_ignored(self, processor, backend, selection):
        gate = backend.hold(Endpoint.ORDER_BATCH)
        selection.toggle(7, True)

        first = asyncio.create_task(processor.process_selected())
        await asyncio.sleep(0)
        second = await processor.process_supplier(1)
        gate.set()
        await first

        assert isinstance(second, Ignored)
        assert len(backend.calls_to(Endpoint.ORDER_BATCH)) == 1

    @pytest.mark.asyncio
    async def test_stays_busy_until_refresh_and_clear_finish(self, processor, backend, selection, result_factory):
        backend.result = result_factory(1, 0, [101])
        gate = backend.hold(Endpoint.ORDER_SUMMARIES)
        selection.toggle(7, True)

        first = asyncio.create_task(processor.process_selected())
        for _ in range(5):
            await asyncio.sleep(0)
        assert backend.calls_to(Endpoint.ORDER_SUMMARIES) == [[101]]
        assert processor.processing

        second = await processor.process_selected()
        gate.set()

        assert isinstance(second, Ignored)
        assert await first == Completed()
        assert len(backend.calls_to(Endpoint.ORDER_BATCH)) == 1
        assert not processor.processing
        assert selection.size() == 0


class TestProcessSupplier:
    @pytest.mark.asyncio
    async def test_orders_whole_supplier_group(self, processor, backend, notices, result_factory):
        backend.result = result_factory(3, 0)

        await processor.process_supplier(1)

        request = backend.calls_to(Endpoint.ORDER_BATCH)[0]
        assert request.alert_ids == (7, 9, 11)
        assert request.notes == "Automatic processing - supplier: Acme"
        assert notices.of(NoticeSeverity.SUCCESS)[0].detail.startswith("Acme: ")

    @pytest.mark.asyncio
    async def test_unknown_supplier_is_refused(self, processor, backend):
        assert isinstance(await processor.process_supplier(99), Rejected)
        assert backend.calls == []


class TestMarkInProcess:
    @pytest.fixture
    def operator_processor(self, backend, store, selection, notices, monkeypatch):
        monkeypatch.setenv("OPERATOR_ID", "4")
        get_settings.cache_clear()
        return QuickProcessor(backend, store, selection, notices)

    @pytest.mark.asyncio
    async def test_marks_selection_then_reloads_and_clears(self, operator_processor, backend, selection, notices):
        backend.in_process = InProcessBatch(success=True, total_updated=2, message="2 alerts marked")
        selection.toggle(9, True)
        selection.toggle(7, True)

        assert await operator_processor.mark_in_process() == Completed()

        assert backend.calls_to(Endpoint.MARK_IN_PROCESS) == [((9, 7), 4, "Marked from dashboard")]
        assert [ep for ep, _ in backend.calls] == [Endpoint.MARK_IN_PROCESS, Endpoint.DASHBOARD_ALERTS]
        assert [n.detail for n in notices.of(NoticeSeverity.SUCCESS)] == ["2 alerts marked"]
        assert selection.size() == 0
        assert not operator_processor.processing

    @pytest.mark.asyncio
    async def test_empty_selection_is_refused(self, operator_processor, backend, notices):
        assert isinstance(await operator_processor.mark_in_process(), Rejected)
        assert backend.calls == []
        assert len(notices.of(NoticeSeverity.WARN)) == 1

    @pytest.mark.asyncio
    async def test_requires_configured_operator(self, processor, backend, selection):
        selection.toggle(7, True)

        result = await processor.mark_in_process()

        assert isinstance(result, Rejected)
        assert "operator" in result.reason
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_failure_posts_one_error_and_keeps_selection(self, operator_processor, backend, selection, notices):
        backend.fail(Endpoint.MARK_IN_PROCESS)
        selection.toggle(7, True)

        assert isinstance(await operator_processor.mark_in_process(), Failed)
        assert selection.ids() == (7,)
        assert len(notices.of(NoticeSeverity.ERROR)) == 1
        assert backend.calls_to(Endpoint.DASHBOARD_ALERTS) == []
        assert not operator_processor.processing

    @pytest.mark.asyncio
    async def test_ignored_while_orders_are_processing(self, operator_processor, backend, selection):
        gate = backend.hold(Endpoint.ORDER_BATCH)
        selection.toggle(7, True)

        first = asyncio.create_task(operator_processor.process_selected())
        await asyncio.sleep(0)
        second = await operator_processor.mark_in_process()
        gate.set()
        await first

        assert isinstance(second, Ignored)
        assert backend.calls_to(Endpoint.MARK_IN_PROCESS) == []
