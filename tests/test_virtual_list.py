"""Tests for virtual list window math, slot recycling and the request list controller."""

from tests.harness import make_requests
from vinet.core.models import Mode
from vinet.tui.request_list import RequestList, RowSlot
from vinet.tui.virtual_list import (
    BUFFER_ROWS,
    SlotPool,
    VirtualWindow,
    Window,
    scroll_into_view,
    visible_window,
)


class TestVisibleWindow:
    def test_top_of_list(self):
        assert visible_window(100, 1, 0, 10) == Window(0, 10 + BUFFER_ROWS)

    def test_one_row_overscan_above(self):
        assert visible_window(100, 1, 50, 10) == Window(49, 62)

    def test_clamped_to_total(self):
        assert visible_window(5, 1, 0, 10) == Window(0, 5)

    def test_empty(self):
        assert visible_window(0, 1, 0, 10) == Window(0, 0)
        assert len(Window(0, 0)) == 0

    def test_taller_rows(self):
        assert visible_window(100, 2, 20, 10) == Window(9, 17)

    def test_window_membership(self):
        window = Window(3, 6)
        assert 3 in window
        assert 6 not in window
        assert len(window) == 3


class TestScrollIntoView:
    def test_visible_row_needs_no_scroll(self):
        assert scroll_into_view(5, 1, 0, 10) is None

    def test_row_below_aligns_bottom(self):
        assert scroll_into_view(20, 1, 0, 10) == 11

    def test_row_above_aligns_top(self):
        assert scroll_into_view(3, 1, 10, 10) == 3


class TestVirtualWindow:
    def test_first_measurement_wins(self):
        window = VirtualWindow(1)
        assert window.measure(2) is True
        assert window.row_height == 2
        assert window.measure(3) is False
        assert window.row_height == 2
        assert window.measured

    def test_same_measurement_reports_no_change(self):
        window = VirtualWindow(1)
        assert window.measure(1) is False
        assert window.measured

    def test_content_height(self):
        assert VirtualWindow(2).content_height(10) == 20


class TestSlotPool:
    def test_slots_reused_when_window_shifts(self):
        pool = SlotPool(RowSlot)
        first = pool.assign(Window(0, 13))
        assert pool.created == 13
        shifted = pool.assign(Window(40, 53))
        assert pool.created == 13
        assert shifted[0][0] == 40
        assert [slot for _, slot in shifted] == [slot for _, slot in first]

    def test_pool_grows_only_when_window_grows(self):
        pool = SlotPool(RowSlot)
        pool.assign(Window(0, 5))
        pool.assign(Window(0, 8))
        assert pool.created == 8


class TestRequestList:
    def test_renders_only_window(self, store, load):
        load(*make_requests(1000))
        rows = RequestList(store)
        rows.set_viewport(10)
        frame = rows.render(store.get_state())
        assert frame.total == 1000
        assert len(frame.rows) == 10 + BUFFER_ROWS
        assert frame.content_height == 1000

    def test_selection_scrolls_into_view(self, store, scheduler, load):
        load(*make_requests(1000))
        rows = RequestList(store)
        rows.set_viewport(10)
        rows.render(store.get_state())
        store.set_state({"selected_index": 500})
        scheduler.run_pending()

        frame = rows.render(store.get_state())
        assert frame.scroll_offset == 491
        assert 500 in frame.window
        assert rows.pool.created == 10 + BUFFER_ROWS
        selected = [slot for row, slot in frame.rows if slot.selected]
        assert [s.request_id for s in selected] == ["r500"]

    def test_unchanged_rows_are_not_rebound(self, store, load):
        load(*make_requests(20))
        rows = RequestList(store)
        frame = rows.render(store.get_state())
        swaps = [slot.swaps for _, slot in frame.rows]
        frame = rows.render(store.get_state())
        assert [slot.swaps for _, slot in frame.rows] == swaps

    def test_updated_record_rebinds_its_row(self, store, scheduler, load):
        load(*make_requests(5))
        rows = RequestList(store)
        rows.render(store.get_state())
        store.update_request("r2", {"status": 404, "status_text": "Not Found"})
        scheduler.run_pending()
        frame = rows.render(store.get_state())
        slot = dict(frame.rows)[2]
        assert slot.cells[1] == "404"
        assert slot.status == 404

    def test_expanded_inspect_shows_only_selected(self, store, scheduler, load):
        load(*make_requests(50))
        store.set_state({"selected_index": 30, "mode": Mode.INSPECT, "inspect_expanded": True})
        scheduler.run_pending()
        frame = RequestList(store).render(store.get_state())
        assert frame.window == Window(30, 31)
        assert [row for row, _ in frame.rows] == [30]

    def test_empty_list(self, store):
        frame = RequestList(store).render(store.get_state())
        assert frame.rows == []
        assert frame.total == 0

    def test_measured_height_replaces_estimate(self, store, load):
        load(*make_requests(1000))
        rows = RequestList(store, estimated_row_height=2)
        rows.set_viewport(10)
        frame = rows.render(store.get_state())
        assert len(frame.rows) == 5 + BUFFER_ROWS
        assert frame.content_height == 2000

        assert rows.measure(1) is True
        frame = rows.render(store.get_state())
        assert len(frame.rows) == 10 + BUFFER_ROWS
        assert frame.content_height == 1000
