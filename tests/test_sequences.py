"""Tests for multi-key sequences (gg, dd, dr, y/yy/yp) and their deadlines."""

import json

import pytest

from tests.harness import make_request, make_requests
from vinet.app.reconciler import parse_body
from vinet.core.models import Mode, Panel
from vinet.tui.sequences import PENDING, SequenceBuffer


class TestSequenceBuffer:
    @pytest.fixture
    def committed(self):
        return []

    @pytest.fixture
    def buffer(self, scheduler, committed):
        return SequenceBuffer(scheduler, {"g": 1000, "y": 300}, committed.append)

    def test_completed_sequence_returns_action(self, buffer):
        sequences = {"gg": "first"}
        assert buffer.feed("g", sequences) is PENDING
        assert buffer.feed("g", sequences) == "first"
        assert buffer.state is None

    def test_key_outside_sequences_returns_none(self, buffer):
        assert buffer.feed("j", {"gg": "first"}) is None
        assert buffer.state is None

    def test_pending_records_deadline(self, buffer, scheduler):
        scheduler.advance(250)
        buffer.feed("g", {"gg": "first"})
        assert buffer.state.prefix == "g"
        assert buffer.state.deadline == 1250

    def test_prefix_expires_without_commit(self, buffer, scheduler, committed):
        buffer.feed("g", {"gg": "first"})
        scheduler.advance(1000)
        assert buffer.state is None
        assert committed == []

    def test_timeout_action_commits_on_expiry(self, buffer, scheduler, committed):
        buffer.feed("y", {"yy": "all"}, {"y": "one"})
        scheduler.advance(299)
        assert committed == []
        scheduler.advance(1)
        assert committed == ["one"]

    def test_completed_sequence_cancels_timeout_action(self, buffer, scheduler, committed):
        sequences = {"yy": "all"}
        buffer.feed("y", sequences, {"y": "one"})
        assert buffer.feed("y", sequences, {"y": "one"}) == "all"
        scheduler.advance(1000)
        assert committed == []

    def test_non_continuation_key_handled_fresh(self, buffer):
        sequences = {"gg": "first"}
        buffer.feed("g", sequences)
        assert buffer.feed("j", sequences) is None
        assert buffer.state is None

    def test_reset_cancels_timer(self, buffer, scheduler, committed):
        buffer.feed("y", {"yy": "all"}, {"y": "one"})
        buffer.reset()
        scheduler.advance(1000)
        assert committed == []


class TestNormalSequences:
    @pytest.fixture
    def listed(self, keyboard, load):
        load(*make_requests(10))
        keyboard.set(selected_index=7)
        return keyboard

    def test_gg_within_deadline_goes_to_first(self, listed, scheduler):
        listed.press("g")
        scheduler.advance(500)
        listed.press("g")
        assert listed.state.selected_index == 0

    def test_gg_after_deadline_starts_over(self, listed, scheduler):
        listed.press("g")
        scheduler.advance(1100)
        listed.press("g")
        assert listed.state.selected_index == 7
        assert listed.interpreter.sequences.state.prefix == "g"

    def test_interrupted_prefix_dispatches_key(self, listed):
        listed.press("g", "j")
        assert listed.state.selected_index == 8
        assert listed.interpreter.sequences.state is None

    def test_dd_deletes_selected(self, listed):
        listed.press("d", "d")
        ids = [r.id for r in listed.state.requests]
        assert "r7" not in ids
        assert len(ids) == 9

    def test_dr_clears_all(self, listed):
        listed.press("d", "r")
        assert listed.state.requests == ()
        assert listed.state.selected_index == 0

    def test_mode_change_resets_pending_prefix(self, listed):
        listed.press("g", "/")
        assert listed.state.mode is Mode.SEARCH
        assert listed.interpreter.sequences.state is None


class TestPreviewYank:
    BODY = {"user": {"name": "Ada"}, "tags": ["a", "b"]}

    @pytest.fixture
    def previewing(self, keyboard, load):
        body = parse_body(json.dumps(self.BODY))
        load(make_request("r1", status=200, response_body=body))
        keyboard.set(
            mode=Mode.INSPECT,
            inspect_focus=Panel.PREVIEW,
            preview_tab=Panel.PREVIEW,
            json_index=1,
        )
        return keyboard

    def test_single_y_commits_after_quiet_period(self, previewing, scheduler):
        previewing.press("y")
        assert previewing.clipboard == []
        scheduler.advance(300)
        assert previewing.clipboard == ["Ada"]
        assert previewing.state.message.text == "Yanked value"

    def test_yy_copies_json_and_cancels_single(self, previewing, scheduler):
        previewing.press("y", "y")
        assert previewing.clipboard == ['"Ada"']
        scheduler.advance(1000)
        assert previewing.clipboard == ['"Ada"']
        assert previewing.state.message.text == "Yanked JSON"

    def test_yp_copies_path(self, previewing):
        previewing.press("y", "p")
        assert previewing.clipboard == ["user.name"]
        assert previewing.state.message.text == "Yanked path"

    def test_y_on_container_copies_indented_json(self, previewing, scheduler):
        previewing.set(json_index=0)
        previewing.press("y")
        scheduler.advance(300)
        assert previewing.clipboard == ['{\n  "name": "Ada"\n}']

    def test_gg_in_preview_goes_to_first_node(self, previewing):
        previewing.press("G")
        assert previewing.state.json_index == 4
        previewing.press("g", "g")
        assert previewing.state.json_index == 0
