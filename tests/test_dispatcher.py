"""Tests for inbound message dispatch, /setlist handling and table reloads."""

import threading
from unittest.mock import Mock, patch

import pytest

from qcbridge.dispatcher import Dispatcher
from qcbridge.errors import ConfigLoadError
from qcbridge.mapping.loader import load_mapping_table
from qcbridge.mapping.rule import MappingRule
from qcbridge.mapping.table import MappingTable
from qcbridge.session import BridgeSession


@pytest.fixture
def synthesizer():
    return Mock()


@pytest.fixture
def dispatcher(sample_table, synthesizer):
    return Dispatcher(BridgeSession(sample_table), synthesizer)


class TestOnMessage:

    def test_resolved_rule_is_synthesized(self, dispatcher, synthesizer, args):
        received = args(1)
        rule = dispatcher.on_message("/scene", received)
        assert rule.osc_out_address == "/lights/one"
        synthesizer.synthesize.assert_called_once_with(rule, received, 0)

    def test_trailing_slash_resolves_like_plain_address(self, dispatcher, args):
        assert dispatcher.on_message("/scene/", args(2)) is dispatcher.on_message("/scene", args(2))

    def test_unmatched_message_does_nothing(self, dispatcher, synthesizer, args):
        assert dispatcher.on_message("/nothing", args(1)) is None
        synthesizer.synthesize.assert_not_called()

    def test_session_setlist_passed_to_synthesis(self, dispatcher, synthesizer, args):
        dispatcher.on_message("/setlist", args(3))
        rule = dispatcher.on_message("/preset", args())
        synthesizer.synthesize.assert_called_once_with(rule, (), 3)


class TestSetlist:

    def test_default_setlist_is_zero(self, dispatcher):
        assert dispatcher.session.setlist == 0

    def test_numeric_argument_updates_setlist(self, dispatcher, args):
        dispatcher.on_message("/setlist", args(4))
        assert dispatcher.session.setlist == 4

    def test_float_argument_truncated(self, dispatcher, args):
        dispatcher.on_message("/setlist/", args(2.0))
        assert dispatcher.session.setlist == 2

    @pytest.mark.parametrize("values", [("two",), (), (True,), (float("nan"),), (float("inf"),)])
    def test_invalid_argument_leaves_setlist(self, dispatcher, args, values):
        dispatcher.on_message("/setlist", args(5))
        with patch('qcbridge.dispatcher.logger') as mock_logger:
            assert dispatcher.on_message("/setlist", args(*values)) is None
            mock_logger.warning.assert_called_once()
        assert dispatcher.session.setlist == 5

    def test_setlist_never_matches_table(self, synthesizer, args):
        session = BridgeSession(MappingTable([MappingRule("/setlist", osc_out_address="/x")]))
        dispatcher = Dispatcher(session, synthesizer)
        dispatcher.on_message("/setlist", args(1))
        dispatcher.on_message("/setlist", args("bad"))
        synthesizer.synthesize.assert_not_called()

    def test_listeners_notified(self, dispatcher, args):
        listener = Mock()
        dispatcher.listeners.append(listener)
        dispatcher.on_message("/setlist", args(6))
        listener.assert_called_once_with("setlist", 6)

    def test_failing_listener_does_not_break_dispatch(self, dispatcher, args):
        dispatcher.listeners.append(Mock(side_effect=RuntimeError("boom")))
        dispatcher.on_message("/setlist", args(6))
        assert dispatcher.session.setlist == 6


class TestRefreshMappingTable:

    def test_reload_replaces_table(self, synthesizer, write_mappings, args):
        path = write_mappings("/a,,/first,,,,,,,,,,")
        dispatcher = Dispatcher(BridgeSession(), synthesizer, mappings_path=path)
        assert dispatcher.refresh_mapping_table() is True
        assert dispatcher.on_message("/a", args()).osc_out_address == "/first"

        write_mappings("/a,,/second,,,,,,,,,,")
        assert dispatcher.refresh_mapping_table() is True
        assert dispatcher.on_message("/a", args()).osc_out_address == "/second"

    def test_failed_reload_keeps_previous_table(self, synthesizer, write_mappings, args):
        path = write_mappings("/a,,/first,,,,,,,,,,")
        dispatcher = Dispatcher(BridgeSession(), synthesizer, mappings_path=path)
        dispatcher.refresh_mapping_table()
        previous = dispatcher.session.table

        write_mappings("/a,,/second,,not-a-number,,,,,,,,")
        assert dispatcher.refresh_mapping_table() is False
        assert dispatcher.session.table is previous
        assert dispatcher.on_message("/a", args()).osc_out_address == "/first"

    def test_root_address_row_keeps_previous_table(self, synthesizer, write_mappings, args):
        path = write_mappings("/a,,/first,,,,,,,,,,")
        dispatcher = Dispatcher(BridgeSession(), synthesizer, mappings_path=path)
        dispatcher.refresh_mapping_table()

        write_mappings("/,,/root,,,,,,,,,,")
        assert dispatcher.refresh_mapping_table() is False
        assert dispatcher.on_message("/a", args()).osc_out_address == "/first"

    def test_load_raises_on_failure(self, synthesizer, tmp_path):
        dispatcher = Dispatcher(BridgeSession(), synthesizer, mappings_path=tmp_path / "missing.csv")
        with pytest.raises(ConfigLoadError):
            dispatcher.load_mapping_table()

    def test_no_path_configured(self, synthesizer):
        dispatcher = Dispatcher(BridgeSession(), synthesizer)
        assert dispatcher.refresh_mapping_table() is False

    def test_reload_does_not_touch_setlist(self, synthesizer, write_mappings, args):
        path = write_mappings("/a,,/x,,,,,,,,,,")
        dispatcher = Dispatcher(BridgeSession(), synthesizer, mappings_path=path)
        dispatcher.on_message("/setlist", args(7))
        dispatcher.refresh_mapping_table()
        assert dispatcher.session.setlist == 7

    def test_print_mappings_logs_table(self, synthesizer, write_mappings):
        path = write_mappings("/a,,/x,,,,,,,,,,")
        dispatcher = Dispatcher(BridgeSession(), synthesizer, mappings_path=path, print_mappings=True)
        with patch('qcbridge.dispatcher.logger') as mock_logger:
            dispatcher.refresh_mapping_table()
        logged = [c.args[0] for c in mock_logger.info.call_args_list]
        assert any(line.startswith("osc_in_address") for line in logged)

    def test_concurrent_reload_never_mixes_tables(self, synthesizer, args):
        """Every resolution sees either the whole old or the whole new table."""
        old = MappingTable([MappingRule("/a", osc_out_address="/old"),
                            MappingRule("/b", osc_out_address="/old")])
        new = MappingTable([MappingRule("/a", osc_out_address="/new"),
                            MappingRule("/b", osc_out_address="/new")])
        tables = iter([new, old] * 200)
        dispatcher = Dispatcher(BridgeSession(old), synthesizer, mappings_path="unused",
                                loader=lambda path: next(tables))

        stop = threading.Event()

        def reload_loop():
            while not stop.is_set():
                try:
                    dispatcher.refresh_mapping_table()
                except StopIteration:
                    return

        thread = threading.Thread(target=reload_loop)
        thread.start()
        try:
            for _ in range(500):
                table, _setlist = dispatcher.session.snapshot()
                outputs = {table.resolve("/a", args()).osc_out_address,
                           table.resolve("/b", args()).osc_out_address}
                assert len(outputs) == 1
        finally:
            stop.set()
            thread.join()
