"""Tests for tree_mirror.tree.events module."""

import logging
import time

from tree_mirror.tree.events import DEFAULT_SLOW_CALLBACK_MS, Signal


class TestSignal:
    """Subscription management and delivery."""

    def test_emit_calls_in_connection_order(self):
        signal = Signal("changed", "a.txt")
        calls = []
        signal.connect(lambda: calls.append("first"))
        signal.connect(lambda: calls.append("second"))

        signal.emit()

        assert calls == ["first", "second"]

    def test_emit_passes_arguments(self):
        signal = Signal("content_changed", "a.txt")
        received = []
        signal.connect(lambda old, new: received.append((old, new)))

        signal.emit(b"old", b"new")

        assert received == [(b"old", b"new")]

    def test_connect_works_as_decorator(self):
        signal = Signal("changed")

        @signal.connect
        def handler():
            pass

        assert handler is not None
        assert len(signal) == 1

    def test_disconnect(self):
        signal = Signal("changed")
        calls = []

        def handler():
            calls.append(1)

        signal.connect(handler)
        assert signal.disconnect(handler) is True
        assert signal.disconnect(handler) is False

        signal.emit()
        assert calls == []

    def test_clear(self):
        signal = Signal("changed")
        signal.connect(lambda: None)
        signal.connect(lambda: None)
        signal.clear()
        assert len(signal) == 0

    def test_disconnect_during_emit_keeps_current_delivery(self):
        signal = Signal("changed")
        calls = []

        def second():
            calls.append("second")

        def first():
            calls.append("first")
            signal.disconnect(second)

        signal.connect(first)
        signal.connect(second)

        signal.emit()
        signal.emit()

        assert calls == ["first", "second", "first"]

    def test_default_threshold(self):
        assert Signal("changed").slow_callback_ms == DEFAULT_SLOW_CALLBACK_MS


class TestCallbackFailures:
    """A failing subscriber is logged and skipped."""

    def test_exception_does_not_stop_other_callbacks(self, caplog):
        signal = Signal("changed", "docs/readme.md")
        calls = []

        def broken():
            raise RuntimeError("boom")

        signal.connect(broken)
        signal.connect(lambda: calls.append("after"))

        with caplog.at_level(logging.ERROR, logger="tree_mirror.tree.events"):
            signal.emit()

        assert calls == ["after"]
        assert "docs/readme.md" in caplog.text
        assert "boom" in caplog.text

    def test_slow_callback_warns(self, caplog):
        signal = Signal("changed", "a.txt", slow_callback_ms=1)
        signal.connect(lambda: time.sleep(0.02))

        with caplog.at_level(logging.WARNING, logger="tree_mirror.tree.events"):
            signal.emit()

        assert "'changed' subscriber for 'a.txt' took" in caplog.text

    def test_fast_callback_is_quiet(self, caplog):
        signal = Signal("changed", "a.txt")
        signal.connect(lambda: None)

        with caplog.at_level(logging.WARNING, logger="tree_mirror.tree.events"):
            signal.emit()

        assert caplog.text == ""
