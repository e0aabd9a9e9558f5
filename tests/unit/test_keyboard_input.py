"""Unit tests for the Enter key listener."""

import io

import pytest

from speechcoach.ui import EnterKeyListener


@pytest.mark.unit
class TestEnterKeyListener:

    def test_enter_triggers_callback(self):
        calls = []
        listener = EnterKeyListener(lambda: calls.append("stop"), stream=io.StringIO("\n"))

        listener.start()
        listener.thread.join(timeout=2.0)

        assert calls == ["stop"]
        assert listener.thread.daemon

    def test_end_of_input_is_not_a_key_press(self):
        calls = []
        listener = EnterKeyListener(lambda: calls.append("stop"), stream=io.StringIO(""))

        listener.start()
        listener.thread.join(timeout=2.0)

        assert calls == []

    def test_start_twice_keeps_one_thread(self):
        listener = EnterKeyListener(lambda: None, stream=io.StringIO(""))

        listener.start()
        first = listener.thread
        listener.start()

        assert listener.thread is first
