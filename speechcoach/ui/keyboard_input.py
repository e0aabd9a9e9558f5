"""Keyboard input for stopping a recording from the terminal."""

import sys
import threading
import logging
from typing import Callable, Optional, TextIO

logger = logging.getLogger(__name__)


class EnterKeyListener:
    """Calls a callback once when the user presses Enter.

    The read happens on a daemon thread, so an unanswered prompt never keeps
    the process alive. End of input (e.g. stdin redirected from /dev/null)
    does not count as a key press.
    """

    def __init__(self, callback: Callable[[], None], stream: Optional[TextIO] = None):
        """Initialize keyboard listener.

        Args:
            callback: Called from the listener thread when Enter is pressed
            stream: Input stream to read; defaults to sys.stdin
        """
        self.callback = callback
        self.stream = stream or sys.stdin
        self.thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self.thread is not None:
            return
        self.thread = threading.Thread(target=self._wait_for_enter, daemon=True)
        self.thread.name = "EnterKeyListener"
        self.thread.start()
        logger.info("Keyboard listener started")

    def _wait_for_enter(self) -> None:
        try:
            line = self.stream.readline()
        except (OSError, ValueError) as e:
            logger.warning(f"Keyboard input unavailable: {e}")
            return
        if not line:
            logger.debug("Keyboard input closed without a key press")
            return
        logger.info("Enter pressed, stopping recording")
        self.callback()
