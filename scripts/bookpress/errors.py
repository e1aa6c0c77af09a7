"""
Failure aggregation for a validation pass.

Components never abort on their own; they record into a DetectedErrors
instance and the caller asks for the verdict once, at the end.
"""

import threading


COLOR = {
    "green":  "\033[32m{}\033[0m",
    "yellow": "\033[33m{}\033[0m",
    "red":    "\033[31m{}\033[0m",
}


def paint(text, color, enabled=True):
    """Wrap text in an ANSI colour code when enabled."""
    return COLOR[color].format(text) if enabled else text


class BuildFailed(Exception):
    """Raised by assert_none() when failures were recorded."""

    def __init__(self, count):
        self.count = count
        super().__init__(f"build failed: {count} errors detected")


class DetectedErrors:
    """
    Append-only, thread-safe collector of failure messages.

    Usage:
        errors = DetectedErrors()
        errors.add("Error while checking http://...: ...")
        errors.assert_none()      # raises BuildFailed(1)
    """

    def __init__(self, color=True):
        self.color = color
        self._lock = threading.Lock()
        self._messages = []
        self._verdict = {}

    def add(self, message):
        with self._lock:
            self._messages.append(message)

    def record(self, result):
        """Store a probe result; fatal outcomes also add a message."""
        with self._lock:
            self._verdict[result.uri] = result
            if result.fatal:
                self._messages.append(result.message)

    @property
    def messages(self):
        with self._lock:
            return list(self._messages)

    @property
    def verdict(self):
        """Mapping of probed URI to its ProbeResult."""
        with self._lock:
            return dict(self._verdict)

    def __len__(self):
        with self._lock:
            return len(self._messages)

    def assert_none(self):
        """Print the verdict. Raises BuildFailed if anything was recorded."""
        messages = self.messages
        if not messages:
            print(paint("no errors detected", "green", self.color))
            return

        for message in messages:
            print(paint(message, "red", self.color))
        print(paint(f"{len(messages)} errors detected", "red", self.color))
        raise BuildFailed(len(messages))
