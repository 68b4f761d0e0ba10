"""Capture of in-process helmfile log output."""

import io
import logging
import threading
import uuid

CAPTURE_FORMAT = "%(message)s"


class OutputCapture(logging.Handler):
    """Logging handler that accumulates formatted records in memory."""

    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self._buffer = io.StringIO()
        self._buffer_lock = threading.Lock()
        self.setFormatter(logging.Formatter(CAPTURE_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
        except Exception:
            self.handleError(record)
            return
        with self._buffer_lock:
            self._buffer.write(line + "\n")

    def getvalue(self) -> str:
        with self._buffer_lock:
            return self._buffer.getvalue()


def create_capture_logger(capture: OutputCapture) -> logging.Logger:
    """
    Create a standalone logger writing only into the capture.

    The logger is not registered with the logging manager, so it neither
    propagates to application handlers nor lingers after the operation.
    """
    logger = logging.Logger(f"helmdrive.helmfile.{uuid.uuid4().hex[:8]}", logging.DEBUG)
    logger.addHandler(capture)
    logger.propagate = False
    return logger
