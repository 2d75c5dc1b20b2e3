"""Background follower that publishes new log file lines to subscribers."""

import os
import threading
from pathlib import Path
from typing import Callable, List, Optional, TextIO, Union

from .logging import get_logger

LineCallback = Callable[[str], None]


class LogTailer:
    """Follow a log file on a daemon thread, like ``tail -f``.

    Lines are delivered without their trailing newline, in file order, on the
    tailer thread. Unless ``from_start`` is set, lines already in the file at
    ``start()`` are skipped. A file that does not exist yet is read from its
    first line once it appears, and re-opened from the start when it shrinks
    (rotation or truncation).
    """

    def __init__(self, path: Union[str, Path], poll_interval: float = 0.2, from_start: bool = False):
        self.path = Path(path)
        self.poll_interval = poll_interval
        self.from_start = from_start
        self.logger = get_logger(self.__class__.__name__)

        self._subscribers: List[LineCallback] = []
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._start_offset = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def subscribe(self, callback: LineCallback) -> Callable[[], None]:
        """Register a line callback; returns a function that unregisters it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._start_offset = 0 if self.from_start else self._current_size()
        self._thread = threading.Thread(target=self._run, name=f"log-tail:{self.path.name}", daemon=True)
        self._thread.start()
        self.logger.debug("Log tailer started", path=str(self.path))

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self.logger.debug("Log tailer stopped", path=str(self.path))

    def _run(self) -> None:
        first_open = True
        while not self._stop_event.is_set():
            if not self.path.exists():
                self._stop_event.wait(self.poll_interval)
                continue

            try:
                with open(self.path, "r", encoding="utf-8", errors="replace") as fh:
                    if first_open and self._start_offset <= os.fstat(fh.fileno()).st_size:
                        fh.seek(self._start_offset)
                    first_open = False
                    self._follow(fh)
            except OSError as e:
                self.logger.warning("Log file unavailable", path=str(self.path), error=str(e))
                self._stop_event.wait(self.poll_interval)

    def _current_size(self) -> int:
        try:
            return self.path.stat().st_size
        except FileNotFoundError:
            return 0

    def _follow(self, fh: TextIO) -> None:
        pending = ""
        while not self._stop_event.is_set():
            chunk = fh.readline()
            if chunk:
                pending += chunk
                if pending.endswith("\n"):
                    self._publish(pending.rstrip("\r\n"))
                    pending = ""
                continue

            try:
                if self.path.stat().st_size < fh.tell():
                    return  # truncated or rotated: reopen from the start
            except FileNotFoundError:
                return

            self._stop_event.wait(self.poll_interval)

    def _publish(self, line: str) -> None:
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(line)
            except Exception as e:
                self.logger.error("Log line subscriber failed", error=str(e))
