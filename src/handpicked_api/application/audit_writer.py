"""Background delivery of click audit records.

Records go through a bounded queue drained by one worker thread. Delivery is
at-most-once and best-effort: a full queue drops the record, a sink failure is
logged and not retried, and records still queued at process exit are lost.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

from handpicked_api.ports.audit_sink import ClickAuditRecord, ClickAuditSink

logger = logging.getLogger(__name__)

_STOP = object()


class AuditWriter:
    def __init__(self, sink: ClickAuditSink, max_queue_size: int = 1000) -> None:
        self.sink = sink
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=max_queue_size)
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self.dropped = 0
        self.failed = 0
        self.written = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self._thread = threading.Thread(target=self._run, name="click-audit-writer", daemon=True)
            self._thread.start()
            logger.info("Click audit writer started")

    def stop(self, timeout: float = 5.0) -> None:
        """Drain queued records, then stop the worker."""
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._queue.put(_STOP)
            thread.join(timeout)
            if thread.is_alive():
                logger.warning(f"Click audit writer did not stop within {timeout}s")
            self._thread = None
            logger.info(
                f"Click audit writer stopped (written={self.written}, failed={self.failed}, dropped={self.dropped})"
            )

    def submit(self, record: ClickAuditRecord) -> bool:
        """Enqueue without blocking; returns False when the record was dropped."""
        try:
            self._queue.put_nowait(record)
            return True
        except queue.Full:
            self.dropped += 1
            logger.warning(f"Click audit queue full, dropping record for offer {record.offer_id}")
            return False

    def flush(self) -> None:
        """Block until every queued record has been handled."""
        if self.running:
            self._queue.join()
        else:
            self._drain_inline()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._write(item)  # type: ignore[arg-type]
            finally:
                self._queue.task_done()

    def _drain_inline(self) -> None:
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return
            try:
                if item is not _STOP:
                    self._write(item)  # type: ignore[arg-type]
            finally:
                self._queue.task_done()

    def _write(self, record: ClickAuditRecord) -> None:
        try:
            self.sink.write_click(record)
            self.written += 1
        except Exception as e:
            self.failed += 1
            logger.warning(f"Failed to write click audit record for offer {record.offer_id}: {e}")
