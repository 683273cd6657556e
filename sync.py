"""
Persistence of the store namespace.

Every store change marks the namespace dirty. A flush reads the previously
persisted blob, shallow-merges the current snapshot of every slice into it
(keys the store does not own are kept) and writes it back. Changes made in
the same event-loop tick share one flush. Inside a running loop the snapshot
is taken on the loop and the storage round-trip runs on a single writer
thread, so writes never block the loop and land in the order they were
taken. Without a running loop the flush runs as soon as the (possibly
batched) change notification arrives.
"""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

from errors import PersistenceError

logger = logging.getLogger(__name__)


class PersistenceSync:
    def __init__(self, store, storage, namespace: str):
        self.store = store
        self.storage = storage
        self.namespace = namespace
        self.pending = False
        self.writes = 0
        self._scheduled = False
        self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="store-writer")
        self._in_flight = []
        store.subscribe(self.on_change)

    def on_change(self, slices) -> None:
        self.pending = True
        logger.debug("Store changed (%s); namespace %s is dirty", ", ".join(sorted(slices)), self.namespace)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._flush_and_log()
            return
        if not self._scheduled:
            self._scheduled = True
            loop.call_soon(self._run_scheduled, loop)

    def _run_scheduled(self, loop) -> None:
        self._scheduled = False
        if not self.pending:
            return
        snapshot = self.store.snapshot()
        self.pending = False
        future = loop.run_in_executor(self._writer, self._write_in_background, snapshot)
        self._in_flight.append(future)
        future.add_done_callback(self._in_flight.remove)

    def _write_in_background(self, snapshot) -> None:
        try:
            self._write(snapshot)
        except PersistenceError:
            self.pending = True
            logger.exception("Persisting namespace %s failed; will retry on next change", self.namespace)

    def _flush_and_log(self) -> None:
        # Failed writes stay pending; the next change or explicit flush retries
        try:
            self.flush()
        except PersistenceError:
            logger.exception("Persisting namespace %s failed; will retry on next change", self.namespace)

    def _write(self, snapshot) -> None:
        try:
            previous = self.storage.get(self.namespace) or {}
            self.storage.put(self.namespace, {**previous, **snapshot})
        except Exception as exc:
            raise PersistenceError(f"Could not persist namespace {self.namespace!r}: {exc}") from exc
        self.writes += 1
        logger.debug("Persisted namespace %s (write #%d)", self.namespace, self.writes)

    def flush(self) -> bool:
        """Write the current snapshot if anything changed. Raises PersistenceError on storage failure."""
        if not self.pending:
            return False
        self._write(self.store.snapshot())
        self.pending = False
        return True

    async def drain(self) -> bool:
        """Wait for background writes, then flush whatever is still pending."""
        # Let a flush scheduled in this tick start first
        await asyncio.sleep(0)
        while self._in_flight:
            await asyncio.gather(*self._in_flight)
        if not self.pending:
            return False
        snapshot = self.store.snapshot()
        self.pending = False
        try:
            await asyncio.get_running_loop().run_in_executor(self._writer, self._write, snapshot)
        except PersistenceError:
            self.pending = True
            raise
        return True

    def close(self) -> None:
        self._writer.shutdown(wait=True)
