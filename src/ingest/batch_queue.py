"""Bounded blocking queue between the converter and writer threads.

A full queue blocks the producer, which is what bounds memory use:
roughly capacity x batch size x maximum item size.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque

from core.types import Batch


class BatchQueue:
    """Fixed-capacity queue of batches with close and abort signals."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"Queue capacity must be positive, got {capacity}.")
        self._capacity = capacity
        self._batches: Deque[Batch] = deque()
        self._condition = threading.Condition()
        self._closed = False
        self._aborted = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def aborted(self) -> bool:
        with self._condition:
            return self._aborted

    def put(self, batch: Batch) -> bool:
        """Enqueue a batch, blocking while the queue is full.

        Returns:
            False when the queue was aborted and the batch was dropped.

        Raises:
            RuntimeError: If called after ``close``.
        """
        with self._condition:
            while len(self._batches) >= self._capacity and not self._aborted:
                self._condition.wait()
            if self._aborted:
                return False
            if self._closed:
                raise RuntimeError("Cannot put a batch on a closed queue.")
            self._batches.append(batch)
            self._condition.notify_all()
            return True

    def get(self) -> Batch | None:
        """Dequeue a batch, blocking while the queue is empty and open.

        Returns:
            The next batch, or None once the queue is closed and drained or aborted.
        """
        with self._condition:
            while not self._batches and not self._closed and not self._aborted:
                self._condition.wait()
            if self._aborted or not self._batches:
                return None
            batch = self._batches.popleft()
            self._condition.notify_all()
            return batch

    def close(self) -> None:
        """Signal that no more batches will be produced."""
        with self._condition:
            self._closed = True
            self._condition.notify_all()

    def abort(self) -> None:
        """Drop buffered batches and release every blocked producer and consumer."""
        with self._condition:
            self._aborted = True
            self._batches.clear()
            self._condition.notify_all()
