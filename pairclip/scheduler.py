"""Bounded worker pool for zero-argument tasks.

A fixed number of worker threads pull tasks in order from a shared queue.
Failure policy is best-effort: once any task raises, workers stop claiming
new tasks, tasks already running on other workers finish on their own and
their results are discarded, and ``run_bounded`` raises the first failure
after every worker has exited. Running tasks are never interrupted.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, Sequence

from pairclip.config import default_concurrency

Task = Callable[[], object]


def run_bounded(tasks: Sequence[Task], limit: int | None = None) -> None:
    if limit is None:
        limit = default_concurrency()
    if limit <= 0:
        raise ValueError("limit must be positive")
    if not tasks:
        return

    pending: queue.Queue[tuple[int, Task]] = queue.Queue()
    for item in enumerate(tasks):
        pending.put(item)

    failed = threading.Event()
    errors: list[tuple[int, Exception]] = []
    lock = threading.Lock()

    def worker() -> None:
        while not failed.is_set():
            try:
                idx, task = pending.get_nowait()
            except queue.Empty:
                return
            try:
                task()
            except Exception as exc:
                with lock:
                    errors.append((idx, exc))
                failed.set()
                return

    workers = [
        threading.Thread(target=worker, name=f"pairclip-worker-{n}", daemon=True)
        for n in range(min(limit, len(tasks)))
    ]
    for t in workers:
        t.start()
    for t in workers:
        t.join()

    if errors:
        idx, first = errors[0]
        if len(errors) > 1:
            logging.debug("%d task(s) failed; reporting task %d", len(errors), idx)
        unclaimed = pending.qsize()
        if unclaimed:
            logging.info("%d queued task(s) not started after failure", unclaimed)
        raise first
