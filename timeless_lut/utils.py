"""Small shared helpers."""

from __future__ import annotations

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")
R = TypeVar("R")

LOG = logging.getLogger(__name__)

__all__ = ["run_parallel", "write_json"]


def run_parallel(
    items: Sequence[T],
    worker: Callable[[T], R],
    *,
    jobs: int = 1,
) -> Tuple[List[R], float]:
    """Run ``worker`` over ``items`` and return ``(results, seconds)``.

    ``results[i]`` always belongs to ``items[i]`` whatever order the threads
    finish in, so a batch of jewels reports its outcomes in request order.
    Workers are expected to catch their own per-item failures; anything they
    let escape is re-raised here.
    """

    start = time.perf_counter()
    if not items:
        return [], 0.0

    workers = min(max(1, jobs), len(items))
    if workers == 1:
        results = [worker(item) for item in items]
        return results, time.perf_counter() - start

    LOG.debug("Running %d items on %d threads", len(items), workers)
    slots: List[Optional[R]] = [None] * len(items)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(worker, item): idx for idx, item in enumerate(items)}
        for future in as_completed(futures):
            slots[futures[future]] = future.result()
    return list(slots), time.perf_counter() - start  # type: ignore[arg-type]


def write_json(path: Path, payload: Any, *, indent: Optional[int] = 2) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(payload, indent=indent), encoding="utf-8")
    return target
