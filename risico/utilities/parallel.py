"""Partitioned execution of cell kernels on a thread pool.

The grid is split into contiguous index ranges of nearly equal size. Each
range is handed to the kernel on its own worker; kernels write disjoint
slots and release the GIL, so results do not depend on the number of
workers or on scheduling.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from multiprocessing import cpu_count
from typing import Callable, List, Optional, Tuple

# Below this many cells per worker the pool overhead dominates
MIN_CELLS_PER_WORKER = 10_000


def resolve_num_workers(num_workers: Optional[int] = None) -> int:
    """Number of workers to use; ``None`` or values below 1 mean all CPUs."""
    if num_workers is None or num_workers < 1:
        return cpu_count()
    return int(num_workers)


def partition(n_cells: int, num_parts: int) -> List[Tuple[int, int]]:
    """Split ``range(n_cells)`` into at most ``num_parts`` contiguous ranges.

    Returns:
        List[Tuple[int, int]]: Half-open ``(start, stop)`` ranges covering
        every cell exactly once, in order. Empty for an empty grid.
    """
    if n_cells <= 0:
        return []
    num_parts = max(1, min(num_parts, n_cells))
    base, extra = divmod(n_cells, num_parts)

    ranges = []
    start = 0
    for k in range(num_parts):
        stop = start + base + (1 if k < extra else 0)
        ranges.append((start, stop))
        start = stop
    return ranges


def run_partitioned(kernel: Callable, n_cells: int, num_workers: int, *args,
                    min_cells_per_worker: int = MIN_CELLS_PER_WORKER) -> None:
    """Run ``kernel(start, stop, *args)`` over every partition of the grid.

    Small grids run inline on the calling thread. Any exception raised by a
    partition propagates to the caller once all partitions have finished.
    """
    parts = max(1, min(num_workers, n_cells // max(1, min_cells_per_worker)))
    ranges = partition(n_cells, parts)

    if len(ranges) <= 1:
        for start, stop in ranges:
            kernel(start, stop, *args)
        return

    with ThreadPoolExecutor(max_workers=len(ranges)) as executor:
        futures = [executor.submit(kernel, start, stop, *args) for start, stop in ranges]
        for future in as_completed(futures):
            future.result()
