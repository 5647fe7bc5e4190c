"""Lightweight wall-clock timers for pipeline stages.

Used to measure:
    - Source decode
    - Color-space conversion batch
    - Synthetic rendering
    - Multi-format encoding

No heavy dependencies (no line_profiler, no cProfile overhead).
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@contextmanager
def timer(name: str, sink: Optional[Callable[[str, float], None]] = None):
    """Context manager for wall-clock timing.

    Parameters
    ----------
    name : str
        Timer name (for logging/display)
    sink : Optional[Callable[[str, float], None]]
        Optional callback(name, elapsed_seconds)
        If None, logs at INFO level

    Yields
    ------
    None

    Examples
    --------
    >>> with timer("render"):
    ...     img = render_synthetic(settings, registry)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if sink is not None:
            sink(name, elapsed)
        else:
            logger.info(f"{name}: {elapsed:.3f} s")
