"""
PageBinder — Step logger with duration tracking.

Every build, merge and storage step runs inside step_timer so the log
reads as a timeline of the job. Level comes from PAGEBINDER_LOG_LEVEL.
"""

import logging
import os
import time
from contextlib import contextmanager
from typing import Generator

logging.basicConfig(
    level=os.getenv("PAGEBINDER_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("pagebinder")


@contextmanager
def step_timer(step_name: str) -> Generator[None, None, None]:
    """Log the start of a step, then its duration and whether it raised."""
    logger.info("▶ %s — started", step_name)
    start = time.perf_counter()
    try:
        yield
    except Exception:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.warning("✗ %s — failed after %.0f ms", step_name, elapsed_ms)
        raise
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info("✔ %s — completed in %.0f ms", step_name, elapsed_ms)
