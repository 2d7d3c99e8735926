"""
Shared Helpers
==============
Small numeric helpers used across the simulation modules, and the frame
timer wrapped around each compute pass.
"""
from __future__ import annotations

import functools
import logging
import math
import time
from typing import Callable, TypeVar

from tensfield.config import FRAME_BUDGET_MS

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper]."""
    return max(lower, min(upper, value))


def clamp01(value: float) -> float:
    return clamp(value, 0.0, 1.0)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def frame_timer(func: F) -> F:
    """
    Log how long a compute pass took and warn when it overruns one frame.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        if elapsed_ms > FRAME_BUDGET_MS:
            logger.warning(
                f"{func.__qualname__} took {elapsed_ms:.2f} ms "
                f"(frame budget {FRAME_BUDGET_MS:.0f} ms)"
            )
        else:
            logger.debug(f"{func.__qualname__} took {elapsed_ms:.2f} ms")
        return result

    return wrapper  # type: ignore[return-value]
