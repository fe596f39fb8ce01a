"""
Pipeline runner that executes steps sequentially and records per-step
timing metrics.

A failure in any step halts the run: the error is logged with the step name
and re-raised unchanged.
"""

from __future__ import annotations

import logging
import time
from typing import Dict, Iterable

from .context import Context
from .step import Step

logger = logging.getLogger(__name__)


def run_pipeline(ctx: Context, steps: Iterable[Step]) -> Context:
    """Execute pipeline steps in order and record timing metrics."""
    metrics: Dict[str, float] = {}

    for step in steps:
        step_name = getattr(step, "name", step.__class__.__name__)
        logger.debug(f"Running step {step_name}")
        t0 = time.perf_counter()

        try:
            ctx = step.run(ctx)
        except Exception as e:
            logger.error(f"Step {step_name} failed: {e}")
            raise

        if ctx is None:
            raise ValueError(f"Step {step_name} returned None")

        metrics[f"{step_name}.ms"] = round((time.perf_counter() - t0) * 1000.0, 2)

    if metrics:
        logger.debug("Pipeline execution metrics:")
        for key, value in metrics.items():
            logger.debug(f"  {key}: {value}ms")
        total_ms = sum(metrics.values())
        logger.debug(f"  Total execution time: {total_ms:.2f}ms")

    return ctx
