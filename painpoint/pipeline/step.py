"""
Abstract base class for all pipeline steps.

A step reads the tables it needs from the context, computes new tables from
them with plain functions, and adds the results under new keys. Input tables
are never modified in place.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from .context import Context


class Step(ABC):
    """Base class for all pipeline steps.

    Attributes:
        name: Step name used in logs and timing metrics
    """

    name: ClassVar[str] = "step"

    @abstractmethod
    def run(self, ctx: Context) -> Context:
        """Execute the step and return the context holding its outputs."""
        ...
