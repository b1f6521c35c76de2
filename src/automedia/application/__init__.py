"""Application layer – use cases and pipeline orchestration."""

from automedia.application.batch_controller import (
    BatchController,
    BatchObserver,
    BatchOutcome,
    BatchReport,
)
from automedia.application.pipeline import ProductionPipeline

__all__ = [
    "BatchController",
    "BatchObserver",
    "BatchOutcome",
    "BatchReport",
    "ProductionPipeline",
]
