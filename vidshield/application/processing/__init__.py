"""Asynchronous asset processing."""

from vidshield.application.processing.pipeline import ProcessingPipeline
from vidshield.application.processing.strategies import (
    FixedDurationProvider,
    RandomClassifier,
    RandomDurationProvider,
    StaticClassifier,
)
from vidshield.application.processing.supervisor import PipelineSupervisor

__all__ = [
    "FixedDurationProvider",
    "PipelineSupervisor",
    "ProcessingPipeline",
    "RandomClassifier",
    "RandomDurationProvider",
    "StaticClassifier",
]
