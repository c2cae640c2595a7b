"""
session
=======

Threshold-estimation orchestration.

- compute_performance : train/test an observer on one contrast
- ClassifierCache : per-contrast trained observers
- ThresholdSession, compute_threshold : the adaptive loop
- ClassifierParams, ThresholdParams, QuestParams : configuration
"""

from .cache import ClassifierCache
from .config import ClassifierParams, QuestParams, ThresholdParams
from .performance import PerformanceResult, compute_performance
from .threshold_session import (
    SessionState,
    ThresholdResult,
    ThresholdSession,
    build_procedure,
    compute_threshold,
)

__all__ = [
    "ClassifierCache",
    "ClassifierParams",
    "ThresholdParams",
    "QuestParams",
    "PerformanceResult",
    "compute_performance",
    "SessionState",
    "ThresholdResult",
    "ThresholdSession",
    "build_procedure",
    "compute_threshold",
]
