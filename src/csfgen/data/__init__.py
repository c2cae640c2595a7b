"""
data
====

Data containers for csfgen.

- ResponseData : (log10 contrast, outcome) pairs collected during a run.
- TrialBlock : one block of trials at a single contrast.
- PsychometricAccumulator : contrast -> proportions correct per visit.
"""

from .dataset import ResponseData, TrialBlock
from .psychometric import PsychometricAccumulator

__all__ = ["ResponseData", "TrialBlock", "PsychometricAccumulator"]
