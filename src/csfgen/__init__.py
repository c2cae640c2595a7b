"""
csfgen
======

Contrast-threshold estimation with computational observers.

This package predicts contrast-detection thresholds from simulated
neural responses. A scene engine turns a contrast into a stimulus, a
neural response engine turns a stimulus into noisy response instances,
an observer (ideal observer or PCA + SVM) classifies them in a
two-interval forced-choice task, and a QUEST+ procedure chooses which
contrast to test next until the threshold is pinned down.

----------------------------------------------------------------------
Workflow
----------------------------------------------------------------------

Core design
-----------
1. Observer (observer/):
   - Pooling of responses (none, full field, linear, quadrature energy).
   - Feature assembly for one- and two-interval tasks.
   - PoissonIdealObserver: likelihood-ratio test, no learning.
   - PcaSVMClassifier: centering + PCA + SVM, trained once per contrast.

2. Procedure (trial_placement/):
   - Grid posterior over (threshold, slope, guess, lapse).
   - QuestPlus: minimum expected entropy placement.
   - ConstantStimuli: method of constant stimuli (validation).

3. Psychometric function (model/) and fit (inference/):
   - WeibullLog in log10 contrast (default), NormalCDFLog.
   - MLEOptimizer: Optax maximum-likelihood refinement.

4. Session (session/):
   - compute_performance: train/test an observer at one contrast.
   - ThresholdSession / compute_threshold: the adaptive loop with a
     per-contrast classifier cache and psychometric accumulator.

Unified import style
--------------------
Top-level:
  from csfgen import compute_threshold, ThresholdSession
  from csfgen import PoissonIdealObserver, PcaSVMClassifier, PoolingConfig
  from csfgen import ClassifierParams, ThresholdParams, QuestParams

Subpackages:
  from csfgen.observer import extract, pool_responses, template_pooling_weights
  from csfgen.trial_placement import QuestPlus, ConstantStimuli
  from csfgen.engines import PatternScene, PoissonResponseEngine, grating_pattern

Data flow
---------
  procedure.next_stimulus() -> log10 contrast
  -> scene_engine.compute(contrast) -> neural_engine.compute(...)
  -> observer.train (first visit) / cached observer (repeat visit)
  -> observer.predict -> per-trial correctness
  -> PsychometricAccumulator.record, procedure.update(block)
  -> ... until the procedure stops -> procedure.fit_mle(criterion)

All thresholds are in log10 contrast; 10 ** log_threshold is contrast.

----------------------------------------------------------------------
"""

from . import data as data
from . import engines as engines
from . import inference as inference
from . import model as model
from . import observer as observer
from . import session as session
from . import trial_placement as trial_placement
from . import utils as utils
from .data import PsychometricAccumulator, ResponseData, TrialBlock
from .engines import PatternScene, PoissonResponseEngine, grating_pattern
from .errors import ConfigurationError, CsfgenError, DataShapeError, NumericalError, StateError
from .inference import MLEOptimizer
from .model import PsychometricParams, WeibullLog
from .observer import PcaSVMClassifier, PoissonIdealObserver, PoolingConfig
from .session import (
    ClassifierCache,
    ClassifierParams,
    QuestParams,
    ThresholdParams,
    ThresholdResult,
    ThresholdSession,
    compute_performance,
    compute_threshold,
)
from .trial_placement import ConstantStimuli, QuestPlus

__all__ = [
    # Session
    "compute_threshold",
    "compute_performance",
    "ThresholdSession",
    "ThresholdResult",
    "ClassifierCache",
    "ClassifierParams",
    "ThresholdParams",
    "QuestParams",
    # Observers
    "PoissonIdealObserver",
    "PcaSVMClassifier",
    "PoolingConfig",
    # Procedures
    "QuestPlus",
    "ConstantStimuli",
    "MLEOptimizer",
    # Psychometric function
    "WeibullLog",
    "PsychometricParams",
    # Engines
    "PatternScene",
    "PoissonResponseEngine",
    "grating_pattern",
    # Data
    "ResponseData",
    "TrialBlock",
    "PsychometricAccumulator",
    # Errors
    "CsfgenError",
    "ConfigurationError",
    "StateError",
    "DataShapeError",
    "NumericalError",
    # Subpackages
    "data",
    "engines",
    "inference",
    "model",
    "observer",
    "session",
    "trial_placement",
    "utils",
]
