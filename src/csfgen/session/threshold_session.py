"""
threshold_session.py
--------------------

ThresholdSession runs the adaptive contrast-threshold loop.

Responsibilities
----------------
1. Build (or accept) the stimulus placement procedure.
2. For each requested contrast, train an observer the first time the
   contrast is seen and cache it; on later visits reuse the cached
   observer and only run a fresh test block.
3. Record the block proportion correct in the psychometric accumulator
   and feed the block's outcomes back to the procedure (one update per
   block).
4. When the procedure stops, fit the psychometric function by maximum
   likelihood and report the log10 threshold.

States
------
INITIALIZED -> AWAITING_TRIAL -> CONVERGED

Blocks are strictly sequential: block N+1's contrast is only requested
after block N's outcomes have been folded into the posterior.
"""

from __future__ import annotations

import enum
import logging
import time
import warnings
from dataclasses import dataclass, replace
from typing import Any

import jax
import numpy as np

from csfgen.data.dataset import TrialBlock
from csfgen.data.psychometric import PsychometricAccumulator
from csfgen.engines.neural import NeuralResponseEngine
from csfgen.engines.scene import SceneEngine
from csfgen.errors import StateError
from csfgen.model.psychometric import PSYCHOMETRIC_FUNCTIONS, PsychometricParams
from csfgen.observer.base import ResponseClassifier
from csfgen.observer.pooling import template_pooling_weights
from csfgen.session.cache import ClassifierCache
from csfgen.session.config import ClassifierParams, QuestParams, ThresholdParams
from csfgen.session.performance import PerformanceResult, compute_performance
from csfgen.trial_placement.base import AdaptiveProcedure
from csfgen.trial_placement.constant_stimuli import ConstantStimuli
from csfgen.trial_placement.quest_plus import QuestPlus
from csfgen.utils.rng import numpy_rng, seed, split

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    INITIALIZED = "initialized"
    AWAITING_TRIAL = "awaiting_trial"
    CONVERGED = "converged"


@dataclass(frozen=True)
class ThresholdResult:
    """
    Outcome of a threshold run.

    Attributes
    ----------
    log_threshold : float
        log10 contrast at the threshold criterion.
    params : PsychometricParams
        Fitted (threshold, slope, guess, lapse).
    psychometric_function : PsychometricAccumulator
        contrast -> proportions correct per block.
    procedure : AdaptiveProcedure
        The procedure, with all collected trials (procedure.data).
    n_blocks : int
    criterion : float
    """

    log_threshold: float
    params: PsychometricParams
    psychometric_function: PsychometricAccumulator
    procedure: AdaptiveProcedure
    n_blocks: int
    criterion: float

    @property
    def threshold(self) -> float:
        """Threshold as linear contrast."""
        return 10.0**self.log_threshold


def build_procedure(
    threshold_params: ThresholdParams,
    quest_params: QuestParams,
    n_test: int,
    key: jax.Array | None = None,
) -> AdaptiveProcedure:
    """
    Construct the procedure described by the parameter objects.

    The threshold domain doubles as the stimulus domain.
    """
    domain = threshold_params.threshold_domain()
    common = dict(
        stim_domain=domain,
        threshold_domain=domain,
        slope_domain=threshold_params.slope_domain(),
        guess_rates=threshold_params.guess_rate,
        lapse_rates=threshold_params.lapse_rate,
        psychometric=PSYCHOMETRIC_FUNCTIONS[quest_params.psychometric](),
    )
    if quest_params.method_of_constant_stimuli:
        return ConstantStimuli(n_repeat=quest_params.n_repeat or n_test, key=key, **common)
    return QuestPlus(
        min_trial=quest_params.min_trial,
        max_trial=quest_params.max_trial,
        stop_criterion=quest_params.stop_criterion,
        best_n=quest_params.best_n,
        key=key,
        **common,
    )


class ThresholdSession:
    """
    Adaptive threshold estimation for one scene/neural/observer triple.

    Parameters
    ----------
    scene_engine : SceneEngine
    neural_engine : NeuralResponseEngine
    classifier : ResponseClassifier
        Prototype observer. Untrained prototypes are trained once per
        tested contrast; a trained prototype (e.g. an ideal observer built
        with known templates) is used as is.
    classifier_params : ClassifierParams
    threshold_params : ThresholdParams, optional
    quest_params : QuestParams, optional
    procedure : AdaptiveProcedure, optional
        Overrides the procedure built from the parameter objects.
    cache : ClassifierCache, optional
        Must not be shared with another run. A new cache by default.
    key : jax.Array, optional
        Root PRNG key; every random draw in the run derives from it.

    Attributes
    ----------
    state : SessionState
    psychometric_function : PsychometricAccumulator
    blocks : list[TrialBlock]
    """

    def __init__(
        self,
        scene_engine: SceneEngine,
        neural_engine: NeuralResponseEngine,
        classifier: ResponseClassifier,
        classifier_params: ClassifierParams,
        threshold_params: ThresholdParams | None = None,
        quest_params: QuestParams | None = None,
        *,
        procedure: AdaptiveProcedure | None = None,
        cache: ClassifierCache | None = None,
        key: jax.Array | None = None,
    ):
        self.scene_engine = scene_engine
        self.neural_engine = neural_engine
        self.classifier = classifier
        self.classifier_params = classifier_params
        self.threshold_params = threshold_params or ThresholdParams()
        self.quest_params = quest_params or QuestParams()

        key = key if key is not None else seed(0)
        proc_key, np_key = split(key)
        self.procedure = procedure or build_procedure(
            self.threshold_params, self.quest_params, classifier_params.n_test, key=proc_key
        )
        self.rng = numpy_rng(np_key)
        self.cache = cache if cache is not None else ClassifierCache()

        self.psychometric_function = PsychometricAccumulator()
        self.blocks: list[TrialBlock] = []
        self.state = SessionState.INITIALIZED
        self.result: ThresholdResult | None = None

        self._null_stimulus = None
        self._test_stimuli: dict[float, Any] = {}
        self._next: tuple[float, bool] | None = None
        self._started_at: float | None = None

    # ------------------------------------------------------------------
    # STIMULI AND OBSERVERS
    # ------------------------------------------------------------------
    @property
    def null_stimulus(self):
        if self._null_stimulus is None:
            self._null_stimulus = self.scene_engine.compute(0.0)
        return self._null_stimulus

    def _test_stimulus(self, contrast: float):
        if contrast not in self._test_stimuli:
            self._test_stimuli[contrast] = self.scene_engine.compute(contrast)
        return self._test_stimuli[contrast]

    def _prototype_for(self, test_stimulus) -> ResponseClassifier:
        """Observer to train at a new contrast, with per-contrast pooling kernels."""
        clf = self.classifier
        pooling = clf.pooling
        if clf.is_trained or not pooling.from_templates:
            return clf
        logger.info("Computing pooling kernels from noise-free responses")
        null_template = self.neural_engine.noise_free(self.null_stimulus)
        test_template = self.neural_engine.noise_free(test_stimulus)
        pooling = pooling.with_weights(template_pooling_weights(null_template, test_template))
        if pooling.baseline is None:
            pooling = replace(pooling, baseline=null_template)
        return clf.with_pooling(pooling)

    # ------------------------------------------------------------------
    # LOOP
    # ------------------------------------------------------------------
    def run_block(self, log_contrast: float) -> PerformanceResult:
        """
        Run one block at `log_contrast`, without updating the procedure.

        The block has `procedure.block_size` test instances when the
        procedure fixes it, `classifier_params.n_test` otherwise.

        Raises
        ------
        StateError
            If the contrast was already tested and the procedure forbids
            repeats (method of constant stimuli).
        """
        contrast = 10.0**log_contrast
        label = PsychometricAccumulator.label(contrast)
        logger.info("Testing %s", label)
        params = self.classifier_params
        n_test = self.procedure.block_size or params.n_test
        started = time.perf_counter()

        cached = self.cache.get(contrast)
        if cached is None:
            test_stimulus = self._test_stimulus(contrast)
            result = compute_performance(
                self.neural_engine,
                self.null_stimulus,
                test_stimulus,
                self._prototype_for(test_stimulus),
                n_train=params.n_train,
                n_test=n_test,
                train_noise=params.train_noise,
                test_noise=params.test_noise,
                rng=self.rng,
            )
            self.cache.store(contrast, result.classifier)
            action = "Training and predicting"
        else:
            if not self.procedure.allows_repeats:
                raise StateError(
                    f"contrast {label} requested twice; the method of constant "
                    "stimuli must not repeat any contrast"
                )
            result = compute_performance(
                self.neural_engine,
                self.null_stimulus,
                self._test_stimulus(contrast),
                cached,
                n_train=params.n_train,
                n_test=n_test,
                train_noise=params.train_noise,
                test_noise=params.test_noise,
                rng=self.rng,
            )
            action = "Predicting (no training)"

        self.psychometric_function.record(contrast, result.p_correct)
        logger.info(
            "%s test block %d took %.1f secs; psychometric function has %d contrasts",
            action,
            len(self.blocks) + 1,
            time.perf_counter() - started,
            len(self.psychometric_function),
        )
        return result

    def _cap_reached(self) -> bool:
        q = self.quest_params
        if len(self.blocks) >= q.max_blocks:
            warnings.warn(f"stopping after max_blocks={q.max_blocks} blocks", RuntimeWarning, stacklevel=3)
            return True
        if q.max_seconds is not None and time.perf_counter() - self._started_at > q.max_seconds:
            warnings.warn(f"stopping after max_seconds={q.max_seconds}", RuntimeWarning, stacklevel=3)
            return True
        return False

    def step(self) -> TrialBlock | None:
        """
        Run the next block and update the procedure.

        Returns
        -------
        TrialBlock or None
            The block run, or None when the procedure (or a safety cap)
            has stopped the run.
        """
        if self.state is SessionState.CONVERGED:
            raise StateError("session has already converged")
        if self.state is SessionState.INITIALIZED:
            self._started_at = time.perf_counter()
            self._next = self.procedure.next_stimulus()
            self.state = SessionState.AWAITING_TRIAL

        log_contrast, more = self._next
        if not more or self._cap_reached():
            return None

        result = self.run_block(log_contrast)
        block = TrialBlock(log_contrast=log_contrast, outcomes=result.predictions)
        self.blocks.append(block)
        logger.debug(
            "Block %d at %s: %d trials, pCorrect %.3f",
            len(self.blocks),
            PsychometricAccumulator.label(block.contrast),
            len(block),
            block.p_correct,
        )
        self._next = self.procedure.update(block.log_contrasts, block.outcomes)
        return block

    def run(self) -> ThresholdResult:
        """
        Run blocks until the procedure stops, then fit the psychometric function.

        Returns
        -------
        ThresholdResult
        """
        while self.step() is not None:
            pass
        return self.finish()

    def finish(self) -> ThresholdResult:
        """Fit the collected data and move to CONVERGED."""
        if self.state is SessionState.CONVERGED:
            return self.result
        n_blocks = len(self.blocks)
        logger.info(
            "Ran %d test levels of %d trials per block of tests",
            len(self.psychometric_function),
            self.procedure.block_size or self.classifier_params.n_test,
        )
        if n_blocks:
            logger.info(
                "Recorded number single trials (%d) divided by number of blocks (%d): %.1f",
                self.procedure.n_trials,
                n_blocks,
                self.procedure.n_trials / n_blocks,
            )

        criterion = self.threshold_params.threshold_criterion
        log_threshold, params = self.procedure.fit_mle(criterion)
        logger.info(
            "Maximum likelihood fit parameters: %0.2f, %0.2f, %0.2f, %0.2f",
            params.threshold,
            params.slope,
            params.guess,
            params.lapse,
        )
        logger.info(
            "Threshold (criterion proportion correct %0.4f): %0.2f (log10 units)",
            criterion,
            log_threshold,
        )
        self.result = ThresholdResult(
            log_threshold=log_threshold,
            params=params,
            psychometric_function=self.psychometric_function,
            procedure=self.procedure,
            n_blocks=n_blocks,
            criterion=criterion,
        )
        self.state = SessionState.CONVERGED
        return self.result


def compute_threshold(
    scene_engine: SceneEngine,
    neural_engine: NeuralResponseEngine,
    classifier: ResponseClassifier,
    classifier_params: ClassifierParams,
    threshold_params: ThresholdParams | None = None,
    quest_params: QuestParams | None = None,
    *,
    key: jax.Array | None = None,
    cache: ClassifierCache | None = None,
) -> ThresholdResult:
    """
    Estimate a contrast detection threshold.

    Parameters
    ----------
    scene_engine, neural_engine, classifier, classifier_params,
    threshold_params, quest_params, key, cache
        See ThresholdSession.

    Returns
    -------
    ThresholdResult
        `log_threshold` is in log10 contrast units; use `.threshold` for
        linear contrast.

    Examples
    --------
    >>> scene = PatternScene(grating_pattern(32, cycles=2))
    >>> engine = PoissonResponseEngine(rate=50.0, n_units=32)
    >>> result = compute_threshold(
    ...     scene, engine, PoissonIdealObserver(),
    ...     ClassifierParams(n_train=1, n_test=128, train_noise="none"),
    ... )
    >>> result.threshold
    """
    session = ThresholdSession(
        scene_engine,
        neural_engine,
        classifier,
        classifier_params,
        threshold_params,
        quest_params,
        cache=cache,
        key=key,
    )
    return session.run()
