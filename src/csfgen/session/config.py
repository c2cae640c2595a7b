"""
config.py
---------

Parameter objects for a threshold run.

- ClassifierParams : training/test instance counts and noise modes
- ThresholdParams : candidate grids, guess/lapse rates, threshold criterion
- QuestParams : trial-count policy and safety caps

All are dataclasses validated in __post_init__; invalid values raise
ConfigurationError.

Examples
--------
>>> # ideal observer: one noise-free training instance, 128 noisy test trials
>>> ClassifierParams(n_train=1, n_test=128, train_noise="none", test_noise="random")

>>> # fixed budget of 1280 trials
>>> QuestParams(min_trial=1280, max_trial=1280)

>>> # method of constant stimuli over the threshold domain
>>> QuestParams(method_of_constant_stimuli=True)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from csfgen.engines.neural import NOISE_MODES
from csfgen.errors import ConfigurationError
from csfgen.model.psychometric import PSYCHOMETRIC_FUNCTIONS


def _inclusive_range(start: float, stop: float, step: float) -> np.ndarray:
    n = int(np.floor((stop - start) / step + 1e-9)) + 1
    return np.round(start + step * np.arange(n), 10)


@dataclass
class ClassifierParams:
    """
    Instance counts for training and testing the observer.

    Attributes
    ----------
    n_train : int
        Training instances per stimulus (null and test each).
    n_test : int
        Test instances per block. In two-interval mode a block yields
        2 * (n_test // 2) trials (a single trial when n_test == 1).
    train_noise, test_noise : {"none", "random"}
    """

    n_train: int = 1
    n_test: int = 128
    train_noise: str = "none"
    test_noise: str = "random"

    def __post_init__(self):
        if self.n_train < 1 or self.n_test < 1:
            raise ConfigurationError(
                f"n_train and n_test must be >= 1, got {self.n_train}, {self.n_test}"
            )
        for mode in (self.train_noise, self.test_noise):
            if mode not in NOISE_MODES:
                raise ConfigurationError(
                    f"Unknown noise mode: '{mode}'. Valid modes: {NOISE_MODES}"
                )


@dataclass
class ThresholdParams:
    """
    Candidate grids and psychometric constants.

    The log10 threshold domain runs from -log_thresh_limit_low to
    -log_thresh_limit_high in steps of log_thresh_limit_delta; it is also
    the set of stimulus levels the procedure may present. Slope candidates
    run from slope_range_low to slope_range_high in steps of slope_delta.
    """

    log_thresh_limit_low: float = 2.4
    log_thresh_limit_high: float = 0.0
    log_thresh_limit_delta: float = 0.02
    slope_range_low: float = 1 / 20
    slope_range_high: float = 50 / 20
    slope_delta: float = 2.5 / 20
    guess_rate: float = 0.5
    lapse_rate: float = 0.0
    threshold_criterion: float = 0.81606

    def __post_init__(self):
        if self.log_thresh_limit_delta <= 0 or self.slope_delta <= 0:
            raise ConfigurationError("grid steps must be positive")
        if self.log_thresh_limit_low < self.log_thresh_limit_high:
            raise ConfigurationError(
                "log_thresh_limit_low must be >= log_thresh_limit_high "
                f"(got {self.log_thresh_limit_low}, {self.log_thresh_limit_high})"
            )
        if self.slope_range_low <= 0 or self.slope_range_high < self.slope_range_low:
            raise ConfigurationError(
                f"invalid slope range [{self.slope_range_low}, {self.slope_range_high}]"
            )
        if not (0 <= self.guess_rate < 1 and 0 <= self.lapse_rate < 1):
            raise ConfigurationError("guess and lapse rates must be in [0, 1)")
        if self.guess_rate + self.lapse_rate >= 1:
            raise ConfigurationError("guess_rate + lapse_rate must be < 1")
        if not (self.guess_rate < self.threshold_criterion < 1 - self.lapse_rate):
            raise ConfigurationError(
                f"threshold_criterion {self.threshold_criterion} must lie in "
                f"({self.guess_rate}, {1 - self.lapse_rate})"
            )

    def threshold_domain(self) -> np.ndarray:
        return _inclusive_range(
            -self.log_thresh_limit_low, -self.log_thresh_limit_high, self.log_thresh_limit_delta
        )

    def slope_domain(self) -> np.ndarray:
        return _inclusive_range(self.slope_range_low, self.slope_range_high, self.slope_delta)


@dataclass
class QuestParams:
    """
    Trial-count policy.

    Attributes
    ----------
    min_trial, max_trial : int
        Trial bounds for QUEST+. Equal values give a fixed budget.
    stop_criterion : float
        Posterior SD (log10 units) of threshold that stops QUEST+ once
        min_trial trials have been run.
    method_of_constant_stimuli : bool
        Present every level of the threshold domain once instead of
        running QUEST+.
    n_repeat : int | None
        Trials per level in constant-stimuli mode (defaults to n_test). Each
        level is run as one block of n_repeat test instances.
    best_n : int
        QUEST+ picks uniformly among the best_n most informative levels.
    psychometric : str
        Key of PSYCHOMETRIC_FUNCTIONS.
    max_blocks : int
        Hard cap on the number of blocks in one run.
    max_seconds : float | None
        Wall-clock cap on one run.
    """

    min_trial: int = 1280
    max_trial: int = 1280
    stop_criterion: float = 0.05
    method_of_constant_stimuli: bool = False
    n_repeat: int | None = None
    best_n: int = 1
    psychometric: str = "weibull_log"
    max_blocks: int = 10_000
    max_seconds: float | None = None

    def __post_init__(self):
        if self.min_trial < 0 or self.max_trial < 1 or self.min_trial > self.max_trial:
            raise ConfigurationError(
                f"need 0 <= min_trial <= max_trial and max_trial >= 1, got {self.min_trial}, {self.max_trial}"
            )
        if self.psychometric not in PSYCHOMETRIC_FUNCTIONS:
            raise ConfigurationError(
                f"Unknown psychometric function: '{self.psychometric}'. "
                f"Valid: {sorted(PSYCHOMETRIC_FUNCTIONS)}"
            )
        if self.max_blocks < 1:
            raise ConfigurationError(f"max_blocks must be >= 1, got {self.max_blocks}")
        if self.max_seconds is not None and self.max_seconds <= 0:
            raise ConfigurationError(f"max_seconds must be positive, got {self.max_seconds}")
        if self.n_repeat is not None and self.n_repeat < 1:
            raise ConfigurationError(f"n_repeat must be >= 1, got {self.n_repeat}")
