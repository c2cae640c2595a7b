"""
trial_placement
===============

Stimulus placement procedures for threshold estimation.

- QuestPlus : Bayesian adaptive placement minimizing expected posterior entropy.
- ConstantStimuli : method of constant stimuli (validation mode).

Both keep a grid likelihood over psychometric parameters and share
fit_mle() for the final threshold estimate.

Examples
--------
>>> import numpy as np
>>> from csfgen.trial_placement import QuestPlus
>>> domain = np.arange(-2.4, 0.001, 0.02)
>>> proc = QuestPlus(
...     stim_domain=domain, threshold_domain=domain,
...     slope_domain=np.arange(0.05, 2.5, 0.125),
...     min_trial=1280, max_trial=1280,
... )
>>> x, more = proc.next_stimulus()
"""

from csfgen.trial_placement.base import AdaptiveProcedure
from csfgen.trial_placement.constant_stimuli import ConstantStimuli
from csfgen.trial_placement.quest_plus import QuestPlus, expected_entropy

PROCEDURES = {
    "quest_plus": QuestPlus,
    "constant_stimuli": ConstantStimuli,
}

__all__ = [
    "AdaptiveProcedure",
    "QuestPlus",
    "ConstantStimuli",
    "expected_entropy",
    "PROCEDURES",
]
