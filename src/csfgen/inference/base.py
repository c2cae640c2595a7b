"""
base.py
-------

Abstract base class for psychometric-function fitting engines.

All engines implement `fit(psychometric, data, init_params)` and return
fitted PsychometricParams.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class InferenceEngine(ABC):
    """
    Abstract interface for fitting engines.

    Methods
    -------
    fit(psychometric, data, init_params, bounds=None) -> PsychometricParams
        Fit psychometric parameters to data.
    """

    @abstractmethod
    def fit(self, psychometric: Any, data: Any, init_params: Any, bounds: Any = None) -> Any:
        """
        Fit psychometric parameters to data.

        Parameters
        ----------
        psychometric : PsychometricFunction
            Function family to fit.
        data : ResponseData
            Observed trials.
        init_params : PsychometricParams
            Starting point; its guess and lapse rates are held fixed.
        bounds : dict, optional
            Per-parameter (lo, hi) limits.

        Returns
        -------
        PsychometricParams
            Fitted parameters.
        """
        ...
