"""
errors.py
---------

Exception taxonomy for csfgen.

- ConfigurationError : unknown pooling type, classifier kernel, noise mode,
  or an invalid parameter value. Raised at call/construction time.
- StateError : operations performed in the wrong lifecycle state
  (predict before train, retraining a trained classifier, revisiting a
  contrast in constant-stimuli mode, updating a stopped procedure).
- DataShapeError : mismatched response/feature shapes. The message always
  reports the offending shapes.
- NumericalError : a fit or posterior computation produced non-finite
  values.
"""

from __future__ import annotations


class CsfgenError(Exception):
    """Base class for all csfgen errors."""


class ConfigurationError(CsfgenError, ValueError):
    """Invalid or unknown configuration value."""


class StateError(CsfgenError, RuntimeError):
    """Operation not allowed in the current state."""


class DataShapeError(CsfgenError, ValueError):
    """Array shapes are inconsistent."""


class NumericalError(CsfgenError, FloatingPointError):
    """Non-finite values where finite ones are required."""


__all__ = ["CsfgenError", "ConfigurationError", "StateError", "DataShapeError", "NumericalError"]
