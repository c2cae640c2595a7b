"""
pooling.py
----------

Spatial / spatiotemporal pooling of neural response instances.

Responses are arrays of shape (n_trials, n_time_bins, n_units). Pooling
collapses the unit axis so that each trial becomes a time series of
length n_time_bins:

- "none"              : no pooling, responses are flattened downstream.
- "full_field"        : unweighted sum over units.
- "linear"            : dot product with a direct kernel per time bin.
- "quadrature_energy" : sqrt(direct**2 + quadrature**2) of two linear channels.

Kernels have shape (n_units,) or (k, n_units) with k == 1 (static kernel,
reused for every time bin) or k == n_time_bins (spatiotemporal kernel,
indexed by time bin). Trials are pooled independently, as one vectorized
einsum over the trial axis.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import numpy as np

from csfgen.errors import ConfigurationError, DataShapeError

POOLING_KINDS = ("none", "full_field", "linear", "quadrature_energy")


@dataclass(frozen=True)
class PoolingConfig:
    """
    Pooling configuration.

    Attributes
    ----------
    kind : {"none", "full_field", "linear", "quadrature_energy"}
    direct_weights : np.ndarray | None
        Direct kernel; required for "linear" and "quadrature_energy"
        unless `from_templates` is set.
    quadrature_weights : np.ndarray | None
        Quadrature kernel; required for "quadrature_energy".
    baseline : np.ndarray | None
        Activation subtracted from every response before pooling,
        shape (n_time_bins, n_units). If None, pooling classifiers use
        the mean null training response.
    from_templates : bool
        Recompute the direct kernel for every tested contrast from the
        noise-free null/test responses (see template_pooling_weights).
        Only the direct kernel is derived; "quadrature_energy" still needs
        a fixed `quadrature_weights` supplied by the caller, which is then
        used unchanged at every contrast.
    """

    kind: str = "none"
    direct_weights: np.ndarray | None = None
    quadrature_weights: np.ndarray | None = None
    baseline: np.ndarray | None = None
    from_templates: bool = False

    def __post_init__(self):
        if self.kind not in POOLING_KINDS:
            raise ConfigurationError(
                f"Unknown pooling type: '{self.kind}'. Valid types: {POOLING_KINDS}"
            )
        if self.kind in ("linear", "quadrature_energy"):
            if self.direct_weights is None and not self.from_templates:
                raise ConfigurationError(f"pooling '{self.kind}' requires direct_weights")
        if self.kind == "quadrature_energy" and self.quadrature_weights is None:
            raise ConfigurationError("pooling 'quadrature_energy' requires quadrature_weights")

    @property
    def is_pooled(self) -> bool:
        return self.kind != "none"

    @property
    def ready(self) -> bool:
        """True when all kernels needed for pooling are present."""
        return self.kind not in ("linear", "quadrature_energy") or self.direct_weights is not None

    def with_weights(self, direct_weights, quadrature_weights=None) -> PoolingConfig:
        """Return a copy with new kernels."""
        return replace(
            self,
            direct_weights=np.asarray(direct_weights, dtype=float),
            quadrature_weights=(
                self.quadrature_weights if quadrature_weights is None
                else np.asarray(quadrature_weights, dtype=float)
            ),
        )


def _kernel(weights: np.ndarray, n_time_bins: int, n_units: int) -> np.ndarray:
    w = np.asarray(weights, dtype=float)
    if w.ndim == 1:
        w = w[None, :]
    if w.ndim != 2 or w.shape[1] != n_units or w.shape[0] not in (1, n_time_bins):
        raise DataShapeError(
            f"pooling kernel shape {np.shape(weights)} incompatible with responses of "
            f"{n_time_bins} time bins x {n_units} units"
        )
    return np.broadcast_to(w, (n_time_bins, n_units))


def linear_pool(responses: np.ndarray, weights: np.ndarray) -> np.ndarray:
    """
    Weighted sum over units for every trial and time bin.

    Parameters
    ----------
    responses : np.ndarray, shape (n_trials, n_time_bins, n_units)
    weights : np.ndarray, shape (n_units,) or (1 | n_time_bins, n_units)

    Returns
    -------
    np.ndarray, shape (n_trials, n_time_bins)
    """
    _, n_time_bins, n_units = responses.shape
    return np.einsum("ntu,tu->nt", responses, _kernel(weights, n_time_bins, n_units))


def pool_responses(responses: np.ndarray, config: PoolingConfig) -> np.ndarray:
    """
    Apply `config` to a response instance set.

    Parameters
    ----------
    responses : np.ndarray, shape (n_trials, n_time_bins, n_units)
    config : PoolingConfig

    Returns
    -------
    np.ndarray
        (n_trials, n_time_bins, n_units) unchanged for "none",
        (n_trials, n_time_bins) otherwise.
    """
    if config.kind == "none":
        return responses
    if config.kind == "full_field":
        return responses.sum(axis=2)
    if not config.ready:
        raise ConfigurationError(
            f"pooling '{config.kind}' kernels have not been computed yet"
        )
    direct = linear_pool(responses, config.direct_weights)
    if config.kind == "linear":
        return direct
    quadrature = linear_pool(responses, config.quadrature_weights)
    return np.sqrt(direct**2 + quadrature**2)


def template_pooling_weights(null_template: np.ndarray, test_template: np.ndarray) -> np.ndarray:
    """
    Direct pooling kernel from noise-free responses.

    The kernel is the test - null difference, normalized to unit L2 norm
    over all time bins and units. A zero difference (zero contrast) gives
    an all-zero kernel.

    Parameters
    ----------
    null_template, test_template : np.ndarray, shape (n_time_bins, n_units)

    Returns
    -------
    np.ndarray, shape (n_time_bins, n_units)
    """
    null_template = np.asarray(null_template, dtype=float)
    test_template = np.asarray(test_template, dtype=float)
    if null_template.shape != test_template.shape:
        raise DataShapeError(
            f"null template shape {null_template.shape} != test template shape {test_template.shape}"
        )
    diff = test_template - null_template
    norm = np.linalg.norm(diff)
    if norm == 0:
        return diff
    return diff / norm
