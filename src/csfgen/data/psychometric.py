"""
psychometric.py
---------------

Running record of the measured psychometric function.

Maps each tested contrast to the ordered list of proportion-correct values
observed at that contrast, one entry per trial block. Keys are compared by
exact floating point equality: two contrasts are the same key only if the
adaptive procedure produced the identical value.
"""

from __future__ import annotations

from collections.abc import Iterator


class PsychometricAccumulator:
    """
    Contrast -> [p_correct, ...] bookkeeping for one threshold run.

    Examples
    --------
    >>> acc = PsychometricAccumulator()
    >>> acc.record(0.01, 0.75)
    >>> acc.record(0.01, 0.8)
    >>> acc.history(0.01)
    [0.75, 0.8]
    """

    def __init__(self) -> None:
        self._entries: dict[float, list[float]] = {}

    def record(self, contrast: float, p_correct: float) -> None:
        """Append one block's proportion correct at `contrast`."""
        self._entries.setdefault(float(contrast), []).append(float(p_correct))

    def history(self, contrast: float) -> list[float]:
        """
        Return the recorded proportions correct at `contrast`, in order.

        Raises
        ------
        KeyError
            If `contrast` was never recorded.
        """
        return list(self._entries[float(contrast)])

    def mean(self, contrast: float) -> float:
        values = self._entries[float(contrast)]
        return sum(values) / len(values)

    @property
    def contrasts(self) -> list[float]:
        """Tested contrasts in order of first visit."""
        return list(self._entries)

    @staticmethod
    def label(contrast: float) -> str:
        """Human readable label, e.g. 'C = 1.2500%'."""
        return f"C = {contrast * 100:2.4f}%"

    def as_dict(self, labels: bool = False) -> dict:
        """Copy of the mapping, keyed by contrast or by its label."""
        if labels:
            return {self.label(c): list(v) for c, v in self._entries.items()}
        return {c: list(v) for c, v in self._entries.items()}

    def __contains__(self, contrast: object) -> bool:
        return contrast in self._entries

    def __iter__(self) -> Iterator[float]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
