"""
cache.py
--------

Per-contrast cache of trained classifiers.

Owned by a single threshold run. Keys are contrasts compared by exact
floating point equality. Stored classifiers are deep copies, so later
use of the caller's object cannot change a cached entry.
"""

from __future__ import annotations

from collections.abc import Iterator

from csfgen.errors import StateError
from csfgen.observer.base import ResponseClassifier


class ClassifierCache:
    """
    contrast -> trained ResponseClassifier.

    Examples
    --------
    >>> cache = ClassifierCache()
    >>> cache.store(0.01, trained)
    >>> cache.get(0.01) is not None
    True
    """

    def __init__(self) -> None:
        self._classifiers: dict[float, ResponseClassifier] = {}

    def get(self, contrast: float) -> ResponseClassifier | None:
        return self._classifiers.get(float(contrast))

    def store(self, contrast: float, classifier: ResponseClassifier) -> None:
        """
        Cache a trained classifier for `contrast`.

        Raises
        ------
        StateError
            If the classifier is untrained or `contrast` is already cached.
        """
        contrast = float(contrast)
        if not classifier.is_trained:
            raise StateError("only trained classifiers can be cached")
        if contrast in self._classifiers:
            raise StateError(f"a classifier is already cached for contrast {contrast!r}")
        self._classifiers[contrast] = classifier.copy()

    @property
    def contrasts(self) -> list[float]:
        return list(self._classifiers)

    def clear(self) -> None:
        self._classifiers.clear()

    def __contains__(self, contrast: object) -> bool:
        return contrast in self._classifiers

    def __iter__(self) -> Iterator[float]:
        return iter(self._classifiers)

    def __len__(self) -> int:
        return len(self._classifiers)
