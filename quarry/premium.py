"""
Premium feature flags.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import FrozenSet, Iterable, Iterator

import structlog

logger = structlog.get_logger(__name__)

SNIPPET_COLLECTIONS = "snippet-collections"

KNOWN_FEATURES = frozenset({SNIPPET_COLLECTIONS})


class PremiumFeatures:
    def __init__(self, features: Iterable[str] = ()) -> None:
        self._features: FrozenSet[str] = frozenset(features)
        unknown = self._features - KNOWN_FEATURES
        if unknown:
            logger.warning("unknown_premium_features", features=sorted(unknown))

    @classmethod
    def from_settings(cls, settings) -> "PremiumFeatures":
        return cls(settings.premium_features)

    @property
    def features(self) -> FrozenSet[str]:
        return self._features

    def enabled(self, feature: str) -> bool:
        return feature in self._features

    @contextmanager
    def override(self, features: Iterable[str]) -> Iterator["PremiumFeatures"]:
        """Temporarily replace the enabled set, e.g. `with premium.override({"snippet-collections"}):`"""
        previous = self._features
        self._features = frozenset(features)
        try:
            yield self
        finally:
            self._features = previous

    def __repr__(self) -> str:
        return f"PremiumFeatures({sorted(self._features)!r})"
