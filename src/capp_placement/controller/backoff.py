"""Per-key exponential backoff for failed reconciliations."""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass, field

DEFAULT_BASE_DELAY_SECONDS = 0.005
DEFAULT_MAX_DELAY_SECONDS = 1000.0


@dataclass(slots=True)
class ExponentialBackoff[K: Hashable]:
    """``base * 2**failures`` seconds, capped at ``max_delay``.

    Failures are counted per key until ``forget`` is called after a
    successful pass.
    """

    base_delay: float = DEFAULT_BASE_DELAY_SECONDS
    max_delay: float = DEFAULT_MAX_DELAY_SECONDS
    _failures: dict[K, int] = field(default_factory=dict, init=False)

    def when(self, key: K) -> float:
        failures = self._failures.get(key, 0)
        self._failures[key] = failures + 1
        # exponent is bounded so huge failure counts cannot overflow the float
        delay = self.base_delay * 2 ** min(failures, 62)
        return min(delay, self.max_delay)

    def forget(self, key: K) -> None:
        self._failures.pop(key, None)

    def failures(self, key: K) -> int:
        return self._failures.get(key, 0)
