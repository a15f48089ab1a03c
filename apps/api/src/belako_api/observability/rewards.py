from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from threading import Lock
from typing import Dict


@dataclass
class RewardsSnapshot:
    sales: Dict[str, int]
    grants: Dict[str, int]
    meet_greet: Dict[str, int]

    def as_dict(self) -> Dict[str, object]:
        return {
            "sales": dict(self.sales),
            "grants": dict(self.grants),
            "meetGreet": dict(self.meet_greet),
        }


class RewardsObservabilityStore:
    """Collect sales reconciliation, grant and meet & greet counters."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._sales: Dict[str, int] = defaultdict(int)
        self._grants: Dict[str, int] = defaultdict(int)
        self._meet_greet: Dict[str, int] = defaultdict(int)

    def record_sale_event(self, event: str) -> None:
        with self._lock:
            self._sales[event] += 1

    def record_grant_event(self, event: str) -> None:
        with self._lock:
            self._grants[event] += 1

    def record_meet_greet_event(self, event: str) -> None:
        with self._lock:
            self._meet_greet[event] += 1

    def snapshot(self) -> RewardsSnapshot:
        with self._lock:
            return RewardsSnapshot(
                sales=dict(self._sales),
                grants=dict(self._grants),
                meet_greet=dict(self._meet_greet),
            )

    def reset(self) -> None:
        with self._lock:
            self._sales.clear()
            self._grants.clear()
            self._meet_greet.clear()


_STORE = RewardsObservabilityStore()


def get_rewards_store() -> RewardsObservabilityStore:
    return _STORE


__all__ = ["get_rewards_store", "RewardsObservabilityStore", "RewardsSnapshot"]
