"""Pure tier evaluation from attendance and cumulative spend."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence


@dataclass(frozen=True)
class TierThreshold:
    """A tier unlocks when every listed minimum is met."""

    tier: int
    min_attendance: int
    min_spend_usd: Decimal | None = None

    def is_met(self, attendance: int, spend_usd: Decimal) -> bool:
        if attendance < self.min_attendance:
            return False
        if self.min_spend_usd is not None and spend_usd < self.min_spend_usd:
            return False
        return True

    def describe(self, attendance: int, spend_usd: Decimal) -> str:
        reason = f"Attendance {attendance}/{self.min_attendance}"
        if self.min_spend_usd is not None:
            reason += f", Spend ${_format_amount(spend_usd)}/${_format_amount(self.min_spend_usd)}"
        return reason


@dataclass(frozen=True)
class TierResult:
    tier: int
    unlocked: bool
    reason: str


DEFAULT_TIER_THRESHOLDS: tuple[TierThreshold, ...] = (
    TierThreshold(tier=1, min_attendance=3),
    TierThreshold(tier=2, min_attendance=10, min_spend_usd=Decimal("50")),
    TierThreshold(tier=3, min_attendance=20, min_spend_usd=Decimal("150")),
)


def _format_amount(value: Decimal) -> str:
    rendered = f"{Decimal(value):.2f}"
    return rendered.rstrip("0").rstrip(".")


def evaluate_tiers(
    attendance: int,
    spend_usd: Decimal | int | float,
    thresholds: Sequence[TierThreshold] = DEFAULT_TIER_THRESHOLDS,
) -> list[TierResult]:
    """Return one result per threshold, in threshold order."""

    spend = Decimal(str(spend_usd))
    return [
        TierResult(
            tier=threshold.tier,
            unlocked=threshold.is_met(attendance, spend),
            reason=threshold.describe(attendance, spend),
        )
        for threshold in thresholds
    ]


def highest_unlocked_tier(results: Sequence[TierResult]) -> int:
    """Highest unlocked tier index, 0 when none is unlocked."""

    return max((result.tier for result in results if result.unlocked), default=0)


__all__ = [
    "DEFAULT_TIER_THRESHOLDS",
    "TierResult",
    "TierThreshold",
    "evaluate_tiers",
    "highest_unlocked_tier",
]
