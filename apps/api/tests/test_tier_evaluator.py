from decimal import Decimal

from belako_api.services.loyalty import (
    DEFAULT_TIER_THRESHOLDS,
    TierThreshold,
    evaluate_tiers,
    highest_unlocked_tier,
)


def test_threshold_boundaries_unlock_each_tier() -> None:
    results = evaluate_tiers(3, 0)
    assert [(r.tier, r.unlocked) for r in results] == [(1, True), (2, False), (3, False)]

    results = evaluate_tiers(10, 50)
    assert [r.unlocked for r in results] == [True, True, False]

    results = evaluate_tiers(20, 150)
    assert all(r.unlocked for r in results)
    assert highest_unlocked_tier(results) == 3


def test_spend_shortfall_keeps_tier_locked() -> None:
    results = evaluate_tiers(10, 49.99)
    assert results[1].unlocked is False
    assert highest_unlocked_tier(results) == 1


def test_no_unlocked_tier_reports_zero() -> None:
    results = evaluate_tiers(0, 0)
    assert not any(r.unlocked for r in results)
    assert highest_unlocked_tier(results) == 0


def test_reasons_summarise_progress() -> None:
    results = evaluate_tiers(4, Decimal("12.5"))
    assert results[0].reason == "Attendance 4/3"
    assert results[1].reason == "Attendance 4/10, Spend $12.5/$50"
    assert results[2].reason == "Attendance 4/20, Spend $12.5/$150"


def test_results_follow_threshold_order() -> None:
    custom = (
        TierThreshold(tier=5, min_attendance=1),
        TierThreshold(tier=2, min_attendance=0, min_spend_usd=Decimal("5")),
    )
    results = evaluate_tiers(1, 10, custom)
    assert [r.tier for r in results] == [5, 2]
    assert highest_unlocked_tier(results) == 5
    assert len(evaluate_tiers(0, 0)) == len(DEFAULT_TIER_THRESHOLDS)


def test_spend_gate_blocks_second_tier_despite_attendance() -> None:
    results = evaluate_tiers(25, 40)
    assert [r.unlocked for r in results] == [True, False, False]


def test_higher_tiers_imply_lower_tiers() -> None:
    for attendance in (0, 2, 3, 9, 10, 19, 20, 50):
        for spend in (0, 49.99, 50, 149.99, 150, 1000):
            unlocked = [r.unlocked for r in evaluate_tiers(attendance, spend)]
            if unlocked[2]:
                assert unlocked[1]
            if unlocked[1]:
                assert unlocked[0]
