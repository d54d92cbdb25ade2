from datetime import datetime, timedelta, timezone

import pytest

from fantaschedina.utils.scoring import (
    TIER_NEAR_PERFECT,
    TIER_PERFECT,
    amount_per_user,
    correct_percentage,
    is_editable,
    is_prediction_correct,
    prize_tier,
    rank_entries,
    split_pot,
)

KICKOFF = datetime(2026, 11, 1, 15, 0, tzinfo=timezone.utc)


def test_editable_until_lock_boundary():
    assert is_editable(KICKOFF, KICKOFF - timedelta(minutes=31))
    # Exactly at the lock time the match is closed
    assert not is_editable(KICKOFF, KICKOFF - timedelta(minutes=30))
    assert not is_editable(KICKOFF, KICKOFF + timedelta(minutes=5))


def test_naive_dates_are_utc():
    naive_kickoff = KICKOFF.replace(tzinfo=None)
    assert is_editable(naive_kickoff, KICKOFF - timedelta(hours=1))
    assert not is_editable(naive_kickoff, KICKOFF - timedelta(minutes=10))


def test_custom_lock_minutes():
    now = KICKOFF - timedelta(minutes=45)
    assert is_editable(KICKOFF, now, lock_minutes=30)
    assert not is_editable(KICKOFF, now, lock_minutes=60)


def test_prediction_correctness():
    assert is_prediction_correct("1", "1") is True
    assert is_prediction_correct("X", "2") is False
    assert is_prediction_correct("2", None) is None


@pytest.mark.parametrize(
    "correct,total,expected",
    [(0, 0, 0), (5, 5, 100), (9, 10, 90), (2, 3, 67), (1, 3, 33), (1, 8, 13)],
)
def test_correct_percentage_rounds_half_up(correct, total, expected):
    assert correct_percentage(correct, total) == expected


def test_prize_tiers():
    assert prize_tier(5, 5) == TIER_PERFECT
    assert prize_tier(9, 10) == TIER_NEAR_PERFECT
    assert prize_tier(4, 5) is None  # 80%
    assert prize_tier(0, 0) is None
    # 19/20 rounds to 95
    assert prize_tier(19, 20) == TIER_NEAR_PERFECT
    assert prize_tier(4, 5, near_perfect_threshold=80) == TIER_NEAR_PERFECT


def test_split_pot_gives_remainder_to_perfect_tier():
    assert split_pot(100) == (35, 65)
    assert split_pot(0) == (0, 0)
    near, perfect = split_pot(7)
    assert near + perfect == 7


def test_amount_per_user_floors():
    assert amount_per_user(65, 2) == 32
    assert amount_per_user(65, 0) == 0


def test_rank_entries_tie_breaks():
    entries = [
        {"username": "bravo", "correct_predictions": 2, "success_rate": 67, "total_predictions": 3},
        {"username": "Alpha", "correct_predictions": 2, "success_rate": 67, "total_predictions": 3},
        {"username": "charlie", "correct_predictions": 2, "success_rate": 100, "total_predictions": 2},
        {"username": "delta", "correct_predictions": 3, "success_rate": 50, "total_predictions": 6},
    ]

    ranked = rank_entries(entries)

    assert [e["username"] for e in ranked] == ["delta", "charlie", "Alpha", "bravo"]
    assert [e["position"] for e in ranked] == [1, 2, 3, 4]


def test_rank_entries_compares_exact_rate():
    # Both round to 50%, but 60/120 is the better rate
    entries = [
        {"username": "bravo", "correct_predictions": 60, "success_rate": 50, "total_predictions": 121},
        {"username": "alpha", "correct_predictions": 60, "success_rate": 50, "total_predictions": 120},
    ]

    ranked = rank_entries(entries)

    assert [e["username"] for e in ranked] == ["alpha", "bravo"]
