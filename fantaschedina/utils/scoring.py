"""
Scoring Engine for FantaSchedina

This module holds the pure calculations behind predictions, prizes and the
leaderboard. Database aggregation lives on the models, see
PrizeDistribution.calculate() and User.get_leaderboard().
"""

from datetime import datetime, timedelta, timezone
from fractions import Fraction

VALID_OUTCOMES = ("1", "X", "2")

TIER_PERFECT = "100"
TIER_NEAR_PERFECT = "90"


def _as_utc(dt):
    # Naive datetimes are stored as UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def lock_time(match_date, lock_minutes=30):
    """Moment after which predictions for a match can no longer change"""
    return _as_utc(match_date) - timedelta(minutes=lock_minutes)


def is_editable(match_date, now=None, lock_minutes=30):
    """
    Check whether a prediction on a match starting at match_date can still be
    created or changed.

    Editable strictly before the lock time, so exactly lock_minutes before
    kick-off the match is already locked.
    """
    if match_date is None:
        return False
    if now is None:
        now = datetime.now(timezone.utc)
    return _as_utc(now) < lock_time(match_date, lock_minutes)


def is_valid_outcome(value):
    return value in VALID_OUTCOMES


def is_prediction_correct(prediction, result):
    """None while the match has no result"""
    if result is None:
        return None
    return prediction == result


def correct_percentage(correct, total):
    """
    Percentage of correct predictions, rounded half up to an integer.

    Returns 0 when there is nothing to score.
    """
    if not total:
        return 0
    # Integer half-up rounding of 100 * correct / total
    return (200 * correct + total) // (2 * total)


def prize_tier(correct, total, near_perfect_threshold=90):
    """
    Classify a user's match day into a prize tier.

    Returns:
        TIER_PERFECT when every scored prediction is correct,
        TIER_NEAR_PERFECT when the percentage falls in [threshold, 100),
        None otherwise.
    """
    if total <= 0:
        return None
    if correct == total:
        return TIER_PERFECT

    percentage = correct_percentage(correct, total)
    if near_perfect_threshold <= percentage < 100:
        return TIER_NEAR_PERFECT
    return None


def split_pot(total_pot, near_perfect_share=0.35):
    """
    Split a match day pot between the two tiers.

    Returns:
        (pot_for_90_pct, pot_for_100_pct); the perfect tier takes the remainder
    """
    pot_for_90 = int(total_pot * near_perfect_share)
    return pot_for_90, total_pot - pot_for_90


def amount_per_user(pot, user_count):
    """Even floor split of a pot, 0 when nobody qualifies"""
    if user_count <= 0:
        return 0
    return pot // user_count


def leaderboard_sort_key(entry):
    """
    Sort key for leaderboard entries: more correct predictions first, then
    higher success rate, then more predictions, then username.

    The rate is compared exactly, success_rate is rounded for display only.
    """
    total = entry["total_predictions"]
    rate = Fraction(entry["correct_predictions"], total) if total else Fraction(0)
    return (
        -entry["correct_predictions"],
        -rate,
        -entry["total_predictions"],
        entry["username"].lower(),
    )


def rank_entries(entries):
    """Sort entries in place and assign 1-based positions"""
    entries.sort(key=leaderboard_sort_key)
    for position, entry in enumerate(entries, start=1):
        entry["position"] = position
    return entries
