from datetime import timedelta

import pytest

from fantaschedina.models import PrizeDistribution, WinnerPayout


@pytest.fixture
def small_day(player, make_user, make_match, make_prediction, set_result):
    """Day 1: alpha gets 2/2, bravo 1/2, 7 credits played in total"""
    bravo = make_user("bravo")
    first = make_match(starts_in=-timedelta(days=1))
    second = make_match(starts_in=-timedelta(days=1))

    make_prediction(player, first, "1", credits=3)
    make_prediction(player, second, "X", credits=2)
    make_prediction(bravo, first, "1")
    make_prediction(bravo, second, "2")

    set_result(first, "1")
    set_result(second, "X")
    return {"alpha": player, "bravo": bravo}


@pytest.fixture
def ten_match_day(player, make_user, make_match, make_prediction, set_result):
    """
    Day 1 with ten matches all ending "1", pot of 100 credits:
    alpha 10/10 (50 credits), charlie 9/10 (30), delta 0/10 (20)
    """
    charlie = make_user("charlie")
    delta = make_user("delta")
    matches = [make_match(starts_in=-timedelta(days=1)) for _ in range(10)]

    for index, match_id in enumerate(matches):
        make_prediction(player, match_id, "1", credits=5)
        make_prediction(charlie, match_id, "2" if index == 0 else "1", credits=3)
        make_prediction(delta, match_id, "X", credits=2)

    for match_id in matches:
        set_result(match_id, "1")
    return {"alpha": player, "charlie": charlie, "delta": delta}


def test_user_stats(app, small_day):
    with app.app_context():
        stats = PrizeDistribution.get_user_stats(1)

    assert [s["username"] for s in stats] == ["alpha", "bravo"]
    assert stats[0]["correct_percentage"] == 100
    assert stats[0]["tier"] == "100"
    assert stats[0]["credits_played"] == 5
    assert stats[1]["correct_percentage"] == 50
    assert stats[1]["tier"] is None


def test_unscored_predictions_do_not_count(app, small_day, make_match, make_prediction):
    # A third match without a result leaves alpha on 2/2
    pending = make_match()
    make_prediction(small_day["alpha"], pending, "2")

    with app.app_context():
        entry = PrizeDistribution.get_user_stats(1, user_id=small_day["alpha"])[0]

    assert entry["predictions_total"] == 3
    assert entry["predictions_scored"] == 2
    assert entry["tier"] == "100"


def test_fixed_mode_distribution(app, small_day):
    with app.app_context():
        distribution, payouts, created = PrizeDistribution.distribute(1)

        assert created
        assert distribution.is_distributed
        assert distribution.total_pot == 7
        assert distribution.users_100_pct_correct == 1
        assert distribution.pot_for_100_pct == 10
        assert [(p.user_id, p.amount, p.correct_percentage) for p in payouts] == [
            (small_day["alpha"], 10, 100)
        ]


def test_distribute_is_idempotent(app, small_day):
    with app.app_context():
        PrizeDistribution.distribute(1)

    with app.app_context():
        _, payouts, created = PrizeDistribution.distribute(1)
        assert not created
        assert len(payouts) == 1
        assert WinnerPayout.query.count() == 1


def test_calculate_leaves_distributed_row(app, small_day, make_match, make_prediction):
    with app.app_context():
        PrizeDistribution.distribute(1)

    # Late prediction would change the pot if recomputed
    make_prediction(small_day["bravo"], make_match(), "1", credits=10)

    with app.app_context():
        distribution = PrizeDistribution.calculate(1)
        assert distribution.total_pot == 7


def test_pot_mode_splits_between_tiers(app, ten_match_day):
    app.config["PRIZE_MODE"] = "pot"

    with app.app_context():
        summary = PrizeDistribution.compute(1)
        assert summary["total_pot"] == 100
        assert summary["pot_for_90_pct"] == 35
        assert summary["pot_for_100_pct"] == 65

        _, payouts, _ = PrizeDistribution.distribute(1)
        amounts = {p.user_id: p.amount for p in payouts}

    assert amounts == {ten_match_day["alpha"]: 65, ten_match_day["charlie"]: 35}


def test_fixed_mode_ignores_near_perfect(app, ten_match_day):
    with app.app_context():
        summary = PrizeDistribution.compute(1)

    assert summary["users_90_pct_correct"] == 1
    assert summary["amount_per_90_pct_user"] == 0
    assert [w["username"] for w in summary["winners"]] == ["alpha"]


def test_empty_match_day(app):
    with app.app_context():
        distribution, payouts, created = PrizeDistribution.distribute(7)

        assert created
        assert distribution.total_pot == 0
        assert payouts == []


def test_prize_endpoints(small_day, admin_client, login, app):
    alpha_client = login(app.test_client(), "alpha")

    preview = alpha_client.get("/api/prizes/matchday/1").get_json()
    assert preview["is_preview"] is True
    assert preview["total_pot"] == 7

    first = admin_client.post("/api/prizes/matchday/1/distribute")
    assert first.status_code == 200
    assert first.get_json()["already_distributed"] is False
    assert first.get_json()["payouts"][0]["username"] == "alpha"

    second = admin_client.post("/api/prizes/matchday/1/distribute").get_json()
    assert second["already_distributed"] is True
    assert len(second["payouts"]) == 1

    stored = alpha_client.get("/api/prizes/matchday/1").get_json()
    assert stored["is_preview"] is False
    assert stored["is_distributed"] is True

    mine = alpha_client.get("/api/prizes/user").get_json()
    assert mine["total_credits"] == 10

    day_payouts = alpha_client.get("/api/prizes/matchday/1/payouts").get_json()
    assert [p["amount"] for p in day_payouts] == [10]


def test_statistics_endpoints(small_day, login, app):
    client = login(app.test_client(), "bravo")

    totals = client.get("/api/statistics/matchday/1/total-credits").get_json()
    assert totals == {"match_day": 1, "total_credits": 7}

    mine = client.get(
        f"/api/statistics/user/{small_day['bravo']}/correct-predictions/1"
    ).get_json()
    assert mine["predictions_correct"] == 1
    assert mine["correct_percentage"] == 50


def test_three_of_three_pays_fixed_amount(app, player, make_match, make_prediction, set_result):
    matches = [make_match(starts_in=-timedelta(days=1)) for _ in range(3)]
    for match_id, outcome in zip(matches, ["1", "X", "2"]):
        make_prediction(player, match_id, outcome)
        set_result(match_id, outcome)

    with app.app_context():
        entry = PrizeDistribution.get_user_stats(1)[0]
        assert entry["predictions_scored"] == 3
        assert entry["predictions_correct"] == 3
        assert entry["correct_percentage"] == 100
        assert entry["tier"] == "100"

        _, payouts, _ = PrizeDistribution.distribute(1)
        assert [(p.user_id, p.amount, p.correct_percentage) for p in payouts] == [
            (player, 10, 100)
        ]
