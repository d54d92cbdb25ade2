from datetime import timedelta

import pytest

from fantaschedina import cache


@pytest.fixture
def two_days(player, admin, make_user, make_match, make_prediction, set_result):
    """
    Day 1: alpha 2/2, bravo 1/2
    Day 2: alpha 0/1, bravo 1/1
    charlie never plays, the admin's predictions are ignored
    """
    bravo = make_user("bravo")
    make_user("charlie")

    day_one = [make_match(match_day=1, starts_in=-timedelta(days=8)) for _ in range(2)]
    day_two = make_match(match_day=2, starts_in=-timedelta(days=1))

    make_prediction(player, day_one[0], "1")
    make_prediction(player, day_one[1], "1")
    make_prediction(bravo, day_one[0], "1")
    make_prediction(bravo, day_one[1], "2")
    make_prediction(admin, day_one[0], "1")

    make_prediction(player, day_two, "X")
    make_prediction(bravo, day_two, "2")

    for match_id in day_one:
        set_result(match_id, "1")
    set_result(day_two, "2")


def test_overall_leaderboard(client, two_days):
    response = client.get("/api/leaderboard?mode=overall")

    assert response.status_code == 200
    data = response.get_json()
    assert data["mode"] == "overall"

    board = data["leaderboard"]
    assert [entry["username"] for entry in board] == ["alpha", "bravo", "charlie"]

    alpha, bravo, charlie = board
    # alpha and bravo tie on 2/3, the name decides
    assert (alpha["correct_predictions"], alpha["total_predictions"]) == (2, 3)
    assert (bravo["correct_predictions"], bravo["total_predictions"]) == (2, 3)
    assert alpha["success_rate"] == bravo["success_rate"] == 67
    assert charlie["total_predictions"] == 0
    assert [entry["position"] for entry in board] == [1, 2, 3]
    # Positions before day 2
    assert [entry["previous_position"] for entry in board] == [1, 2, 3]


def test_current_leaderboard(client, two_days):
    data = client.get("/api/leaderboard?mode=current").get_json()

    assert data["match_day"] == 2
    board = data["leaderboard"]
    assert [entry["username"] for entry in board] == ["bravo", "alpha", "charlie"]
    assert board[0]["success_rate"] == 100
    assert board[1]["success_rate"] == 0
    # Positions on day 1
    assert board[0]["previous_position"] == 2
    assert board[1]["previous_position"] == 1


def test_leaderboard_includes_prize_credits(app, client, two_days):
    from fantaschedina.models import PrizeDistribution

    with app.app_context():
        PrizeDistribution.distribute(1)

    board = client.get("/api/leaderboard").get_json()["leaderboard"]
    credits = {entry["username"]: entry["credits_won"] for entry in board}
    assert credits == {"alpha": 10, "bravo": 0, "charlie": 0}


def test_leaderboard_without_results(client, player, make_match):
    make_match()

    data = client.get("/api/leaderboard?mode=current").get_json()

    assert data["match_day"] is None
    assert data["leaderboard"][0]["username"] == "alpha"
    assert data["leaderboard"][0]["previous_position"] is None


def test_invalid_mode(client):
    response = client.get("/api/leaderboard?mode=weekly")

    assert response.status_code == 400
    assert response.get_json()["error"] == "Modalità classifica non valida"


@pytest.fixture
def simple_cache(app):
    cache.init_app(app, config={"CACHE_TYPE": "SimpleCache"})
    return cache


def names(client):
    return [e["username"] for e in client.get("/api/leaderboard").get_json()["leaderboard"]]


def test_user_writes_refresh_cached_leaderboard(simple_cache, client, admin_client, make_user):
    assert names(client) == []

    # Direct inserts skip invalidation, so the cached board is served
    ghost = make_user("ghost")
    assert names(client) == []

    registered = client.post(
        "/api/register", json={"username": "newteam", "pin": "1234"}
    )
    assert registered.status_code == 201
    assert names(client) == ["ghost", "newteam"]

    admin_client.post("/api/users", json={"username": "Tenerife", "pin": "5555"})
    assert names(client) == ["ghost", "newteam", "Tenerife"]

    admin_client.patch(f"/api/users/{ghost}", json={"username": "zeta"})
    assert names(client) == ["newteam", "Tenerife", "zeta"]

    admin_client.patch(f"/api/users/{ghost}", json={"is_admin": True})
    assert names(client) == ["newteam", "Tenerife"]


def test_match_day_change_refreshes_current_leaderboard(
    simple_cache, client, admin_client, player, make_match, make_prediction, set_result
):
    match_id = make_match(match_day=1, starts_in=-timedelta(days=1))
    make_prediction(player, match_id, "1")
    set_result(match_id, "1")

    assert client.get("/api/leaderboard?mode=current").get_json()["match_day"] == 1

    admin_client.patch(f"/api/matches/{match_id}", json={"match_day": 3})

    assert client.get("/api/leaderboard?mode=current").get_json()["match_day"] == 3
