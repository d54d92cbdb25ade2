from datetime import timedelta

import pytest

from fantaschedina import db
from fantaschedina.models import Match, Prediction, PredictionRejected


def test_create_then_update_same_match(player_client, make_match):
    match_id = make_match()

    created = player_client.post(
        "/api/predictions", json={"match_id": match_id, "prediction": "1", "credits": 3}
    )
    assert created.status_code == 201
    data = created.get_json()
    assert data["prediction"] == "1"
    assert data["credits"] == 3
    assert data["is_editable"] is True
    assert data["match"]["id"] == match_id

    updated = player_client.post(
        "/api/predictions", json={"match_id": match_id, "prediction": "X"}
    )
    assert updated.status_code == 200
    assert updated.get_json()["id"] == data["id"]
    assert updated.get_json()["prediction"] == "X"
    assert updated.get_json()["credits"] == 1

    mine = player_client.get("/api/predictions/user").get_json()
    assert len(mine) == 1


def test_locked_match_rejects_prediction(player_client, make_match):
    match_id = make_match(starts_in=timedelta(minutes=10))

    response = player_client.post(
        "/api/predictions", json={"match_id": match_id, "prediction": "2"}
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "Le previsioni per questa partita sono chiuse"


def test_unknown_match(player_client):
    response = player_client.post(
        "/api/predictions", json={"match_id": 999, "prediction": "1"}
    )

    assert response.status_code == 404
    assert response.get_json()["error"] == "Partita non trovata"


@pytest.mark.parametrize(
    "body,message",
    [
        ({"prediction": "3"}, "Il pronostico deve essere 1, X o 2"),
        ({"prediction": "1", "credits": 11}, "I crediti devono essere tra 1 e 10"),
        ({"prediction": "1", "credits": 0}, "I crediti devono essere tra 1 e 10"),
    ],
)
def test_invalid_prediction_body(player_client, make_match, body, message):
    body["match_id"] = make_match()

    response = player_client.post("/api/predictions", json=body)

    assert response.status_code == 400
    assert response.get_json()["error"] == message


def test_prediction_requires_login(client, make_match):
    response = client.post(
        "/api/predictions", json={"match_id": make_match(), "prediction": "1"}
    )
    assert response.status_code == 401


def test_lock_boundary(app, player, make_match):
    match_id = make_match()

    with app.app_context():
        match = db.session.get(Match, match_id)
        kickoff = match.match_date

        with pytest.raises(PredictionRejected):
            Prediction.submit(player, match, "1", now=kickoff - timedelta(minutes=30))

        prediction, created = Prediction.submit(
            player, match, "1", now=kickoff - timedelta(minutes=31)
        )
        db.session.commit()
        assert created

        assert prediction.can_edit(now=kickoff - timedelta(minutes=31))
        assert not prediction.can_edit(now=kickoff - timedelta(minutes=30))
        with pytest.raises(PredictionRejected):
            prediction.update(outcome="2", now=kickoff - timedelta(minutes=29))


def test_match_day_gating(player_client, make_match):
    first_day = [make_match(match_day=1), make_match(match_day=1)]
    second_day = make_match(match_day=2, starts_in=timedelta(days=9))

    blocked = player_client.post(
        "/api/predictions", json={"match_id": second_day, "prediction": "1"}
    )
    assert blocked.status_code == 400
    assert blocked.get_json()["error"] == (
        "Devi inserire almeno 2 pronostici per la giornata 1 "
        "prima di passare alla successiva"
    )

    for match_id in first_day:
        player_client.post("/api/predictions", json={"match_id": match_id, "prediction": "X"})

    allowed = player_client.post(
        "/api/predictions", json={"match_id": second_day, "prediction": "1"}
    )
    assert allowed.status_code == 201


def test_gating_caps_at_minimum(app, player, make_match, make_prediction):
    day_one = [make_match(match_day=1) for _ in range(6)]
    day_two = make_match(match_day=2, starts_in=timedelta(days=9))

    for match_id in day_one[:4]:
        make_prediction(player, match_id, "1")

    with app.app_context():
        match = db.session.get(Match, day_two)
        ok, message = Prediction.check_match_day_gating(player, match)
        assert not ok
        assert "almeno 5 pronostici" in message

    make_prediction(player, day_one[4], "2")

    with app.app_context():
        match = db.session.get(Match, day_two)
        ok, _ = Prediction.check_match_day_gating(player, match)
        assert ok


def test_put_and_delete_own_prediction(player_client, make_match):
    match_id = make_match()
    prediction_id = player_client.post(
        "/api/predictions", json={"match_id": match_id, "prediction": "1"}
    ).get_json()["id"]

    updated = player_client.put(
        f"/api/predictions/{prediction_id}", json={"prediction": "2", "credits": 5}
    )
    assert updated.status_code == 200
    assert updated.get_json()["prediction"] == "2"
    assert updated.get_json()["credits"] == 5

    deleted = player_client.delete(f"/api/predictions/{prediction_id}")
    assert deleted.status_code == 200
    assert player_client.get(f"/api/predictions/{prediction_id}").status_code == 404


def test_cannot_touch_other_users_prediction(
    player_client, make_user, make_match, make_prediction
):
    other = make_user("bravo")
    prediction_id = make_prediction(other, make_match(), "1")

    assert player_client.put(
        f"/api/predictions/{prediction_id}", json={"prediction": "2"}
    ).status_code == 403
    assert player_client.delete(f"/api/predictions/{prediction_id}").status_code == 403
    assert player_client.get(f"/api/predictions/{prediction_id}").status_code == 403


def test_match_day_listing(player_client, make_match, make_user, make_prediction):
    other = make_user("bravo")
    match_id = make_match(match_day=4)
    make_prediction(other, match_id, "X", credits=4)

    listing = player_client.get("/api/predictions/matchday/4").get_json()

    assert len(listing) == 1
    assert listing[0]["username"] == "bravo"
    assert listing[0]["match_day"] == 4


def test_match_day_holds_at_most_five_predictions(player_client, make_match):
    matches = [make_match(match_day=1) for _ in range(6)]

    codes = [
        player_client.post(
            "/api/predictions", json={"match_id": match_id, "prediction": "1"}
        ).status_code
        for match_id in matches
    ]
    assert codes == [201, 201, 201, 201, 201, 400]

    rejected = player_client.post(
        "/api/predictions", json={"match_id": matches[5], "prediction": "1"}
    )
    assert rejected.get_json()["error"] == (
        "Hai già pronosticato 5 partite per questa giornata. "
        "Non puoi aggiungerne altre."
    )

    # Changing a held prediction is still allowed
    updated = player_client.post(
        "/api/predictions", json={"match_id": matches[0], "prediction": "2"}
    )
    assert updated.status_code == 200


def test_prediction_cap_is_configurable(app, player_client, make_match):
    app.config["MAX_PREDICTIONS_PER_MATCH_DAY"] = 2
    matches = [make_match(match_day=1) for _ in range(3)]

    codes = [
        player_client.post(
            "/api/predictions", json={"match_id": match_id, "prediction": "X"}
        ).status_code
        for match_id in matches
    ]

    assert codes == [201, 201, 400]
