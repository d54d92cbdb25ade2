from datetime import timedelta

from fantaschedina import db
from fantaschedina.models import Prediction


def test_posting_result_scores_predictions(
    app, admin_client, player, make_user, make_match, make_prediction
):
    other = make_user("bravo")
    match_id = make_match(starts_in=-timedelta(hours=2))
    right = make_prediction(player, match_id, "2")
    wrong = make_prediction(other, match_id, "1")

    response = admin_client.post(f"/api/matches/{match_id}/result", json={"result": "2"})

    assert response.status_code == 200
    assert response.get_json()["result"] == "2"
    assert response.get_json()["has_result"] is True
    assert response.get_json()["is_open"] is False

    with app.app_context():
        assert db.session.get(Prediction, right).is_correct is True
        assert db.session.get(Prediction, wrong).is_correct is False
        assert db.session.get(Prediction, right).is_editable is False


def test_result_freezes_future_match(
    app, admin_client, player, make_match, make_prediction
):
    match_id = make_match()
    prediction_id = make_prediction(player, match_id, "X")

    admin_client.post(f"/api/matches/{match_id}/result", json={"result": "X"})

    with app.app_context():
        prediction = db.session.get(Prediction, prediction_id)
        assert prediction.is_correct is True
        assert not prediction.can_edit()


def test_result_can_be_corrected(app, admin_client, player, make_match, make_prediction):
    match_id = make_match(starts_in=-timedelta(hours=2))
    prediction_id = make_prediction(player, match_id, "1")

    admin_client.post(f"/api/matches/{match_id}/result", json={"result": "2"})
    admin_client.post(f"/api/matches/{match_id}/result", json={"result": "1"})

    with app.app_context():
        assert db.session.get(Prediction, prediction_id).is_correct is True


def test_invalid_result(admin_client, make_match):
    response = admin_client.post(
        f"/api/matches/{make_match()}/result", json={"result": "Z"}
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "Risultato non valido"


def test_result_for_unknown_match(admin_client):
    response = admin_client.post("/api/matches/404/result", json={"result": "1"})
    assert response.status_code == 404
