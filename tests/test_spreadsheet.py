from datetime import datetime
from io import BytesIO

import pandas as pd

from fantaschedina.utils.spreadsheet import MatchSpreadsheetParser


def workbook(rows):
    buffer = BytesIO()
    pd.DataFrame(rows).to_excel(buffer, index=False)
    return buffer.getvalue()


SCHEDULE = [
    {
        "homeTeam": "US Lecce",
        "awayTeam": "Real Madrid",
        "matchDate": datetime(2026, 11, 1, 15, 0),
        "matchDay": 5,
        "description": "Big match",
    },
    {
        "homeTeam": "Fc Como",
        "awayTeam": "NOCERINA",
        "matchDate": datetime(2026, 11, 1, 18, 0),
        "matchDay": 5,
        "description": None,
    },
]


def test_parse_workbook():
    result = MatchSpreadsheetParser().parse(workbook(SCHEDULE), "giornata5.xlsx")

    assert result["success"]
    first, second = result["matches"]
    assert first == {
        "home_team": "US Lecce",
        "away_team": "Real Madrid",
        # Sheet times are local to the league, stored as UTC
        "match_date": datetime(2026, 11, 1, 14, 0),
        "match_day": 5,
        "description": "Big match",
    }
    assert second["description"] is None


def test_parse_csv():
    content = b"homeTeam,awayTeam,matchDate,matchDay\nBOCA JUNIORS,Newells Old Boys,2026-07-01 20:45,2\n"

    result = MatchSpreadsheetParser().parse(content, "schedule.csv")

    assert result["success"]
    assert result["matches"][0]["match_date"] == datetime(2026, 7, 1, 18, 45)
    assert result["matches"][0]["match_day"] == 2


def test_excel_serial_dates():
    assert MatchSpreadsheetParser._datetime(45658.625) == datetime(2025, 1, 1, 14, 0)


def test_missing_column():
    rows = [{k: v for k, v in row.items() if k != "matchDay"} for row in SCHEDULE]

    result = MatchSpreadsheetParser().parse(workbook(rows), "schedule.xlsx")

    assert result == {
        "success": False,
        "error": "Nel file manca la colonna obbligatoria: matchDay",
    }


def test_row_errors_reject_whole_file():
    rows = SCHEDULE + [
        {"homeTeam": "Como", "awayTeam": "como", "matchDate": "nope", "matchDay": 0}
    ]

    result = MatchSpreadsheetParser().parse(workbook(rows), "schedule.xlsx")

    assert not result["success"]
    assert "Riga 4: le due squadre devono essere diverse" in result["error"]
    assert "Riga 4: data partita non valida" in result["error"]
    assert "Riga 4: giornata non valida" in result["error"]


def test_unreadable_file():
    result = MatchSpreadsheetParser().parse(b"not a workbook", "schedule.xlsx")

    assert result == {"success": False, "error": "File non leggibile, usa un file Excel"}


def test_empty_sheet():
    content = workbook({"homeTeam": [], "awayTeam": [], "matchDate": [], "matchDay": []})

    result = MatchSpreadsheetParser().parse(content, "schedule.xlsx")

    assert result == {"success": False, "error": "Il file non contiene dati"}


def test_upload_endpoint(client, admin_client):
    response = admin_client.post(
        "/api/matches/upload",
        data={"file": (BytesIO(workbook(SCHEDULE)), "giornata5.xlsx")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 201
    assert response.get_json()["message"] == "Importate 2 partite"
    assert len(client.get("/api/matches/matchday/5").get_json()) == 2


def test_upload_rejects_other_formats(admin_client):
    response = admin_client.post(
        "/api/matches/upload",
        data={"file": (BytesIO(b"hello"), "notes.txt")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "Formato non supportato, usa un file Excel"
