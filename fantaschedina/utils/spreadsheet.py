"""
Match schedule spreadsheet import

Reads the first sheet of an Excel workbook (or a CSV file) with the columns
homeTeam, awayTeam, matchDate, matchDay and an optional description.
"""

import logging
from io import BytesIO
from zipfile import BadZipFile

import pandas as pd

from fantaschedina.utils.timezone_utils import convert_to_utc

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["homeTeam", "awayTeam", "matchDate", "matchDay"]

# Excel stores unformatted dates as days since this epoch
EXCEL_EPOCH = "1899-12-30"


class MatchSpreadsheetParser:
    def parse(self, file_content, filename=""):
        """
        Parse an uploaded schedule into match dictionaries

        Returns:
            {"success": True, "matches": [...]} or
            {"success": False, "error": "..."}
        """
        try:
            df = self._read(file_content, filename)
        except (ValueError, OSError, BadZipFile) as e:
            logger.warning(f"Unreadable schedule file {filename!r}: {e}")
            return {"success": False, "error": "File non leggibile, usa un file Excel"}

        # Drop rows left completely empty by the spreadsheet editor
        df = df.dropna(how="all")
        if df.empty:
            return {"success": False, "error": "Il file non contiene dati"}

        df.columns = [str(col).strip() for col in df.columns]
        for column in REQUIRED_COLUMNS:
            if column not in df.columns:
                return {
                    "success": False,
                    "error": f"Nel file manca la colonna obbligatoria: {column}",
                }

        matches = []
        errors = []
        for index, row in df.iterrows():
            row_num = index + 2  # Header is row 1
            match_data, row_errors = self._parse_row(row, row_num)
            if row_errors:
                errors.extend(row_errors)
            else:
                matches.append(match_data)

        if errors:
            return {"success": False, "error": "; ".join(errors[:10])}

        return {"success": True, "matches": matches}

    def _read(self, file_content, filename):
        if filename.lower().endswith(".csv"):
            return pd.read_csv(BytesIO(file_content))
        # First sheet only
        return pd.read_excel(BytesIO(file_content), sheet_name=0)

    def _parse_row(self, row, row_num):
        errors = []

        home_team = self._text(row["homeTeam"])
        away_team = self._text(row["awayTeam"])
        if not home_team:
            errors.append(f"Riga {row_num}: squadra di casa mancante")
        if not away_team:
            errors.append(f"Riga {row_num}: squadra in trasferta mancante")
        if home_team and away_team and home_team.lower() == away_team.lower():
            errors.append(f"Riga {row_num}: le due squadre devono essere diverse")

        match_date = self._datetime(row["matchDate"])
        if match_date is None:
            errors.append(f"Riga {row_num}: data partita non valida")

        match_day = self._integer(row["matchDay"])
        if match_day is None or match_day < 1:
            errors.append(f"Riga {row_num}: giornata non valida")

        description = None
        if "description" in row.index:
            description = self._text(row["description"]) or None

        if errors:
            return None, errors

        return {
            "home_team": home_team,
            "away_team": away_team,
            "match_date": match_date,
            "match_day": match_day,
            "description": description,
        }, []

    @staticmethod
    def _text(value):
        if pd.isna(value):
            return ""
        return str(value).strip()

    @staticmethod
    def _integer(value):
        if pd.isna(value):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if not number.is_integer():
            return None
        return int(number)

    @staticmethod
    def _datetime(value):
        """Naive UTC datetime, naive sheet values are in the league timezone"""
        if pd.isna(value):
            return None
        try:
            if pd.api.types.is_number(value):
                timestamp = pd.to_datetime(value, unit="D", origin=EXCEL_EPOCH)
            else:
                timestamp = pd.to_datetime(value)
        except (TypeError, ValueError):
            return None
        if pd.isna(timestamp):
            return None
        return convert_to_utc(timestamp.to_pydatetime()).replace(tzinfo=None)
