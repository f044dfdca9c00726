import os
from urllib.parse import quote_plus
from dotenv import load_dotenv

load_dotenv()


def _database_uri():
    # MSSQL only when a host is configured, otherwise process-lifetime SQLite
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit

    host = os.getenv("MSSQL_HOST")
    if not host:
        return "sqlite://"

    driver = os.getenv("MSSQL_DRIVER", "ODBC Driver 17 for SQL Server")
    odbc_str = (
        f"DRIVER={{{driver}}};"
        f"SERVER={host};"
        f"DATABASE={os.getenv('MSSQL_DB', 'siem_nlp')};"
        f"UID={os.getenv('MSSQL_USER', 'sa')};"
        f"PWD={os.getenv('MSSQL_PASSWORD', '')};"
        "TrustServerCertificate=yes;"
        "Encrypt=no;"
    )
    return "mssql+pyodbc:///?odbc_connect=" + quote_plus(odbc_str)


class Config:
    SECRET_KEY = os.getenv("SESSION_SECRET", "siem-nlp-secret-key")

    SQLALCHEMY_DATABASE_URI = _database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JSON array of raw SIEM records, resolved against the working directory
    SIEM_DATASET_PATH = os.getenv("SIEM_DATASET_PATH", "mock_data.json")

    EVENTS_DISPLAY_LIMIT = int(os.getenv("EVENTS_DISPLAY_LIMIT", "20"))
    LOGS_PAGE_LIMIT = int(os.getenv("LOGS_PAGE_LIMIT", "50"))
    FOLLOW_UP_WORD_LIMIT = int(os.getenv("FOLLOW_UP_WORD_LIMIT", "6"))

    SESSION_COOKIE_HTTPONLY = True
    PERMANENT_SESSION_LIFETIME = 24 * 60 * 60

    PORT = int(os.getenv("PORT", "5000"))
