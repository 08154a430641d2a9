import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'cashledger.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Letterhead and currency
    APP_TITLE = os.getenv("APP_TITLE", "GESTION CAISSE")
    CURRENCY_SUFFIX = os.getenv("CURRENCY_SUFFIX", "F CFA")
    DEFAULT_COMPANY_NAME = os.getenv("DEFAULT_COMPANY_NAME", "Mon Entreprise")
    DEFAULT_COMPANY_ADDRESS = os.getenv("DEFAULT_COMPANY_ADDRESS", "123 Rue Principale, Ville, Pays")

    # Seconds; None waits for the logo server indefinitely
    LOGO_FETCH_TIMEOUT = float(os.environ["LOGO_FETCH_TIMEOUT"]) if os.getenv("LOGO_FETCH_TIMEOUT") else None


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    LOG_LEVEL = "DEBUG"
