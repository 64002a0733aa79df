from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
from pathlib import Path
from typing import List

ROOT_DIR = Path(__file__).resolve().parent.parent.parent

load_dotenv(Path(ROOT_DIR) / '.env')

class Settings(BaseSettings):
    FIREBASE_CREDS_PATH: str = "serviceAccount.json"
    FIREBASE_PROJECT_ID: str = ""
    FIREBASE_API_KEY: str = ""
    IDENTITY_TOOLKIT_URL: str = "https://identitytoolkit.googleapis.com/v1"

    OAUTH_PROVIDER_ID: str = "google.com"
    OAUTH_TOKEN_URL: str = "https://oauth2.googleapis.com/token"
    OAUTH_CLIENT_ID: str = ""
    OAUTH_CLIENT_SECRET: str = ""
    OAUTH_REDIRECT_URI: str = "http://localhost:8000/auth/callback"

    SITE_URL: str = "http://localhost:8000"
    SESSION_COOKIE_NAME: str = "cinemalog_session"
    SESSION_MAX_AGE_DAYS: int = 5
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"

    @property
    def FIREBASE_CREDS_PATH_ABSOLUTE(self) -> Path:
        """Returns absolute path to Firebase credentials file"""
        return ROOT_DIR / self.FIREBASE_CREDS_PATH

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
