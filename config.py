import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()


def _csv(value):
    return [part.strip() for part in value.split(",") if part.strip()]


class Config:
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///sharespace.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT Configuration (identity = user email)
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_HEADER_NAME = "Authorization"
    JWT_HEADER_TYPE = "Bearer"
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_HOURS", "24")))
    JWT_ERROR_MESSAGE_KEY = "msg"

    # Invitations / share links
    INVITATION_EXPIRY_DAYS = int(os.getenv("INVITATION_EXPIRY_DAYS", "7"))
    SHARE_LINK_EXPIRY_HOURS = int(os.getenv("SHARE_LINK_EXPIRY_HOURS", "24"))
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

    CORS_ORIGINS = _csv(os.getenv(
        "CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
    ))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "test-secret-key"
    LOG_LEVEL = "DEBUG"
