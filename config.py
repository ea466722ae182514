import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./authz.db")
    DB_AUTO_CREATE = bool(data.get("DB_AUTO_CREATE", False))
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_ALGORITHM = data.get("JWT_ALGORITHM", "HS256")
    SESSION_COOKIE_NAME = data.get("SESSION_COOKIE_NAME", "session")
    LOGIN_PATH = data.get("LOGIN_PATH", "/login")
    AUTHZ_TIMEOUT_SECONDS = float(data.get("AUTHZ_TIMEOUT_SECONDS", 2.0))
    INVITATION_TTL_DAYS = int(data.get("INVITATION_TTL_DAYS", 7))
    AUDIT_ALLOWED_SAMPLE_RATE = float(data.get("AUDIT_ALLOWED_SAMPLE_RATE", 1.0))
