import os


def _env(name: str, default: str) -> str:
    return os.environ.get(f"HOOPS_{name}", default)


class Settings:
    def __init__(self):
        self.app_name = "Hoops Scheduler"
        self.api_version = "1.0.0"
        self.environment = _env("ENVIRONMENT", "development")
        self.secret_key = _env("SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = int(_env("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = _env("DATABASE_URL", "sqlite:///./hoops.db")
        self.log_level = _env("LOG_LEVEL", "INFO").upper()
        # Coaches not timed in this long after session start are marked absent
        self.coach_grace_period_minutes = int(_env("COACH_GRACE_PERIOD_MINUTES", "60"))
        self.default_package_sessions = int(_env("DEFAULT_PACKAGE_SESSIONS", "8"))
        self.cors_origins = [
            origin.strip()
            for origin in _env("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
            if origin.strip()
        ]


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
