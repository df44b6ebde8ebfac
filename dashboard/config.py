"""Settings for the alert engine HTTP API."""

import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Config:
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-change-in-production")
    DEBUG = _env_flag("FLASK_DEBUG")
    TESTING = False
    JSON_SORT_KEYS = False

    # Empty key disables API authentication
    DASHBOARD_API_KEY = os.environ.get("DASHBOARD_API_KEY", "")
    # Recorded as resolver when a request names no user
    DEFAULT_RESOLVER = os.environ.get("DASHBOARD_DEFAULT_USER", "Dashboard User")


class DevelopmentConfig(Config):
    DEBUG = True


class TestingConfig(Config):
    TESTING = True
    DASHBOARD_API_KEY = ""


class ProductionConfig(Config):
    DEBUG = False


CONFIGS = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config(name: str | None = None) -> Config:
    """Return the config for ``name``, or for FLASK_ENV when not given."""
    name = name or os.environ.get("FLASK_ENV", "development")
    return CONFIGS.get(name, DevelopmentConfig)()
