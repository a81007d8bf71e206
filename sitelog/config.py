import os

from dotenv import dotenv_values


class BaseConfig:
    # Secrets (env in prod; dev/test may use defaults)
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-not-secure")

    # Database (env in prod; dev falls back to a local SQLite file)
    _ENV_FALLBACK = dotenv_values(".env")
    SQLALCHEMY_DATABASE_URI = (
        os.environ.get("DATABASE_URL")
        or _ENV_FALLBACK.get("DATABASE_URL")
        or "sqlite:///sitelog.sqlite"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging / misc
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Flask-Limiter default: off globally; prefer per-route limits
    RATELIMIT_DEFAULT = None

    # --- Reports ---
    # "Today" and the forecast schedule are both defined in KST (UTC+9).
    REPORT_UTC_OFFSET_HOURS = int(os.getenv("REPORT_UTC_OFFSET_HOURS", "9"))
    # Shown on report headers when no site row exists yet
    SITE_NAME_FALLBACK = os.getenv("SITE_NAME_FALLBACK", "Untitled site")

    # --- Weather (KMA short-term forecast) ---
    WEATHER_API_URL = os.getenv(
        "WEATHER_API_URL",
        "http://apis.data.go.kr/1360000/VilageFcstInfoService_2.0/getVilageFcst",
    )
    WEATHER_SERVICE_KEY = os.getenv("WEATHER_SERVICE_KEY", "")
    # Forecast grid cell of the site (default: Suwon)
    WEATHER_GRID_NX = int(os.getenv("WEATHER_GRID_NX", "60"))
    WEATHER_GRID_NY = int(os.getenv("WEATHER_GRID_NY", "121"))
    WEATHER_TIMEOUT_SECONDS = float(os.getenv("WEATHER_TIMEOUT_SECONDS", "10"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")


class ProductionConfig(BaseConfig):
    DEBUG = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "WARNING")

    # REQUIRE env vars in production (fail fast if missing); read lazily so that
    # importing this module in dev/test never raises.
    @property
    def SECRET_KEY(self):
        return os.environ["SECRET_KEY"]

    @property
    def SQLALCHEMY_DATABASE_URI(self):
        return os.environ["DATABASE_URL"]


class TestingConfig(BaseConfig):
    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite:///:memory:")
    WEATHER_SERVICE_KEY = "test-key"
    RATELIMIT_ENABLED = False


_ENV_MAP = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}

def get_config():
    env = os.environ.get("APP_ENV", "development").lower()
    # Instance, not class: ProductionConfig resolves its required values via properties
    return _ENV_MAP.get(env, DevelopmentConfig)()
