import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


load_dotenv()

PACKAGE_DIR = Path(__file__).resolve().parent.parent


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./openwings.db"
    app_env: str = "development"
    log_level: str = "INFO"
    session_cookie_name: str = "sid"
    session_ttl_minutes: int = 45
    session_cookie_secure: bool = False
    static_dir: Path = PACKAGE_DIR / "static"
    login_path: str = "/login"
    host: str = "0.0.0.0"
    port: int = 3000

    @property
    def session_max_age_seconds(self) -> int:
        return self.session_ttl_minutes * 60

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            app_env=os.getenv("APP_ENV", cls.app_env),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            session_cookie_name=os.getenv("SESSION_COOKIE_NAME", cls.session_cookie_name),
            session_ttl_minutes=_get_int(os.getenv("SESSION_TTL_MINUTES"), cls.session_ttl_minutes),
            session_cookie_secure=_get_bool(os.getenv("SESSION_COOKIE_SECURE"), default=cls.session_cookie_secure),
            static_dir=Path(os.getenv("STATIC_DIR", str(cls.static_dir))).resolve(),
            login_path=os.getenv("LOGIN_PATH", cls.login_path),
            host=os.getenv("HOST", cls.host),
            port=_get_int(os.getenv("PORT"), cls.port),
        )


def validate_runtime_config(settings: Settings) -> None:
    if settings.app_env.lower() == "production" and settings.database_url.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must point to a Postgres database in production.")
    if settings.session_ttl_minutes <= 0:
        raise RuntimeError("SESSION_TTL_MINUTES must be a positive number of minutes.")
