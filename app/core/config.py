# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration — env-driven defaults, overridable at construction.

``create_app`` receives a ``Settings`` instance, so tests and embedding
code pass explicit values instead of mutating the environment.
"""

import os


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self, **overrides):
        self.SERVICE_NAME: str = os.getenv("SERVICE_NAME", "assa-registration")
        self.SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./assa_members.db")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")

        # Database pool (ignored for SQLite)
        self.POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
        self.MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "5"))
        self.POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "300"))

        # Registration policy
        self.PHONE_RULE: str = os.getenv("PHONE_RULE", "nigerian").lower()
        self.GRADUATION_YEAR_POLICY: str = os.getenv("GRADUATION_YEAR_POLICY", "range").lower()
        self.GRADUATION_YEAR_MIN: int = int(os.getenv("GRADUATION_YEAR_MIN", "1960"))
        self.GRADUATION_YEAR_FIXED: int = int(os.getenv("GRADUATION_YEAR_FIXED", "2006"))
        self.ENFORCE_GRADUATION_AGE: bool = _env_bool("ENFORCE_GRADUATION_AGE", "false")
        self.REQUIRE_TERMS: bool = _env_bool("REQUIRE_TERMS", "false")

        # Statistics
        self.RECENT_WINDOW_DAYS: int = int(os.getenv("RECENT_WINDOW_DAYS", "30"))

        # Rate limiting
        self.RATE_LIMIT_MAX_REQUESTS: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
        self.RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900"))
        self.RATE_LIMIT_BYPASS: set = {"/health", "/health/ready", "/metrics"}

        for key, value in overrides.items():
            attr = key.upper()
            if not hasattr(self, attr):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, attr, value)

        if self.PHONE_RULE not in ("nigerian", "international"):
            raise ValueError(f"PHONE_RULE must be 'nigerian' or 'international', got {self.PHONE_RULE!r}")
        if self.GRADUATION_YEAR_POLICY not in ("range", "fixed"):
            raise ValueError(
                f"GRADUATION_YEAR_POLICY must be 'range' or 'fixed', got {self.GRADUATION_YEAR_POLICY!r}"
            )

    @property
    def RATE_LIMIT_ENABLED(self) -> bool:
        return self.RATE_LIMIT_MAX_REQUESTS > 0


settings = Settings()
