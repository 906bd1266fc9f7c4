# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection — wire the store, services and rate limiter
from the ``Settings`` handed to ``create_app``.
"""
from app.core.config import Settings
from app.core.database import build_engine
from app.repositories.member_repository import MemberRepository
from app.services.rate_limiter import SlidingWindowRateLimiter
from app.services.registration_service import RegistrationService
from app.services.validation import ValidationPolicy

_settings: Settings | None = None
_repo: MemberRepository | None = None
_service: RegistrationService | None = None
_rate_limiter: SlidingWindowRateLimiter | None = None


def init_dependencies(settings: Settings):
    global _settings, _repo, _service, _rate_limiter
    _settings = settings
    _repo = MemberRepository(build_engine(settings), recent_window_days=settings.RECENT_WINDOW_DAYS)
    _service = RegistrationService(_repo, ValidationPolicy.from_settings(settings))
    _rate_limiter = SlidingWindowRateLimiter(
        settings.RATE_LIMIT_MAX_REQUESTS, settings.RATE_LIMIT_WINDOW_SECONDS,
    )


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


def get_member_repo() -> MemberRepository:
    assert _repo is not None
    return _repo


def get_registration_service() -> RegistrationService:
    assert _service is not None
    return _service


def get_rate_limiter() -> SlidingWindowRateLimiter:
    assert _rate_limiter is not None
    return _rate_limiter
