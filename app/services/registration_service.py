# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Business logic for member registration and statistics."""
from datetime import date
from typing import Any, Callable, Dict, List, Mapping

from app.core.exceptions import ConflictError, StorageError, ValidationError
from app.core.logging import get_logger
from app.metrics import MEMBERS_TOTAL, REGISTRATIONS
from app.repositories.member_repository import MemberRepository
from app.services.validation import ValidationPolicy, describe_rules, validate_registration

logger = get_logger(__name__)


class RegistrationService:
    def __init__(self, repo: MemberRepository, policy: ValidationPolicy,
                 today: Callable[[], date] = date.today):
        self._repo = repo
        self._policy = policy
        self._today = today

    def seed_gauges(self):
        MEMBERS_TOTAL.set(self._repo.count())
        logger.info("Prometheus gauges loaded from DB")

    def register(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate, de-duplicate and store one registration.

        Raises ``ValidationError``, ``ConflictError`` or ``StorageError``.
        The email pre-check only spares the user a failed insert; the
        unique index on ``email`` is what actually prevents duplicates.
        """
        try:
            record = validate_registration(payload, self._policy, today=self._today())
        except ValidationError as exc:
            REGISTRATIONS.labels(outcome="invalid").inc()
            logger.info("Registration rejected fields=%s", ",".join(exc.fields))
            raise

        try:
            if self._repo.find_by_email(record.email) is not None:
                raise ConflictError(record.email)
            stored = self._repo.insert(record)
        except ConflictError:
            REGISTRATIONS.labels(outcome="conflict").inc()
            logger.info("Registration conflict: email already registered")
            raise
        except StorageError:
            REGISTRATIONS.labels(outcome="error").inc()
            raise

        REGISTRATIONS.labels(outcome="created").inc()
        MEMBERS_TOTAL.inc()
        logger.info("Member registered member_id=%s graduation_year=%s",
                    stored["memberId"], record.graduation_year)
        return {"memberId": stored["memberId"], "fullName": record.full_name}

    def list_members(self) -> List[Dict[str, Any]]:
        return self._repo.list_all()

    def get_statistics(self) -> Dict[str, Any]:
        return self._repo.aggregate()

    def validation_rules(self) -> Dict[str, Any]:
        return describe_rules(self._policy, today=self._today())
