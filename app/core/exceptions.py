# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Domain errors raised by the store and services, mapped to HTTP in controllers."""
from typing import Dict, List


class RegistrationError(Exception):
    """Base class for every error this service raises on purpose."""


class ValidationError(RegistrationError):
    """One or more field rules failed. ``errors`` keeps every violation in field order."""

    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = list(errors)
        super().__init__("Validation failed")

    @property
    def fields(self) -> List[str]:
        return [e["field"] for e in self.errors]


class ConflictError(RegistrationError):
    """A member with the same email already exists."""

    def __init__(self, email: str):
        self.email = email
        super().__init__("A member with this email address already exists")


class StorageError(RegistrationError):
    """Opaque storage failure. The message is for logs only."""
