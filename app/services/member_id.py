# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Human-readable member identifiers: ``ASSA<year><sequence>``."""
import re
from datetime import datetime, timezone
from typing import Optional

MEMBER_ID_PREFIX = "ASSA"
MEMBER_ID_PATTERN = re.compile(rf"^{MEMBER_ID_PREFIX}(\d{{4}})(\d{{4,}})$")


def current_year() -> int:
    return datetime.now(timezone.utc).year


def format_member_id(sequence: int, year: Optional[int] = None) -> str:
    if sequence < 1:
        raise ValueError(f"sequence must be positive, got {sequence}")
    year = year or current_year()
    return f"{MEMBER_ID_PREFIX}{year:04d}{sequence:04d}"


def next_member_id(count: int, year: Optional[int] = None) -> str:
    """ID for the member registered after ``count`` existing ones."""
    return format_member_id(count + 1, year)
