# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for registered members."""
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, bindparam, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.database import metadata
from app.core.exceptions import ConflictError, StorageError
from app.core.logging import get_logger
from app.schemas import RegistrationCreate
from app.services.member_id import format_member_id

logger = get_logger(__name__)

MEMBER_COLS = (
    "id, member_id, surname, first_name, middle_name, phone_number, email, "
    "date_of_birth, graduation_year, occupation, home_address, created_at, updated_at"
)

_INSERT = text("""
    INSERT INTO members
        (member_id, surname, first_name, middle_name, phone_number, email,
         date_of_birth, graduation_year, occupation, home_address, created_at, updated_at)
    VALUES
        (:member_id, :surname, :first_name, :middle_name, :phone_number, :email,
         :date_of_birth, :graduation_year, :occupation, :home_address, :created_at, :updated_at)
    RETURNING id
""").bindparams(
    bindparam("created_at", type_=DateTime),
    bindparam("updated_at", type_=DateTime),
)

_ASSIGN_MEMBER_ID = text("UPDATE members SET member_id = :member_id WHERE id = :id")

_FIND_BY_EMAIL = text(
    f"SELECT {MEMBER_COLS} FROM members WHERE email = :email"
).columns(created_at=DateTime, updated_at=DateTime)

_LIST_ALL = text(
    f"SELECT {MEMBER_COLS} FROM members ORDER BY created_at DESC, id DESC"
).columns(created_at=DateTime, updated_at=DateTime)

_COUNT = text("SELECT COUNT(*) FROM members")

_COUNT_BY_YEAR = text("""
    SELECT graduation_year, COUNT(*) AS count
    FROM members
    GROUP BY graduation_year
    ORDER BY graduation_year DESC
""")

_COUNT_SINCE = text(
    "SELECT COUNT(*) FROM members WHERE created_at >= :cutoff"
).bindparams(bindparam("cutoff", type_=DateTime))


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in ``created_at``/``updated_at``."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _row_to_dict(row) -> Dict[str, Any]:
    return {
        "id": row[0],
        "memberId": row[1],
        "surname": row[2],
        "firstName": row[3],
        "middleName": row[4],
        "phoneNumber": row[5],
        "email": row[6],
        "dateOfBirth": _iso(row[7]),
        "graduationYear": row[8],
        "occupation": row[9],
        "homeAddress": row[10],
        "createdAt": _iso(row[11]),
        "updatedAt": _iso(row[12]),
    }


class MemberRepository:
    def __init__(self, engine: Engine, recent_window_days: int = 30):
        self._engine = engine
        self._recent_window = timedelta(days=recent_window_days)

    # ── Schema ─────────────────────────────────────────────────────────

    def create_schema(self):
        try:
            metadata.create_all(self._engine, checkfirst=True)
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not create schema: {exc}") from exc

    # ── Write ──────────────────────────────────────────────────────────

    def insert(self, record: RegistrationCreate, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Persist ``record`` and assign its member ID in the same transaction.

        The sequence part of the ID is the row's own key, so concurrent
        inserts can never be handed the same ID.
        """
        now = now or utcnow()
        params = {
            "member_id": uuid.uuid4().hex,
            "surname": record.surname,
            "first_name": record.first_name,
            "middle_name": record.middle_name,
            "phone_number": record.phone_number,
            "email": record.email.lower(),
            "date_of_birth": record.date_of_birth.isoformat(),
            "graduation_year": record.graduation_year,
            "occupation": record.occupation,
            "home_address": record.home_address,
            "created_at": now,
            "updated_at": now,
        }
        try:
            with self._engine.begin() as conn:
                key = conn.execute(_INSERT, params).scalar_one()
                member_id = format_member_id(key, now.year)
                conn.execute(_ASSIGN_MEMBER_ID, {"member_id": member_id, "id": key})
        except IntegrityError as exc:
            if "email" in str(exc.orig).lower():
                raise ConflictError(record.email) from exc
            raise StorageError(f"Integrity error on insert: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"Insert failed: {exc}") from exc
        logger.info("Member stored id=%s member_id=%s", key, member_id)
        return {"id": key, "memberId": member_id}

    # ── Read ───────────────────────────────────────────────────────────

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        try:
            with self._engine.connect() as conn:
                row = conn.execute(_FIND_BY_EMAIL, {"email": email.strip().lower()}).fetchone()
        except SQLAlchemyError as exc:
            raise StorageError(f"Lookup failed: {exc}") from exc
        return _row_to_dict(row) if row else None

    def list_all(self) -> List[Dict[str, Any]]:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(_LIST_ALL).fetchall()
        except SQLAlchemyError as exc:
            raise StorageError(f"Listing failed: {exc}") from exc
        return [_row_to_dict(r) for r in rows]

    def count(self) -> int:
        try:
            with self._engine.connect() as conn:
                return conn.execute(_COUNT).scalar() or 0
        except SQLAlchemyError as exc:
            raise StorageError(f"Count failed: {exc}") from exc

    def aggregate(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Total, per-graduation-year and trailing-window counts, all or nothing."""
        cutoff = (now or utcnow()) - self._recent_window
        try:
            with self._engine.connect() as conn:
                total = conn.execute(_COUNT).scalar() or 0
                by_year = conn.execute(_COUNT_BY_YEAR).fetchall()
                recent = conn.execute(_COUNT_SINCE, {"cutoff": cutoff}).scalar() or 0
        except SQLAlchemyError as exc:
            raise StorageError(f"Aggregate failed: {exc}") from exc
        return {
            "totalMembers": total,
            "membersByYear": [
                {"graduationYear": r[0], "count": r[1]} for r in by_year
            ],
            "recentRegistrations": recent,
        }

    def verify_connection(self):
        with self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self):
        self._engine.dispose()
