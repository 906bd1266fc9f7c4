# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Pydantic request/response schemas. JSON keys are camelCase to match the form fields."""
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

NAME_PATTERN = r"^[a-zA-Z\s'-]+$"
EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
NIGERIAN_MOBILE_PATTERN = re.compile(r"^(\+234|234|0)?[789][01]\d{8}$")
PHONE_SEPARATORS = re.compile(r"[\s\-.()]")
NON_DIGITS = re.compile(r"\D")

MIN_BIRTH_DATE = date(1900, 1, 1)
MIN_AGE_YEARS = 10
GRADUATION_AGE_RANGE = (15, 25)

NAME_MESSAGE = "{label} must contain only letters, spaces, hyphens, and apostrophes"
NIGERIAN_PHONE_MESSAGE = "Please enter a valid Nigerian phone number (e.g., 08012345678, +2348012345678)"
INTERNATIONAL_PHONE_MESSAGE = "Please enter a valid phone number (10-15 digits)"
DOB_MESSAGE = "Please enter a valid date of birth (minimum age: 10 years)"
GRADUATION_MESSAGE = "Please select a valid graduation year"
TERMS_MESSAGE = "You must accept the terms and conditions to continue"


@dataclass(frozen=True)
class ValidationPolicy:
    phone_rule: str = "nigerian"
    graduation_year_policy: str = "range"
    graduation_year_min: int = 1960
    graduation_year_fixed: int = 2006
    enforce_graduation_age: bool = False
    require_terms: bool = False

    @classmethod
    def from_settings(cls, settings) -> "ValidationPolicy":
        return cls(
            phone_rule=settings.PHONE_RULE,
            graduation_year_policy=settings.GRADUATION_YEAR_POLICY,
            graduation_year_min=settings.GRADUATION_YEAR_MIN,
            graduation_year_fixed=settings.GRADUATION_YEAR_FIXED,
            enforce_graduation_age=settings.ENFORCE_GRADUATION_AGE,
            require_terms=settings.REQUIRE_TERMS,
        )


def normalize_phone(raw: str, rule: str = "nigerian") -> Optional[str]:
    """Return the canonical phone number, or None when ``raw`` breaks ``rule``."""
    if rule == "international":
        digits = NON_DIGITS.sub("", raw)
        if not 10 <= len(digits) <= 15:
            return None
        return f"+{digits}" if raw.strip().startswith("+") else digits

    compact = PHONE_SEPARATORS.sub("", raw)
    if not NIGERIAN_MOBILE_PATTERN.match(compact):
        return None
    # the last ten digits are the subscriber number regardless of prefix
    return "+234" + compact[-10:]


def minimum_birth_date(today: date) -> date:
    """Latest date of birth allowed for someone at least MIN_AGE_YEARS old."""
    try:
        return today.replace(year=today.year - MIN_AGE_YEARS)
    except ValueError:
        return today.replace(year=today.year - MIN_AGE_YEARS, day=28)


def _policy(info: ValidationInfo) -> ValidationPolicy:
    return (info.context or {}).get("policy") or ValidationPolicy()


def _today(info: ValidationInfo) -> date:
    return (info.context or {}).get("today") or date.today()


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Request ────────────────────────────────────────────────────────────

class RegistrationCreate(CamelModel):
    """A registration as submitted by the form.

    Validate with ``model_validate(payload, context={"policy": ..., "today": ...})``;
    without a context the default policy and today's date apply.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True,
                              str_strip_whitespace=True)

    surname: str = Field(..., title="Surname", min_length=2, max_length=50, pattern=NAME_PATTERN,
                         json_schema_extra={"message": NAME_MESSAGE.format(label="Surname")})
    first_name: str = Field(..., title="First Name", min_length=2, max_length=50, pattern=NAME_PATTERN,
                            json_schema_extra={"message": NAME_MESSAGE.format(label="First name")})
    middle_name: Optional[str] = Field(None, title="Middle Name", max_length=50, pattern=NAME_PATTERN,
                                       json_schema_extra={"message": NAME_MESSAGE.format(label="Middle name")})
    phone_number: str = Field(..., title="Phone Number")
    email: str = Field(..., title="Email Address", max_length=254, pattern=EMAIL_PATTERN,
                       json_schema_extra={"message": "Please enter a valid email address"})
    date_of_birth: date = Field(..., title="Date of Birth",
                                json_schema_extra={"message": DOB_MESSAGE})
    graduation_year: int = Field(..., title="Graduation Year",
                                 json_schema_extra={"message": GRADUATION_MESSAGE})
    occupation: str = Field(..., title="Occupation", min_length=2, max_length=100)
    home_address: str = Field(..., title="Home Address", min_length=10, max_length=200)
    terms_accepted: Optional[bool] = Field(None, title="Terms and Conditions", validate_default=True,
                                           json_schema_extra={"message": TERMS_MESSAGE})

    @field_validator("middle_name", mode="before")
    @classmethod
    def blank_middle_name(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("phone_number")
    @classmethod
    def normalise_phone(cls, v: str, info: ValidationInfo) -> str:
        rule = _policy(info).phone_rule
        phone = normalize_phone(v, rule)
        if phone is None:
            raise ValueError(NIGERIAN_PHONE_MESSAGE if rule == "nigerian" else INTERNATIONAL_PHONE_MESSAGE)
        return phone

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def parse_date_of_birth(cls, v: Any) -> Any:
        # whole-value ISO parsing: a date, or a datetime whose date part is used
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, date):
            return v
        if not isinstance(v, str):
            raise ValueError(DOB_MESSAGE)
        text = v.strip()
        if not text:
            return text
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return datetime.fromisoformat(text).date()
        except ValueError:
            raise ValueError(DOB_MESSAGE) from None

    @field_validator("date_of_birth")
    @classmethod
    def check_age(cls, v: date, info: ValidationInfo) -> date:
        if not MIN_BIRTH_DATE <= v <= minimum_birth_date(_today(info)):
            raise ValueError(DOB_MESSAGE)
        return v

    @field_validator("graduation_year", mode="before")
    @classmethod
    def parse_graduation_year(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError(GRADUATION_MESSAGE)
        if isinstance(v, int):
            return v
        if isinstance(v, str):
            text = v.strip()
            if not text:
                return text
            if re.fullmatch(r"\d{4}", text):
                return int(text)
        raise ValueError(GRADUATION_MESSAGE)

    @field_validator("graduation_year")
    @classmethod
    def check_graduation_policy(cls, v: int, info: ValidationInfo) -> int:
        policy = _policy(info)
        if policy.graduation_year_policy == "fixed":
            if v != policy.graduation_year_fixed:
                raise ValueError(f"Only {policy.graduation_year_fixed} graduation set members "
                                 "are eligible for registration")
        elif not policy.graduation_year_min <= v <= _today(info).year:
            raise ValueError(GRADUATION_MESSAGE)

        # cross-field: only when the date of birth itself passed
        dob = info.data.get("date_of_birth")
        if policy.enforce_graduation_age and dob is not None:
            low, high = GRADUATION_AGE_RANGE
            if not low <= v - dob.year <= high:
                raise ValueError("Graduation year seems inconsistent with date of birth")
        return v

    @field_validator("terms_accepted")
    @classmethod
    def check_terms(cls, v: Optional[bool], info: ValidationInfo) -> Optional[bool]:
        if (v is not None or _policy(info).require_terms) and v is not True:
            raise ValueError(TERMS_MESSAGE)
        return v

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.surname]
        return " ".join(p for p in parts if p)


# ── Responses ──────────────────────────────────────────────────────────
class FieldError(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: Optional[List[FieldError]] = None


class RegistrationData(CamelModel):
    member_id: str
    full_name: str


class RegistrationResponse(BaseModel):
    success: bool = True
    message: str
    data: RegistrationData


class MemberOut(CamelModel):
    member_id: str
    surname: str
    first_name: str
    middle_name: Optional[str] = None
    phone_number: str
    email: str
    date_of_birth: str
    graduation_year: int
    occupation: str
    home_address: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class MembersResponse(BaseModel):
    success: bool = True
    total: int
    data: List[MemberOut]


class YearCount(CamelModel):
    graduation_year: int
    count: int


class StatsOut(CamelModel):
    total_members: int
    members_by_year: List[YearCount]
    recent_registrations: int


class StatsResponse(BaseModel):
    success: bool = True
    data: StatsOut


class ValidationRulesResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]
