# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Registration validation — runs ``RegistrationCreate`` under the active policy
and reshapes pydantic's errors into the ``{field, message}`` list the form
displays. ``describe_rules`` publishes the same model's constraints through
``GET /api/validation-rules``.
"""
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import ValidationError
from app.schemas import (
    GRADUATION_AGE_RANGE, MIN_BIRTH_DATE, NIGERIAN_MOBILE_PATTERN, PHONE_SEPARATORS,
    RegistrationCreate, ValidationPolicy, minimum_birth_date, normalize_phone,
)

__all__ = [
    "ValidationPolicy", "describe_rules", "field_errors", "minimum_birth_date",
    "normalize_phone", "validate_registration",
]

TEXT_FIELDS = ("surname", "firstName", "middleName", "email", "occupation", "homeAddress")


def _field_infos() -> Dict[str, Any]:
    return {info.alias or name: info for name, info in RegistrationCreate.model_fields.items()}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def field_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    """Translate pydantic errors into form messages, keeping field order."""
    infos = _field_infos()
    out: List[Dict[str, str]] = []
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else "body"
        info = infos.get(field)
        label = info.title if info and info.title else field
        extra = (info.json_schema_extra or {}) if info else {}
        ctx = err.get("ctx") or {}
        kind = err["type"]

        if field == "termsAccepted":
            message = extra["message"]
        elif kind == "missing" or _is_blank(err.get("input")):
            message = f"{label} is required"
        elif kind == "string_too_short":
            message = f"{label} must be at least {ctx['min_length']} characters"
        elif kind == "string_too_long":
            message = f"{label} must not exceed {ctx['max_length']} characters"
        elif kind == "value_error":
            message = str(ctx.get("error", err["msg"]))
        else:
            message = extra.get("message", f"{label} is invalid")
        out.append({"field": field, "message": message})
    return out


def validate_registration(payload: Mapping[str, Any], policy: ValidationPolicy = None,
                          today: Optional[date] = None) -> RegistrationCreate:
    """Validate a raw registration payload.

    Returns the normalised record, or raises ``ValidationError`` carrying
    every violation as ``{"field", "message"}`` in field order.
    """
    context = {"policy": policy or ValidationPolicy(), "today": today or date.today()}
    try:
        return RegistrationCreate.model_validate(dict(payload), context=context)
    except PydanticValidationError as exc:
        raise ValidationError(field_errors(exc)) from None


def describe_rules(policy: ValidationPolicy = None, today: Optional[date] = None) -> Dict[str, Any]:
    """JSON-ready description of the active rules for form clients."""
    policy = policy or ValidationPolicy()
    today = today or date.today()
    schema = RegistrationCreate.model_json_schema()
    props = schema["properties"]
    required = set(schema.get("required", ()))

    def text_rule(name: str) -> Dict[str, Any]:
        prop = props[name]
        # Optional[str] nests its constraints under anyOf
        constraints = next((p for p in prop.get("anyOf", [prop]) if p.get("type") == "string"), prop)
        out: Dict[str, Any] = {"label": prop["title"], "required": name in required}
        for key in ("minLength", "maxLength", "pattern"):
            if key in constraints:
                out[key] = constraints[key]
        if "message" in prop:
            out["message"] = prop["message"]
        return out

    fields: Dict[str, Any] = {name: text_rule(name) for name in TEXT_FIELDS}
    phone = {"label": props["phoneNumber"]["title"], "required": True}
    if policy.phone_rule == "nigerian":
        phone.update(pattern=NIGERIAN_MOBILE_PATTERN.pattern, stripCharacters=PHONE_SEPARATORS.pattern)
    else:
        phone.update(minDigits=10, maxDigits=15)
    fields["phoneNumber"] = phone
    fields["dateOfBirth"] = {"label": props["dateOfBirth"]["title"], "required": True,
                             "min": MIN_BIRTH_DATE.isoformat(),
                             "max": minimum_birth_date(today).isoformat()}
    graduation = {"label": props["graduationYear"]["title"], "required": True}
    if policy.graduation_year_policy == "fixed":
        graduation["equals"] = policy.graduation_year_fixed
    else:
        graduation.update(min=policy.graduation_year_min, max=today.year)
    fields["graduationYear"] = graduation
    fields["termsAccepted"] = {"label": props["termsAccepted"]["title"],
                               "required": policy.require_terms}

    cross_field: List[Dict[str, Any]] = []
    if policy.enforce_graduation_age:
        low, high = GRADUATION_AGE_RANGE
        cross_field.append({"field": "graduationYear", "rule": "graduationAge",
                            "min": low, "max": high})
    return {"fields": fields, "crossField": cross_field}
