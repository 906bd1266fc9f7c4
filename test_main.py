# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
ASSA Registration Service — API Tests
=====================================
Run:  pytest -v --cov=app --cov=main --cov-report=term-missing
"""
import json
import logging
import re
import threading
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.dependencies import get_member_repo, get_registration_service
from app.core.exceptions import ConflictError, StorageError
from app.core.logging import configure_logging, get_logger
from main import create_app

MEMBER_ID_RE = re.compile(r"^ASSA\d{4}\d{4}$")


def _payload(**overrides):
    data = {
        "surname": "Okafor",
        "firstName": "Chika",
        "phoneNumber": "08012345678",
        "email": "chika@x.com",
        "dateOfBirth": "1995-03-15",
        "graduationYear": 2006,
        "occupation": "Engineer",
        "homeAddress": "123 Main St, Lagos",
    }
    data.update(overrides)
    return data


def _make_client(tmp_path, **overrides):
    settings = Settings(database_url=f"sqlite:///{tmp_path / 'members.db'}", **overrides)
    return TestClient(create_app(settings))


@pytest.fixture
def client(tmp_path):
    with _make_client(tmp_path) as c:
        yield c


# ═══════════════════════════════════════════════════════════════════════════
# HEALTH & METRICS
# ═══════════════════════════════════════════════════════════════════════════
class TestHealth:
    def test_health_ok(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"
        assert r.json()["service"] == "assa-registration"

    def test_readiness_ok(self, client):
        r = client.get("/health/ready")
        assert r.status_code == 200
        assert r.json()["database"] == "connected"

    def test_metrics_endpoint(self, client):
        client.post("/api/register", json=_payload())
        r = client.get("/metrics")
        assert r.status_code == 200
        assert "assa_registrations_total" in r.text

    def test_request_id_propagated(self, client):
        r = client.get("/api/stats", headers={"X-Request-ID": "req-42"})
        assert r.headers["X-Request-ID"] == "req-42"

    def test_request_id_generated(self, client):
        r = client.get("/api/stats")
        assert r.headers["X-Request-ID"]

    def test_unknown_endpoint_404(self, client):
        r = client.get("/api/nothing-here")
        assert r.status_code == 404
        assert r.json() == {"success": False, "message": "Endpoint not found"}

    def test_security_headers(self, client):
        r = client.get("/api/stats")
        assert r.headers["X-Content-Type-Options"] == "nosniff"
        assert r.headers["X-Frame-Options"] == "DENY"
        assert r.headers["X-XSS-Protection"] == "1; mode=block"
        assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"

    def test_security_headers_on_error_responses(self, client):
        assert client.get("/api/nothing-here").headers["X-Frame-Options"] == "DENY"
        bad = client.post("/api/register", json=_payload(email="bad"))
        assert bad.headers["X-Content-Type-Options"] == "nosniff"


# ═══════════════════════════════════════════════════════════════════════════
# LOGGING
# ═══════════════════════════════════════════════════════════════════════════
class TestLogging:
    @pytest.fixture(autouse=True)
    def restore_logging(self):
        yield
        configure_logging(Settings())

    def test_app_settings_drive_loggers(self, tmp_path):
        with _make_client(tmp_path, log_level="debug", service_name="assa-test"):
            pass
        logger = get_logger("app.services.registration_service")
        assert logger.level == logging.DEBUG
        record = logger.makeRecord(logger.name, logging.INFO, __file__, 1, "hello", (), None)
        line = json.loads(logger.handlers[0].formatter.format(record))
        assert line["service"] == "assa-test"
        assert line["message"] == "hello"

    def test_loggers_created_later_use_app_level(self, tmp_path):
        with _make_client(tmp_path, log_level="WARNING"):
            pass
        assert get_logger("assa.late-logger").level == logging.WARNING


# ═══════════════════════════════════════════════════════════════════════════
# POST /api/register
# ═══════════════════════════════════════════════════════════════════════════
class TestRegister:
    def test_register_success(self, client):
        r = client.post("/api/register", json=_payload())
        assert r.status_code == 201
        body = r.json()
        assert body["success"] is True
        assert body["message"] == "Registration successful!"
        member_id = body["data"]["memberId"]
        assert MEMBER_ID_RE.match(member_id)
        assert member_id[4:8] == str(datetime.now(timezone.utc).year)
        assert member_id.endswith("0001")
        assert body["data"]["fullName"] == "Chika Okafor"

    def test_full_name_includes_middle_name(self, client):
        r = client.post("/api/register", json=_payload(middleName="Grace"))
        assert r.json()["data"]["fullName"] == "Chika Grace Okafor"

    def test_sequence_follows_member_count(self, client):
        client.post("/api/register", json=_payload())
        r = client.post("/api/register", json=_payload(email="temi@x.com"))
        assert r.json()["data"]["memberId"].endswith("0002")

    def test_stored_record_is_normalised(self, client):
        client.post("/api/register", json=_payload(
            email="  Chika@X.com ", phoneNumber="0801 234 5678", surname="  Okafor ",
        ))
        member = client.get("/api/members").json()["data"][0]
        assert member["email"] == "chika@x.com"
        assert member["phoneNumber"] == "+2348012345678"
        assert member["surname"] == "Okafor"
        assert member["middleName"] is None
        assert member["dateOfBirth"] == "1995-03-15"

    @pytest.mark.parametrize("field", [
        "surname", "firstName", "phoneNumber", "email",
        "dateOfBirth", "graduationYear", "occupation", "homeAddress",
    ])
    def test_missing_required_field(self, client, field):
        payload = _payload()
        del payload[field]
        r = client.post("/api/register", json=payload)
        assert r.status_code == 400
        body = r.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        assert field in [e["field"] for e in body["errors"]]

    def test_date_of_birth_with_trailing_text(self, client):
        r = client.post("/api/register", json=_payload(dateOfBirth="1995-03-15garbage"))
        assert r.status_code == 400
        assert r.json()["errors"] == [{
            "field": "dateOfBirth",
            "message": "Please enter a valid date of birth (minimum age: 10 years)",
        }]

    def test_invalid_phone(self, client):
        r = client.post("/api/register", json=_payload(phoneNumber="123"))
        assert r.status_code == 400
        assert [e["field"] for e in r.json()["errors"]] == ["phoneNumber"]

    def test_collects_all_errors(self, client):
        r = client.post("/api/register", json=_payload(
            surname="O", phoneNumber="123", email="nope", homeAddress="short",
        ))
        fields = [e["field"] for e in r.json()["errors"]]
        assert fields == ["surname", "phoneNumber", "email", "homeAddress"]

    def test_body_not_an_object(self, client):
        r = client.post("/api/register", json=["not", "an", "object"])
        assert r.status_code == 400
        assert r.json()["success"] is False

    def test_malformed_json(self, client):
        r = client.post("/api/register", content=b"{not json",
                        headers={"Content-Type": "application/json"})
        assert r.status_code == 400
        assert r.json()["message"] == "Validation failed"

    def test_rejected_terms(self, client):
        r = client.post("/api/register", json=_payload(termsAccepted=False))
        assert r.status_code == 400
        assert r.json()["errors"][0]["field"] == "termsAccepted"

    def test_invalid_registration_not_stored(self, client):
        client.post("/api/register", json=_payload(email="bad"))
        assert client.get("/api/stats").json()["data"]["totalMembers"] == 0


class TestRegisterPolicies:
    def test_fixed_graduation_year(self, tmp_path):
        with _make_client(tmp_path, graduation_year_policy="fixed") as c:
            assert c.post("/api/register", json=_payload()).status_code == 201
            r = c.post("/api/register", json=_payload(email="b@x.com", graduationYear=2010))
        assert r.status_code == 400
        assert r.json()["errors"] == [{
            "field": "graduationYear",
            "message": "Only 2006 graduation set members are eligible for registration",
        }]

    def test_graduation_age_check(self, tmp_path):
        with _make_client(tmp_path, enforce_graduation_age=True) as c:
            r = c.post("/api/register", json=_payload())
        assert r.status_code == 400
        assert r.json()["errors"][0]["message"] == \
            "Graduation year seems inconsistent with date of birth"

    def test_international_phone_rule(self, tmp_path):
        with _make_client(tmp_path, phone_rule="international") as c:
            r = c.post("/api/register", json=_payload(phoneNumber="+44 20 7946 0958"))
        assert r.status_code == 201

    def test_terms_required(self, tmp_path):
        with _make_client(tmp_path, require_terms=True) as c:
            missing = c.post("/api/register", json=_payload())
            accepted = c.post("/api/register", json=_payload(termsAccepted=True))
        assert missing.status_code == 400
        assert accepted.status_code == 201


# ═══════════════════════════════════════════════════════════════════════════
# DUPLICATES & STORAGE FAILURES
# ═══════════════════════════════════════════════════════════════════════════
class TestDuplicates:
    def test_duplicate_email_conflict(self, client):
        assert client.post("/api/register", json=_payload()).status_code == 201
        r = client.post("/api/register", json=_payload(email="CHIKA@X.COM", firstName="Other"))
        assert r.status_code == 409
        assert r.json() == {
            "success": False,
            "message": "A member with this email address already exists",
        }

    def test_constraint_is_authoritative_when_precheck_misses(self, client):
        client.post("/api/register", json=_payload())
        with patch.object(get_member_repo(), "find_by_email", return_value=None):
            r = client.post("/api/register", json=_payload())
        assert r.status_code == 409
        assert client.get("/api/stats").json()["data"]["totalMembers"] == 1

    def test_concurrent_duplicates_yield_one_member(self, client):
        service = get_registration_service()
        outcomes = []
        barrier = threading.Barrier(2)

        def register(email):
            barrier.wait()
            try:
                service.register(_payload(email=email))
                outcomes.append("created")
            except ConflictError:
                outcomes.append("conflict")

        threads = [threading.Thread(target=register, args=(e,))
                   for e in ("chika@x.com", "Chika@X.com")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert sorted(outcomes) == ["conflict", "created"]
        assert len(client.get("/api/members").json()["data"]) == 1


class TestStorageFailures:
    def test_insert_failure_is_generic_500(self, client):
        with patch.object(get_member_repo(), "insert",
                          side_effect=StorageError("disk I/O error at /var/db")):
            r = client.post("/api/register", json=_payload())
        assert r.status_code == 500
        assert r.json() == {
            "success": False,
            "message": "Internal server error. Please try again later.",
        }
        assert "disk" not in r.text

    def test_members_failure(self, client):
        with patch.object(get_member_repo(), "list_all", side_effect=StorageError("boom")):
            r = client.get("/api/members")
        assert r.status_code == 500
        assert r.json()["message"] == "Error fetching members"

    def test_stats_failure_returns_no_partial_data(self, client):
        with patch.object(get_member_repo(), "aggregate", side_effect=StorageError("boom")):
            r = client.get("/api/stats")
        assert r.status_code == 500
        assert r.json() == {"success": False, "message": "Error fetching statistics"}

    def test_readiness_fails_when_db_down(self, client):
        from sqlalchemy.exc import OperationalError
        err = OperationalError("SELECT 1", {}, Exception("unreachable"))
        with patch.object(get_member_repo(), "verify_connection", side_effect=err):
            r = client.get("/health/ready")
        assert r.status_code == 503


# ═══════════════════════════════════════════════════════════════════════════
# GET /api/members  &  GET /api/stats
# ═══════════════════════════════════════════════════════════════════════════
class TestMembersAndStats:
    def test_empty(self, client):
        assert client.get("/api/members").json() == {"success": True, "total": 0, "data": []}
        assert client.get("/api/stats").json()["data"] == {
            "totalMembers": 0, "membersByYear": [], "recentRegistrations": 0,
        }

    def test_members_newest_first(self, client):
        client.post("/api/register", json=_payload())
        client.post("/api/register", json=_payload(email="temi@x.com", firstName="Temitope"))
        data = client.get("/api/members").json()["data"]
        assert [m["firstName"] for m in data] == ["Temitope", "Chika"]
        assert data[0]["memberId"].endswith("0002")

    def test_stats(self, client):
        client.post("/api/register", json=_payload())
        client.post("/api/register", json=_payload(email="a@x.com"))
        client.post("/api/register", json=_payload(email="b@x.com", graduationYear=2010))
        stats = client.get("/api/stats").json()["data"]
        assert stats["totalMembers"] == 3
        assert stats["membersByYear"] == [
            {"graduationYear": 2010, "count": 1},
            {"graduationYear": 2006, "count": 2},
        ]
        assert stats["recentRegistrations"] == 3
        assert stats["totalMembers"] == len(client.get("/api/members").json()["data"])

    def test_validation_rules(self, client):
        r = client.get("/api/validation-rules")
        assert r.status_code == 200
        fields = r.json()["data"]["fields"]
        assert fields["surname"]["minLength"] == 2
        assert fields["homeAddress"]["maxLength"] == 200
        assert fields["phoneNumber"]["pattern"] == r"^(\+234|234|0)?[789][01]\d{8}$"


# ═══════════════════════════════════════════════════════════════════════════
# RATE LIMITING
# ═══════════════════════════════════════════════════════════════════════════
class TestRateLimit:
    def test_limit_exceeded(self, tmp_path):
        with _make_client(tmp_path, rate_limit_max_requests=2) as c:
            assert c.get("/api/stats").status_code == 200
            assert c.get("/api/members").status_code == 200
            r = c.post("/api/register", json=_payload())
        assert r.status_code == 429
        assert r.json()["success"] is False
        assert int(r.headers["Retry-After"]) > 0
        assert r.headers["X-Content-Type-Options"] == "nosniff"

    def test_health_not_limited(self, tmp_path):
        with _make_client(tmp_path, rate_limit_max_requests=1) as c:
            for _ in range(3):
                assert c.get("/health").status_code == 200

    def test_remaining_header(self, tmp_path):
        with _make_client(tmp_path, rate_limit_max_requests=5) as c:
            r = c.get("/api/stats")
        assert r.headers["X-RateLimit-Limit"] == "5"
        assert r.headers["X-RateLimit-Remaining"] == "4"

    def test_disabled(self, tmp_path):
        with _make_client(tmp_path, rate_limit_max_requests=0) as c:
            for _ in range(5):
                assert c.get("/api/stats").status_code == 200
