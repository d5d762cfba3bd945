"""Audit interceptor: START/END pairing, transparency and best-effort writes."""

import logging

import pytest
from pydantic import BaseModel

from config import settings
from models.log import AuditEvent
from schemas.user import UserLogin
from services.auth import authenticate
from utils import audit
from utils.audit import auditable, audit_authentication, site_label
from utils.identity import identity_scope


class Credentials(BaseModel):
    email: str
    password: str


@auditable
def charge(amount, *, currency="EUR"):
    return {"amount": amount, "currency": currency}


class PaymentDeclined(Exception):
    pass


@auditable
def decline(amount):
    raise PaymentDeclined(f"declined {amount}")


@auditable
class Ledger:
    def post(self, entry):
        return entry.upper()

    def _internal(self):
        return "hidden"


def _audit_records(caplog, phase=None):
    records = [r for r in caplog.records if r.name == "utils.audit" and hasattr(r, "phase")]
    if phase:
        records = [r for r in records if r.phase == phase]
    return records


@pytest.fixture(autouse=True)
def audit_logs(caplog):
    caplog.set_level(logging.INFO, logger="utils.audit")
    return caplog


class TestAuditableCall:
    def test_start_and_end_share_a_token(self, db, caplog):
        with identity_scope("alice"):
            result = charge(10, currency="USD")

        assert result == {"amount": 10, "currency": "USD"}
        start, = _audit_records(caplog, "START")
        end, = _audit_records(caplog, "END")
        assert start.request_id == end.request_id
        assert len(start.request_id) == 6
        assert start.site.endswith(":charge()")
        assert "-START: " in start.getMessage()
        assert '"currency": "USD"' in end.getMessage()

        events = db.query(AuditEvent).order_by(AuditEvent.id).all()
        assert [e.phase for e in events] == ["START", "END"]
        assert {e.request_id for e in events} == {start.request_id}
        assert {e.identity for e in events} == {"alice"}
        assert events[0].payload == {"args": [10], "kwargs": {"currency": "USD"}}
        assert events[1].payload == {"amount": 10, "currency": "USD"}

    def test_failure_propagates_unchanged_without_end_entry(self, db, caplog):
        with pytest.raises(PaymentDeclined) as excinfo:
            decline(5)

        assert str(excinfo.value) == "declined 5"
        start, = _audit_records(caplog, "START")
        assert _audit_records(caplog, "END") == []

        events = db.query(AuditEvent).filter(AuditEvent.request_id == start.request_id).all()
        assert sorted(e.phase for e in events) == ["ERROR", "START"]
        error = next(e for e in events if e.phase == "ERROR")
        assert error.status == "FAIL"
        assert error.payload["error"] == "PaymentDeclined"

    def test_same_exception_object_reaches_caller(self):
        original = PaymentDeclined("boom")

        @auditable
        def raise_it():
            raise original

        with pytest.raises(PaymentDeclined) as excinfo:
            raise_it()
        assert excinfo.value is original

    def test_each_call_gets_its_own_token(self, caplog):
        charge(1)
        charge(2)

        tokens = {r.request_id for r in _audit_records(caplog, "START")}
        assert len(tokens) == 2

    def test_identity_falls_back_to_credential_argument(self, db):
        @auditable
        def sign_in(credentials):
            return True

        sign_in(Credentials(email="bob@example.com", password="hunter2"))

        events = db.query(AuditEvent).order_by(AuditEvent.id).all()
        assert {e.identity for e in events} == {"bob@example.com"}
        assert events[0].payload["args"][0] == {"email": "bob@example.com", "password": "***"}

    def test_identity_defaults_to_anonymous(self, db):
        charge(3)

        assert {e.identity for e in db.query(AuditEvent).all()} == {"anonymous"}

    def test_class_decoration_wraps_public_methods_only(self, caplog):
        ledger = Ledger()

        assert ledger.post("entry") == "ENTRY"
        assert ledger._internal() == "hidden"

        sites = {r.site for r in _audit_records(caplog)}
        assert len(sites) == 1
        assert sites.pop().endswith(".Ledger:post()")

    def test_site_label_names_declaring_type_and_function(self):
        assert site_label(Ledger.post.__wrapped__).endswith("test_audit.Ledger:post()")
        assert site_label(charge.__wrapped__) == f"{charge.__module__}:charge()"


class TestBestEffortWrites:
    def test_store_failure_does_not_fail_the_call(self, monkeypatch, caplog):
        def broken_session():
            raise RuntimeError("audit database unavailable")

        monkeypatch.setattr(audit, "_open_session", broken_session)

        assert charge(7) == {"amount": 7, "currency": "EUR"}
        assert len(_audit_records(caplog, "START")) == 1
        assert len(_audit_records(caplog, "END")) == 1
        assert any(r.levelno == logging.WARNING and "Could not store audit event" in r.getMessage()
                   for r in caplog.records)

    def test_persistence_can_be_switched_off(self, db, monkeypatch, caplog):
        monkeypatch.setattr(settings, "AUDIT_PERSIST", False)

        charge(8)

        assert db.query(AuditEvent).count() == 0
        assert len(_audit_records(caplog, "END")) == 1

    def test_unserializable_arguments_are_named(self, db):
        class Opaque:
            pass

        charge(Opaque())

        start = db.query(AuditEvent).filter(AuditEvent.phase == "START").one()
        assert start.payload["args"] == ["<Opaque>"]


class TestAuthenticationLogging:
    def test_attempt_is_logged_before_verification(self, db, make_user, caplog):
        make_user("alice")

        result = authenticate(UserLogin(username="alice", password="wrong"), db)

        assert result is None
        auth, = _audit_records(caplog, "AUTH")
        assert auth.identity == "alice"
        assert "wrong" not in auth.getMessage()

        event = db.query(AuditEvent).filter(AuditEvent.phase == "AUTH").one()
        assert event.identity == "alice"
        assert event.site.endswith("services.auth:authenticate()")
        assert event.payload["args"][0] == {"username": "alice", "password": "***"}

    def test_successful_attempt_returns_user(self, db, make_user):
        alice = make_user("alice")

        assert authenticate(UserLogin(username="alice", password="secret-pass"), db).id == alice.id

    def test_logging_failure_never_blocks_authentication(self, db, make_user, monkeypatch):
        alice = make_user("alice")

        def broken_emit(*args, **kwargs):
            raise RuntimeError("log sink down")

        monkeypatch.setattr(audit, "_emit", broken_emit)

        assert authenticate(UserLogin(username="alice", password="secret-pass"), db).id == alice.id

    def test_wrapped_errors_still_propagate(self):
        @audit_authentication
        def verify(credentials):
            raise PermissionError("locked")

        with pytest.raises(PermissionError):
            verify(Credentials(email="x@example.com", password="p"))
