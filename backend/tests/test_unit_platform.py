"""Unit tests for platform pieces: errors, tokens, logging, middleware, health."""

import json
import logging
from datetime import timedelta

import pytest
from pydantic import ValidationError

from mysterybox.platform import errors
from mysterybox.platform.config import Settings
from mysterybox.platform.logging import JsonFormatter, setup_logging
from mysterybox.platform.request_context import get_request_id, reset_request_id, set_request_id
from mysterybox.platform.security import create_access_token, decode_token
from mysterybox.shared.utils import ensure_utc


class TestErrors:

    @pytest.mark.parametrize(
        "exc_cls,code,status",
        [
            (errors.InvalidTier, "invalid_tier", 422),
            (errors.InsufficientBalance, "insufficient_balance", 409),
            (errors.NoEligibleCandidates, "no_eligible_candidates", 503),
            (errors.WrongOwner, "wrong_owner", 403),
            (errors.AlreadyFinalized, "already_finalized", 409),
            (errors.Expired, "expired", 410),
            (errors.ConfigurationInvariantViolated, "configuration_invariant_violated", 422),
        ],
    )
    def test_codes_and_statuses(self, exc_cls, code, status):
        exc = exc_cls()
        assert exc.code == code
        assert exc.status_code == status
        assert isinstance(exc, errors.BoxCoreError)

    def test_payload_carries_context(self):
        exc = errors.InsufficientBalance(balance=1, required=3)
        assert exc.to_payload() == {
            "detail": "Insufficient credit balance",
            "code": "insufficient_balance",
            "context": {"balance": 1, "required": 3},
        }

    def test_custom_message(self):
        assert str(errors.NotFound("Member not found")) == "Member not found"


class TestTokens:

    def test_round_trip(self):
        token = create_access_token({"sub": "42"})
        assert decode_token(token)["sub"] == "42"

    def test_expired(self):
        token = create_access_token({"sub": "42"}, expires_delta=timedelta(seconds=-1))
        assert decode_token(token) is None

    def test_tampered(self):
        token = create_access_token({"sub": "42"})
        assert decode_token(token[:-2] + "xx") is None


class TestSettings:

    def test_draw_track_defaults_to_real(self, monkeypatch):
        monkeypatch.delenv("DRAW_TRACK", raising=False)
        assert Settings(_env_file=None).DRAW_TRACK == "real"

    def test_draw_track_accepts_gimmick_from_env(self, monkeypatch):
        monkeypatch.setenv("DRAW_TRACK", "gimmick")
        assert Settings(_env_file=None).DRAW_TRACK == "gimmick"

    @pytest.mark.parametrize("raw", ["bogus", "realx", ""])
    def test_unknown_draw_track_is_rejected_at_load(self, raw):
        with pytest.raises(ValidationError):
            Settings(DRAW_TRACK=raw)

    def test_unknown_draw_track_in_env_is_rejected(self, monkeypatch):
        monkeypatch.setenv("DRAW_TRACK", "realx")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestLogging:

    def test_json_formatter_includes_request_id(self):
        token = set_request_id("req-123")
        try:
            record = logging.LogRecord("mysterybox.test", logging.INFO, __file__, 1, "hello %s", ("box",), None)
            payload = json.loads(JsonFormatter().format(record))
        finally:
            reset_request_id(token)
        assert payload["message"] == "hello box"
        assert payload["level"] == "INFO"
        assert payload["request_id"] == "req-123"
        assert get_request_id() is None

    def test_json_formatter_copies_context_fields(self):
        record = logging.LogRecord("mysterybox.test", logging.INFO, __file__, 1, "opened", (), None)
        record.tenant_id = 3
        record.transaction_id = 17
        record.error_code = "expired"
        payload = json.loads(JsonFormatter().format(record))
        assert payload["tenant_id"] == 3
        assert payload["transaction_id"] == 17
        assert payload["error_code"] == "expired"
        assert "member_id" not in payload

    @pytest.mark.parametrize(
        "level,expected",
        [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("nope", logging.INFO)],
    )
    def test_setup_logging_level(self, level, expected):
        try:
            root = setup_logging(level)
            assert root.level == expected
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JsonFormatter)
        finally:
            setup_logging()

    def test_ensure_utc(self):
        assert ensure_utc(None) is None


class TestHttpPlumbing:

    def test_request_id_is_echoed(self, client):
        resp = client.get("/api/v1/me", headers={"X-Request-ID": "abc-123"})
        assert resp.headers["X-Request-ID"] == "abc-123"
        assert "X-Process-Time-Ms" in resp.headers
        assert resp.headers["X-Content-Type-Options"] == "nosniff"

    def test_domain_error_payload_hides_context(self, client, db):
        from tests.conftest import auth_headers_for, setup_box_environment

        env = setup_box_environment(db, balance=0)
        resp = client.post(
            "/api/v1/boxes/purchase", json={"credit_tier": 1}, headers=auth_headers_for(env["member"])
        )
        assert resp.status_code == 409
        assert resp.json() == {"detail": "Insufficient credit balance", "code": "insufficient_balance"}

    def test_domain_error_is_logged_with_its_code(self, client, db, caplog):
        from tests.conftest import auth_headers_for, setup_box_environment

        env = setup_box_environment(db, balance=0)
        caplog.set_level(logging.INFO, logger="mysterybox.errors")
        client.post("/api/v1/boxes/purchase", json={"credit_tier": 2}, headers=auth_headers_for(env["member"]))
        codes = [getattr(r, "error_code", None) for r in caplog.records if r.name == "mysterybox.errors"]
        assert codes == ["insufficient_balance"]

    def test_health_reports_database(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["database"] is True
        assert body["status"] in {"healthy", "degraded"}
