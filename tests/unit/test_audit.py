"""Unit tests for the audit log."""

import json

from lecert.core.audit import (
    AuditEvent,
    AuditEventType,
    AuditLogger,
    AuditResult,
)


def read_events(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


class TestAuditEvent:
    """Tests for AuditEvent serialization."""

    def test_to_dict(self):
        """Events carry type, result and target."""
        event = AuditEvent(
            event_type=AuditEventType.CERT_RENEW,
            result=AuditResult.SUCCESS,
            target_type="certificate",
            target_name="example.com",
        )
        data = event.to_dict()
        assert data["event_type"] == "certificate.renew"
        assert data["result"] == "success"
        assert data["target"] == {"type": "certificate", "name": "example.com"}

    def test_redaction(self):
        """Sensitive parameters are redacted, nested ones too."""
        event = AuditEvent(
            event_type=AuditEventType.CERT_RENEW,
            result=AuditResult.SUCCESS,
            parameters={
                "email": "ops@example.com",
                "eab_hmac_key": "abc",
                "extra": {"api_key": "xyz", "domain": "example.com"},
            },
        )
        params = event.to_dict()["parameters"]
        assert params["email"] == "ops@example.com"
        assert params["eab_hmac_key"] == "***REDACTED***"
        assert params["extra"] == {"api_key": "***REDACTED***", "domain": "example.com"}


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_writes_json_lines(self, tmp_path):
        """Each event is one JSON line with the session id."""
        path = tmp_path / "audit" / "audit.log"
        logger = AuditLogger(log_path=path)

        logger.log_session_start("renew", ["--dry-run"])
        logger.log_session_end(0)

        events = read_events(path)
        assert [e["event_type"] for e in events] == ["session.start", "session.end"]
        assert {e["session_id"] for e in events} == {logger.session_id}

    def test_correlation(self, tmp_path):
        """Events inside a correlation block share its id."""
        path = tmp_path / "audit.log"
        logger = AuditLogger(log_path=path)

        with logger.correlation("renew") as corr_id:
            logger.log_operation(
                AuditEventType.CERT_RENEW, AuditResult.SUCCESS,
                "certificate", "example.com", "renew",
            )
            logger.log_operation(
                AuditEventType.SERVICE_RELOAD, AuditResult.SUCCESS,
                "service", "nginx", "reload",
            )
        logger.log_session_end(0)

        events = read_events(path)
        assert corr_id.startswith("renew_")
        assert [e["correlation_id"] for e in events] == [corr_id, corr_id, None]

    def test_disabled(self, tmp_path):
        """A disabled logger writes nothing."""
        path = tmp_path / "audit.log"
        AuditLogger(log_path=path, enabled=False).log_session_end(0)
        assert not path.exists()

    def test_unwritable_location(self, tmp_path):
        """An unwritable path is not an error."""
        blocker = tmp_path / "file"
        blocker.write_text("")
        AuditLogger(log_path=blocker / "audit.log").log_session_end(1)

    def test_rotation(self, tmp_path):
        """Oversized logs are rotated to numbered backups."""
        path = tmp_path / "audit.log"
        logger = AuditLogger(log_path=path, max_size_mb=0, backup_count=2)

        logger.log_session_end(0)
        logger.log_session_end(1)
        logger.log_session_end(2)

        assert path.with_name("audit.log.1").exists()
        assert path.with_name("audit.log.2").exists()
        assert not path.with_name("audit.log.3").exists()
        assert path.read_text() == ""
