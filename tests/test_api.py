import logging

from hackhub import config
from hackhub.errors import ConflictError, NotFoundError, PermissionDeniedError
from hackhub.logging_config import JSONFormatter, configure_logging
from hackhub.services import notifications

def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}

def test_error_classes_carry_status_codes():
    assert NotFoundError("Team").status_code == 404
    assert NotFoundError("Team").message == "Team not found"
    assert PermissionDeniedError().status_code == 403
    assert ConflictError("taken").status_code == 409

def test_not_found_and_forbidden_are_distinguishable(client, make_user, make_team, login):
    owner, outsider = make_user(), make_user()
    team = make_team(owner)

    login(outsider)
    assert client.get("/api/teams/424242").status_code == 404
    assert client.get(f"/api/teams/{team.id}").status_code == 403

def test_send_email_without_server_only_logs(monkeypatch, caplog):
    monkeypatch.setattr(config, "MAIL_SERVER", None)

    with caplog.at_level(logging.INFO, logger="hackhub.services.notifications"):
        assert notifications.send_verification_email("ada@example.com", "123456") is True

    assert "ada@example.com" in caplog.text

def test_send_email_failure_is_reported_not_raised(monkeypatch):
    class BrokenSMTP:
        def __init__(self, *args, **kwargs):
            raise OSError("connection refused")

    monkeypatch.setattr(config, "MAIL_SERVER", "smtp.example.com")
    monkeypatch.setattr(notifications.smtplib, "SMTP", BrokenSMTP)

    assert notifications.send_welcome_email("ada@example.com", "Ada") is False

def test_render_templates():
    message = notifications.render("password_reset", reset_url="https://app/reset/abc", minutes=60)
    assert message["subject"] == "Reset your password"
    assert "https://app/reset/abc" in message["html"]

def test_json_formatter_includes_request_fields():
    record = logging.LogRecord("hackhub", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    record.path = "/api/teams"

    output = JSONFormatter().format(record)

    assert '"message": "hello world"' in output
    assert '"path": "/api/teams"' in output

def test_configure_logging_installs_single_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging("DEBUG", "json")
        configure_logging("INFO", "readable")

        assert len(root.handlers) == 1
        assert root.level == logging.INFO
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
