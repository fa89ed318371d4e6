"""
Tests for application wiring and the management script.
"""
import json
import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from config_manager import ConfigManager, PathsConfig
from membership_gate.errors import NotConfiguredError
from membership_gate.main import PROJECT_ROOT, create_app, resolve_data_file
from membership_gate.membership.models import MembershipTier
from membership_gate.quota.stores import InMemoryCounterStore

SECRET = "test-secret-key-for-membership-gate-0123"


def write_config(tmp_path, **sections):
    config = {
        "app": {"environment": "production"},
        "membership": {"jwt_secret": SECRET},
        "paths": {"data_dir": str(tmp_path)},
    }
    config.update(sections)
    config_file = tmp_path / "membership_config.json"
    config_file.write_text(json.dumps(config), encoding="utf-8")
    return config_file


class TestCreateApp:
    """Test the Flask application factory."""

    def _config(self, tmp_path, **sections):
        with patch.dict(os.environ, {}, clear=True):
            return ConfigManager(str(write_config(tmp_path, **sections)))

    def test_production_requires_secret(self, tmp_path):
        config = self._config(tmp_path, membership={"jwt_secret": ""})

        with pytest.raises(NotConfiguredError):
            create_app(config, counter_store=InMemoryCounterStore(), configure_logging=False)

    def test_routes_registered(self, tmp_path):
        app = create_app(
            self._config(tmp_path),
            counter_store=InMemoryCounterStore(),
            completion_client=MagicMock(),
            configure_logging=False,
        )
        rules = {rule.rule for rule in app.url_map.iter_rules()}

        assert "/api/membership" in rules
        assert "/api/membership/logout" in rules
        assert "/api/access" in rules
        assert "/api/lessons/<lesson_id>/access" in rules
        assert "/api/chat-usage/<lesson_id>" in rules
        assert "/api/ai-chat" in rules

    def test_health(self, tmp_path):
        app = create_app(self._config(tmp_path), counter_store=InMemoryCounterStore(), configure_logging=False)

        resp = app.test_client().get("/api/health")

        assert resp.get_json() == {"status": "ok", "lessons": 0}

    def test_missing_limit_is_not_configured(self, tmp_path):
        config = self._config(tmp_path, quota={"daily_limits": {"lifetime": None}})
        app = create_app(config, counter_store=InMemoryCounterStore(), configure_logging=False)
        issuer = app.extensions["membership_gate"]["membership"]["issuer"]
        token, _ = issuer.issue("u1", MembershipTier.YEARLY)
        client = app.test_client()
        client.set_cookie("ae_membership", token)

        resp = client.get("/api/chat-usage/lesson-1")

        assert resp.status_code == 500
        assert resp.get_json()["error"] == "not_configured"

    def _members_client(self, tmp_path, members):
        (tmp_path / "members.json").write_text(json.dumps(members), encoding="utf-8")
        app = create_app(self._config(tmp_path), counter_store=InMemoryCounterStore(), configure_logging=False)
        return app, app.test_client()

    def test_revoked_member_is_logged_out(self, tmp_path):
        app, client = self._members_client(tmp_path, {"u1": {"status": "revoked"}})
        token, _ = app.extensions["membership_gate"]["membership"]["issuer"].issue("u1", MembershipTier.YEARLY)
        client.set_cookie("ae_membership", token)

        resp = client.get("/api/membership")
        data = resp.get_json()["data"]

        assert data["isAuthenticated"] is False
        assert data["reason"] == "membership_revoked"
        assert any("Max-Age=0" in h for h in resp.headers.getlist("Set-Cookie"))

    def test_unregistered_member_is_logged_out(self, tmp_path):
        app, client = self._members_client(tmp_path, {"u2": {"status": "active"}})
        token, _ = app.extensions["membership_gate"]["membership"]["issuer"].issue("u1", MembershipTier.YEARLY)
        client.set_cookie("ae_membership", token)

        data = client.get("/api/membership").get_json()["data"]

        assert data["isAuthenticated"] is False
        assert data["reason"] == "user_not_found"

    def test_active_member_is_authenticated(self, tmp_path):
        app, client = self._members_client(tmp_path, {"u1": {"status": "active"}})
        token, _ = app.extensions["membership_gate"]["membership"]["issuer"].issue("u1", MembershipTier.YEARLY)
        client.set_cookie("ae_membership", token)

        data = client.get("/api/membership").get_json()["data"]

        assert data["isAuthenticated"] is True
        assert data["tier"] == "yearly"

    def test_no_members_file_skips_registry(self, tmp_path):
        app = create_app(self._config(tmp_path), counter_store=InMemoryCounterStore(), configure_logging=False)
        token, _ = app.extensions["membership_gate"]["membership"]["issuer"].issue("u1", MembershipTier.YEARLY)
        client = app.test_client()
        client.set_cookie("ae_membership", token)

        assert app.extensions["membership_gate"]["registry"] is None
        assert client.get("/api/membership").get_json()["data"]["isAuthenticated"] is True

    def test_lessons_loaded_from_data_dir(self, tmp_path):
        (tmp_path / "lessons.json").write_text(json.dumps([{"id": "d1", "category": "daily"}]), encoding="utf-8")
        app = create_app(self._config(tmp_path), counter_store=InMemoryCounterStore(), configure_logging=False)

        assert app.test_client().get("/api/health").get_json()["lessons"] == 1


def test_resolve_data_file():
    assert resolve_data_file(PathsConfig(data_dir="/srv/data", lessons_file="lessons.json"), "lessons.json") == Path(
        "/srv/data/lessons.json"
    )
    relative = resolve_data_file(PathsConfig(data_dir="data", lessons_file="lessons.json"), "members.json")
    assert relative == PROJECT_ROOT / "data" / "members.json"


class TestManageMembership:
    """Test the management script commands."""

    def test_issue(self, tmp_path, capsys):
        from manage_membership import main

        config_file = write_config(tmp_path)
        with patch.dict(os.environ, {}, clear=True):
            code = main(["--config", str(config_file), "issue", "yearly", "--user-id", "u1"])

        output = json.loads(capsys.readouterr().out)
        assert code == 0
        assert output["tier"] == "yearly"
        assert output["userId"] == "u1"
        assert output["cookie"] == "ae_membership"

    def test_issue_unknown_tier(self, tmp_path):
        from manage_membership import main

        config_file = write_config(tmp_path)
        with patch.dict(os.environ, {}, clear=True):
            assert main(["--config", str(config_file), "issue", "gold"]) == 2

    def test_check_reports_missing_secret(self, tmp_path):
        from manage_membership import main

        config_file = write_config(tmp_path, membership={"jwt_secret": ""})
        with patch.dict(os.environ, {}, clear=True):
            assert main(["--config", str(config_file), "check"]) == 1

    def test_usage_and_reset_in_development(self, tmp_path, capsys):
        from manage_membership import main

        config_file = write_config(tmp_path, app={"environment": "development"})
        with patch.dict(os.environ, {}, clear=True):
            assert main(["--config", str(config_file), "usage", "u1", "lesson-1"]) == 0
            usage = json.loads(capsys.readouterr().out)
            assert main(["--config", str(config_file), "reset", "u1", "lesson-1"]) == 0

        assert usage["limit"] == 18
        assert usage["key"].startswith("chat:u1:lesson-1:")
        assert "No counter at chat:u1:lesson-1:" in capsys.readouterr().out

    def test_issue_register_then_revoke(self, tmp_path, capsys):
        from manage_membership import main

        config_file = write_config(tmp_path)
        with patch.dict(os.environ, {}, clear=True):
            assert main(["--config", str(config_file), "issue", "yearly", "--user-id", "u1", "--register"]) == 0
            assert main(["--config", str(config_file), "revoke", "u1"]) == 0

        members = json.loads((tmp_path / "members.json").read_text(encoding="utf-8"))
        assert members["u1"]["status"] == "revoked"
        assert members["u1"]["tier"] == "yearly"

    def test_revoke_without_registry(self, tmp_path):
        from manage_membership import main

        config_file = write_config(tmp_path)
        with patch.dict(os.environ, {}, clear=True):
            assert main(["--config", str(config_file), "revoke", "u1"]) == 1
        assert not (tmp_path / "members.json").exists()

    def test_issue_visitor_rejected(self, tmp_path):
        from manage_membership import main

        config_file = write_config(tmp_path)
        with patch.dict(os.environ, {}, clear=True):
            assert main(["--config", str(config_file), "issue", "visitor"]) == 2
