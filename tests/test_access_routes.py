"""
Tests for the content access routes.
"""
import json

from flask import Flask

from config_manager import MembershipConfig, PermissionsConfig
from membership_gate.content.catalog import LessonCatalog
from membership_gate.membership.factory import create_membership_module
from membership_gate.membership.models import MembershipTier
from membership_gate.permissions.factory import create_permissions_module

SECRET = "test-secret-key-for-membership-gate-0123"

PERMISSIONS = PermissionsConfig(
    section_floors={"daily": "trial", "cognitive": "yearly", "business": "yearly"},
    feature_floors={"export_notes": "yearly", "download_raw_video": "lifetime", "switch_persona": "lifetime"},
)


class TestAccessRoutes:
    """Test GET /api/access and GET /api/lessons/<id>/access."""

    def _build(self, tmp_path, is_production=True):
        lessons_file = tmp_path / "lessons.json"
        lessons_file.write_text(json.dumps([
            {"id": "b1", "category": "business", "isSample": False, "titleEn": "Pitch"},
            {"id": "b2", "category": "business", "isSample": True},
            {"id": "d1", "category": "daily", "isSample": "freeTrial"},
            {"id": "x1", "category": "podcast"},
        ]), encoding="utf-8")

        membership = create_membership_module(MembershipConfig(jwt_secret=SECRET), is_production=is_production)
        permissions = create_permissions_module(PERMISSIONS, membership["service"], LessonCatalog(lessons_file))
        self.issuer = membership["issuer"]
        app = Flask(__name__)
        app.register_blueprint(membership["blueprint"])
        app.register_blueprint(permissions["blueprint"])
        return app.test_client()

    def _login(self, client, tier):
        token, _ = self.issuer.issue("u1", tier)
        client.set_cookie("ae_membership", token)

    def test_visitor_denied(self, tmp_path):
        client = self._build(tmp_path)

        data = client.get("/api/access?section=business").get_json()["data"]

        assert data["allowed"] is False
        assert data["reason"] == "unauthenticated"
        assert data["requiredTier"] == "yearly"
        assert data["tier"] == "visitor"

    def test_visitor_sample_allowed(self, tmp_path):
        client = self._build(tmp_path)

        data = client.get("/api/access?section=business&sample=true").get_json()["data"]

        assert data["allowed"] is True
        assert data["reason"] == "sample"

    def test_quarterly_business_shows_teaser(self, tmp_path):
        client = self._build(tmp_path)
        self._login(client, MembershipTier.QUARTERLY)

        data = client.get("/api/access?section=business").get_json()["data"]

        assert data["allowed"] is False
        assert data["reason"] == "tier_too_low"
        assert data["showTeaser"] is True
        assert data["features"]["export_notes"] is False

    def test_lifetime_features(self, tmp_path):
        client = self._build(tmp_path)

        self._login(client, MembershipTier.LIFETIME)

        data = client.get("/api/access?section=cognitive").get_json()["data"]

        assert data["allowed"] is True
        assert all(data["features"].values())

    def test_invalid_section(self, tmp_path):
        client = self._build(tmp_path)

        resp = client.get("/api/access?section=podcast")

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "invalid_section"

    def test_lesson_access_uses_catalog(self, tmp_path):
        client = self._build(tmp_path)
        self._login(client, MembershipTier.TRIAL)

        regular = client.get("/api/lessons/b1/access").get_json()["data"]
        sample = client.get("/api/lessons/b2/access").get_json()["data"]
        free_trial = client.get("/api/lessons/d1/access").get_json()["data"]

        assert regular["allowed"] is False
        assert sample["allowed"] is True
        assert free_trial["allowed"] is True
        assert free_trial["features"]["switch_persona"] is True
        assert regular["lessonId"] == "b1"

    def test_lesson_not_found(self, tmp_path):
        client = self._build(tmp_path)

        assert client.get("/api/lessons/missing/access").status_code == 404

    def test_uncategorized_lesson(self, tmp_path):
        client = self._build(tmp_path)

        assert client.get("/api/lessons/x1/access").status_code == 400

    def test_dev_override_outside_production(self, tmp_path):
        client = self._build(tmp_path, is_production=False)

        data = client.get("/api/access?section=business", headers={"X-Dev-Tier": "yearly"}).get_json()["data"]

        assert data["allowed"] is True
        assert data["tier"] == "yearly"
