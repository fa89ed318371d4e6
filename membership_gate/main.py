"""
Flask application wiring for the membership gate.
"""

import logging
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify
from werkzeug.middleware.proxy_fix import ProxyFix

from config_manager import ConfigManager

from .chat.factory import create_chat_module
from .content.catalog import LessonCatalog
from .errors import NotConfiguredError, Reason
from .logging_config import setup_logging
from .membership.factory import create_membership_module
from .membership.registry import MembershipRegistry
from .permissions.factory import create_permissions_module
from .quota.factory import create_quota_module

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent


def resolve_data_file(paths_config, file_name: str) -> Path:
    """
    Resolve a data file path.

    Relative file names are taken from data_dir, and a relative data_dir from
    the project root.
    """
    data_dir = Path(paths_config.data_dir)
    if not data_dir.is_absolute():
        data_dir = PROJECT_ROOT / data_dir
    return data_dir / file_name


def create_membership_registry(paths_config, is_production: bool) -> Optional[MembershipRegistry]:
    """Registry for live revocation checks, or None when no members file exists."""
    registry = MembershipRegistry(resolve_data_file(paths_config, paths_config.members_file))
    if not registry.exists():
        level = logging.WARNING if is_production else logging.INFO
        logger.log(level, f"No membership registry at {registry.members_file}, revocation checks disabled")
        return None
    logger.info(f"Membership registry loaded: {len(registry)} members")
    return registry


def create_app(
    config: Optional[ConfigManager] = None,
    counter_store=None,
    completion_client=None,
    configure_logging: bool = True,
) -> Flask:
    """
    Build the Flask app with every module registered.

    Args:
        config: ConfigManager to read settings from (default: membership_config.json)
        counter_store: Optional quota counter store, replacing the configured one
        completion_client: Optional chat completion client, replacing the configured one
        configure_logging: Whether to install the queue-based logging setup

    Raises:
        NotConfiguredError: If a secret or table is missing in production
    """
    config = config or ConfigManager()
    app_config = config.get_app_config()

    if configure_logging:
        setup_logging(debug=app_config.debug)

    app = Flask(__name__)
    app.wsgi_app = ProxyFix(
        app.wsgi_app,
        x_proto=1,   # trust 1 hop for X-Forwarded-Proto
        x_host=1,    # trust 1 hop for X-Forwarded-Host
        x_prefix=1)
    app.json.ensure_ascii = False

    is_production = app_config.is_production
    logger.info(f"Starting membership gate (environment={app_config.environment})")

    paths_config = config.get_paths_config()
    lesson_catalog = LessonCatalog(resolve_data_file(paths_config, paths_config.lessons_file))
    registry = create_membership_registry(paths_config, is_production)

    membership_module = create_membership_module(
        config.get_membership_config(),
        is_production=is_production,
        status_lookup=registry.lookup if registry is not None else None,
    )
    membership_service = membership_module["service"]

    permissions_module = create_permissions_module(
        config.get_permissions_config(),
        membership_service,
        lesson_catalog,
    )

    quota_module = create_quota_module(
        config.get_quota_config(),
        membership_service,
        is_production=is_production,
        store=counter_store,
    )

    chat_module = create_chat_module(
        config.get_llm_config(),
        quota_module["ledger"],
        membership_service,
        lesson_catalog,
        completion_client=completion_client,
    )

    app.register_blueprint(membership_module["blueprint"])
    app.register_blueprint(permissions_module["blueprint"])
    app.register_blueprint(quota_module["blueprint"])
    app.register_blueprint(chat_module["blueprint"])

    app.extensions["membership_gate"] = {
        "membership": membership_module,
        "permissions": permissions_module,
        "quota": quota_module,
        "chat": chat_module,
        "lessons": lesson_catalog,
        "registry": registry,
    }

    @app.errorhandler(NotConfiguredError)
    def handle_not_configured(e):
        logger.error(f"Configuration error: {e}")
        return jsonify({"success": False, "error": Reason.NOT_CONFIGURED.value}), 500

    @app.route("/api/health")
    def health():
        return jsonify({"status": "ok", "lessons": len(lesson_catalog)})

    return app
