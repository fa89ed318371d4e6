"""
Configuration management for the membership gate service.
Handles loading, validating, and providing access to application settings.
"""

import os
import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

PRODUCTION = "production"


@dataclass
class AppConfig:
    """Application configuration settings."""
    host: str
    port: int
    debug: bool
    environment: str

    @property
    def is_production(self) -> bool:
        return self.environment == PRODUCTION


@dataclass
class MembershipConfig:
    """Credential and tier resolution settings."""
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    cookie_name: str = "ae_membership"
    dev_override_header: str = "X-Dev-Tier"
    dev_user_id: str = "dev_user_fixed"


@dataclass
class PermissionsConfig:
    """Minimum tier floors for content sections and features."""
    section_floors: Dict[str, str] = field(default_factory=dict)
    feature_floors: Dict[str, str] = field(default_factory=dict)


@dataclass
class QuotaConfig:
    """AI chat quota settings."""
    daily_limits: Dict[str, Optional[int]] = field(default_factory=dict)
    free_trial_limits: Dict[str, Optional[int]] = field(default_factory=dict)
    timezone: str = "Asia/Shanghai"
    key_ttl_seconds: int = 2 * 24 * 60 * 60
    redis_url: str = ""


@dataclass
class LLMConfig:
    """LLM configuration settings."""
    provider: str
    api_key: str
    base_url: str
    model: str
    max_tokens: int
    temperature: float


@dataclass
class CacheConfig:
    """Client-side resolution cache TTLs."""
    desktop_ttl_seconds: int = 30
    mobile_ttl_seconds: int = 300


@dataclass
class PathsConfig:
    """Path configuration settings. File names are relative to data_dir."""
    data_dir: str
    lessons_file: str
    members_file: str = "members.json"


class ConfigManager:
    """Manages application configuration loading and access."""

    def __init__(self, config_file: str = "membership_config.json"):
        self.config_file = Path(config_file)
        self._config: Optional[Dict[str, Any]] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file and environment variables."""
        # Start with default config
        self._config = self._get_default_config()

        # Load base config from file
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                    self._merge_config(file_config)
            except (json.JSONDecodeError, FileNotFoundError) as e:
                # Keep default config if file is invalid or not found
                logger.warning(f"Ignoring unreadable config file {self.config_file}: {e}")

        # Override with environment variables
        self._override_with_env()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "app": {
                "host": "0.0.0.0",
                "port": 22582,
                "debug": False,
                "environment": PRODUCTION
            },
            "membership": {
                "jwt_secret": "",
                "jwt_algorithm": "HS256",
                "cookie_name": "ae_membership",
                "dev_override_header": "X-Dev-Tier",
                "dev_user_id": "dev_user_fixed"
            },
            "permissions": {
                "section_floors": {
                    "daily": "trial",
                    "cognitive": "yearly",
                    "business": "yearly"
                },
                "feature_floors": {
                    "export_notes": "yearly",
                    "download_raw_video": "lifetime",
                    "switch_persona": "lifetime"
                }
            },
            "quota": {
                "daily_limits": {
                    "visitor": 0,
                    "trial": 0,
                    "quarterly": 0,
                    "yearly": 18,
                    "lifetime": None
                },
                "free_trial_limits": {
                    "trial": None
                },
                "timezone": "Asia/Shanghai",
                "key_ttl_seconds": 2 * 24 * 60 * 60,
                "redis_url": ""
            },
            "llm": {
                "provider": "deepseek",
                "api_key": "",
                "base_url": "https://api.deepseek.com/v1",
                "model": "deepseek-chat",
                "max_tokens": 300,
                "temperature": 0.7
            },
            "cache": {
                "desktop_ttl_seconds": 30,
                "mobile_ttl_seconds": 300
            },
            "paths": {
                "data_dir": "data",
                "lessons_file": "lessons.json",
                "members_file": "members.json"
            }
        }

    def _merge_config(self, file_config: Dict[str, Any]) -> None:
        """Merge file configuration with current config."""
        for section, values in file_config.items():
            if section in self._config:
                if isinstance(values, dict):
                    self._config[section].update(values)
                else:
                    self._config[section] = values
            else:
                self._config[section] = values

    def _override_with_env(self) -> None:
        """Override configuration with environment variables."""
        # App settings
        if os.getenv("APP_ENV"):
            self._config["app"]["environment"] = os.getenv("APP_ENV").strip().lower()

        if os.getenv("APP_HOST"):
            self._config["app"]["host"] = os.getenv("APP_HOST")

        if os.getenv("APP_PORT"):
            self._config["app"]["port"] = int(os.getenv("APP_PORT"))

        if os.getenv("APP_DEBUG"):
            self._config["app"]["debug"] = os.getenv("APP_DEBUG").lower() == "true"

        # Membership settings
        if os.getenv("JWT_SECRET"):
            self._config["membership"]["jwt_secret"] = os.getenv("JWT_SECRET")

        if os.getenv("MEMBERSHIP_COOKIE_NAME"):
            self._config["membership"]["cookie_name"] = os.getenv("MEMBERSHIP_COOKIE_NAME")

        # Quota settings
        if os.getenv("REDIS_URL"):
            self._config["quota"]["redis_url"] = os.getenv("REDIS_URL")

        if os.getenv("QUOTA_TIMEZONE"):
            self._config["quota"]["timezone"] = os.getenv("QUOTA_TIMEZONE")

        # LLM settings
        if os.getenv("LLM_PROVIDER"):
            self._config["llm"]["provider"] = os.getenv("LLM_PROVIDER")

        if os.getenv("DEEPSEEK_API_KEY"):
            self._config["llm"]["api_key"] = os.getenv("DEEPSEEK_API_KEY")

        if os.getenv("OPENAI_API_BASE"):
            self._config["llm"]["base_url"] = os.getenv("OPENAI_API_BASE")

        if os.getenv("LLM_MODEL"):
            self._config["llm"]["model"] = os.getenv("LLM_MODEL")

        # Paths
        if os.getenv("DATA_DIR"):
            self._config["paths"]["data_dir"] = os.getenv("DATA_DIR")

    def get_app_config(self) -> AppConfig:
        """Get application configuration."""
        app_config = self._config["app"]
        return AppConfig(
            host=app_config["host"],
            port=app_config["port"],
            debug=app_config["debug"],
            environment=app_config["environment"]
        )

    def get_membership_config(self) -> MembershipConfig:
        """Get credential and tier resolution configuration."""
        m_config = self._config["membership"]
        return MembershipConfig(
            jwt_secret=m_config["jwt_secret"],
            jwt_algorithm=m_config["jwt_algorithm"],
            cookie_name=m_config["cookie_name"],
            dev_override_header=m_config["dev_override_header"],
            dev_user_id=m_config["dev_user_id"]
        )

    def get_permissions_config(self) -> PermissionsConfig:
        """Get section and feature floor tables."""
        p_config = self._config["permissions"]
        return PermissionsConfig(
            section_floors=dict(p_config.get("section_floors") or {}),
            feature_floors=dict(p_config.get("feature_floors") or {})
        )

    def get_quota_config(self) -> QuotaConfig:
        """Get AI chat quota configuration."""
        q_config = self._config["quota"]
        return QuotaConfig(
            daily_limits=dict(q_config.get("daily_limits") or {}),
            free_trial_limits=dict(q_config.get("free_trial_limits") or {}),
            timezone=q_config["timezone"],
            key_ttl_seconds=q_config["key_ttl_seconds"],
            redis_url=q_config["redis_url"]
        )

    def get_llm_config(self) -> LLMConfig:
        """Get LLM configuration."""
        llm_config = self._config["llm"]
        return LLMConfig(
            provider=llm_config["provider"],
            api_key=llm_config["api_key"],
            base_url=llm_config["base_url"],
            model=llm_config["model"],
            max_tokens=llm_config["max_tokens"],
            temperature=llm_config["temperature"]
        )

    def get_cache_config(self) -> CacheConfig:
        """Get client-side resolution cache configuration."""
        c_config = self._config["cache"]
        return CacheConfig(
            desktop_ttl_seconds=c_config["desktop_ttl_seconds"],
            mobile_ttl_seconds=c_config["mobile_ttl_seconds"]
        )

    def get_paths_config(self) -> PathsConfig:
        """Get paths configuration."""
        paths_config = self._config["paths"]
        return PathsConfig(
            data_dir=paths_config["data_dir"],
            lessons_file=paths_config["lessons_file"],
            members_file=paths_config["members_file"]
        )

    def get_config(self) -> Dict[str, Any]:
        """Get raw configuration dictionary."""
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    def save_config(self) -> None:
        """Save current configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)


# Global configuration instance
config_manager = ConfigManager()


def get_app_config() -> AppConfig:
    """Get application configuration."""
    return config_manager.get_app_config()


def get_membership_config() -> MembershipConfig:
    """Get membership configuration."""
    return config_manager.get_membership_config()


def get_permissions_config() -> PermissionsConfig:
    """Get permissions configuration."""
    return config_manager.get_permissions_config()


def get_quota_config() -> QuotaConfig:
    """Get quota configuration."""
    return config_manager.get_quota_config()


def get_llm_config() -> LLMConfig:
    """Get LLM configuration."""
    return config_manager.get_llm_config()


def get_cache_config() -> CacheConfig:
    """Get cache configuration."""
    return config_manager.get_cache_config()


def get_paths_config() -> PathsConfig:
    """Get paths configuration."""
    return config_manager.get_paths_config()


def reload_config() -> None:
    """Reload configuration."""
    config_manager.reload()


def save_config() -> None:
    """Save configuration to file."""
    config_manager.save_config()
