"""Configuration management for the report admin dashboard."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv

from .dashboard.aggregation import COMMUNITY_MATTER_TYPE
from .dashboard.models import NotificationTemplate

logger = logging.getLogger(__name__)

STORE_BACKENDS = ("firebase", "memory")
WRITE_MODES = ("blind", "checked")


@dataclass
class Config:
    """Application configuration loaded from environment."""

    # Store
    store_backend: str = "firebase"
    firebase_service_account: str = ""
    firebase_database_url: str = ""
    store_seed_file: str = ""

    # Dashboard
    dashboard_host: str = "127.0.0.1"
    dashboard_port: int = 8080
    dashboard_admin_user: str = "admin"
    dashboard_admin_password: str = ""

    # Health server
    health_host: str = "0.0.0.0"
    health_port: int = 8081
    health_enabled: bool = True

    # Writes
    report_write_mode: str = "blind"
    outbox_retry_interval_seconds: int = 0

    # Overrides (config/dashboard.yaml)
    community_matter_type: str = COMMUNITY_MATTER_TYPE
    notification: NotificationTemplate = field(default_factory=NotificationTemplate)

    # Paths
    data_dir: Path = field(default_factory=lambda: Path("./data"))
    config_dir: Path = field(default_factory=lambda: Path("./config"))

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        self.config_dir = Path(self.config_dir)

    @property
    def outbox_path(self) -> Path:
        return self.data_dir / "outbox.db"


def _load_settings(config_dir: Path) -> dict:
    """Load overrides from config/dashboard.yaml (optional)."""
    path = Path(config_dir or ".") / "dashboard.yaml"
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Failed to parse dashboard.yaml: %s", exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring dashboard.yaml: expected a mapping, got %s", type(data).__name__)
        return {}

    settings: dict = {}
    matter_type = data.get("community_matter_type")
    if isinstance(matter_type, str) and matter_type.strip():
        settings["community_matter_type"] = matter_type.strip()

    notification = data.get("notification") or {}
    if isinstance(notification, dict):
        defaults = NotificationTemplate()
        kind = str(notification.get("type") or "").strip() or defaults.type
        template = str(notification.get("message_template") or "").strip() or defaults.message_template
        settings["notification"] = NotificationTemplate(type=kind, message_template=template)
    return settings


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s: %r (using %s)", name, raw, default)
        return default


def load_config() -> Config:
    """Load configuration from environment variables."""
    load_dotenv()

    config_dir = Path(os.getenv("CONFIG_DIR", "./config"))
    settings = _load_settings(config_dir)

    return Config(
        store_backend=os.getenv("STORE_BACKEND", "firebase").strip().lower() or "firebase",
        firebase_service_account=os.getenv("FIREBASE_SERVICE_ACCOUNT", ""),
        firebase_database_url=os.getenv("FIREBASE_DATABASE_URL", "").strip(),
        store_seed_file=os.getenv("STORE_SEED_FILE", "").strip(),
        dashboard_host=os.getenv("DASHBOARD_HOST", "127.0.0.1"),
        dashboard_port=_env_int("DASHBOARD_PORT", 8080),
        dashboard_admin_user=os.getenv("DASHBOARD_ADMIN_USER", "admin"),
        dashboard_admin_password=os.getenv("DASHBOARD_ADMIN_PASSWORD", ""),
        health_host=os.getenv("HEALTH_HOST", "0.0.0.0"),
        health_port=_env_int("HEALTH_PORT", 8081),
        health_enabled=os.getenv("HEALTH_ENABLED", "true").lower() == "true",
        report_write_mode=os.getenv("REPORT_WRITE_MODE", "blind").strip().lower() or "blind",
        outbox_retry_interval_seconds=_env_int("OUTBOX_RETRY_INTERVAL_SECONDS", 0),
        data_dir=Path(os.getenv("DATA_DIR", "./data")),
        config_dir=config_dir,
        **settings,
    )


def validate_config(config: Config) -> list[str]:
    """Validate required configuration and return list of error messages."""
    errors = []

    if config.store_backend not in STORE_BACKENDS:
        errors.append(f"STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)} (got {config.store_backend!r})")
    elif config.store_backend == "firebase" and not config.firebase_service_account.strip():
        errors.append("FIREBASE_SERVICE_ACCOUNT is required for the firebase store backend")

    if config.report_write_mode not in WRITE_MODES:
        errors.append(f"REPORT_WRITE_MODE must be one of {', '.join(WRITE_MODES)} (got {config.report_write_mode!r})")

    if config.outbox_retry_interval_seconds < 0:
        errors.append("OUTBOX_RETRY_INTERVAL_SECONDS must be >= 0")

    return errors
