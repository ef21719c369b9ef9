"""Configuration loading: YAML file defaults merged with CLI flags."""

import logging
import os
import sys
from dataclasses import dataclass, field, fields

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "owox-gcp.yaml"
DEFAULT_INSTANCE = "owox-data-marts"

ZONE_PRESETS = {
    "us": "us-central1-a",
    "europe": "europe-west1-b",
    "asia": "asia-east1-a",
}

MACHINE_PRESETS = {
    "small": "e2-micro",
    "medium": "e2-small",
    "large": "e2-medium",
}

# Install-time package specs.
PACKAGE_PRESETS = {
    "stable": "owox",
    "next": "owox@next",
}

# Update-time package specs; "stable" pins the latest dist-tag explicitly.
UPDATE_PRESETS = {
    "stable": "owox@latest",
    "next": "owox@next",
}

AUTH_METHODS = ("none", "basic", "iap", "both")


@dataclass
class ReadinessPolicy:
    """Timing of the post-create SSH readiness wait, in seconds."""

    initial_wait: int = 60
    attempts: int = 3
    interval: int = 15
    attempt_timeout: int = 20
    grace_wait: int = 120


@dataclass
class Settings:
    """Working values for one run, after merging config file and flags."""

    project: str = ""
    zone: str = ZONE_PRESETS["us"]
    instance: str = DEFAULT_INSTANCE
    machine_type: str = MACHINE_PRESETS["medium"]
    disk_size: int = 20
    package: str = PACKAGE_PRESETS["stable"]
    auth_method: str = "basic"
    users: list[dict] = field(default_factory=list)
    readiness: ReadinessPolicy = field(default_factory=ReadinessPolicy)
    cleanup_zones: list[str] = field(default_factory=lambda: list(ZONE_PRESETS.values()))


def load_config(config_path: str | None = None) -> dict:
    """Load configuration from YAML file.

    With no explicit path, DEFAULT_CONFIG_PATH is used when it exists and an
    empty config otherwise.
    """
    if config_path is None:
        if not os.path.exists(DEFAULT_CONFIG_PATH):
            return {}
        config_path = DEFAULT_CONFIG_PATH

    try:
        with open(_expand_path(config_path)) as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        logger.error(f"Error: Config file '{config_path}' not found.")
        sys.exit(1)
    except yaml.YAMLError as e:
        logger.error(f"Error parsing YAML config: {e}")
        sys.exit(1)

    if config is None:
        return {}
    if not isinstance(config, dict):
        logger.error(f"Error: Config file '{config_path}' must contain a mapping.")
        sys.exit(1)
    return config


def resolve_zone(value: str) -> str:
    """Map a region preset (us/europe/asia) to its zone; pass zones through."""
    if not value:
        raise ValueError("Zone cannot be empty")
    return ZONE_PRESETS.get(value, value)


def resolve_machine_type(value: str) -> str:
    """Map a size preset (small/medium/large) to its machine type."""
    if not value:
        raise ValueError("Machine type cannot be empty")
    return MACHINE_PRESETS.get(value, value)


def resolve_package(value: str, presets: dict = PACKAGE_PRESETS) -> str:
    """Map a version preset to an npm package spec; pass literal specs through."""
    if not value or not value.strip():
        raise ValueError("Version cannot be empty")
    return presets.get(value, value.strip())


def _readiness_from_dict(data: dict) -> ReadinessPolicy:
    known = {f.name for f in fields(ReadinessPolicy)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown readiness settings: {', '.join(sorted(unknown))}")
    policy = ReadinessPolicy(**{k: int(v) for k, v in data.items()})
    if policy.attempts < 1:
        raise ValueError(f"readiness.attempts must be at least 1, got {policy.attempts}")
    for name in ("initial_wait", "interval", "attempt_timeout", "grace_wait"):
        if getattr(policy, name) < 0:
            raise ValueError(f"readiness.{name} must not be negative, got {getattr(policy, name)}")
    return policy


def _section(config: dict, key: str, expected: type, label: str):
    """Return config[key] (None when unset), rejecting a value of the wrong shape."""
    value = config.get(key)
    if value is None:
        return None
    if not isinstance(value, expected):
        raise ValueError(f"'{label}' must be a {expected.__name__}, got {type(value).__name__}")
    return value


def build_settings(config: dict, overrides: dict | None = None) -> Settings:
    """Build Settings from a loaded config dict and CLI overrides.

    Overrides whose value is None are ignored so unset flags fall back to the
    config file, then to the defaults.
    """
    settings = Settings()
    auth = _section(config, "auth", dict, "auth") or {}
    users = _section(auth, "users", list, "auth.users")
    readiness = _section(config, "readiness", dict, "readiness")
    cleanup_zones = _section(config, "cleanup_zones", list, "cleanup_zones")

    if config.get("project"):
        settings.project = str(config["project"])
    if config.get("zone"):
        settings.zone = resolve_zone(str(config["zone"]))
    if config.get("instance"):
        settings.instance = str(config["instance"])
    if config.get("machine_type"):
        settings.machine_type = resolve_machine_type(str(config["machine_type"]))
    if config.get("disk_size") is not None:
        settings.disk_size = int(config["disk_size"])
    if config.get("package"):
        settings.package = resolve_package(str(config["package"]))
    if auth.get("method"):
        settings.auth_method = str(auth["method"])
    if users:
        settings.users = list(users)
    if readiness:
        settings.readiness = _readiness_from_dict(readiness)
    if cleanup_zones:
        settings.cleanup_zones = [resolve_zone(str(z)) for z in cleanup_zones]

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key == "zone":
            value = resolve_zone(value)
        elif key == "machine_type":
            value = resolve_machine_type(value)
        elif key == "package":
            value = resolve_package(value)
        setattr(settings, key, value)

    if settings.auth_method not in AUTH_METHODS:
        raise ValueError(f"Unknown auth method '{settings.auth_method}' (expected one of: {', '.join(AUTH_METHODS)})")
    if settings.disk_size <= 0:
        raise ValueError(f"Disk size must be positive, got {settings.disk_size}")
    if settings.zone not in settings.cleanup_zones:
        settings.cleanup_zones.append(settings.zone)
    return settings


def _expand_path(path: str) -> str:
    """Expand user home directory and environment variables in path."""
    return os.path.expanduser(os.path.expandvars(path))
