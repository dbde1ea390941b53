"""Configuration loader for zonecert."""

import os
import json
from pathlib import Path
from typing import Optional

from .models import Config


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from file or environment.

    Args:
        config_path: Path to configuration file. If not provided,
                    uses ZONECERT_CONFIG environment variable.

    Returns:
        Config object

    Raises:
        FileNotFoundError: If config file not found
        ValueError: If config file is invalid
    """
    path = config_path or os.environ.get("ZONECERT_CONFIG")

    if path:
        config_file = Path(path).expanduser()

        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")

        with open(config_file, "r") as f:
            config_data = json.load(f)

        config_data = _apply_env_overrides(config_data)

        return Config(**config_data)

    return _config_from_env()


def _apply_env_overrides(config_data: dict) -> dict:
    """Apply environment variable overrides to config data."""
    if "acme" not in config_data:
        config_data["acme"] = {}

    acme = config_data["acme"]

    if os.environ.get("ACME_EMAIL"):
        acme["email"] = os.environ["ACME_EMAIL"]

    if os.environ.get("ACME_DIRECTORY"):
        acme["directory"] = os.environ["ACME_DIRECTORY"]

    if os.environ.get("ACME_STORAGE_DIR"):
        acme["storage_dir"] = os.environ["ACME_STORAGE_DIR"]

    if os.environ.get("ACME_RENEW_UNDER"):
        acme["renew_under_days"] = int(os.environ["ACME_RENEW_UNDER"])

    if os.environ.get("ACME_SKIP_PROVIDERS"):
        acme["skip_providers"] = _split_list(os.environ["ACME_SKIP_PROVIDERS"])

    if "logging" not in config_data:
        config_data["logging"] = {}

    if os.environ.get("LOG_LEVEL"):
        config_data["logging"]["level"] = os.environ["LOG_LEVEL"].upper()

    return config_data


def _split_list(value: str) -> list:
    return [item.strip() for item in value.split(",") if item.strip()]


def _config_from_env() -> Config:
    """Build configuration from environment variables only."""
    config_data = {
        "server": {
            "host": os.environ.get("ZONECERT_HOST", "0.0.0.0"),
            "port": int(os.environ.get("ZONECERT_PORT", "8815")),
            "name": os.environ.get("ZONECERT_NAME", "zonecert"),
        },
        "acme": {
            "email": os.environ.get("ACME_EMAIL"),
            "directory": os.environ.get("ACME_DIRECTORY", "live"),
            "storage_dir": os.environ.get("ACME_STORAGE_DIR", "."),
            "renew_under_days": int(os.environ.get("ACME_RENEW_UNDER", "15")),
            "skip_providers": _split_list(os.environ.get("ACME_SKIP_PROVIDERS", "")),
        },
        "logging": {
            "level": os.environ.get("LOG_LEVEL", "INFO").upper(),
            "console": True,
        },
    }

    return Config(**config_data)


def save_config(config: Config, config_path: str) -> None:
    """Save configuration to file.

    Args:
        config: Config object to save
        config_path: Path to save configuration file
    """
    config_file = Path(config_path).expanduser()
    config_file.parent.mkdir(parents=True, exist_ok=True)

    with open(config_file, "w") as f:
        json.dump(config.model_dump(exclude_none=True), f, indent=2)
