"""Configuration module for zonecert."""

from .loader import load_config
from .models import Config, CertConfig

__all__ = ["load_config", "Config", "CertConfig"]
