"""DNS provider drivers for zonecert."""

from .base import DNSProvider
from .none import NoneProvider

__all__ = [
    "DNSProvider",
    "NoneProvider",
]
