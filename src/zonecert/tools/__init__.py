"""MCP tool implementations for zonecert."""

from .definitions import TOOL_DEFINITIONS
from .certificate_tools import CertificateTools
from .acme_tools import ACMETools

__all__ = [
    "TOOL_DEFINITIONS",
    "CertificateTools",
    "ACMETools",
]
