"""Shared plumbing for the MCP tool classes."""

from typing import Any, Callable, Dict, Optional, Union

import anyio

from ..core.logging import get_logger
from ..managers.certificate_manager import CertificateManager


class BaseTool:
    """Base class for tools that work against a certificate manager."""

    def __init__(self, name: str, certificate_manager: CertificateManager):
        """Initialize base tool.

        Args:
            name: Tool group name for logging
            certificate_manager: Manager the tools delegate to
        """
        self.name = name
        self.certificate_manager = certificate_manager
        self.logger = get_logger(f"tools.{name}")

    async def _run_blocking(self, func: Callable[..., Any], *args: Any) -> Any:
        # Issuance blocks on DNS providers and the CA.
        return await anyio.to_thread.run_sync(lambda: func(*args))

    def _format_success(
        self,
        message: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        result = {"success": True, "message": message}
        if data:
            result.update(data)
        return result

    def _format_error(
        self,
        error: Union[str, Exception],
        data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Error response; exceptions also report their class as ``error_type``."""
        result: Dict[str, Any] = {"success": False, "error": str(error)}
        if isinstance(error, Exception):
            result["error_type"] = type(error).__name__
        if data:
            result.update(data)
        return result
