"""Manager classes for zonecert."""

from .certificate_manager import CertificateManager, IssuanceResult
from .challenge_coordinator import ChallengeCoordinator
from .provider_manager import ProviderManager

__all__ = ["CertificateManager", "IssuanceResult", "ChallengeCoordinator", "ProviderManager"]
