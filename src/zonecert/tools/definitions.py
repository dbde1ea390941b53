"""Tool descriptions for MCP tools."""

# Issuance Tools (2)
GET_CERTS_DESC = """Issue or renew every configured certificate (or only the one named).
Validates that all names are covered by managed zones, publishes DNS-01 records through
zone reconciliation and returns a per-certificate result (changed, action, error)."""

ISSUE_OR_RENEW_CERTIFICATE_DESC = """Issue or renew a single configured certificate.
Does nothing when the stored certificate has the requested names and enough days remaining."""

# Certificate Check Tools (3)
LIST_STORED_CERTIFICATES_DESC = """List all certificates in the certificate store.
Returns certificate names with their domains, expiry dates and status."""

GET_CERTIFICATE_INFO_DESC = """Get detailed information about a stored certificate.
Returns subject, issuer, SANs, fingerprint, validity period and status."""

CHECK_CERTIFICATE_EXPIRY_DESC = """Check the expiry status of a stored certificate.
Returns days remaining and expiry status (valid, expiring_soon, expired)."""

# Zone Tools (1)
LIST_ZONES_DESC = """List all DNS zones under management.
Returns zone names, their provider instances and the number of desired records."""

# System Tools (2)
HEALTH_CHECK_DESC = """Check the health status of the certificate server.
Returns server status, configured provider count and system information."""

GET_SERVER_INFO_DESC = """Get information about the certificate server.
Returns server name, version, ACME directory, available tools and configuration summary."""

# Tool definitions for registration
TOOL_DEFINITIONS = {
    # Issuance
    "get_certs": GET_CERTS_DESC,
    "issue_or_renew_certificate": ISSUE_OR_RENEW_CERTIFICATE_DESC,

    # Certificate Check
    "list_stored_certificates": LIST_STORED_CERTIFICATES_DESC,
    "get_certificate_info": GET_CERTIFICATE_INFO_DESC,
    "check_certificate_expiry": CHECK_CERTIFICATE_EXPIRY_DESC,

    # Zones
    "list_zones": LIST_ZONES_DESC,

    # System
    "health_check": HEALTH_CHECK_DESC,
    "get_server_info": GET_SERVER_INFO_DESC,
}
