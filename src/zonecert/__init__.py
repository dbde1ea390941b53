"""zonecert - ACME DNS-01 certificates for declaratively managed DNS zones."""

__version__ = "1.0.0"
