"""Service layer: certbot registry, certificate files, inventory, renewal and web servers."""

from lecert.services.certbot import CertbotRegistry, RegistryEntry
from lecert.services.inventory import CertificateRecord, CertificateScanner, CertStatus, Inventory
from lecert.services.renewal import RenewalRunner, build_renewal_command
from lecert.services.systemd import WebServerManager

__all__ = [
    "CertbotRegistry",
    "RegistryEntry",
    "CertificateRecord",
    "CertificateScanner",
    "CertStatus",
    "Inventory",
    "RenewalRunner",
    "build_renewal_command",
    "WebServerManager",
]
