"""Certificate files on disk.

Reads the ``live/<name>/cert.pem`` tree certbot maintains and extracts the
fields the inventory needs from each certificate.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from cryptography import x509
from cryptography.x509.oid import NameOID


CERT_FILENAME = "cert.pem"


@dataclass(frozen=True)
class CertificateInfo:
    """Fields extracted from an X.509 certificate."""
    common_name: str
    expiry: datetime
    sans: tuple[str, ...] = ()


def load_certificate(data: bytes) -> x509.Certificate:
    """Load a certificate from PEM bytes, falling back to DER."""
    if b"-----BEGIN" in data:
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


def _common_name(cert: x509.Certificate) -> str:
    attrs = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attrs:
        return ""
    value = attrs[0].value
    return value.decode() if isinstance(value, bytes) else value


def _dns_names(cert: x509.Certificate) -> tuple[str, ...]:
    try:
        ext = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return ()
    return tuple(ext.value.get_values_for_type(x509.DNSName))


def parse_certificate(data: bytes) -> CertificateInfo:
    """Extract subject CN, expiry and SAN DNS names.

    Raises:
        ValueError: If the bytes are not a certificate
    """
    cert = load_certificate(data)
    sans = _dns_names(cert)
    common_name = _common_name(cert) or (sans[0] if sans else "")
    return CertificateInfo(
        common_name=common_name,
        expiry=cert.not_valid_after_utc,
        sans=sans,
    )


def read_certificate_info(path: Path) -> Optional[CertificateInfo]:
    """Read and parse a certificate file.

    Returns:
        CertificateInfo, or None if the file is unreadable or malformed
    """
    try:
        return parse_certificate(path.read_bytes())
    except (OSError, ValueError):
        return None


def iter_live_certificates(live_dir: Path) -> Iterator[tuple[str, Path]]:
    """Yield (name, cert path) for each live/<name>/cert.pem, sorted by name."""
    try:
        children = sorted(live_dir.iterdir())
    except OSError:
        return

    for child in children:
        cert_file = child / CERT_FILENAME
        try:
            present = child.is_dir() and cert_file.is_file()
        except OSError:
            continue
        if present:
            yield child.name, cert_file
