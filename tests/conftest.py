"""Shared fixtures: throwaway certificates and a certbot directory layout."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Sequence

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import NameOID

from lecert.core.config import AppConfig, LecertConfig
from lecert.core.context import ExecutionContext
from lecert.core.output import Console


NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def make_certificate(
    common_name: str,
    not_after: datetime,
    sans: Sequence[str] = (),
    der: bool = False,
) -> bytes:
    """Create a self-signed certificate."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_after - timedelta(days=90))
        .not_valid_after(not_after)
    )
    if sans:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(s) for s in sans]),
            critical=False,
        )
    cert = builder.sign(key, hashes.SHA256())
    return cert.public_bytes(Encoding.DER if der else Encoding.PEM)


@pytest.fixture
def letsencrypt_dir(tmp_path: Path) -> Path:
    """Empty certbot layout with live/ and renewal/."""
    root = tmp_path / "letsencrypt"
    (root / "live").mkdir(parents=True)
    (root / "renewal").mkdir()
    return root


@pytest.fixture
def add_live_cert(letsencrypt_dir: Path) -> Callable[..., Path]:
    """Write live/<name>/cert.pem and return its path."""

    def _add(name: str, common_name: str, days: float, sans: Sequence[str] = ()) -> Path:
        cert_dir = letsencrypt_dir / "live" / name
        cert_dir.mkdir()
        cert_file = cert_dir / "cert.pem"
        cert_file.write_bytes(make_certificate(common_name, NOW + timedelta(days=days), sans))
        return cert_file

    return _add


@pytest.fixture
def add_renewal_conf(letsencrypt_dir: Path) -> Callable[[str, str], Path]:
    """Write renewal/<name>.conf with the given authenticator."""

    def _add(name: str, authenticator: str) -> Path:
        conf = letsencrypt_dir / "renewal" / f"{name}.conf"
        conf.write_text(
            "# renew_before_expiry = 30 days\n"
            "version = 2.9.0\n"
            f"archive_dir = /etc/letsencrypt/archive/{name}\n"
            "\n"
            "[renewalparams]\n"
            "account = 0123456789abcdef\n"
            f"authenticator = {authenticator}\n"
            "server = https://acme-v02.api.letsencrypt.org/directory\n"
        )
        return conf

    return _add


@pytest.fixture
def settings(letsencrypt_dir: Path, tmp_path: Path) -> LecertConfig:
    return LecertConfig(
        letsencrypt_dir=letsencrypt_dir,
        audit_log=tmp_path / "audit.log",
    )


@pytest.fixture
def ctx(settings: LecertConfig, monkeypatch: pytest.MonkeyPatch) -> ExecutionContext:
    """Context with a private console and the temporary certbot layout."""
    monkeypatch.delenv("LETSENCRYPT_EMAIL", raising=False)
    return ExecutionContext(
        no_color=True,
        _config=AppConfig(config=settings),
        _console=Console(),
    )


@pytest.fixture
def now() -> datetime:
    """Fixed clock for day arithmetic."""
    return NOW


@pytest.fixture
def cert_factory() -> Callable[..., bytes]:
    return make_certificate
