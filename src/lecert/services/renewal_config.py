"""Renewal method detection.

certbot keeps one ``renewal/<name>.conf`` per certificate. The file is
INI-like; the line that matters is ``authenticator = <plugin>`` inside the
``[renewalparams]`` section.
"""

import re
from pathlib import Path

from lecert.services.certificates import CERT_FILENAME


KEY_VALUE_LINE = re.compile(r"^\s*(?P<key>[A-Za-z0-9_.\-]+)\s*=\s*(?P<value>.*?)\s*$")

AUTHENTICATOR_LABELS = {
    "webroot": "Certbot (Webroot)",
    "nginx": "Certbot (Nginx)",
    "apache": "Certbot (Apache)",
    "standalone": "Certbot (Standalone)",
}

DNS_AUTHENTICATOR_PREFIX = "dns-"
DNS_LABEL = "Certbot (DNS)"
MANUAL_LABEL = "Manual/Other"
UNKNOWN_LABEL = "Unknown"


def parse_renewal_config(text: str) -> dict[str, str]:
    """Parse key = value lines.

    Comments (``#``/``;``) and ``[section]`` headers are skipped; the first
    occurrence of a key wins.
    """
    values: dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped[0] in "#;[":
            continue
        match = KEY_VALUE_LINE.match(line)
        if match:
            values.setdefault(match.group("key"), match.group("value"))
    return values


def authenticator_label(authenticator: str) -> str:
    """Map a certbot authenticator plugin name to a display label."""
    authenticator = authenticator.strip()
    if authenticator in AUTHENTICATOR_LABELS:
        return AUTHENTICATOR_LABELS[authenticator]
    if authenticator.startswith(DNS_AUTHENTICATOR_PREFIX):
        return DNS_LABEL
    return f"Certbot ({authenticator or UNKNOWN_LABEL})"


def resolve_renewal_method(name: str, renewal_dir: Path, live_dir: Path) -> str:
    """Work out how a certificate gets renewed.

    Args:
        name: Certificate name
        renewal_dir: certbot renewal config directory
        live_dir: certbot live certificate directory

    Returns:
        Authenticator label if a renewal config exists, "Manual/Other" if
        only certificate material exists, otherwise "Unknown"
    """
    config_file = renewal_dir / f"{name}.conf"
    try:
        text = config_file.read_text()
    except (OSError, UnicodeDecodeError):
        text = None

    if text is not None:
        return authenticator_label(parse_renewal_config(text).get("authenticator", ""))

    try:
        has_material = (live_dir / name / CERT_FILENAME).is_file()
    except OSError:
        has_material = False

    return MANUAL_LABEL if has_material else UNKNOWN_LABEL
