"""Input validation utilities.

Provides validation for:
- Email addresses used for ACME registration
- Domain names (including wildcard domains)
- ACME server URLs
- Filesystem paths (with traversal prevention)

All validators return the validated value or raise ValidationError.
"""

import re
from typing import Optional
from urllib.parse import urlparse

from lecert.core.exceptions import ValidationError


# Loose RFC 5322 subset: local@domain.tld, no whitespace
EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}$")

# One DNS label (RFC 1123)
LABEL_PATTERN = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")

MAX_DOMAIN_LENGTH = 253

WILDCARD_PREFIX = "*."


def validate_email(value: str) -> str:
    """Validate an email address for ACME account registration.

    Args:
        value: Email address

    Returns:
        The stripped email address

    Raises:
        ValidationError: If the address is malformed
    """
    value = value.strip()

    if not value:
        raise ValidationError(
            "Email address cannot be empty",
            hint="Set LETSENCRYPT_EMAIL or enter an address at the prompt",
        )

    if not EMAIL_PATTERN.match(value):
        raise ValidationError(
            f"Invalid email address: '{value}'",
            hint="Use an address like ops@example.com",
        )

    return value


def validate_domain(value: str, allow_wildcard: bool = True) -> str:
    """Validate a domain name.

    Rules:
    - Labels of 1-63 letters, digits or hyphens
    - No leading or trailing hyphen in a label
    - At most 253 characters overall
    - Optional leading '*.' when allow_wildcard is set

    Args:
        value: Domain name to validate
        allow_wildcard: Accept a leading wildcard label

    Returns:
        The validated domain

    Raises:
        ValidationError: If validation fails
    """
    value = value.strip()

    if not value:
        raise ValidationError("Domain cannot be empty")

    name = value
    if name.startswith(WILDCARD_PREFIX):
        if not allow_wildcard:
            raise ValidationError(
                f"Wildcard domain not allowed here: {value}",
                hint=f"Use {name[len(WILDCARD_PREFIX):]} instead",
            )
        name = name[len(WILDCARD_PREFIX):]

    if len(name) > MAX_DOMAIN_LENGTH:
        raise ValidationError(
            f"Domain exceeds maximum length ({len(name)} > {MAX_DOMAIN_LENGTH})",
        )

    labels = name.rstrip(".").split(".")
    if len(labels) < 2 or not all(LABEL_PATTERN.match(label) for label in labels):
        raise ValidationError(
            f"Invalid domain name: '{value}'",
            hint="Use a fully qualified name like example.com or *.example.com",
        )

    return value


def validate_url(
    value: str,
    require_https: bool = False,
    allowed_schemes: Optional[frozenset[str]] = None,
) -> str:
    """Validate a URL.

    Args:
        value: URL to validate
        require_https: If True, only HTTPS URLs are allowed
        allowed_schemes: Set of allowed schemes (default: http, https)

    Returns:
        The validated URL

    Raises:
        ValidationError: If validation fails
    """
    value = value.strip()

    if not allowed_schemes:
        allowed_schemes = frozenset({"http", "https"})

    try:
        parsed = urlparse(value)
    except ValueError as e:
        raise ValidationError(
            f"Invalid URL format: {value}",
            hint="Provide a valid URL",
            details=[str(e)],
        ) from e

    if not parsed.scheme:
        raise ValidationError(
            f"URL must include a scheme: {value}",
            hint=f"Use https://{value}",
        )

    if parsed.scheme.lower() not in allowed_schemes:
        raise ValidationError(
            f"URL scheme '{parsed.scheme}' not allowed",
            hint=f"Use one of: {', '.join(sorted(allowed_schemes))}",
        )

    if require_https and parsed.scheme.lower() != "https":
        raise ValidationError(
            "HTTPS is required for ACME servers",
            hint=f"Change {parsed.scheme}:// to https://",
        )

    if not parsed.netloc:
        raise ValidationError(
            f"URL must include a host: {value}",
            hint="Provide a complete URL like https://acme-v02.api.letsencrypt.org/directory",
        )

    return value


def validate_path(value: str, must_be_absolute: bool = True) -> str:
    """Validate a directory path with traversal prevention.

    Args:
        value: Path to validate
        must_be_absolute: Require absolute path

    Returns:
        The validated path

    Raises:
        ValidationError: If validation fails
    """
    dangerous_patterns = ["..", "$", "`", "|", ";", "&", "\n", "\r", "\x00"]

    for pattern in dangerous_patterns:
        if pattern in value:
            raise ValidationError(
                f"Path contains dangerous pattern: {repr(pattern)}",
                hint="Use a simple path without special characters",
            )

    if must_be_absolute and not value.startswith("/"):
        raise ValidationError(
            f"Path must be absolute: {value}",
            hint=f"Use /{value}",
        )

    return value
