"""Certificate inventory.

Builds one CertificateRecord per certificate from the certbot registry and
the live certificate tree, classifies each by days until expiry and sorts
them so the most urgent certificates come first.

Records are snapshots: they are rebuilt on every run and never written
anywhere. certbot's own state stays the source of truth.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Iterable, Optional

from lecert.core.config import LecertConfig
from lecert.core.context import ExecutionContext
from lecert.services.certbot import CertbotRegistry
from lecert.services.certificates import iter_live_certificates, read_certificate_info
from lecert.services.renewal_config import resolve_renewal_method


ONE_DAY = timedelta(days=1)

# Fixed-width numeric part of the sort key
SORT_KEY_WIDTH = 10
SORT_KEY_MAX = 10 ** SORT_KEY_WIDTH - 1

EXPIRED_TIER = "0"
VALID_TIER = "1"

EXPIRY_DISPLAY_FORMAT = "%Y-%m-%d %H:%M UTC"


class CertStatus(str, Enum):
    """Certificate validity."""
    VALID = "VALID"
    EXPIRED = "EXPIRED"


class RecordSource(str, Enum):
    """Where a record was discovered."""
    REGISTRY = "certbot"
    FILESYSTEM = "file"


def days_until(expiry: datetime, now: datetime) -> int:
    """Whole days from now until expiry, floored.

    Uses the exact time delta rather than calendar dates, so a certificate
    expiring at 08:00 tomorrow has 0 days left at 09:00 today.
    """
    return (expiry - now) // ONE_DAY


def classify(days_left: int) -> CertStatus:
    """EXPIRED for negative days left, VALID otherwise (0 is still valid)."""
    return CertStatus.EXPIRED if days_left < 0 else CertStatus.VALID


def sort_key(days_left: int) -> str:
    """Lexically sortable key: expired first (most overdue first), then valid
    by days remaining.

    The key is a tier digit followed by a zero-padded 10-digit number.
    Expired certificates store the complement of their days overdue so that
    ascending string order puts the oldest expiry first.
    """
    if days_left < 0:
        overdue = min(-days_left, SORT_KEY_MAX)
        return f"{EXPIRED_TIER}{SORT_KEY_MAX - overdue:0{SORT_KEY_WIDTH}d}"
    return f"{VALID_TIER}{min(days_left, SORT_KEY_MAX):0{SORT_KEY_WIDTH}d}"


@dataclass(frozen=True)
class CertificateRecord:
    """Snapshot of one certificate."""
    name: str
    domain: str
    expiry: datetime
    days_left: int
    status: CertStatus
    renewal_method: str
    source: RecordSource = RecordSource.REGISTRY
    domains: tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        *,
        name: str,
        domain: str,
        expiry: datetime,
        renewal_method: str,
        now: datetime,
        source: RecordSource = RecordSource.REGISTRY,
        domains: tuple[str, ...] = (),
    ) -> "CertificateRecord":
        """Create a record, deriving days_left and status from expiry."""
        days_left = days_until(expiry, now)
        return cls(
            name=name,
            domain=domain,
            expiry=expiry,
            days_left=days_left,
            status=classify(days_left),
            renewal_method=renewal_method,
            source=source,
            domains=domains or ((domain,) if domain else ()),
        )

    @property
    def sort_key(self) -> str:
        return sort_key(self.days_left)

    @property
    def is_expired(self) -> bool:
        return self.status is CertStatus.EXPIRED

    @property
    def expiry_display(self) -> str:
        return self.expiry.astimezone(timezone.utc).strftime(EXPIRY_DISPLAY_FORMAT)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "name": self.name,
            "domain": self.domain,
            "domains": list(self.domains),
            "expiry": self.expiry.isoformat(),
            "days_left": self.days_left,
            "status": self.status.value,
            "renewal_method": self.renewal_method,
            "source": self.source.value,
        }


def sort_records(records: Iterable[CertificateRecord]) -> list[CertificateRecord]:
    """Sort by sort key; ties keep discovery order."""
    return sorted(records, key=lambda record: record.sort_key)


@dataclass
class Inventory:
    """Result of one scan."""
    records: list[CertificateRecord] = field(default_factory=list)
    registry_scanned: bool = False
    filesystem_scanned: bool = False
    skipped: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def expired(self) -> list[CertificateRecord]:
        return [r for r in self.records if r.is_expired]

    def expiring_soon(self, threshold_days: int) -> list[CertificateRecord]:
        """Valid certificates with fewer than threshold_days left."""
        return [
            r for r in self.records
            if not r.is_expired and r.days_left < threshold_days
        ]

    def __len__(self) -> int:
        return len(self.records)


class CertificateScanner:
    """Collect certificates from certbot and the live directory.

    The registry pass runs first. The filesystem pass then adds any
    certificate whose name the registry did not report; a name already
    seen is skipped, never overwritten.
    """

    def __init__(
        self,
        ctx: ExecutionContext,
        registry: CertbotRegistry,
        config: LecertConfig,
    ) -> None:
        self.ctx = ctx
        self.registry = registry
        self.config = config

    def _method(self, name: str) -> str:
        return resolve_renewal_method(name, self.config.renewal_dir, self.config.live_dir)

    def scan(self, now: Optional[datetime] = None) -> Inventory:
        """Scan both sources and return the sorted inventory."""
        now = now or datetime.now(timezone.utc)
        inventory = Inventory()
        records: dict[str, CertificateRecord] = {}

        if self.registry.is_available():
            self.ctx.console.step("Scanning with certbot...")
            inventory.registry_scanned = True
            for entry in self.registry.list_entries():
                if entry.name in records:
                    continue
                records[entry.name] = CertificateRecord.build(
                    name=entry.name,
                    domain=entry.primary_domain,
                    expiry=entry.expiry,
                    renewal_method=self._method(entry.name),
                    now=now,
                    source=RecordSource.REGISTRY,
                    domains=entry.domains,
                )

        live_dir = self.config.live_dir
        if live_dir.is_dir():
            self.ctx.console.step("Scanning certificate files...")
            inventory.filesystem_scanned = True
            if not os.access(live_dir, os.R_OK | os.X_OK):
                self.ctx.console.warn(f"Cannot read {live_dir}")
                self.ctx.console.hint("Run with sudo to include certificate files")
            for name, cert_path in iter_live_certificates(live_dir):
                if name in records:
                    self.ctx.console.debug(f"{name}: already reported by certbot")
                    continue
                info = read_certificate_info(cert_path)
                if info is None:
                    self.ctx.console.debug(f"{name}: unreadable certificate {cert_path}")
                    inventory.skipped.append(name)
                    continue
                records[name] = CertificateRecord.build(
                    name=name,
                    domain=info.common_name,
                    expiry=info.expiry,
                    renewal_method=self._method(name),
                    now=now,
                    source=RecordSource.FILESYSTEM,
                    domains=info.sans or ((info.common_name,) if info.common_name else ()),
                )

        inventory.records = sort_records(records.values())
        return inventory
