"""Certificate table rendering.

Pure presentation: takes already sorted records and prints them. Each row
gets at most one highlight, expired taking precedence over the
expiring-soon warning.
"""

from typing import Optional, Sequence

from rich import box
from rich.table import Table
from rich.text import Text

from lecert.core.output import Console
from lecert.services.inventory import CertificateRecord


# (header, max width)
COLUMNS: list[tuple[str, int]] = [
    ("CERTIFICATE", 24),
    ("DOMAIN", 29),
    ("EXPIRES", 24),
    ("DAYS LEFT", 12),
    ("STATUS", 8),
    ("RENEWAL METHOD", 19),
]

EXPIRED_STYLE = "red"
WARNING_STYLE = "yellow"

NO_CERTIFICATES = "No certificates found."


def truncate(value: str, width: int) -> str:
    return value[:width]


class CertificateTable:
    """Renders the certificate inventory.

    Args:
        color_enabled: Emit row highlights; resolved once at startup
        warning_days: Valid rows with fewer days left are highlighted
    """

    def __init__(self, color_enabled: bool, warning_days: int = 30) -> None:
        self.color_enabled = color_enabled
        self.warning_days = warning_days

    def highlight(self, record: CertificateRecord) -> Optional[str]:
        """Highlight tier regardless of color support."""
        if record.is_expired:
            return EXPIRED_STYLE
        if record.days_left < self.warning_days:
            return WARNING_STYLE
        return None

    def row_style(self, record: CertificateRecord) -> Optional[str]:
        if not self.color_enabled:
            return None
        return self.highlight(record)

    def row(self, record: CertificateRecord) -> list[str]:
        values = [
            record.name,
            record.domain,
            record.expiry_display,
            str(record.days_left),
            record.status.value,
            record.renewal_method,
        ]
        return [truncate(value, width) for value, (_, width) in zip(values, COLUMNS)]

    def build(self, records: Sequence[CertificateRecord]) -> Table:
        table = Table(box=box.SIMPLE_HEAD, show_edge=False, pad_edge=False)
        for header, width in COLUMNS:
            table.add_column(header, min_width=min(len(header), width), max_width=width, no_wrap=True)
        for record in records:
            table.add_row(*(Text(cell) for cell in self.row(record)), style=self.row_style(record))
        return table

    def legend(self) -> str:
        if not self.color_enabled:
            return f"Legend: EXPIRED rows are expired, DAYS LEFT < {self.warning_days} expires soon"
        return (
            f"Legend: [{EXPIRED_STYLE}]Red = Expired[/{EXPIRED_STYLE}], "
            f"[{WARNING_STYLE}]Yellow = Expires in <{self.warning_days} days[/{WARNING_STYLE}]"
        )

    def render(self, console: Console, records: Sequence[CertificateRecord]) -> None:
        """Print the table, or a notice when there is nothing to show."""
        if not records:
            console.print(NO_CERTIFICATES)
            return

        console.print()
        console.print(self.build(records))
        console.print()
        console.print(self.legend())

    def render_menu(self, console: Console, records: Sequence[CertificateRecord]) -> None:
        """Print a numbered selection list."""
        for index, record in enumerate(records, start=1):
            line = Text(
                f"{index:2d}. {truncate(record.name, 24):<25} "
                f"{truncate(record.domain, 29):<30} {record.status.value:<8}"
            )
            console.print(line, style=self.row_style(record))
