"""
Invoice number format -- ``INV-YYYYMM-XXXX``.

Pure helpers shared by the allocator and the stores: the partition prefix
for a point in time, formatting a sequence into a number, and parsing the
sequence back out.  The allocation protocol itself lives in
``invoice_kernel.services.invoice_number_allocator``.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

NUMBER_PREFIX = "INV"
SEQUENCE_WIDTH = 4
MAX_SEQUENCE = 10**SEQUENCE_WIDTH - 1

_NUMBER_RE = re.compile(rf"^{NUMBER_PREFIX}-(\d{{6}})-(\d{{{SEQUENCE_WIDTH}}})$")


def partition_prefix(at: datetime) -> str:
    """Prefix shared by every number allocated in the month of ``at`` (UTC)."""
    if at.tzinfo is not None:
        at = at.astimezone(timezone.utc)
    return f"{NUMBER_PREFIX}-{at.year:04d}{at.month:02d}-"


def format_number(prefix: str, sequence: int) -> str:
    if not 1 <= sequence <= MAX_SEQUENCE:
        raise ValueError(f"Sequence out of range: {sequence}")
    return f"{prefix}{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(invoice_number: str) -> int:
    """
    Extract the trailing sequence of an invoice number.

    Raises:
        ValueError: If the number does not match ``INV-YYYYMM-XXXX``.
    """
    match = _NUMBER_RE.match(invoice_number)
    if match is None:
        raise ValueError(f"Malformed invoice number: {invoice_number!r}")
    return int(match.group(2))
