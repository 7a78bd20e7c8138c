"""
Module: invoice_kernel.db.types
Responsibility: Column types that keep monetary values and timestamps exact
    across every supported backend.
Architecture position: Kernel > DB.  May be imported by models/ and store/.
    MUST NOT import from either of those layers.

Invariants enforced:
    - Money columns hold integer minor units (cents).  No floating or
      backend-specific NUMERIC conversion ever touches an amount, so sums
      and sorts done in SQL are exact and SQLite behaves like PostgreSQL.
    - Timestamp columns always return timezone-aware UTC datetimes.
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime
from sqlalchemy.types import TypeDecorator

from invoice_kernel.domain.values import Money, quantize

MINOR_UNIT_FACTOR = 100


class MoneyMinorUnits(TypeDecorator):
    """
    Money stored as a BigInteger count of cents.

    Guarantees:
        - process_bind_param: Money | Decimal -> int cents.
        - process_result_value: int cents -> Money.
    """

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, Money):
            return value.minor_units
        return int(quantize(Decimal(value)) * MINOR_UNIT_FACTOR)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Money.from_minor_units(int(value))


class DecimalMinorUnits(TypeDecorator):
    """
    Plain 2-place Decimal (tax rates) stored as integer hundredths.
    """

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int(quantize(Decimal(value)) * MINOR_UNIT_FACTOR)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return quantize(Decimal(int(value)) / MINOR_UNIT_FACTOR)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC timestamp.

    SQLite returns naive datetimes; they are re-tagged as UTC on load.
    Naive values bound on write are assumed to already be UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
