"""
Invoice number allocation.

Numbers look like INV<year><seq>: INV20260001, INV20260002, ... The sequence
restarts at 1 each calendar year and is zero-padded to four digits. Past 9999
the padding simply grows (INV202610000); there is no upper bound.

Allocation is one upsert on invoice_sequences, executed inside the caller's
transaction. The upsert locks the year's row until that transaction ends, so
concurrent creators queue behind each other instead of reading the same
maximum, and a rolled-back invoice also rolls back its increment.
"""

import logging

from clients.postgres_client import Transaction
from utils.timezone import current_year

logger = logging.getLogger(__name__)

INVOICE_PREFIX = "INV"
SEQUENCE_WIDTH = 4

# First use of a year seeds from the highest number already on file for it,
# so imported invoices are never reissued.
_ALLOCATE_SQL = """
    INSERT INTO invoice_sequences (year, last_value)
    VALUES (
        %s,
        COALESCE(
            (SELECT MAX(CAST(SUBSTRING(number FROM %s) AS INTEGER))
             FROM invoices
             WHERE number LIKE %s),
            0
        ) + 1
    )
    ON CONFLICT (year) DO UPDATE
        SET last_value = invoice_sequences.last_value + 1
    RETURNING last_value
"""


def format_invoice_number(year: int, sequence: int) -> str:
    """INV + four-digit year + sequence padded to SEQUENCE_WIDTH."""
    return f"{INVOICE_PREFIX}{year}{sequence:0{SEQUENCE_WIDTH}d}"


def next_invoice_number(tx: Transaction, year: int | None = None) -> str:
    """
    Allocate the next invoice number for a year.

    Args:
        tx: Open transaction the new invoice will be inserted in
        year: Calendar year (defaults to the current UTC year)

    Returns:
        Formatted invoice number, unique for the year
    """
    if year is None:
        year = current_year()

    prefix = f"{INVOICE_PREFIX}{year}"
    sequence = tx.execute_scalar(
        _ALLOCATE_SQL,
        (year, len(prefix) + 1, f"{prefix}%")
    )

    number = format_invoice_number(year, sequence)
    logger.info("Allocated invoice number %s", number)
    return number
