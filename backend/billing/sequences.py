# billing/sequences.py
"""
Document number sequencing.

next_document_number() draws the next formatted number for a document
type in one atomic step:

    UPDATE numbering_sequence SET next_number = next_number + 1
    WHERE document_type = %s

The UPDATE takes the row lock (PostgreSQL) or the database write lock
(SQLite in IMMEDIATE mode), so the increment and the read that follows
it are indivisible. Two callers can never observe the same value.

When no row exists yet, one is seeded from the number of existing
documents of that type. The seed insert runs in a savepoint; losing
the insert race to another caller falls through to the UPDATE path
against the row that caller created.

Call it inside the transaction that inserts the document. If the
document insert fails, the increment rolls back with it.
"""

import logging

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from billing.exceptions import NumberingConflictError
from billing.fiscal import financial_year_label
from billing.models import (
    Bill,
    CreditNote,
    DebitNote,
    Invoice,
    NumberingSequence,
    PaymentMade,
    PaymentReceived,
)
from ops.metrics import record_number_issued, record_numbering_conflict

logger = logging.getLogger(__name__)

DocumentType = NumberingSequence.DocumentType

DOCUMENT_MODELS = {
    DocumentType.INVOICE: Invoice,
    DocumentType.BILL: Bill,
    DocumentType.CREDIT_NOTE: CreditNote,
    DocumentType.DEBIT_NOTE: DebitNote,
    DocumentType.PAYMENT_RECEIVED: PaymentReceived,
    DocumentType.PAYMENT_MADE: PaymentMade,
}


def format_document_number(
    prefix: str,
    number: int,
    separator: str = "-",
    padding_digits: int = 4,
    suffix: str = "",
    financial_year: str = "",
) -> str:
    """
    prefix + sep + [FY label + sep] + zero-padded number [+ sep + suffix]

    >>> format_document_number("INV", 7)
    'INV-0007'
    >>> format_document_number("INV", 7, financial_year="24-25")
    'INV-24-25-0007'
    """
    parts = [prefix]
    if financial_year:
        parts.append(financial_year)
    parts.append(str(number).zfill(padding_digits))
    if suffix:
        parts.append(suffix)
    return separator.join(parts)


def format_for_sequence(seq: NumberingSequence, number: int, on_date=None) -> str:
    fy_label = ""
    if seq.include_financial_year:
        fy_label = financial_year_label(
            on_date or timezone.localdate(),
            seq.financial_year_format,
        )
    return format_document_number(
        seq.prefix,
        number,
        separator=seq.separator,
        padding_digits=seq.padding_digits,
        suffix=seq.suffix,
        financial_year=fy_label,
    )


def _numbering_defaults(document_type: str) -> dict:
    defaults = settings.NUMBERING_DEFAULTS
    return {
        "prefix": defaults["prefixes"].get(document_type, document_type[:3].upper()),
        "separator": defaults["separator"],
        "padding_digits": defaults["padding_digits"],
    }


def _existing_document_count(document_type: str) -> int:
    # Soft-deleted rows keep their numbers, so they are counted too.
    return DOCUMENT_MODELS[document_type].objects.count()


def _increment(document_type: str):
    """Advance the counter; return (sequence, issued number) or None if no row."""
    updated = NumberingSequence.objects.filter(
        document_type=document_type,
    ).update(next_number=F("next_number") + 1, updated_at=timezone.now())
    if not updated:
        return None
    seq = NumberingSequence.objects.get(document_type=document_type)
    return seq, seq.next_number - 1


def _bootstrap(document_type: str):
    """
    Seed a missing sequence row and claim its first number.

    Returns None when another caller seeded the row first.
    """
    issued = _existing_document_count(document_type) + 1
    try:
        with transaction.atomic():
            seq = NumberingSequence.objects.create(
                document_type=document_type,
                next_number=issued + 1,
                **_numbering_defaults(document_type),
            )
    except IntegrityError:
        return None

    logger.warning(
        "Seeded numbering sequence from existing document count",
        extra={"document_type": document_type, "next_number": seq.next_number},
    )
    return seq, issued


def _conflict(
    document_type: str, message: str, cause: str, error: str = "",
) -> NumberingConflictError:
    """Count and log a failed numbering step; return the error to raise."""
    record_numbering_conflict(document_type)
    logger.error(
        "Numbering step failed",
        extra={"document_type": document_type, "cause": cause, "error": error},
    )
    return NumberingConflictError(message, details={"document_type": document_type, "cause": cause})


def next_document_number(document_type: str, on_date=None) -> str:
    """
    Issue the next formatted number for `document_type`.

    Raises NumberingConflictError when the atomic step cannot complete
    (lock timeout, constraint violation). The caller's transaction is
    expected to roll back in that case.
    """
    if document_type not in DOCUMENT_MODELS:
        raise ValueError(f"Unknown document type: {document_type}")

    try:
        with transaction.atomic():
            drawn = _increment(document_type)
            if drawn is None:
                drawn = _bootstrap(document_type)
            if drawn is None:
                drawn = _increment(document_type)
    except DatabaseError as exc:
        raise _conflict(
            document_type,
            f"Could not allocate a {document_type} number.",
            cause=exc.__class__.__name__,
            error=str(exc),
        ) from exc

    if drawn is None:
        raise _conflict(
            document_type,
            "Numbering sequence row could not be created or locked.",
            cause="missing_row",
        )
    seq, number = drawn

    formatted = format_for_sequence(seq, number, on_date)
    record_number_issued(document_type)
    logger.info(
        "Issued document number",
        extra={"document_type": document_type, "document_number": formatted},
    )
    return formatted


def peek_next_number(document_type: str, on_date=None) -> str:
    """Preview the number the next draw would issue. Does not consume it."""
    seq = NumberingSequence.objects.filter(document_type=document_type).first()
    if seq is None:
        defaults = _numbering_defaults(document_type)
        return format_document_number(
            defaults["prefix"],
            _existing_document_count(document_type) + 1,
            separator=defaults["separator"],
            padding_digits=defaults["padding_digits"],
        )
    return format_for_sequence(seq, seq.next_number, on_date)


@transaction.atomic
def configure_sequence(document_type: str, **changes) -> NumberingSequence:
    """
    Create or edit the numbering settings for a document type.

    next_number is never lowered, even if a concurrent draw advanced it
    after the caller read the row.
    """
    seq = NumberingSequence.objects.select_for_update().filter(
        document_type=document_type,
    ).first()
    if seq is None:
        seq = NumberingSequence(
            document_type=document_type,
            next_number=_existing_document_count(document_type) + 1,
            **_numbering_defaults(document_type),
        )

    requested = changes.pop("next_number", None)
    if requested is not None:
        seq.next_number = max(seq.next_number, requested)
    for field, value in changes.items():
        setattr(seq, field, value)
    seq.save()

    logger.info(
        "Numbering settings saved",
        extra={"document_type": document_type, "next_number": seq.next_number},
    )
    return seq
