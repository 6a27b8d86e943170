# billing/commands.py
"""
Command layer for billing operations.

Commands are the single point where documents and payments change.
Views call commands; commands enforce the business rules.

Pattern:
1. Look up and lock the rows being changed
2. Apply business rules (paid documents are immutable, ...)
3. Price every line before the first write
4. Draw the document number and write, all in one transaction
5. Return CommandResult

Business-rule rejections return CommandResult.fail(). Infrastructure
failures (NumberingConflictError, IntegrityError) and malformed numbers
(ArithmeticInputError) propagate, so @transaction.atomic rolls back and
no sequence number or partial line item survives.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from billing.exceptions import DocumentNotFound
from billing.models import (
    Bill,
    BillItem,
    CreditNote,
    CreditNoteItem,
    DebitNote,
    DebitNoteItem,
    Invoice,
    InvoiceItem,
    NoteStatus,
    NumberingSequence,
    PaymentMade,
    PaymentMadeAllocation,
    PaymentReceived,
    PaymentReceivedAllocation,
)
from billing.money import ZERO, round_money, to_decimal
from billing.pricing import LineItemInput, PricingContext, balance_due, price_line, roll_up
from billing.rounding import round_to_rupee
from billing.sequences import next_document_number
from parties.models import CompanyProfile, Customer, Vendor

logger = logging.getLogger(__name__)


class CommandResult:
    """
    Wrapper for command results with success/failure info.

    Usage:
        result = create_document(user, INVOICE, customer_id=1, ...)
        if result.success:
            invoice = result.data
        else:
            error_message = result.error
    """

    def __init__(self, success: bool, data=None, error: str = None):
        self.success = success
        self.data = data
        self.error = error

    @classmethod
    def ok(cls, data=None):
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str):
        return cls(success=False, error=error)


# =============================================================================
# Document kinds
# =============================================================================

@dataclass(frozen=True)
class DocumentKind:
    """How one document type is numbered, priced and guarded."""

    name: str
    label: str
    document_type: str
    model: type
    item_model: type
    item_fk: str
    party_field: str
    party_model: type
    default_status: str
    unpaid_status: str
    deletable_statuses: tuple
    line_discounts: bool = True
    document_discount: bool = True
    charges: bool = False
    takes_payments: bool = False
    related_field: Optional[str] = None
    related_model: Optional[type] = None


INVOICE = DocumentKind(
    name="invoice",
    label="Invoice",
    document_type=NumberingSequence.DocumentType.INVOICE,
    model=Invoice,
    item_model=InvoiceItem,
    item_fk="invoice",
    party_field="customer",
    party_model=Customer,
    default_status=Invoice.Status.DRAFT,
    unpaid_status=Invoice.Status.FINAL,
    deletable_statuses=(Invoice.Status.DRAFT,),
    charges=True,
    takes_payments=True,
)

BILL = DocumentKind(
    name="bill",
    label="Bill",
    document_type=NumberingSequence.DocumentType.BILL,
    model=Bill,
    item_model=BillItem,
    item_fk="bill",
    party_field="vendor",
    party_model=Vendor,
    default_status=Bill.Status.PENDING,
    unpaid_status=Bill.Status.PENDING,
    deletable_statuses=(Bill.Status.PENDING, Bill.Status.CANCELLED),
    takes_payments=True,
)

# Notes are priced without line or document discounts.
CREDIT_NOTE = DocumentKind(
    name="credit_note",
    label="Credit note",
    document_type=NumberingSequence.DocumentType.CREDIT_NOTE,
    model=CreditNote,
    item_model=CreditNoteItem,
    item_fk="credit_note",
    party_field="customer",
    party_model=Customer,
    default_status=NoteStatus.DRAFT,
    unpaid_status=NoteStatus.OPEN,
    deletable_statuses=(NoteStatus.DRAFT,),
    line_discounts=False,
    document_discount=False,
    related_field="invoice",
    related_model=Invoice,
)

DEBIT_NOTE = DocumentKind(
    name="debit_note",
    label="Debit note",
    document_type=NumberingSequence.DocumentType.DEBIT_NOTE,
    model=DebitNote,
    item_model=DebitNoteItem,
    item_fk="debit_note",
    party_field="vendor",
    party_model=Vendor,
    default_status=NoteStatus.DRAFT,
    unpaid_status=NoteStatus.OPEN,
    deletable_statuses=(NoteStatus.DRAFT,),
    line_discounts=False,
    document_discount=False,
    related_field="bill",
    related_model=Bill,
)

DOCUMENT_KINDS = {kind.name: kind for kind in (INVOICE, BILL, CREDIT_NOTE, DEBIT_NOTE)}

# Header fields a caller may set directly, per kind.
_COMMON_FIELDS = ("document_date", "due_date", "notes")
_KIND_FIELDS = {
    "invoice": (),
    "bill": ("vendor_invoice_number",),
    "credit_note": ("reason",),
    "debit_note": ("reason",),
}


def _price_items(inputs, context: PricingContext):
    return [price_line(item, context) for item in inputs]


def _parse_items(kind: DocumentKind, items) -> list:
    return [
        LineItemInput.from_payload(item, index=i, allow_discount=kind.line_discounts)
        for i, item in enumerate(items or [])
    ]


def _totals(kind: DocumentKind, priced, data: dict, amount_paid=ZERO, current=None):
    """
    Roll priced lines up to document totals.

    With auto_round_off the invoice total is rounded to the rupee and the
    difference stored as round_off; otherwise round_off is used verbatim.
    """
    def pick(field):
        if field in data:
            return data[field]
        return getattr(current, field, ZERO) if current is not None else ZERO

    discount = pick("discount_amount") if kind.document_discount else ZERO
    shipping = pick("shipping_charge") if kind.charges else ZERO
    round_off = pick("round_off") if kind.charges else ZERO

    if kind.charges and data.get("auto_round_off"):
        unrounded = roll_up(priced, discount, shipping, ZERO, amount_paid)
        _, round_off = round_to_rupee(unrounded.total_amount)

    return roll_up(priced, discount, shipping, round_off, amount_paid)


def _write_items(kind: DocumentKind, document, priced) -> None:
    kind.item_model.objects.bulk_create([
        kind.item_model(**{kind.item_fk: document}, sort_order=i, **line.to_model_fields())
        for i, line in enumerate(priced)
    ])


def _load_document(kind: DocumentKind, document_id, lock: bool = True):
    qs = kind.model.objects.live()
    if lock:
        qs = qs.select_for_update()
    document = qs.filter(pk=document_id).first()
    if document is None:
        raise DocumentNotFound(
            f"{kind.label} not found.",
            details={"document_type": kind.document_type, "id": document_id},
        )
    return document


def _settlement_status(document, unpaid_status: str) -> str:
    """Status implied by amount_paid and balance_due. Cancelled stays cancelled."""
    if document.status == document.CANCELLED:
        return document.status
    if document.balance_due <= ZERO:
        return document.PAID
    if document.amount_paid > ZERO:
        return document.PARTIAL
    return unpaid_status


# =============================================================================
# Document commands
# =============================================================================

@transaction.atomic
def create_document(user, kind: DocumentKind, **data) -> CommandResult:
    """
    Create a document with its priced line items.

    Every line is priced before anything is written. The document
    number is drawn in the same transaction as the insert.
    """
    party_id = data.get(f"{kind.party_field}_id")
    party = kind.party_model.objects.filter(pk=party_id).first()
    if party is None:
        return CommandResult.fail(f"{kind.party_model.__name__} {party_id} not found.")
    if not party.is_active:
        return CommandResult.fail(f"{kind.party_model.__name__} {party_id} is inactive.")

    related = None
    if kind.related_field and data.get(f"{kind.related_field}_id"):
        related = kind.related_model.objects.live().filter(
            pk=data[f"{kind.related_field}_id"],
            **{kind.party_field: party},
        ).first()
        if related is None:
            return CommandResult.fail(
                f"{kind.related_model.__name__} {data[f'{kind.related_field}_id']} not found for this party."
            )

    document_number = (data.get("document_number") or "").strip()
    if document_number and kind.model.objects.filter(document_number=document_number).exists():
        return CommandResult.fail(f"{kind.label} number {document_number} already exists.")

    place_of_supply = data.get("place_of_supply") or party.place_of_supply
    context = PricingContext.for_party(CompanyProfile.current(), party, place_of_supply)
    priced = _price_items(_parse_items(kind, data.get("items")), context)
    totals = _totals(kind, priced, data)

    if not document_number:
        document_number = next_document_number(kind.document_type, data["document_date"])

    fields = {
        field: data[field]
        for field in _COMMON_FIELDS + _KIND_FIELDS[kind.name]
        if data.get(field) is not None
    }
    document = kind.model.objects.create(
        document_number=document_number,
        status=data.get("status") or kind.default_status,
        place_of_supply=place_of_supply or "",
        created_by=user if getattr(user, "is_authenticated", False) else None,
        **{kind.party_field: party},
        **({kind.related_field: related} if kind.related_field else {}),
        **fields,
        **totals.header_fields(include_charges=kind.charges),
    )
    _write_items(kind, document, priced)

    logger.info(
        "Document created",
        extra={
            "document_type": kind.document_type,
            "document_number": document.document_number,
            "party_id": party.pk,
            "total_amount": str(document.total_amount),
        },
    )
    return CommandResult.ok(document)


@transaction.atomic
def update_document(user, kind: DocumentKind, document_id, **data) -> CommandResult:
    """
    Update a document and replace all of its line items.

    Without `items` the stored lines are re-priced as they are, so a
    changed place_of_supply or discount still flows into the totals.
    """
    document = _load_document(kind, document_id)

    if document.status == document.PAID:
        return CommandResult.fail(f"Cannot update a fully paid {kind.label.lower()}.")

    party = getattr(document, kind.party_field)

    if "items" in data and data["items"] is not None:
        inputs = _parse_items(kind, data["items"])
    else:
        inputs = [LineItemInput.from_instance(item) for item in document.items.all()]

    if data.get("place_of_supply"):
        document.place_of_supply = data["place_of_supply"]
    context = PricingContext.for_party(
        CompanyProfile.current(), party, document.place_of_supply or None
    )
    priced = _price_items(inputs, context)
    totals = _totals(kind, priced, data, amount_paid=document.amount_paid, current=document)

    for field in _COMMON_FIELDS + _KIND_FIELDS[kind.name]:
        if field in data and data[field] is not None:
            setattr(document, field, data[field])
    if data.get("status"):
        document.status = data["status"]
    for field, value in totals.header_fields(include_charges=kind.charges).items():
        setattr(document, field, value)
    if kind.takes_payments and not data.get("status") and document.amount_paid > ZERO:
        document.status = _settlement_status(document, kind.unpaid_status)
    document.save()

    kind.item_model.objects.filter(**{kind.item_fk: document}).delete()
    _write_items(kind, document, priced)

    logger.info(
        "Document updated",
        extra={
            "document_type": kind.document_type,
            "document_number": document.document_number,
            "line_count": len(priced),
        },
    )
    return CommandResult.ok(document)


@transaction.atomic
def delete_document(user, kind: DocumentKind, document_id) -> CommandResult:
    """Soft-delete a document. Only early-lifecycle statuses may be deleted."""
    document = _load_document(kind, document_id)

    if document.status not in kind.deletable_statuses:
        allowed = ", ".join(kind.deletable_statuses)
        return CommandResult.fail(
            f'Cannot delete {kind.label.lower()} with status "{document.status}". '
            f"Only {allowed} documents can be deleted."
        )

    document.deleted_at = timezone.now()
    document.save(update_fields=["deleted_at", "updated_at"])

    logger.info(
        "Document deleted",
        extra={"document_type": kind.document_type, "document_number": document.document_number},
    )
    return CommandResult.ok(document)


def quote_lines(items, company_state=None, counterparty_state=None,
                company_gstin=None, counterparty_gstin=None, **charges):
    """Price lines and roll up totals without persisting anything."""
    context = PricingContext(
        company_state=company_state,
        counterparty_state=counterparty_state,
        company_gstin=company_gstin,
        counterparty_gstin=counterparty_gstin,
    )
    priced = [price_line(LineItemInput.from_payload(item, index=i), context)
              for i, item in enumerate(items)]
    return priced, roll_up(priced, **charges)


# =============================================================================
# Payments
# =============================================================================

@dataclass(frozen=True)
class PaymentKind:
    name: str
    label: str
    document_type: str
    model: type
    allocation_model: type
    party_field: str
    party_model: type
    target: DocumentKind


PAYMENT_RECEIVED = PaymentKind(
    name="payment_received",
    label="Payment received",
    document_type=NumberingSequence.DocumentType.PAYMENT_RECEIVED,
    model=PaymentReceived,
    allocation_model=PaymentReceivedAllocation,
    party_field="customer",
    party_model=Customer,
    target=INVOICE,
)

PAYMENT_MADE = PaymentKind(
    name="payment_made",
    label="Payment made",
    document_type=NumberingSequence.DocumentType.PAYMENT_MADE,
    model=PaymentMade,
    allocation_model=PaymentMadeAllocation,
    party_field="vendor",
    party_model=Vendor,
    target=BILL,
)


def _home_amount(data: dict) -> tuple[Decimal, str, Optional[Decimal], Decimal]:
    """
    Resolve (amount, currency_code, original_amount, exchange_rate).

    A foreign-currency payment must carry original_amount and
    exchange_rate and is converted at that rate; a home-currency payment
    takes amount as is at rate 1.
    """
    home = settings.HOME_CURRENCY
    currency = (data.get("currency_code") or home).upper()

    if currency != home:
        original = to_decimal(data.get("original_amount"), "original_amount", required=True)
        rate = to_decimal(data.get("exchange_rate"), "exchange_rate", required=True)
        return round_money(original * rate), currency, round_money(original), rate

    amount = round_money(to_decimal(data.get("amount"), "amount", required=True))
    return amount, home, amount, Decimal("1")


def _apply_to_document(document, amount: Decimal, unpaid_status: str) -> None:
    """Add `amount` (negative to reverse) to a document's paid total."""
    document.amount_paid = document.amount_paid + amount
    document.balance_due = balance_due(document.total_amount, document.amount_paid)
    document.status = _settlement_status(document, unpaid_status)
    document.save(update_fields=["amount_paid", "balance_due", "status", "updated_at"])


@transaction.atomic
def record_payment(user, kind: PaymentKind, **data) -> CommandResult:
    """
    Record a payment and allocate it against open documents.

    Each allocation is capped at what remains of the target's balance_due
    after earlier allocations to it in the same payment; the target
    row is locked while it is updated. The unallocated remainder is
    stored as excess_amount.
    """
    party_id = data.get(f"{kind.party_field}_id")
    party = kind.party_model.objects.filter(pk=party_id).first()
    if party is None:
        return CommandResult.fail(f"{kind.party_model.__name__} {party_id} not found.")

    amount, currency, original_amount, rate = _home_amount(data)
    if amount <= ZERO:
        return CommandResult.fail("Payment amount must be greater than zero.")

    target_fk = kind.target.item_fk
    planned = []
    # One locked instance per target; repeated allocations share it.
    targets = {}
    claimed = {}
    total_allocated = ZERO
    for i, alloc in enumerate(data.get("allocations") or []):
        allocated = round_money(to_decimal(
            alloc.get("allocated_amount"), f"allocations[{i}].allocated_amount", required=True
        ))
        if allocated <= ZERO:
            continue
        target_id = alloc.get(f"{target_fk}_id")
        document = targets.get(target_id)
        if document is None:
            document = kind.target.model.objects.live().select_for_update().filter(
                pk=target_id,
                **{kind.party_field: party},
            ).first()
            if document is None:
                return CommandResult.fail(f"{kind.target.label} {target_id} not found for this party.")
            if document.status == document.CANCELLED:
                return CommandResult.fail(
                    f"{kind.target.label} {document.document_number} is cancelled."
                )
            targets[target_id] = document

        remaining = document.balance_due - claimed.get(target_id, ZERO)
        if allocated > remaining:
            logger.info(
                "Allocation exceeds balance due",
                extra={
                    "document_number": document.document_number,
                    "allocated_amount": str(allocated),
                    "balance_due": str(remaining),
                },
            )
            return CommandResult.fail(
                f"Allocation {allocated} exceeds balance due {remaining} "
                f"on {document.document_number}."
            )
        claimed[target_id] = claimed.get(target_id, ZERO) + allocated
        planned.append((document, allocated))
        total_allocated += allocated

    if total_allocated > amount:
        return CommandResult.fail(
            f"Allocations total {total_allocated} exceeds payment amount {amount}."
        )

    payment_number = (data.get("payment_number") or "").strip()
    if payment_number and kind.model.objects.filter(payment_number=payment_number).exists():
        return CommandResult.fail(f"{kind.label} number {payment_number} already exists.")
    if not payment_number:
        payment_number = next_document_number(kind.document_type, data["payment_date"])

    payment = kind.model.objects.create(
        payment_number=payment_number,
        payment_date=data["payment_date"],
        amount=amount,
        currency_code=currency,
        original_amount=original_amount,
        exchange_rate=rate,
        excess_amount=amount - total_allocated,
        payment_mode=data.get("payment_mode") or "",
        reference_number=data.get("reference_number") or "",
        notes=data.get("notes") or "",
        created_by=user if getattr(user, "is_authenticated", False) else None,
        **{kind.party_field: party},
    )

    for document, allocated in planned:
        kind.allocation_model.objects.create(
            payment=payment,
            allocated_amount=allocated,
            **{target_fk: document},
        )
        _apply_to_document(document, allocated, kind.target.unpaid_status)

    logger.info(
        "Payment recorded",
        extra={
            "document_type": kind.document_type,
            "payment_number": payment.payment_number,
            "amount": str(amount),
            "allocated": str(total_allocated),
        },
    )
    return CommandResult.ok(payment)


@transaction.atomic
def delete_payment(user, kind: PaymentKind, payment_id) -> CommandResult:
    """Delete a payment after reversing every allocation it made."""
    payment = kind.model.objects.select_for_update().filter(pk=payment_id).first()
    if payment is None:
        raise DocumentNotFound(
            f"{kind.label} not found.",
            details={"document_type": kind.document_type, "id": payment_id},
        )

    target_fk = kind.target.item_fk
    for allocation in payment.allocations.all():
        document = kind.target.model.objects.select_for_update().get(
            pk=getattr(allocation, f"{target_fk}_id")
        )
        _apply_to_document(document, -allocation.allocated_amount, kind.target.unpaid_status)

    payment_number = payment.payment_number
    payment.delete()

    logger.info(
        "Payment deleted",
        extra={"document_type": kind.document_type, "payment_number": payment_number},
    )
    return CommandResult.ok()
