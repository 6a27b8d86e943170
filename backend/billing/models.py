# billing/models.py
"""
Billing models.

Documents:
- Invoice / CreditNote: issued to a Customer
- Bill / DebitNote: received from a Vendor

Each document owns its line items (related_name "items"); items are
replaced wholesale on every update. Documents are soft-deleted through
deleted_at. Cancelled and soft-deleted documents never reach a ledger.

Payments:
- PaymentReceived: from a Customer, allocated against Invoices
- PaymentMade: to a Vendor, allocated against Bills

NumberingSequence holds one counter row per document type. Only
billing.sequences writes to it.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from parties.models import Customer, Vendor

MONEY = {"max_digits": 18, "decimal_places": 2, "default": Decimal("0.00")}


class DocumentQuerySet(models.QuerySet):
    def live(self):
        return self.filter(deleted_at__isnull=True)

    def for_ledger(self):
        """Rows that count toward a party's balance."""
        return self.live().exclude(status="Cancelled")


class AccountingDocument(models.Model):
    document_number = models.CharField(max_length=64, unique=True)
    document_date = models.DateField()
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20)
    place_of_supply = models.CharField(max_length=100, blank=True, default="")

    sub_total = models.DecimalField(**MONEY)
    discount_amount = models.DecimalField(**MONEY)
    igst_amount = models.DecimalField(**MONEY)
    cgst_amount = models.DecimalField(**MONEY)
    sgst_amount = models.DecimalField(**MONEY)
    total_tax = models.DecimalField(**MONEY)
    total_amount = models.DecimalField(**MONEY)
    amount_paid = models.DecimalField(**MONEY)
    balance_due = models.DecimalField(**MONEY)

    notes = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = DocumentQuerySet.as_manager()

    # Status values per document type
    PAID = "Paid"
    PARTIAL = "Partial"
    CANCELLED = "Cancelled"

    class Meta:
        abstract = True
        ordering = ["document_date", "id"]

    def __str__(self):
        return self.document_number

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def is_overdue(self, today=None) -> bool:
        """Past its due date and neither settled nor cancelled."""
        if not self.due_date or self.status in (self.PAID, self.CANCELLED):
            return False
        today = today or timezone.localdate()
        return self.due_date < today

    def days_until_due(self, today=None):
        """Days until due; negative once overdue, None without a due date."""
        if not self.due_date:
            return None
        today = today or timezone.localdate()
        return (self.due_date - today).days


class Invoice(AccountingDocument):
    class Status(models.TextChoices):
        DRAFT = "Draft", "Draft"
        FINAL = "Final", "Final"
        PARTIAL = "Partial", "Partial"
        PAID = "Paid", "Paid"
        OVERDUE = "Overdue", "Overdue"
        CANCELLED = "Cancelled", "Cancelled"

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    shipping_charge = models.DecimalField(**MONEY)
    round_off = models.DecimalField(**MONEY)

    class Meta(AccountingDocument.Meta):
        indexes = [
            models.Index(fields=["customer", "document_date"], name="billing_inv_cust_date_idx"),
        ]


class Bill(AccountingDocument):
    class Status(models.TextChoices):
        PENDING = "Pending", "Pending"
        PARTIAL = "Partial", "Partial"
        PAID = "Paid", "Paid"
        CANCELLED = "Cancelled", "Cancelled"

    vendor = models.ForeignKey(
        Vendor,
        on_delete=models.PROTECT,
        related_name="bills",
    )
    vendor_invoice_number = models.CharField(max_length=64, blank=True, default="")

    class Meta(AccountingDocument.Meta):
        indexes = [
            models.Index(fields=["vendor", "document_date"], name="billing_bill_vend_date_idx"),
        ]


class NoteStatus(models.TextChoices):
    DRAFT = "Draft", "Draft"
    OPEN = "Open", "Open"
    CLOSED = "Closed", "Closed"
    CANCELLED = "Cancelled", "Cancelled"


class CreditNote(AccountingDocument):
    Status = NoteStatus

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="credit_notes",
    )
    invoice = models.ForeignKey(
        Invoice,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="credit_notes",
    )
    reason = models.CharField(max_length=255, blank=True, default="")

    class Meta(AccountingDocument.Meta):
        indexes = [
            models.Index(fields=["customer", "document_date"], name="billing_cn_cust_date_idx"),
        ]


class DebitNote(AccountingDocument):
    Status = NoteStatus

    vendor = models.ForeignKey(
        Vendor,
        on_delete=models.PROTECT,
        related_name="debit_notes",
    )
    bill = models.ForeignKey(
        Bill,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="debit_notes",
    )
    reason = models.CharField(max_length=255, blank=True, default="")

    class Meta(AccountingDocument.Meta):
        indexes = [
            models.Index(fields=["vendor", "document_date"], name="billing_dn_vend_date_idx"),
        ]


# =============================================================================
# Line items
# =============================================================================

class LineItem(models.Model):
    sort_order = models.PositiveIntegerField(default=0)
    item_name = models.CharField(max_length=255, blank=True, default="")
    description = models.TextField(blank=True, default="")
    hsn_code = models.CharField(max_length=20, blank=True, default="")
    unit = models.CharField(max_length=20, blank=True, default="")
    quantity = models.DecimalField(max_digits=18, decimal_places=4, default=Decimal("0"))
    rate = models.DecimalField(max_digits=18, decimal_places=4, default=Decimal("0"))
    discount_percent = models.DecimalField(max_digits=7, decimal_places=4, default=Decimal("0"))
    gst_rate = models.DecimalField(max_digits=7, decimal_places=4, default=Decimal("0"))
    discount_amount = models.DecimalField(**MONEY)
    igst_amount = models.DecimalField(**MONEY)
    cgst_amount = models.DecimalField(**MONEY)
    sgst_amount = models.DecimalField(**MONEY)
    amount = models.DecimalField(**MONEY)

    class Meta:
        abstract = True
        ordering = ["sort_order", "id"]


class InvoiceItem(LineItem):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="items")


class BillItem(LineItem):
    bill = models.ForeignKey(Bill, on_delete=models.CASCADE, related_name="items")


class CreditNoteItem(LineItem):
    credit_note = models.ForeignKey(CreditNote, on_delete=models.CASCADE, related_name="items")


class DebitNoteItem(LineItem):
    debit_note = models.ForeignKey(DebitNote, on_delete=models.CASCADE, related_name="items")


# =============================================================================
# Payments
# =============================================================================

class Payment(models.Model):
    """
    A payment. `amount` is always in the home currency; a foreign-currency
    payment also keeps original_amount and exchange_rate.
    """

    payment_number = models.CharField(max_length=64, unique=True)
    payment_date = models.DateField()
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    currency_code = models.CharField(max_length=3, default=settings.HOME_CURRENCY)
    original_amount = models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)
    exchange_rate = models.DecimalField(max_digits=18, decimal_places=6, default=Decimal("1"))
    excess_amount = models.DecimalField(**MONEY)
    payment_mode = models.CharField(max_length=50, blank=True, default="")
    reference_number = models.CharField(max_length=100, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["payment_date", "id"]

    def __str__(self):
        return self.payment_number


class PaymentReceived(Payment):
    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="payments_received",
    )

    class Meta(Payment.Meta):
        verbose_name_plural = "payments received"
        indexes = [
            models.Index(fields=["customer", "payment_date"], name="billing_pr_cust_date_idx"),
        ]


class PaymentMade(Payment):
    vendor = models.ForeignKey(
        Vendor,
        on_delete=models.PROTECT,
        related_name="payments_made",
    )

    class Meta(Payment.Meta):
        verbose_name_plural = "payments made"
        indexes = [
            models.Index(fields=["vendor", "payment_date"], name="billing_pm_vend_date_idx"),
        ]


class PaymentReceivedAllocation(models.Model):
    payment = models.ForeignKey(PaymentReceived, on_delete=models.CASCADE, related_name="allocations")
    invoice = models.ForeignKey(Invoice, on_delete=models.PROTECT, related_name="allocations")
    allocated_amount = models.DecimalField(max_digits=18, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)


class PaymentMadeAllocation(models.Model):
    payment = models.ForeignKey(PaymentMade, on_delete=models.CASCADE, related_name="allocations")
    bill = models.ForeignKey(Bill, on_delete=models.PROTECT, related_name="allocations")
    allocated_amount = models.DecimalField(max_digits=18, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)


# =============================================================================
# Numbering
# =============================================================================

class NumberingSequence(models.Model):
    """
    Per-document-type counter for formatted document numbers.

    next_number only moves forward, and each value it has held was issued
    at most once. Written only by billing.sequences.
    """

    class DocumentType(models.TextChoices):
        INVOICE = "Invoice", "Invoice"
        BILL = "Bill", "Bill"
        CREDIT_NOTE = "CreditNote", "Credit Note"
        DEBIT_NOTE = "DebitNote", "Debit Note"
        PAYMENT_RECEIVED = "PaymentReceived", "Payment Received"
        PAYMENT_MADE = "PaymentMade", "Payment Made"

    document_type = models.CharField(max_length=30, choices=DocumentType.choices, unique=True)
    prefix = models.CharField(max_length=20)
    suffix = models.CharField(max_length=20, blank=True, default="")
    separator = models.CharField(max_length=5, blank=True, default="-")
    padding_digits = models.PositiveSmallIntegerField(default=4)
    next_number = models.BigIntegerField(default=1)
    include_financial_year = models.BooleanField(default=False)
    financial_year_format = models.CharField(max_length=10, default="YY-YY")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["document_type"]

    def __str__(self):
        return f"{self.document_type}={self.next_number}"
