"""
Django admin configuration for billing models.

Documents and payments are read-only here. Creating or editing them
outside billing/commands.py would skip pricing, numbering and
allocation bookkeeping.
"""

from django.contrib import admin

from .models import (
    Bill,
    CreditNote,
    DebitNote,
    Invoice,
    NumberingSequence,
    PaymentMade,
    PaymentReceived,
)


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """Base admin class for rows owned by the command layer."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class DocumentAdmin(ReadOnlyModelAdmin):
    list_display = ["document_number", "document_date", "status", "total_amount", "balance_due", "deleted_at"]
    list_filter = ["status"]
    search_fields = ["document_number"]
    date_hierarchy = "document_date"


@admin.register(Invoice)
class InvoiceAdmin(DocumentAdmin):
    list_select_related = ["customer"]


@admin.register(Bill)
class BillAdmin(DocumentAdmin):
    list_select_related = ["vendor"]


@admin.register(CreditNote)
class CreditNoteAdmin(DocumentAdmin):
    pass


@admin.register(DebitNote)
class DebitNoteAdmin(DocumentAdmin):
    pass


class PaymentAdmin(ReadOnlyModelAdmin):
    list_display = ["payment_number", "payment_date", "amount", "currency_code", "excess_amount"]
    search_fields = ["payment_number", "reference_number"]


@admin.register(PaymentReceived)
class PaymentReceivedAdmin(PaymentAdmin):
    pass


@admin.register(PaymentMade)
class PaymentMadeAdmin(PaymentAdmin):
    pass


@admin.register(NumberingSequence)
class NumberingSequenceAdmin(ReadOnlyModelAdmin):
    list_display = ["document_type", "prefix", "separator", "padding_digits", "next_number"]
