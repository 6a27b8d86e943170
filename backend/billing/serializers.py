# billing/serializers.py
"""
Serializers for billing API.

Note: These serializers are used for:
1. Input validation (shape, non-negative amounts, allowed statuses)
2. Output formatting

Pricing, numbering and allocation happen in commands.py.
"""

from rest_framework import serializers

from .models import (
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


def _amount(**kwargs):
    return serializers.DecimalField(max_digits=18, decimal_places=2, min_value=0, **kwargs)


# =============================================================================
# Line items
# =============================================================================

class LineItemInputSerializer(serializers.Serializer):
    item_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    description = serializers.CharField(required=False, allow_blank=True, default="")
    hsn_code = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    unit = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    quantity = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=0)
    rate = serializers.DecimalField(max_digits=18, decimal_places=4, min_value=0)
    discount_percent = serializers.DecimalField(
        max_digits=7, decimal_places=4, min_value=0, max_value=100, required=False, default=0,
    )
    gst_rate = serializers.DecimalField(
        max_digits=7, decimal_places=4, min_value=0, max_value=100, required=False, default=0,
    )


LINE_ITEM_FIELDS = [
    "id", "sort_order", "item_name", "description", "hsn_code", "unit",
    "quantity", "rate", "discount_percent", "discount_amount", "gst_rate",
    "igst_amount", "cgst_amount", "sgst_amount", "amount",
]


class InvoiceItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoiceItem
        fields = LINE_ITEM_FIELDS


class BillItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = BillItem
        fields = LINE_ITEM_FIELDS


class CreditNoteItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = CreditNoteItem
        fields = LINE_ITEM_FIELDS


class DebitNoteItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = DebitNoteItem
        fields = LINE_ITEM_FIELDS


# =============================================================================
# Document input
# =============================================================================

class DocumentInputSerializer(serializers.Serializer):
    """
    Shared header fields. PUT uses partial=True, so only the fields
    present in the request are validated and applied.
    """
    document_number = serializers.CharField(max_length=64, required=False, allow_blank=True)
    document_date = serializers.DateField()
    due_date = serializers.DateField(required=False, allow_null=True)
    place_of_supply = serializers.CharField(max_length=100, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    items = LineItemInputSerializer(many=True, required=False)

    def validate(self, attrs):
        due_date = attrs.get("due_date")
        document_date = attrs.get("document_date")
        if due_date and document_date and due_date < document_date:
            raise serializers.ValidationError("due_date cannot be before document_date.")
        return attrs


class InvoiceInputSerializer(DocumentInputSerializer):
    customer_id = serializers.IntegerField()
    status = serializers.ChoiceField(choices=Invoice.Status.choices, required=False)
    discount_amount = _amount(required=False)
    shipping_charge = _amount(required=False)
    round_off = serializers.DecimalField(max_digits=18, decimal_places=2, required=False)
    auto_round_off = serializers.BooleanField(required=False, default=False)


class BillInputSerializer(DocumentInputSerializer):
    vendor_id = serializers.IntegerField()
    status = serializers.ChoiceField(choices=Bill.Status.choices, required=False)
    discount_amount = _amount(required=False)
    vendor_invoice_number = serializers.CharField(max_length=64, required=False, allow_blank=True)


class CreditNoteInputSerializer(DocumentInputSerializer):
    customer_id = serializers.IntegerField()
    invoice_id = serializers.IntegerField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=NoteStatus.choices, required=False)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)


class DebitNoteInputSerializer(DocumentInputSerializer):
    vendor_id = serializers.IntegerField()
    bill_id = serializers.IntegerField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=NoteStatus.choices, required=False)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)


# =============================================================================
# Document output
# =============================================================================

DOCUMENT_FIELDS = [
    "id", "document_number", "document_date", "due_date", "status",
    "place_of_supply", "sub_total", "discount_amount", "igst_amount",
    "cgst_amount", "sgst_amount", "total_tax", "total_amount",
    "amount_paid", "balance_due", "notes", "created_at", "updated_at",
]


class InvoiceSerializer(serializers.ModelSerializer):
    items = InvoiceItemSerializer(many=True, read_only=True)
    is_overdue = serializers.SerializerMethodField()

    class Meta:
        model = Invoice
        fields = DOCUMENT_FIELDS + [
            "customer", "shipping_charge", "round_off", "is_overdue", "items",
        ]

    def get_is_overdue(self, obj):
        return obj.is_overdue()


class BillSerializer(serializers.ModelSerializer):
    items = BillItemSerializer(many=True, read_only=True)

    class Meta:
        model = Bill
        fields = DOCUMENT_FIELDS + ["vendor", "vendor_invoice_number", "items"]


class CreditNoteSerializer(serializers.ModelSerializer):
    items = CreditNoteItemSerializer(many=True, read_only=True)

    class Meta:
        model = CreditNote
        fields = DOCUMENT_FIELDS + ["customer", "invoice", "reason", "items"]


class DebitNoteSerializer(serializers.ModelSerializer):
    items = DebitNoteItemSerializer(many=True, read_only=True)

    class Meta:
        model = DebitNote
        fields = DOCUMENT_FIELDS + ["vendor", "bill", "reason", "items"]


# =============================================================================
# Payments
# =============================================================================

class PaymentInputSerializer(serializers.Serializer):
    payment_number = serializers.CharField(max_length=64, required=False, allow_blank=True)
    payment_date = serializers.DateField()
    amount = _amount(required=False, allow_null=True)
    currency_code = serializers.CharField(max_length=3, required=False, allow_blank=True)
    original_amount = _amount(required=False, allow_null=True)
    exchange_rate = serializers.DecimalField(
        max_digits=18, decimal_places=6, min_value=0, required=False, allow_null=True,
    )
    payment_mode = serializers.CharField(max_length=50, required=False, allow_blank=True)
    reference_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class InvoiceAllocationInputSerializer(serializers.Serializer):
    invoice_id = serializers.IntegerField()
    allocated_amount = _amount()


class BillAllocationInputSerializer(serializers.Serializer):
    bill_id = serializers.IntegerField()
    allocated_amount = _amount()


class PaymentReceivedInputSerializer(PaymentInputSerializer):
    customer_id = serializers.IntegerField()
    allocations = InvoiceAllocationInputSerializer(many=True, required=False)


class PaymentMadeInputSerializer(PaymentInputSerializer):
    vendor_id = serializers.IntegerField()
    allocations = BillAllocationInputSerializer(many=True, required=False)


PAYMENT_FIELDS = [
    "id", "payment_number", "payment_date", "amount", "currency_code",
    "original_amount", "exchange_rate", "excess_amount", "payment_mode",
    "reference_number", "notes", "created_at",
]


class PaymentReceivedAllocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentReceivedAllocation
        fields = ["id", "invoice", "allocated_amount"]


class PaymentMadeAllocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentMadeAllocation
        fields = ["id", "bill", "allocated_amount"]


class PaymentReceivedSerializer(serializers.ModelSerializer):
    allocations = PaymentReceivedAllocationSerializer(many=True, read_only=True)

    class Meta:
        model = PaymentReceived
        fields = PAYMENT_FIELDS + ["customer", "allocations"]


class PaymentMadeSerializer(serializers.ModelSerializer):
    allocations = PaymentMadeAllocationSerializer(many=True, read_only=True)

    class Meta:
        model = PaymentMade
        fields = PAYMENT_FIELDS + ["vendor", "allocations"]


# =============================================================================
# Pricing preview & numbering
# =============================================================================

class PriceLinesInputSerializer(serializers.Serializer):
    """
    Context for a pricing preview. When company_state/company_gstin are
    omitted the company profile is used.
    """
    items = LineItemInputSerializer(many=True)
    company_state = serializers.CharField(max_length=100, required=False, allow_blank=True)
    company_gstin = serializers.CharField(max_length=15, required=False, allow_blank=True)
    counterparty_state = serializers.CharField(max_length=100, required=False, allow_blank=True)
    counterparty_gstin = serializers.CharField(max_length=15, required=False, allow_blank=True)
    discount_amount = _amount(required=False)
    shipping_charge = _amount(required=False)
    round_off = serializers.DecimalField(max_digits=18, decimal_places=2, required=False)


class NumberingSequenceSerializer(serializers.ModelSerializer):
    class Meta:
        model = NumberingSequence
        fields = [
            "document_type", "prefix", "suffix", "separator", "padding_digits",
            "next_number", "include_financial_year", "financial_year_format",
            "updated_at",
        ]
        read_only_fields = ["document_type", "updated_at"]

    def validate_padding_digits(self, value):
        if not 1 <= value <= 12:
            raise serializers.ValidationError("padding_digits must be between 1 and 12.")
        return value

    def validate_financial_year_format(self, value):
        if value not in ("YY-YY", "YYYY-YY", "YYYY"):
            raise serializers.ValidationError("Use YY-YY, YYYY-YY or YYYY.")
        return value

    def validate_next_number(self, value):
        # Lowering the counter would reissue numbers already handed out.
        if self.instance is not None and value < self.instance.next_number:
            raise serializers.ValidationError("next_number cannot be decreased.")
        return value
