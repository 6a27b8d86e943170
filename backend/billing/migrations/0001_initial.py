import decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def money(**kwargs):
    return models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18, **kwargs)


def document_fields():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("document_number", models.CharField(max_length=64, unique=True)),
        ("document_date", models.DateField()),
        ("due_date", models.DateField(blank=True, null=True)),
        ("status", models.CharField(max_length=20)),
        ("place_of_supply", models.CharField(blank=True, default="", max_length=100)),
        ("sub_total", money()),
        ("discount_amount", money()),
        ("igst_amount", money()),
        ("cgst_amount", money()),
        ("sgst_amount", money()),
        ("total_tax", money()),
        ("total_amount", money()),
        ("amount_paid", money()),
        ("balance_due", money()),
        ("notes", models.TextField(blank=True, default="")),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        ("deleted_at", models.DateTimeField(blank=True, null=True)),
        ("created_by", models.ForeignKey(
            blank=True,
            null=True,
            on_delete=django.db.models.deletion.SET_NULL,
            related_name="+",
            to=settings.AUTH_USER_MODEL,
        )),
    ]


def line_item_fields(parent_field, parent_model):
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("sort_order", models.PositiveIntegerField(default=0)),
        ("item_name", models.CharField(blank=True, default="", max_length=255)),
        ("description", models.TextField(blank=True, default="")),
        ("hsn_code", models.CharField(blank=True, default="", max_length=20)),
        ("unit", models.CharField(blank=True, default="", max_length=20)),
        ("quantity", models.DecimalField(decimal_places=4, default=decimal.Decimal("0"), max_digits=18)),
        ("rate", models.DecimalField(decimal_places=4, default=decimal.Decimal("0"), max_digits=18)),
        ("discount_percent", models.DecimalField(decimal_places=4, default=decimal.Decimal("0"), max_digits=7)),
        ("gst_rate", models.DecimalField(decimal_places=4, default=decimal.Decimal("0"), max_digits=7)),
        ("discount_amount", money()),
        ("igst_amount", money()),
        ("cgst_amount", money()),
        ("sgst_amount", money()),
        ("amount", money()),
        (parent_field, models.ForeignKey(
            on_delete=django.db.models.deletion.CASCADE,
            related_name="items",
            to=parent_model,
        )),
    ]


def payment_fields(party_field, party_model, related_name):
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("payment_number", models.CharField(max_length=64, unique=True)),
        ("payment_date", models.DateField()),
        ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
        ("currency_code", models.CharField(default="INR", max_length=3)),
        ("original_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
        ("exchange_rate", models.DecimalField(decimal_places=6, default=decimal.Decimal("1"), max_digits=18)),
        ("excess_amount", money()),
        ("payment_mode", models.CharField(blank=True, default="", max_length=50)),
        ("reference_number", models.CharField(blank=True, default="", max_length=100)),
        ("notes", models.TextField(blank=True, default="")),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        ("created_by", models.ForeignKey(
            blank=True,
            null=True,
            on_delete=django.db.models.deletion.SET_NULL,
            related_name="+",
            to=settings.AUTH_USER_MODEL,
        )),
        (party_field, models.ForeignKey(
            on_delete=django.db.models.deletion.PROTECT,
            related_name=related_name,
            to=party_model,
        )),
    ]


DOCUMENT_OPTIONS = {"ordering": ["document_date", "id"], "abstract": False}
LINE_ITEM_OPTIONS = {"ordering": ["sort_order", "id"], "abstract": False}


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("parties", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="NumberingSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("document_type", models.CharField(
                    choices=[
                        ("Invoice", "Invoice"),
                        ("Bill", "Bill"),
                        ("CreditNote", "Credit Note"),
                        ("DebitNote", "Debit Note"),
                        ("PaymentReceived", "Payment Received"),
                        ("PaymentMade", "Payment Made"),
                    ],
                    max_length=30,
                    unique=True,
                )),
                ("prefix", models.CharField(max_length=20)),
                ("suffix", models.CharField(blank=True, default="", max_length=20)),
                ("separator", models.CharField(blank=True, default="-", max_length=5)),
                ("padding_digits", models.PositiveSmallIntegerField(default=4)),
                ("next_number", models.BigIntegerField(default=1)),
                ("include_financial_year", models.BooleanField(default=False)),
                ("financial_year_format", models.CharField(default="YY-YY", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"ordering": ["document_type"]},
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=document_fields() + [
                ("shipping_charge", money()),
                ("round_off", money()),
                ("customer", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="invoices",
                    to="parties.customer",
                )),
            ],
            options={
                **DOCUMENT_OPTIONS,
                "indexes": [
                    models.Index(fields=["customer", "document_date"], name="billing_inv_cust_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Bill",
            fields=document_fields() + [
                ("vendor_invoice_number", models.CharField(blank=True, default="", max_length=64)),
                ("vendor", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="bills",
                    to="parties.vendor",
                )),
            ],
            options={
                **DOCUMENT_OPTIONS,
                "indexes": [
                    models.Index(fields=["vendor", "document_date"], name="billing_bill_vend_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CreditNote",
            fields=document_fields() + [
                ("reason", models.CharField(blank=True, default="", max_length=255)),
                ("customer", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="credit_notes",
                    to="parties.customer",
                )),
                ("invoice", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="credit_notes",
                    to="billing.invoice",
                )),
            ],
            options={
                **DOCUMENT_OPTIONS,
                "indexes": [
                    models.Index(fields=["customer", "document_date"], name="billing_cn_cust_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="DebitNote",
            fields=document_fields() + [
                ("reason", models.CharField(blank=True, default="", max_length=255)),
                ("vendor", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="debit_notes",
                    to="parties.vendor",
                )),
                ("bill", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="debit_notes",
                    to="billing.bill",
                )),
            ],
            options={
                **DOCUMENT_OPTIONS,
                "indexes": [
                    models.Index(fields=["vendor", "document_date"], name="billing_dn_vend_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoiceItem",
            fields=line_item_fields("invoice", "billing.invoice"),
            options=LINE_ITEM_OPTIONS,
        ),
        migrations.CreateModel(
            name="BillItem",
            fields=line_item_fields("bill", "billing.bill"),
            options=LINE_ITEM_OPTIONS,
        ),
        migrations.CreateModel(
            name="CreditNoteItem",
            fields=line_item_fields("credit_note", "billing.creditnote"),
            options=LINE_ITEM_OPTIONS,
        ),
        migrations.CreateModel(
            name="DebitNoteItem",
            fields=line_item_fields("debit_note", "billing.debitnote"),
            options=LINE_ITEM_OPTIONS,
        ),
        migrations.CreateModel(
            name="PaymentReceived",
            fields=payment_fields("customer", "parties.customer", "payments_received"),
            options={
                "ordering": ["payment_date", "id"],
                "abstract": False,
                "verbose_name_plural": "payments received",
                "indexes": [
                    models.Index(fields=["customer", "payment_date"], name="billing_pr_cust_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentMade",
            fields=payment_fields("vendor", "parties.vendor", "payments_made"),
            options={
                "ordering": ["payment_date", "id"],
                "abstract": False,
                "verbose_name_plural": "payments made",
                "indexes": [
                    models.Index(fields=["vendor", "payment_date"], name="billing_pm_vend_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentReceivedAllocation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("allocated_amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("payment", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="allocations",
                    to="billing.paymentreceived",
                )),
                ("invoice", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="allocations",
                    to="billing.invoice",
                )),
            ],
        ),
        migrations.CreateModel(
            name="PaymentMadeAllocation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("allocated_amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("payment", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="allocations",
                    to="billing.paymentmade",
                )),
                ("bill", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="allocations",
                    to="billing.bill",
                )),
            ],
        ),
    ]
