import decimal

import django.utils.timezone
from django.db import migrations, models


def party_fields(code_field):
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("display_name", models.CharField(max_length=255)),
        ("company_name", models.CharField(blank=True, default="", max_length=255)),
        ("email", models.EmailField(blank=True, default="", max_length=254)),
        ("phone", models.CharField(blank=True, default="", max_length=30)),
        ("gstin", models.CharField(blank=True, default="", max_length=15)),
        ("place_of_supply", models.CharField(blank=True, default="", max_length=100)),
        ("currency_code", models.CharField(default="INR", max_length=3)),
        ("opening_balance", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=18)),
        ("is_active", models.BooleanField(default=True)),
        ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        (code_field, models.CharField(blank=True, default="", max_length=50)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CompanyProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("company_name", models.CharField(max_length=255)),
                ("legal_name", models.CharField(blank=True, default="", max_length=255)),
                ("gstin", models.CharField(blank=True, default="", max_length=15)),
                ("state", models.CharField(blank=True, default="", max_length=100)),
                ("country", models.CharField(blank=True, default="India", max_length=100)),
                ("currency_code", models.CharField(default="INR", max_length=3)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "company profile",
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=party_fields("customer_code"),
            options={
                "ordering": ["display_name"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["display_name"], name="parties_customer_name_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Vendor",
            fields=party_fields("vendor_code"),
            options={
                "ordering": ["display_name"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["display_name"], name="parties_vendor_name_idx"),
                ],
            },
        ),
    ]
