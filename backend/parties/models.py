# parties/models.py
"""
Party models.

A party is either a Customer or a Vendor. Its opening_balance is the
amount owed as of onboarding; its place_of_supply (with gstin as a
fallback) decides whether tax on its documents is split intra- or
inter-state against the CompanyProfile.

Parties are deactivated (is_active=False), never hard-deleted while
documents reference them; the document foreign keys use PROTECT.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class CompanyProfile(models.Model):
    """
    The home business. A single row is expected; the first one wins.
    """

    company_name = models.CharField(max_length=255)
    legal_name = models.CharField(max_length=255, blank=True, default="")
    gstin = models.CharField(max_length=15, blank=True, default="")
    state = models.CharField(max_length=100, blank=True, default="")
    country = models.CharField(max_length=100, blank=True, default="India")
    currency_code = models.CharField(max_length=3, default="INR")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "company profile"

    def __str__(self):
        return self.company_name

    @classmethod
    def current(cls):
        return cls.objects.order_by("id").first()


class Party(models.Model):
    display_name = models.CharField(max_length=255)
    company_name = models.CharField(max_length=255, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=30, blank=True, default="")
    gstin = models.CharField(max_length=15, blank=True, default="")
    place_of_supply = models.CharField(max_length=100, blank=True, default="")
    currency_code = models.CharField(max_length=3, default=settings.HOME_CURRENCY)
    opening_balance = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["display_name"]

    def __str__(self):
        return self.display_name

    def deactivate(self):
        self.is_active = False
        self.save(update_fields=["is_active", "updated_at"])


class Customer(Party):
    customer_code = models.CharField(max_length=50, blank=True, default="")

    class Meta(Party.Meta):
        indexes = [
            models.Index(fields=["display_name"], name="parties_customer_name_idx"),
        ]


class Vendor(Party):
    vendor_code = models.CharField(max_length=50, blank=True, default="")

    class Meta(Party.Meta):
        indexes = [
            models.Index(fields=["display_name"], name="parties_vendor_name_idx"),
        ]
