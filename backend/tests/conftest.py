# tests/conftest.py
"""
Pytest fixtures for the ledger engine tests.

The company profile sits in Karnataka, so:
- customer / vendor fixtures in Karnataka are intra-state (CGST + SGST)
- interstate_customer in Maharashtra is inter-state (IGST)
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone

from billing.models import (
    Bill,
    CreditNote,
    DebitNote,
    Invoice,
    PaymentMade,
    PaymentReceived,
)
from parties.models import CompanyProfile, Customer, Vendor


User = get_user_model()


# =============================================================================
# Company, User & Party Fixtures
# =============================================================================

@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username="owner",
        email="owner@test.com",
        password="testpass123",
    )


@pytest.fixture
def company_profile(db):
    """The home business, registered in Karnataka."""
    return CompanyProfile.objects.create(
        company_name="Test Traders",
        legal_name="Test Traders Private Limited",
        gstin="29AABCT1234F1Z5",
        state="Karnataka",
    )


@pytest.fixture
def party_created_at():
    """Creation timestamp used for every party fixture."""
    return timezone.make_aware(datetime(2024, 1, 15, 10, 30))


@pytest.fixture
def customer(db, party_created_at):
    """An intra-state customer with an opening balance of 1000."""
    return Customer.objects.create(
        display_name="Acme Retail",
        company_name="Acme Retail LLP",
        customer_code="CUST-001",
        email="accounts@acme.test",
        phone="+91 80 5555 0101",
        gstin="29AAACA1111A1Z1",
        place_of_supply="Karnataka",
        opening_balance=Decimal("1000.00"),
        created_at=party_created_at,
    )


@pytest.fixture
def interstate_customer(db, party_created_at):
    """A customer in Maharashtra."""
    return Customer.objects.create(
        display_name="Bombay Wholesale",
        customer_code="CUST-002",
        gstin="27AAACB2222B1Z2",
        place_of_supply="Maharashtra",
        created_at=party_created_at,
    )


@pytest.fixture
def vendor(db, party_created_at):
    """An intra-state vendor with an opening balance of 500."""
    return Vendor.objects.create(
        display_name="Paper Supplies Co",
        vendor_code="VEND-001",
        gstin="29AAACP3333C1Z3",
        place_of_supply="Karnataka",
        opening_balance=Decimal("500.00"),
        created_at=party_created_at,
    )


# =============================================================================
# Document factories
# =============================================================================
# These write rows directly with fixed totals, for ledger tests that do not
# care about pricing. Numbers are unique per factory call.

@pytest.fixture
def make_invoice(db):
    counter = {"n": 0}

    def _make(customer, on, total, status="Final", **extra):
        counter["n"] += 1
        total = Decimal(str(total))
        return Invoice.objects.create(
            customer=customer,
            document_number=f"T-INV-{counter['n']:04d}",
            document_date=on,
            status=status,
            sub_total=total,
            total_amount=total,
            balance_due=total,
            **extra,
        )
    return _make


@pytest.fixture
def make_credit_note(db):
    counter = {"n": 0}

    def _make(customer, on, total, status="Open", **extra):
        counter["n"] += 1
        total = Decimal(str(total))
        return CreditNote.objects.create(
            customer=customer,
            document_number=f"T-CN-{counter['n']:04d}",
            document_date=on,
            status=status,
            sub_total=total,
            total_amount=total,
            balance_due=total,
            **extra,
        )
    return _make


@pytest.fixture
def make_payment_received(db):
    counter = {"n": 0}

    def _make(customer, on, amount, **extra):
        counter["n"] += 1
        return PaymentReceived.objects.create(
            customer=customer,
            payment_number=f"T-PR-{counter['n']:04d}",
            payment_date=on,
            amount=Decimal(str(amount)),
            **extra,
        )
    return _make


@pytest.fixture
def make_bill(db):
    counter = {"n": 0}

    def _make(vendor, on, total, status="Pending", **extra):
        counter["n"] += 1
        total = Decimal(str(total))
        return Bill.objects.create(
            vendor=vendor,
            document_number=f"T-BILL-{counter['n']:04d}",
            document_date=on,
            status=status,
            sub_total=total,
            total_amount=total,
            balance_due=total,
            **extra,
        )
    return _make


@pytest.fixture
def make_debit_note(db):
    counter = {"n": 0}

    def _make(vendor, on, total, status="Open", **extra):
        counter["n"] += 1
        total = Decimal(str(total))
        return DebitNote.objects.create(
            vendor=vendor,
            document_number=f"T-DN-{counter['n']:04d}",
            document_date=on,
            status=status,
            sub_total=total,
            total_amount=total,
            balance_due=total,
            **extra,
        )
    return _make


@pytest.fixture
def make_payment_made(db):
    counter = {"n": 0}

    def _make(vendor, on, amount, **extra):
        counter["n"] += 1
        return PaymentMade.objects.create(
            vendor=vendor,
            payment_number=f"T-PM-{counter['n']:04d}",
            payment_date=on,
            amount=Decimal(str(amount)),
            **extra,
        )
    return _make


@pytest.fixture
def april_2024():
    """Statement query for April 2024."""
    return {"start_date": "2024-04-01", "end_date": "2024-04-30"}


@pytest.fixture
def fixed_today():
    return date(2024, 6, 30)


# =============================================================================
# API Client Fixtures
# =============================================================================

@pytest.fixture
def api_client():
    """Create a DRF API client."""
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def authenticated_client(api_client, user):
    """Create an authenticated API client."""
    api_client.force_authenticate(user=user)
    return api_client
