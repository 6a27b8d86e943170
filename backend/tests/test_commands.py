# tests/test_commands.py
"""
Tests for billing commands.

Commands are the single write path for documents and payments, so these
tests cover pricing on write, numbering, lifecycle guards, allocation,
and rollback when a later step fails.
"""

from datetime import date
from decimal import Decimal

import pytest
from django.db import IntegrityError, OperationalError

from billing import commands, sequences
from billing.commands import (
    BILL,
    CREDIT_NOTE,
    INVOICE,
    PAYMENT_MADE,
    PAYMENT_RECEIVED,
    create_document,
    delete_document,
    delete_payment,
    quote_lines,
    record_payment,
    update_document,
)
from billing.exceptions import ArithmeticInputError, DocumentNotFound, NumberingConflictError
from billing.models import (
    Invoice,
    InvoiceItem,
    NumberingSequence,
    PaymentReceived,
    PaymentReceivedAllocation,
)


ITEM = {"item_name": "A4 paper", "quantity": "2", "rate": "500", "gst_rate": "18"}


def create_invoice(user, customer, items=None, **extra):
    data = {
        "customer_id": customer.pk,
        "document_date": date(2024, 4, 5),
        "items": items if items is not None else [ITEM],
    }
    data.update(extra)
    return create_document(user, INVOICE, **data)


@pytest.fixture
def final_invoice(user, company_profile, customer):
    """An intra-state invoice of 1180.00 in Final status."""
    result = create_invoice(user, customer, status="Final")
    assert result.success, result.error
    return result.data


# =============================================================================
# Document creation
# =============================================================================

@pytest.mark.django_db
class TestCreateDocument:

    def test_intra_state_invoice(self, user, company_profile, customer):
        result = create_invoice(user, customer)

        assert result.success
        invoice = result.data
        assert invoice.document_number == "INV-0001"
        assert invoice.status == "Draft"
        assert invoice.sub_total == Decimal("1000.00")
        assert invoice.cgst_amount == Decimal("90.00")
        assert invoice.sgst_amount == Decimal("90.00")
        assert invoice.igst_amount == Decimal("0.00")
        assert invoice.total_amount == Decimal("1180.00")
        assert invoice.balance_due == Decimal("1180.00")
        assert invoice.created_by == user

        item = invoice.items.get()
        assert item.item_name == "A4 paper"
        assert item.amount == Decimal("1000.00")
        assert item.cgst_amount == Decimal("90.00")

    def test_inter_state_invoice(self, user, company_profile, interstate_customer):
        result = create_invoice(user, interstate_customer)

        assert result.data.igst_amount == Decimal("180.00")
        assert result.data.cgst_amount == Decimal("0.00")

    def test_place_of_supply_override(self, user, company_profile, interstate_customer):
        result = create_invoice(user, interstate_customer, place_of_supply="Karnataka")

        assert result.data.place_of_supply == "Karnataka"
        assert result.data.cgst_amount == Decimal("90.00")
        assert result.data.igst_amount == Decimal("0.00")

    def test_without_company_profile_tax_is_igst(self, user, customer):
        result = create_invoice(user, customer)

        assert result.data.igst_amount == Decimal("180.00")

    def test_numbers_are_sequential(self, user, company_profile, customer):
        numbers = [create_invoice(user, customer).data.document_number for _ in range(3)]

        assert numbers == ["INV-0001", "INV-0002", "INV-0003"]

    def test_explicit_number_does_not_draw(self, user, company_profile, customer):
        result = create_invoice(user, customer, document_number="MANUAL-1")

        assert result.data.document_number == "MANUAL-1"
        assert not NumberingSequence.objects.filter(document_type="Invoice").exists()

    def test_duplicate_explicit_number_fails(self, user, company_profile, customer):
        create_invoice(user, customer, document_number="MANUAL-1")

        result = create_invoice(user, customer, document_number="MANUAL-1")

        assert not result.success
        assert "already exists" in result.error

    def test_unknown_party_fails(self, user, company_profile):
        result = create_document(
            user, INVOICE, customer_id=424242, document_date=date(2024, 4, 5), items=[ITEM],
        )

        assert not result.success
        assert "not found" in result.error

    def test_inactive_party_fails(self, user, company_profile, customer):
        customer.deactivate()

        result = create_invoice(user, customer)

        assert not result.success
        assert "inactive" in result.error

    def test_document_discount_shipping_and_round_off(self, user, company_profile, customer):
        result = create_invoice(
            user, customer,
            discount_amount=Decimal("80"),
            shipping_charge=Decimal("50"),
            round_off=Decimal("0.25"),
        )

        # 1000 - 80 + 180 + 50 + 0.25
        assert result.data.total_amount == Decimal("1150.25")
        assert result.data.shipping_charge == Decimal("50.00")

    def test_auto_round_off(self, user, company_profile, customer):
        result = create_invoice(
            user, customer,
            items=[{"quantity": "1", "rate": "999.70"}],
            auto_round_off=True,
        )

        assert result.data.round_off == Decimal("0.30")
        assert result.data.total_amount == Decimal("1000.00")

    def test_credit_note_ignores_discounts(self, user, company_profile, customer, final_invoice):
        result = create_document(
            user, CREDIT_NOTE,
            customer_id=customer.pk,
            invoice_id=final_invoice.pk,
            document_date=date(2024, 4, 8),
            reason="Damaged goods",
            discount_amount=Decimal("10"),
            items=[{"quantity": "1", "rate": "100", "discount_percent": "50", "gst_rate": "18"}],
        )

        note = result.data
        assert note.document_number == "CN-0001"
        assert note.invoice == final_invoice
        assert note.discount_amount == Decimal("0.00")
        assert note.sub_total == Decimal("100.00")
        assert note.total_amount == Decimal("118.00")

    def test_credit_note_for_another_customers_invoice_fails(
        self, user, company_profile, interstate_customer, final_invoice,
    ):
        result = create_document(
            user, CREDIT_NOTE,
            customer_id=interstate_customer.pk,
            invoice_id=final_invoice.pk,
            document_date=date(2024, 4, 8),
            items=[],
        )

        assert not result.success

    def test_bill_for_vendor(self, user, company_profile, vendor):
        result = create_document(
            user, BILL,
            vendor_id=vendor.pk,
            vendor_invoice_number="PS/778",
            document_date=date(2024, 4, 2),
            items=[ITEM],
        )

        assert result.data.document_number == "BILL-0001"
        assert result.data.status == "Pending"
        assert result.data.vendor_invoice_number == "PS/778"

    def test_malformed_quantity_writes_nothing(self, user, company_profile, customer):
        with pytest.raises(ArithmeticInputError):
            create_invoice(user, customer, items=[ITEM, {"quantity": "two", "rate": "10"}])

        assert Invoice.objects.count() == 0
        assert not NumberingSequence.objects.filter(document_type="Invoice").exists()

    def test_failed_insert_releases_number(self, user, company_profile, customer, monkeypatch):
        create_invoice(user, customer)

        def broken_write(kind, document, priced):
            raise IntegrityError("line insert failed")

        monkeypatch.setattr(commands, "_write_items", broken_write)
        with pytest.raises(IntegrityError):
            create_invoice(user, customer)
        monkeypatch.undo()

        assert Invoice.objects.count() == 1
        assert create_invoice(user, customer).data.document_number == "INV-0002"

    def test_numbering_conflict_writes_nothing(self, user, company_profile, customer, monkeypatch):
        def locked(document_type):
            raise OperationalError("database is locked")

        monkeypatch.setattr(sequences, "_increment", locked)

        with pytest.raises(NumberingConflictError):
            create_invoice(user, customer)

        assert Invoice.objects.count() == 0
        assert InvoiceItem.objects.count() == 0


# =============================================================================
# Update & delete
# =============================================================================

@pytest.mark.django_db
class TestUpdateDocument:

    def test_items_are_replaced(self, user, company_profile, customer):
        invoice = create_invoice(user, customer, items=[ITEM, ITEM]).data
        assert invoice.items.count() == 2

        result = update_document(
            user, INVOICE, invoice.pk,
            items=[{"quantity": "1", "rate": "100", "gst_rate": "5"}],
        )

        invoice.refresh_from_db()
        assert result.success
        assert invoice.items.count() == 1
        assert invoice.sub_total == Decimal("100.00")
        assert invoice.total_tax == Decimal("5.00")
        assert invoice.total_amount == Decimal("105.00")

    def test_place_of_supply_change_reprices_stored_items(
        self, user, company_profile, interstate_customer,
    ):
        invoice = create_invoice(user, interstate_customer).data
        assert invoice.igst_amount == Decimal("180.00")

        update_document(user, INVOICE, invoice.pk, place_of_supply="Karnataka")

        invoice.refresh_from_db()
        assert invoice.igst_amount == Decimal("0.00")
        assert invoice.cgst_amount == Decimal("90.00")
        assert invoice.items.get().sgst_amount == Decimal("90.00")

    def test_header_fields(self, user, company_profile, customer):
        invoice = create_invoice(user, customer).data

        update_document(
            user, INVOICE, invoice.pk,
            notes="Deliver to gate 2", due_date=date(2024, 5, 5), status="Final",
        )

        invoice.refresh_from_db()
        assert invoice.notes == "Deliver to gate 2"
        assert invoice.due_date == date(2024, 5, 5)
        assert invoice.status == "Final"

    def test_paid_document_is_immutable(self, user, final_invoice, customer):
        record_payment(
            user, PAYMENT_RECEIVED,
            customer_id=customer.pk,
            payment_date=date(2024, 4, 10),
            amount=Decimal("1180"),
            allocations=[{"invoice_id": final_invoice.pk, "allocated_amount": Decimal("1180")}],
        )

        result = update_document(user, INVOICE, final_invoice.pk, notes="late edit")

        assert not result.success
        assert "paid" in result.error

    def test_missing_document(self, user):
        with pytest.raises(DocumentNotFound):
            update_document(user, INVOICE, 987654, notes="x")

    def test_total_cut_below_amount_paid_settles_invoice(self, user, final_invoice, customer):
        record_payment(
            user, PAYMENT_RECEIVED,
            customer_id=customer.pk,
            payment_date=date(2024, 4, 10),
            amount=Decimal("500"),
            allocations=[{"invoice_id": final_invoice.pk, "allocated_amount": Decimal("500")}],
        )

        update_document(
            user, INVOICE, final_invoice.pk,
            items=[{"quantity": "1", "rate": "400"}],
        )

        final_invoice.refresh_from_db()
        assert final_invoice.total_amount == Decimal("400.00")
        assert final_invoice.balance_due == Decimal("0.00")
        assert final_invoice.status == "Paid"

    def test_total_raised_on_partial_invoice_stays_partial(self, user, final_invoice, customer):
        record_payment(
            user, PAYMENT_RECEIVED,
            customer_id=customer.pk,
            payment_date=date(2024, 4, 10),
            amount=Decimal("500"),
            allocations=[{"invoice_id": final_invoice.pk, "allocated_amount": Decimal("500")}],
        )

        update_document(user, INVOICE, final_invoice.pk, items=[ITEM, ITEM])

        final_invoice.refresh_from_db()
        assert final_invoice.balance_due == Decimal("1860.00")
        assert final_invoice.status == "Partial"

    def test_unpaid_draft_keeps_its_status(self, user, company_profile, customer):
        invoice = create_invoice(user, customer).data

        update_document(user, INVOICE, invoice.pk, items=[ITEM, ITEM])

        invoice.refresh_from_db()
        assert invoice.status == "Draft"


@pytest.mark.django_db
class TestDeleteDocument:

    def test_draft_invoice_is_soft_deleted(self, user, company_profile, customer):
        invoice = create_invoice(user, customer).data

        result = delete_document(user, INVOICE, invoice.pk)

        assert result.success
        invoice.refresh_from_db()
        assert invoice.deleted_at is not None
        assert not Invoice.objects.live().filter(pk=invoice.pk).exists()

    def test_final_invoice_cannot_be_deleted(self, user, final_invoice):
        result = delete_document(user, INVOICE, final_invoice.pk)

        assert not result.success
        assert "Final" in result.error

    def test_cancelled_bill_can_be_deleted(self, user, company_profile, vendor):
        bill = create_document(
            user, BILL, vendor_id=vendor.pk, document_date=date(2024, 4, 2),
            status="Cancelled", items=[ITEM],
        ).data

        assert delete_document(user, BILL, bill.pk).success

    def test_deleted_document_is_gone(self, user, company_profile, customer):
        invoice = create_invoice(user, customer).data
        delete_document(user, INVOICE, invoice.pk)

        with pytest.raises(DocumentNotFound):
            delete_document(user, INVOICE, invoice.pk)


# =============================================================================
# Payments
# =============================================================================

@pytest.mark.django_db
class TestRecordPayment:

    def pay(self, user, customer, amount, allocations=(), **extra):
        return record_payment(
            user, PAYMENT_RECEIVED,
            customer_id=customer.pk,
            payment_date=date(2024, 4, 10),
            amount=Decimal(amount),
            allocations=[
                {"invoice_id": invoice.pk, "allocated_amount": Decimal(allocated)}
                for invoice, allocated in allocations
            ],
            **extra,
        )

    def test_partial_then_full_allocation(self, user, customer, final_invoice):
        first = self.pay(user, customer, "500", [(final_invoice, "500")], payment_mode="UPI")

        final_invoice.refresh_from_db()
        assert first.data.payment_number == "PMT-R-0001"
        assert first.data.payment_mode == "UPI"
        assert final_invoice.status == "Partial"
        assert final_invoice.amount_paid == Decimal("500.00")
        assert final_invoice.balance_due == Decimal("680.00")

        self.pay(user, customer, "680", [(final_invoice, "680")])

        final_invoice.refresh_from_db()
        assert final_invoice.status == "Paid"
        assert final_invoice.balance_due == Decimal("0.00")

    def test_unallocated_remainder_is_excess(self, user, customer, final_invoice):
        result = self.pay(user, customer, "2000", [(final_invoice, "1180")])

        assert result.data.excess_amount == Decimal("820.00")

    def test_allocation_above_balance_due_fails(self, user, customer, final_invoice):
        result = self.pay(user, customer, "5000", [(final_invoice, "1180.01")])

        assert not result.success
        assert "exceeds balance due" in result.error
        assert PaymentReceived.objects.count() == 0
        final_invoice.refresh_from_db()
        assert final_invoice.amount_paid == Decimal("0.00")

    def test_allocations_above_payment_fail(self, user, customer, final_invoice):
        result = self.pay(user, customer, "100", [(final_invoice, "200")])

        assert not result.success
        assert "exceeds payment amount" in result.error

    def test_zero_amount_fails(self, user, customer):
        result = self.pay(user, customer, "0")

        assert not result.success

    def test_other_customers_invoice_fails(self, user, interstate_customer, final_invoice):
        result = self.pay(user, interstate_customer, "100", [(final_invoice, "100")])

        assert not result.success
        assert "not found" in result.error

    def test_foreign_currency_is_converted(self, user, customer):
        result = record_payment(
            user, PAYMENT_RECEIVED,
            customer_id=customer.pk,
            payment_date=date(2024, 4, 10),
            currency_code="usd",
            original_amount=Decimal("100"),
            exchange_rate=Decimal("83.255"),
        )

        payment = result.data
        assert payment.currency_code == "USD"
        assert payment.original_amount == Decimal("100.00")
        assert payment.amount == Decimal("8325.50")
        assert payment.excess_amount == Decimal("8325.50")

    def test_delete_reverses_allocations(self, user, customer, final_invoice):
        payment = self.pay(user, customer, "1180", [(final_invoice, "1180")]).data

        delete_payment(user, PAYMENT_RECEIVED, payment.pk)

        final_invoice.refresh_from_db()
        assert final_invoice.status == "Final"
        assert final_invoice.amount_paid == Decimal("0.00")
        assert final_invoice.balance_due == Decimal("1180.00")
        assert PaymentReceivedAllocation.objects.count() == 0

    def test_delete_missing_payment(self, user):
        with pytest.raises(DocumentNotFound):
            delete_payment(user, PAYMENT_RECEIVED, 31337)

    def test_repeated_allocations_share_one_balance(self, user, customer, final_invoice):
        result = self.pay(
            user, customer, "2000", [(final_invoice, "1000"), (final_invoice, "1000")],
        )

        assert not result.success
        assert "exceeds balance due 180.00" in result.error
        assert PaymentReceived.objects.count() == 0
        assert PaymentReceivedAllocation.objects.count() == 0
        final_invoice.refresh_from_db()
        assert final_invoice.amount_paid == Decimal("0.00")

    def test_split_allocations_to_one_invoice_add_up(self, user, customer, final_invoice):
        payment = self.pay(
            user, customer, "1180", [(final_invoice, "500"), (final_invoice, "680")],
        ).data

        final_invoice.refresh_from_db()
        assert final_invoice.amount_paid == Decimal("1180.00")
        assert final_invoice.balance_due == Decimal("0.00")
        assert final_invoice.status == "Paid"

        delete_payment(user, PAYMENT_RECEIVED, payment.pk)

        final_invoice.refresh_from_db()
        assert final_invoice.amount_paid == Decimal("0.00")
        assert final_invoice.status == "Final"

    def test_reversal_keeps_cancelled_status(self, user, customer, final_invoice):
        payment = self.pay(user, customer, "100", [(final_invoice, "100")]).data
        update_document(user, INVOICE, final_invoice.pk, status="Cancelled")

        delete_payment(user, PAYMENT_RECEIVED, payment.pk)

        final_invoice.refresh_from_db()
        assert final_invoice.status == "Cancelled"
        assert final_invoice.amount_paid == Decimal("0.00")

    def test_foreign_currency_requires_original_amount(self, user, customer):
        with pytest.raises(ArithmeticInputError) as exc_info:
            record_payment(
                user, PAYMENT_RECEIVED,
                customer_id=customer.pk,
                payment_date=date(2024, 4, 10),
                amount=Decimal("100"),
                currency_code="USD",
            )

        assert exc_info.value.field == "original_amount"
        assert PaymentReceived.objects.count() == 0

    def test_payment_made_against_bill(self, user, company_profile, vendor):
        bill = create_document(
            user, BILL, vendor_id=vendor.pk, document_date=date(2024, 4, 2), items=[ITEM],
        ).data

        result = record_payment(
            user, PAYMENT_MADE,
            vendor_id=vendor.pk,
            payment_date=date(2024, 4, 12),
            amount=Decimal("1180"),
            allocations=[{"bill_id": bill.pk, "allocated_amount": Decimal("1180")}],
        )

        bill.refresh_from_db()
        assert result.data.payment_number == "PMT-M-0001"
        assert bill.status == "Paid"


def test_quote_lines_persists_nothing(db):
    priced, totals = quote_lines(
        [ITEM],
        company_state="Karnataka",
        counterparty_state="Maharashtra",
        shipping_charge="20",
    )

    assert priced[0].igst_amount == Decimal("180.00")
    assert totals.total_amount == Decimal("1200.00")
    assert InvoiceItem.objects.count() == 0


@pytest.mark.django_db
class TestDueDates:

    def test_open_invoice_past_due_is_overdue(self, customer, make_invoice):
        invoice = make_invoice(customer, date(2024, 4, 1), 100, due_date=date(2024, 4, 30))

        assert invoice.is_overdue(today=date(2024, 5, 1))
        assert not invoice.is_overdue(today=date(2024, 4, 30))
        assert invoice.days_until_due(today=date(2024, 5, 3)) == -3

    def test_paid_and_cancelled_are_never_overdue(self, customer, make_invoice):
        paid = make_invoice(customer, date(2024, 4, 1), 100, status="Paid", due_date=date(2024, 4, 5))
        cancelled = make_invoice(
            customer, date(2024, 4, 1), 100, status="Cancelled", due_date=date(2024, 4, 5),
        )

        assert not paid.is_overdue(today=date(2024, 6, 1))
        assert not cancelled.is_overdue(today=date(2024, 6, 1))

    def test_without_due_date(self, customer, make_invoice):
        invoice = make_invoice(customer, date(2024, 4, 1), 100)

        assert not invoice.is_overdue(today=date(2030, 1, 1))
        assert invoice.days_until_due(today=date(2024, 4, 1)) is None
