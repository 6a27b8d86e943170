# tests/test_api.py
"""
Tests for the HTTP surface: billing endpoints, statements and health probes.
"""

from datetime import date
from decimal import Decimal

import pytest
from django.urls import reverse
from prometheus_client import REGISTRY

from billing.models import Invoice
from ops.metrics import collect_metrics


def invoice_payload(customer, **extra):
    payload = {
        "customer_id": customer.pk,
        "document_date": "2024-04-05",
        "items": [
            {"item_name": "A4 paper", "quantity": "2", "rate": "500", "gst_rate": "18"},
        ],
    }
    payload.update(extra)
    return payload


@pytest.mark.django_db
class TestAuthentication:

    def test_statement_requires_authentication(self, api_client, customer):
        response = api_client.get(
            reverse("statements:customer-statement", kwargs={"pk": customer.pk})
        )

        assert response.status_code in (401, 403)

    def test_invoice_list_requires_authentication(self, api_client):
        response = api_client.get(reverse("billing:invoice-list-create"))

        assert response.status_code in (401, 403)


@pytest.mark.django_db
class TestInvoiceApi:

    def test_create_invoice(self, authenticated_client, company_profile, customer):
        response = authenticated_client.post(
            reverse("billing:invoice-list-create"),
            invoice_payload(customer),
            format="json",
        )

        assert response.status_code == 201, response.data
        assert response.data["document_number"] == "INV-0001"
        assert response.data["cgst_amount"] == "90.00"
        assert response.data["sgst_amount"] == "90.00"
        assert response.data["total_amount"] == "1180.00"
        assert len(response.data["items"]) == 1

    def test_due_date_before_document_date(self, authenticated_client, company_profile, customer):
        response = authenticated_client.post(
            reverse("billing:invoice-list-create"),
            invoice_payload(customer, due_date="2024-04-01"),
            format="json",
        )

        assert response.status_code == 400

    def test_negative_rate_rejected(self, authenticated_client, company_profile, customer):
        payload = invoice_payload(customer)
        payload["items"][0]["rate"] = "-5"

        response = authenticated_client.post(
            reverse("billing:invoice-list-create"), payload, format="json",
        )

        assert response.status_code == 400
        assert Invoice.objects.count() == 0

    def test_unknown_customer_is_bad_request(self, authenticated_client, company_profile):
        response = authenticated_client.post(
            reverse("billing:invoice-list-create"),
            {"customer_id": 5555, "document_date": "2024-04-05", "items": []},
            format="json",
        )

        assert response.status_code == 400
        assert "not found" in response.data["detail"]

    def test_list_filters_by_customer(
        self, authenticated_client, company_profile, customer, interstate_customer,
    ):
        url = reverse("billing:invoice-list-create")
        authenticated_client.post(url, invoice_payload(customer), format="json")
        authenticated_client.post(url, invoice_payload(interstate_customer), format="json")

        response = authenticated_client.get(url, {"customer_id": interstate_customer.pk})

        assert response.status_code == 200
        assert len(response.data) == 1
        assert response.data[0]["igst_amount"] == "180.00"

    def test_update_and_delete(self, authenticated_client, company_profile, customer):
        created = authenticated_client.post(
            reverse("billing:invoice-list-create"), invoice_payload(customer), format="json",
        ).data
        url = reverse("billing:invoice-detail", kwargs={"pk": created["id"]})

        response = authenticated_client.put(url, {"notes": "Urgent"}, format="json")
        assert response.status_code == 200
        assert response.data["notes"] == "Urgent"

        response = authenticated_client.delete(url)
        assert response.status_code == 204
        assert authenticated_client.get(url).status_code == 404

    def test_update_missing_invoice(self, authenticated_client):
        response = authenticated_client.put(
            reverse("billing:invoice-detail", kwargs={"pk": 999}), {"notes": "x"}, format="json",
        )

        assert response.status_code == 404
        assert response.data["error_type"] == "DocumentNotFound"


@pytest.mark.django_db
class TestPaymentApi:

    def test_over_allocation_is_rejected(self, authenticated_client, company_profile, customer):
        invoice = authenticated_client.post(
            reverse("billing:invoice-list-create"),
            invoice_payload(customer, status="Final"),
            format="json",
        ).data

        response = authenticated_client.post(
            reverse("billing:payment-received-create"),
            {
                "customer_id": customer.pk,
                "payment_date": "2024-04-10",
                "amount": "5000",
                "allocations": [{"invoice_id": invoice["id"], "allocated_amount": "2000"}],
            },
            format="json",
        )

        assert response.status_code == 400
        assert "exceeds balance due" in response.data["detail"]

    def test_record_and_delete(self, authenticated_client, company_profile, customer):
        invoice = authenticated_client.post(
            reverse("billing:invoice-list-create"),
            invoice_payload(customer, status="Final"),
            format="json",
        ).data

        response = authenticated_client.post(
            reverse("billing:payment-received-create"),
            {
                "customer_id": customer.pk,
                "payment_date": "2024-04-10",
                "amount": "1180",
                "payment_mode": "NEFT",
                "allocations": [{"invoice_id": invoice["id"], "allocated_amount": "1180"}],
            },
            format="json",
        )
        assert response.status_code == 201, response.data
        assert response.data["payment_number"] == "PMT-R-0001"
        assert len(response.data["allocations"]) == 1

        detail = reverse("billing:payment-received-detail", kwargs={"pk": response.data["id"]})
        assert authenticated_client.delete(detail).status_code == 204
        assert Invoice.objects.get(pk=invoice["id"]).balance_due == Decimal("1180.00")


@pytest.mark.django_db
class TestPricingAndNumberingApi:

    def test_price_preview_uses_company_profile(self, authenticated_client, company_profile):
        response = authenticated_client.post(
            reverse("billing:line-items-price"),
            {
                "counterparty_state": "Maharashtra",
                "items": [{"quantity": "2", "rate": "500", "gst_rate": "18"}],
            },
            format="json",
        )

        assert response.status_code == 200
        assert response.data["lines"][0]["igst_amount"] == "180.00"
        assert response.data["totals"]["total_amount"] == "1180.00"

    def test_draw_next_number(self, authenticated_client):
        url = reverse("billing:numbering-next", kwargs={"document_type": "Invoice"})

        first = authenticated_client.post(url)
        second = authenticated_client.post(url)

        assert first.status_code == 201
        assert [first.data["document_number"], second.data["document_number"]] == [
            "INV-0001", "INV-0002",
        ]

    def test_unknown_document_type(self, authenticated_client):
        url = reverse("billing:numbering-next", kwargs={"document_type": "Quote"})

        assert authenticated_client.post(url).status_code == 404

    def test_configure_then_preview(self, authenticated_client):
        url = reverse("billing:numbering-detail", kwargs={"document_type": "Bill"})

        response = authenticated_client.put(
            url, {"prefix": "PB", "padding_digits": 5}, format="json",
        )
        assert response.status_code == 200
        assert response.data["prefix"] == "PB"

        response = authenticated_client.get(url)
        assert response.data["preview"] == "PB-00001"

    def test_padding_out_of_range(self, authenticated_client):
        url = reverse("billing:numbering-detail", kwargs={"document_type": "Bill"})

        response = authenticated_client.put(url, {"padding_digits": 40}, format="json")

        assert response.status_code == 400


@pytest.mark.django_db
class TestStatementApi:

    def test_customer_statement(
        self, authenticated_client, customer, make_invoice, make_payment_received,
    ):
        make_invoice(customer, date(2024, 4, 5), 5000)
        make_payment_received(customer, date(2024, 4, 10), 2000)

        response = authenticated_client.get(
            reverse("statements:customer-statement", kwargs={"pk": customer.pk}),
            {"start_date": "2024-04-01", "end_date": "2024-04-30"},
        )

        assert response.status_code == 200
        assert response.data["opening_balance"] == 1000.0
        assert [t["running_balance"] for t in response.data["transactions"]] == [6000.0, 4000.0]
        assert response.data["closing_balance"] == 4000.0
        assert response.data["summary"]["transaction_count"] == 2

    def test_month_query(self, authenticated_client, customer, make_invoice):
        make_invoice(customer, date(2024, 2, 29), 10)

        response = authenticated_client.get(
            reverse("statements:customer-statement", kwargs={"pk": customer.pk}),
            {"month": "2", "year": "2024"},
        )

        assert response.data["period"] == {"start_date": "2024-02-01", "end_date": "2024-02-29"}
        assert response.data["summary"]["transaction_count"] == 1

    def test_invalid_range_falls_back(self, authenticated_client, customer):
        response = authenticated_client.get(
            reverse("statements:customer-statement", kwargs={"pk": customer.pk}),
            {"start_date": "2024-05-01", "end_date": "2024-04-01"},
        )

        assert response.status_code == 200
        assert response.data["period"]["start_date"] == "2024-01-15"

    def test_unknown_customer_is_404(self, authenticated_client):
        response = authenticated_client.get(
            reverse("statements:customer-statement", kwargs={"pk": 424242})
        )

        assert response.status_code == 404
        assert response.data["error_type"] == "PartyNotFound"

    def test_vendor_statement(self, authenticated_client, vendor, make_bill):
        make_bill(vendor, date(2024, 4, 2), 3000)

        response = authenticated_client.get(
            reverse("statements:vendor-statement", kwargs={"pk": vendor.pk}),
            {"start_date": "2024-04-01", "end_date": "2024-04-30"},
        )

        assert response.status_code == 200
        assert response.data["vendor"]["vendor_code"] == "VEND-001"
        assert response.data["closing_balance"] == 3500.0


@pytest.mark.django_db
class TestHealthEndpoints:

    def test_liveness(self, client):
        response = client.get("/_health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_readiness(self, client):
        response = client.get("/_health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_ledger_report_without_company_profile(self, client):
        response = client.get("/_health/ledger")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "degraded"
        assert body["checks"]["numbering"]["sequences"]["Invoice"] == {"state": "unseeded"}

    def test_ledger_report_after_first_draw(self, client, authenticated_client, company_profile):
        authenticated_client.post(
            reverse("billing:numbering-next", kwargs={"document_type": "Invoice"})
        )

        body = client.get("/_health/ledger").json()

        assert body["status"] == "healthy"
        assert body["checks"]["company_profile"]["state"] == "Karnataka"
        invoice = body["checks"]["numbering"]["sequences"]["Invoice"]
        assert invoice["state"] == "seeded"
        assert invoice["next_number"] == 2

    def test_metrics(self, client, authenticated_client):
        authenticated_client.post(
            reverse("billing:numbering-next", kwargs={"document_type": "Invoice"})
        )

        response = client.get("/_metrics/")

        assert response.status_code == 200
        assert b"gstledger_document_numbers_issued_total" in response.content


@pytest.mark.django_db
def test_open_document_gauge_drops_emptied_statuses(customer, make_invoice):
    invoice = make_invoice(customer, date(2024, 4, 5), 100, status="Draft")
    draft = {"model": "Invoice", "status": "Draft"}

    collect_metrics()
    assert REGISTRY.get_sample_value("gstledger_open_documents", draft) == 1.0

    Invoice.objects.filter(pk=invoice.pk).update(status="Final")
    collect_metrics()

    assert REGISTRY.get_sample_value("gstledger_open_documents", draft) is None
    assert REGISTRY.get_sample_value(
        "gstledger_open_documents", {"model": "Invoice", "status": "Final"}
    ) == 1.0
