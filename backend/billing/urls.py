"""
URL configuration for billing API.

Endpoints:
- /invoices/, /bills/, /credit-notes/, /debit-notes/ - document CRUD
- /payments-received/, /payments-made/ - record and reverse payments
- /line-items/price/ - pricing preview
- /numbering/ - numbering settings and number draws
"""

from django.urls import path

from .views import (
    BillDetailView,
    BillListCreateView,
    CreditNoteDetailView,
    CreditNoteListCreateView,
    DebitNoteDetailView,
    DebitNoteListCreateView,
    InvoiceDetailView,
    InvoiceListCreateView,
    NextDocumentNumberView,
    NumberingSequenceDetailView,
    NumberingSequenceListView,
    PaymentMadeCreateView,
    PaymentMadeDetailView,
    PaymentReceivedCreateView,
    PaymentReceivedDetailView,
    PriceLinesView,
)

app_name = "billing"

urlpatterns = [
    # ==========================================================================
    # Sales
    # ==========================================================================
    path("invoices/", InvoiceListCreateView.as_view(), name="invoice-list-create"),
    path("invoices/<int:pk>/", InvoiceDetailView.as_view(), name="invoice-detail"),
    path("credit-notes/", CreditNoteListCreateView.as_view(), name="credit-note-list-create"),
    path("credit-notes/<int:pk>/", CreditNoteDetailView.as_view(), name="credit-note-detail"),
    path(
        "payments-received/",
        PaymentReceivedCreateView.as_view(),
        name="payment-received-create",
    ),
    path(
        "payments-received/<int:pk>/",
        PaymentReceivedDetailView.as_view(),
        name="payment-received-detail",
    ),

    # ==========================================================================
    # Purchases
    # ==========================================================================
    path("bills/", BillListCreateView.as_view(), name="bill-list-create"),
    path("bills/<int:pk>/", BillDetailView.as_view(), name="bill-detail"),
    path("debit-notes/", DebitNoteListCreateView.as_view(), name="debit-note-list-create"),
    path("debit-notes/<int:pk>/", DebitNoteDetailView.as_view(), name="debit-note-detail"),
    path("payments-made/", PaymentMadeCreateView.as_view(), name="payment-made-create"),
    path(
        "payments-made/<int:pk>/",
        PaymentMadeDetailView.as_view(),
        name="payment-made-detail",
    ),

    # ==========================================================================
    # Pricing & numbering
    # ==========================================================================
    path("line-items/price/", PriceLinesView.as_view(), name="line-items-price"),
    path("numbering/", NumberingSequenceListView.as_view(), name="numbering-list"),
    path(
        "numbering/<str:document_type>/",
        NumberingSequenceDetailView.as_view(),
        name="numbering-detail",
    ),
    path(
        "numbering/<str:document_type>/next/",
        NextDocumentNumberView.as_view(),
        name="numbering-next",
    ),
]
