"""
URL configuration for statements API.

Endpoints:
- /customers/<id>/statement/ - customer statement (debit-normal)
- /vendors/<id>/statement/ - vendor statement (credit-normal)
- .../statement/export/ - same statement as xlsx, csv or txt
"""

from django.urls import path

from .views import (
    CustomerStatementExportView,
    CustomerStatementView,
    VendorStatementExportView,
    VendorStatementView,
)

app_name = "statements"

urlpatterns = [
    path(
        "customers/<int:pk>/statement/",
        CustomerStatementView.as_view(),
        name="customer-statement",
    ),
    path(
        "customers/<int:pk>/statement/export/",
        CustomerStatementExportView.as_view(),
        name="customer-statement-export",
    ),
    path(
        "vendors/<int:pk>/statement/",
        VendorStatementView.as_view(),
        name="vendor-statement",
    ),
    path(
        "vendors/<int:pk>/statement/export/",
        VendorStatementExportView.as_view(),
        name="vendor-statement-export",
    ),
]
