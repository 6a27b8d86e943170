# statements/views.py
"""
Statement endpoints.

Query params (all optional):
    mode=as_on_date
    start_date, end_date    YYYY-MM-DD, inclusive
    month, year             calendar month
    financial_year          start year of an April-March year, e.g. 2024

Invalid ranges fall back to the as-on-date range instead of failing.
"""

from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from billing.views import EngineErrorMixin

from .builder import CUSTOMER_LEDGER, VENDOR_LEDGER, build_statement
from .exports import ExportFormat, create_export_response


class StatementView(EngineErrorMixin, APIView):
    """GET -> statement of account for one party."""
    permission_classes = [IsAuthenticated]
    side = None

    def get(self, request, pk):
        statement = build_statement(self.side, pk, request.query_params)
        return Response(statement.to_dict())


class StatementExportView(EngineErrorMixin, APIView):
    """
    GET -> statement as a file download

    Query params:
        file_format: xlsx, csv, txt (default: xlsx)
        plus the period params of the statement endpoint
    """
    permission_classes = [IsAuthenticated]
    side = None

    def get(self, request, pk):
        export_format = request.query_params.get("file_format", ExportFormat.EXCEL)
        if export_format not in ExportFormat.CHOICES:
            return Response(
                {"detail": f"Invalid format. Must be one of: {', '.join(ExportFormat.CHOICES)}"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        statement = build_statement(self.side, pk, request.query_params)

        timestamp = timezone.localtime().strftime("%Y%m%d_%H%M%S")
        filename = f"{self.side.party_type}_{pk}_statement_{timestamp}"
        return create_export_response(statement, format=export_format, filename=filename)


class CustomerStatementView(StatementView):
    side = CUSTOMER_LEDGER


class VendorStatementView(StatementView):
    side = VENDOR_LEDGER


class CustomerStatementExportView(StatementExportView):
    side = CUSTOMER_LEDGER


class VendorStatementExportView(StatementExportView):
    side = VENDOR_LEDGER
