# billing/views.py
"""
Thin views that delegate to the commands layer.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: pricing, numbering, allocation, business rules.

Engine errors map to status codes:
- CommandResult.fail     -> 400
- ArithmeticInputError   -> 400
- NotFoundError          -> 404
- NumberingConflictError -> 409
"""

from django.http import Http404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from parties.models import CompanyProfile

from .commands import (
    BILL,
    CREDIT_NOTE,
    DEBIT_NOTE,
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
from .exceptions import ArithmeticInputError, NotFoundError, NumberingConflictError
from .models import NumberingSequence
from .sequences import configure_sequence, next_document_number, peek_next_number
from .serializers import (
    BillInputSerializer,
    BillSerializer,
    CreditNoteInputSerializer,
    CreditNoteSerializer,
    DebitNoteInputSerializer,
    DebitNoteSerializer,
    InvoiceInputSerializer,
    InvoiceSerializer,
    NumberingSequenceSerializer,
    PaymentMadeInputSerializer,
    PaymentMadeSerializer,
    PaymentReceivedInputSerializer,
    PaymentReceivedSerializer,
    PriceLinesInputSerializer,
)


class EngineErrorMixin:
    """Translate ledger engine exceptions into API responses."""

    def handle_exception(self, exc):
        if isinstance(exc, NotFoundError):
            return Response(exc.to_dict(), status=status.HTTP_404_NOT_FOUND)
        if isinstance(exc, ArithmeticInputError):
            return Response(exc.to_dict(), status=status.HTTP_400_BAD_REQUEST)
        if isinstance(exc, NumberingConflictError):
            return Response(exc.to_dict(), status=status.HTTP_409_CONFLICT)
        return super().handle_exception(exc)


def _result_response(result, serializer_class, success_status=status.HTTP_200_OK):
    if not result.success:
        return Response(
            {"detail": result.error},
            status=status.HTTP_400_BAD_REQUEST,
        )
    return Response(serializer_class(result.data).data, status=success_status)


# =============================================================================
# Documents
# =============================================================================

class DocumentListCreateView(EngineErrorMixin, APIView):
    """
    GET  -> list live documents of one kind (newest first)
    POST -> create a document; lines are priced and the number drawn
            in the same transaction
    """
    permission_classes = [IsAuthenticated]
    kind = None
    input_serializer_class = None
    output_serializer_class = None

    def get(self, request):
        documents = self.kind.model.objects.live().prefetch_related("items").order_by(
            "-document_date", "-id",
        )
        party_id = request.query_params.get(f"{self.kind.party_field}_id")
        if party_id:
            documents = documents.filter(**{f"{self.kind.party_field}_id": party_id})
        doc_status = request.query_params.get("status")
        if doc_status:
            documents = documents.filter(status=doc_status)
        serializer = self.output_serializer_class(documents, many=True)
        return Response(serializer.data)

    def post(self, request):
        input_serializer = self.input_serializer_class(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = create_document(request.user, self.kind, **input_serializer.validated_data)
        return _result_response(result, self.output_serializer_class, status.HTTP_201_CREATED)


class DocumentDetailView(EngineErrorMixin, APIView):
    """
    GET    -> retrieve document with items
    PUT    -> update header fields; `items` replaces every line
    DELETE -> soft delete (early-lifecycle statuses only)
    """
    permission_classes = [IsAuthenticated]
    kind = None
    input_serializer_class = None
    output_serializer_class = None

    def get(self, request, pk):
        document = self.kind.model.objects.live().filter(pk=pk).first()
        if document is None:
            raise Http404
        return Response(self.output_serializer_class(document).data)

    def put(self, request, pk):
        input_serializer = self.input_serializer_class(data=request.data, partial=True)
        input_serializer.is_valid(raise_exception=True)

        data = dict(input_serializer.validated_data)
        # The party of an existing document cannot be changed.
        data.pop(f"{self.kind.party_field}_id", None)
        data.pop("document_number", None)

        result = update_document(request.user, self.kind, pk, **data)
        return _result_response(result, self.output_serializer_class)

    def delete(self, request, pk):
        result = delete_document(request.user, self.kind, pk)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)


class InvoiceListCreateView(DocumentListCreateView):
    kind = INVOICE
    input_serializer_class = InvoiceInputSerializer
    output_serializer_class = InvoiceSerializer


class InvoiceDetailView(DocumentDetailView):
    kind = INVOICE
    input_serializer_class = InvoiceInputSerializer
    output_serializer_class = InvoiceSerializer


class BillListCreateView(DocumentListCreateView):
    kind = BILL
    input_serializer_class = BillInputSerializer
    output_serializer_class = BillSerializer


class BillDetailView(DocumentDetailView):
    kind = BILL
    input_serializer_class = BillInputSerializer
    output_serializer_class = BillSerializer


class CreditNoteListCreateView(DocumentListCreateView):
    kind = CREDIT_NOTE
    input_serializer_class = CreditNoteInputSerializer
    output_serializer_class = CreditNoteSerializer


class CreditNoteDetailView(DocumentDetailView):
    kind = CREDIT_NOTE
    input_serializer_class = CreditNoteInputSerializer
    output_serializer_class = CreditNoteSerializer


class DebitNoteListCreateView(DocumentListCreateView):
    kind = DEBIT_NOTE
    input_serializer_class = DebitNoteInputSerializer
    output_serializer_class = DebitNoteSerializer


class DebitNoteDetailView(DocumentDetailView):
    kind = DEBIT_NOTE
    input_serializer_class = DebitNoteInputSerializer
    output_serializer_class = DebitNoteSerializer


# =============================================================================
# Payments
# =============================================================================

class PaymentCreateView(EngineErrorMixin, APIView):
    """POST -> record a payment with optional allocations."""
    permission_classes = [IsAuthenticated]
    kind = None
    input_serializer_class = None
    output_serializer_class = None

    def post(self, request):
        input_serializer = self.input_serializer_class(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = record_payment(request.user, self.kind, **input_serializer.validated_data)
        return _result_response(result, self.output_serializer_class, status.HTTP_201_CREATED)


class PaymentDetailView(EngineErrorMixin, APIView):
    """
    GET    -> retrieve payment with allocations
    DELETE -> reverse allocations, then delete
    """
    permission_classes = [IsAuthenticated]
    kind = None
    output_serializer_class = None

    def get(self, request, pk):
        payment = self.kind.model.objects.filter(pk=pk).prefetch_related("allocations").first()
        if payment is None:
            raise Http404
        return Response(self.output_serializer_class(payment).data)

    def delete(self, request, pk):
        delete_payment(request.user, self.kind, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class PaymentReceivedCreateView(PaymentCreateView):
    kind = PAYMENT_RECEIVED
    input_serializer_class = PaymentReceivedInputSerializer
    output_serializer_class = PaymentReceivedSerializer


class PaymentReceivedDetailView(PaymentDetailView):
    kind = PAYMENT_RECEIVED
    output_serializer_class = PaymentReceivedSerializer


class PaymentMadeCreateView(PaymentCreateView):
    kind = PAYMENT_MADE
    input_serializer_class = PaymentMadeInputSerializer
    output_serializer_class = PaymentMadeSerializer


class PaymentMadeDetailView(PaymentDetailView):
    kind = PAYMENT_MADE
    output_serializer_class = PaymentMadeSerializer


# =============================================================================
# Pricing preview
# =============================================================================

class PriceLinesView(EngineErrorMixin, APIView):
    """
    POST /api/billing/line-items/price/

    Prices lines against a jurisdiction pair without saving anything.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        input_serializer = PriceLinesInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = dict(input_serializer.validated_data)

        company = CompanyProfile.current()
        if "company_state" not in data and company is not None:
            data["company_state"] = company.state
        if "company_gstin" not in data and company is not None:
            data["company_gstin"] = company.gstin

        priced, totals = quote_lines(
            data.pop("items"),
            company_state=data.pop("company_state", None),
            counterparty_state=data.pop("counterparty_state", None),
            company_gstin=data.pop("company_gstin", None),
            counterparty_gstin=data.pop("counterparty_gstin", None),
            **data,
        )
        return Response({
            "lines": [line.to_dict() for line in priced],
            "totals": {
                key: str(value)
                for key, value in totals.header_fields(include_charges=True).items()
            },
        })


# =============================================================================
# Numbering
# =============================================================================

def _document_type_or_404(document_type: str) -> str:
    if document_type not in NumberingSequence.DocumentType.values:
        raise Http404
    return document_type


class NumberingSequenceListView(APIView):
    """GET /api/billing/numbering/ -> numbering settings per document type."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        sequences = NumberingSequence.objects.all()
        return Response(NumberingSequenceSerializer(sequences, many=True).data)


class NumberingSequenceDetailView(APIView):
    """
    GET /api/billing/numbering/<document_type>/ -> settings and next number preview
    PUT /api/billing/numbering/<document_type>/ -> edit prefix, padding, ...
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, document_type):
        _document_type_or_404(document_type)
        seq = NumberingSequence.objects.filter(document_type=document_type).first()
        data = NumberingSequenceSerializer(seq).data if seq else {"document_type": document_type}
        data["preview"] = peek_next_number(document_type)
        return Response(data)

    def put(self, request, document_type):
        _document_type_or_404(document_type)
        seq = NumberingSequence.objects.filter(document_type=document_type).first()
        serializer = NumberingSequenceSerializer(seq, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        seq = configure_sequence(document_type, **serializer.validated_data)
        return Response(NumberingSequenceSerializer(seq).data)


class NextDocumentNumberView(EngineErrorMixin, APIView):
    """
    POST /api/billing/numbering/<document_type>/next/

    Draws and consumes the next number.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, document_type):
        _document_type_or_404(document_type)
        number = next_document_number(document_type)
        return Response(
            {"document_type": document_type, "document_number": number},
            status=status.HTTP_201_CREATED,
        )
