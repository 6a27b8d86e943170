"""
Prometheus metrics endpoint.

Exposes application metrics in Prometheus format for scraping.

Metrics exposed:
- gstledger_document_numbers_issued_total: Numbers drawn from a sequence, by type
- gstledger_numbering_conflicts_total: Failed numbering steps, by type
- gstledger_statement_build_seconds: Ledger statement build duration
- gstledger_open_documents: Live documents by model and status
- gstledger_request_duration_seconds: HTTP request duration histogram
"""
import logging
import re
import time
from contextlib import contextmanager

from django.db import DatabaseError
from django.db.models import Count
from django.http import HttpResponse
from django.views import View
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

_numbers_issued = Counter(
    "gstledger_document_numbers_issued_total",
    "Document numbers issued by the sequencer",
    ["document_type"],
)

_numbering_conflicts = Counter(
    "gstledger_numbering_conflicts_total",
    "Numbering steps that could not complete atomically",
    ["document_type"],
)

_statement_duration = Histogram(
    "gstledger_statement_build_seconds",
    "Ledger statement build duration in seconds",
    ["party_type"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

_open_documents = Gauge(
    "gstledger_open_documents",
    "Live (not soft-deleted) documents by model and status",
    ["model", "status"],
)

_request_duration = Histogram(
    "gstledger_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

_active_requests = Gauge(
    "gstledger_active_requests",
    "Number of requests currently being processed",
)


def record_number_issued(document_type: str) -> None:
    _numbers_issued.labels(document_type=document_type).inc()


def record_numbering_conflict(document_type: str) -> None:
    _numbering_conflicts.labels(document_type=document_type).inc()


@contextmanager
def time_statement_build(party_type: str):
    start = time.time()
    try:
        yield
    finally:
        _statement_duration.labels(party_type=party_type).observe(time.time() - start)


def collect_metrics():
    """Refresh gauges that are read from the database at scrape time."""
    from billing.models import Bill, CreditNote, DebitNote, Invoice

    try:
        counts_by_model = [
            (model, list(model.objects.live().values("status").annotate(count=Count("id"))))
            for model in (Invoice, Bill, CreditNote, DebitNote)
        ]
    except DatabaseError as e:
        logger.error("Error collecting metrics: %s", e)
        return

    # Statuses with no documents left must stop reporting their last count.
    _open_documents.clear()
    for model, counts in counts_by_model:
        for row in counts:
            _open_documents.labels(
                model=model.__name__,
                status=row["status"],
            ).set(row["count"])


def get_prometheus_response():
    """Generate Prometheus metrics response."""
    collect_metrics()
    return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)


class MetricsView(View):
    """
    Prometheus metrics endpoint.

    Exposes metrics in Prometheus format at /_metrics.
    Should be protected in production (internal network only).
    """

    def get(self, request):
        return get_prometheus_response()


def track_request_metrics(get_response):
    """
    Middleware to track request duration metrics.

    Add to MIDDLEWARE after SecurityMiddleware:
        "ops.metrics.track_request_metrics",
    """

    def middleware(request):
        start = time.time()
        _active_requests.inc()
        status = 500

        try:
            response = get_response(request)
            status = response.status_code
            return response
        finally:
            _active_requests.dec()
            duration = time.time() - start

            # Normalize endpoint for cardinality control
            endpoint = re.sub(r"/\d+/", "/{id}/", request.path)

            _request_duration.labels(
                method=request.method,
                endpoint=endpoint[:50],
                status=f"{status // 100}xx",
            ).observe(duration)

    return middleware
