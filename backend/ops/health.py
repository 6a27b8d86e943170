"""
Health probes for the ledger service.

- /_health/live    - the process is up
- /_health/ready   - the database answers and the numbering table is readable
- /_health/ledger  - per-document-type numbering state and company profile

The ledger report is for operators checking a deployment. A missing
company profile is reported as "degraded": documents can still be
written, but every GST split falls back to IGST.
"""
import logging
import time
from typing import Any, Dict

from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.views import View

logger = logging.getLogger(__name__)


def _elapsed_ms(started: float) -> float:
    return round((time.monotonic() - started) * 1000, 2)


def probe_database() -> Dict[str, Any]:
    """Round-trip a trivial query on the default connection."""
    started = time.monotonic()
    try:
        connection.ensure_connection()
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError as e:
        logger.error("Database probe failed", extra={"error": str(e)})
        return {"status": "unhealthy", "error": str(e), "duration_ms": _elapsed_ms(started)}
    return {"status": "healthy", "vendor": connection.vendor, "duration_ms": _elapsed_ms(started)}


def probe_numbering() -> Dict[str, Any]:
    """
    Report the counter of every document type.

    Types with no row yet are listed as "unseeded"; their first draw
    seeds the counter from existing documents.
    """
    from billing.models import NumberingSequence

    try:
        rows = {
            seq.document_type: seq
            for seq in NumberingSequence.objects.all()
        }
    except DatabaseError as e:
        logger.error("Numbering probe failed", extra={"error": str(e)})
        return {"status": "unhealthy", "error": str(e)}

    sequences = {}
    for document_type in NumberingSequence.DocumentType.values:
        seq = rows.get(document_type)
        if seq is None:
            sequences[document_type] = {"state": "unseeded"}
        else:
            sequences[document_type] = {
                "state": "seeded",
                "prefix": seq.prefix,
                "next_number": seq.next_number,
            }
    return {"status": "healthy", "sequences": sequences}


def probe_company_profile() -> Dict[str, Any]:
    from parties.models import CompanyProfile

    company = CompanyProfile.current()
    if company is None:
        return {"status": "degraded", "reason": "no company profile; GST splits default to IGST"}
    return {
        "status": "healthy",
        "state": company.state or None,
        "gstin_set": bool(company.gstin),
    }


class LivenessView(View):
    """Always 200 while the process serves requests. Touches nothing external."""

    def get(self, request):
        return JsonResponse({"status": "alive"})


class ReadinessView(View):
    """200 when documents can be numbered and written, 503 otherwise."""

    def get(self, request):
        database = probe_database()
        if database["status"] != "healthy":
            return JsonResponse({"status": "not_ready", "database": database}, status=503)

        numbering = probe_numbering()
        ready = numbering["status"] == "healthy"
        return JsonResponse(
            {
                "status": "ready" if ready else "not_ready",
                "database": database,
                "numbering": {"status": numbering["status"]},
            },
            status=200 if ready else 503,
        )


class LedgerHealthView(View):
    """Full report: database, numbering counters and company profile."""

    def get(self, request):
        database = probe_database()
        if database["status"] != "healthy":
            return JsonResponse({"status": "unhealthy", "database": database}, status=503)

        checks = {
            "database": database,
            "numbering": probe_numbering(),
            "company_profile": probe_company_profile(),
        }
        statuses = {check["status"] for check in checks.values()}
        if "unhealthy" in statuses:
            overall, code = "unhealthy", 503
        elif "degraded" in statuses:
            overall, code = "degraded", 200
        else:
            overall, code = "healthy", 200
        return JsonResponse({"status": overall, "checks": checks}, status=code)
