# statements/builder.py
"""
Ledger statement builder.

A statement is computed from source documents on every request; no
running ledger table is kept.

    opening = party.opening_balance
              + sum(primary before start)
              - sum(adjustment before start)
              - sum(payment before start)

Within the period three streams are read, each ordered by date:

    customer: invoices (debit), credit notes (credit), payments received (credit)
    vendor:   bills (credit),   debit notes (debit),   payments made (debit)

They are concatenated as [primary, adjustment, payment] and stable-sorted
by date only, so same-day rows keep that stream order. The balance walk
is debit - credit for a customer and credit - debit for a vendor.

Cancelled and soft-deleted documents are excluded everywhere.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Mapping, Optional

from django.db.models import Sum

from billing.exceptions import PartyNotFound
from billing.models import (
    Bill,
    CreditNote,
    DebitNote,
    Invoice,
    PaymentMade,
    PaymentReceived,
)
from billing.money import ZERO, round_money
from ops.metrics import time_statement_build
from parties.models import Customer, Vendor
from statements.periods import ResolvedPeriod, resolve_period

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatementLine:
    date: date
    type: str
    document_number: str
    description: str
    debit: Decimal
    credit: Decimal
    running_balance: Decimal

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "type": self.type,
            "document_number": self.document_number,
            "description": self.description,
            "debit": float(self.debit),
            "credit": float(self.credit),
            "running_balance": float(self.running_balance),
        }


@dataclass(frozen=True)
class Statement:
    party_type: str
    party: dict
    period: ResolvedPeriod
    opening_balance: Decimal
    transactions: list = field(default_factory=list)
    closing_balance: Decimal = ZERO
    total_debit: Decimal = ZERO
    total_credit: Decimal = ZERO

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    def to_dict(self) -> dict:
        return {
            self.party_type: self.party,
            "period": self.period.to_dict(),
            "opening_balance": float(self.opening_balance),
            "transactions": [line.to_dict() for line in self.transactions],
            "closing_balance": float(self.closing_balance),
            "summary": {
                "total_debit": float(self.total_debit),
                "total_credit": float(self.total_credit),
                "transaction_count": self.transaction_count,
            },
        }


# =============================================================================
# Ledger sides
# =============================================================================

@dataclass(frozen=True)
class Stream:
    """One source table feeding a statement."""

    model: type
    type: str
    date_field: str
    number_field: str
    amount_field: str
    describe: Callable
    is_debit: bool
    is_document: bool = True

    def rows(self, party_field: str, party):
        qs = self.model.objects
        qs = qs.for_ledger() if self.is_document else qs.all()
        return qs.filter(**{party_field: party})

    def total_before(self, party_field: str, party, start: date) -> Decimal:
        total = self.rows(party_field, party).filter(
            **{f"{self.date_field}__lt": start}
        ).aggregate(total=Sum(self.amount_field))["total"]
        return total or ZERO

    def within(self, party_field: str, party, period: ResolvedPeriod):
        return self.rows(party_field, party).filter(
            **{
                f"{self.date_field}__gte": period.start_date,
                f"{self.date_field}__lte": period.end_date,
            }
        ).order_by(self.date_field, "id")


@dataclass(frozen=True)
class LedgerSide:
    party_type: str
    party_model: type
    party_field: str
    code_field: str
    primary: Stream
    adjustment: Stream
    payment: Stream
    # Customer: primary documents are debits. Vendor: they are credits.
    primary_is_debit: bool

    def party_summary(self, party) -> dict:
        return {
            "id": party.pk,
            "display_name": party.display_name,
            "company_name": party.company_name,
            self.code_field: getattr(party, self.code_field),
            "email": party.email,
            "phone": party.phone,
            "gstin": party.gstin,
            "currency_code": party.currency_code,
        }

    def signed(self, balance: Decimal, debit: Decimal, credit: Decimal) -> Decimal:
        if self.primary_is_debit:
            return balance + debit - credit
        return balance + credit - debit


CUSTOMER_LEDGER = LedgerSide(
    party_type="customer",
    party_model=Customer,
    party_field="customer",
    code_field="customer_code",
    primary=Stream(
        model=Invoice,
        type="invoice",
        date_field="document_date",
        number_field="document_number",
        amount_field="total_amount",
        describe=lambda row: "Invoice",
        is_debit=True,
    ),
    adjustment=Stream(
        model=CreditNote,
        type="credit-note",
        date_field="document_date",
        number_field="document_number",
        amount_field="total_amount",
        describe=lambda row: row.reason or "Credit Note",
        is_debit=False,
    ),
    payment=Stream(
        model=PaymentReceived,
        type="payment",
        date_field="payment_date",
        number_field="payment_number",
        amount_field="amount",
        describe=lambda row: row.payment_mode or "Payment Received",
        is_debit=False,
        is_document=False,
    ),
    primary_is_debit=True,
)

VENDOR_LEDGER = LedgerSide(
    party_type="vendor",
    party_model=Vendor,
    party_field="vendor",
    code_field="vendor_code",
    primary=Stream(
        model=Bill,
        type="bill",
        date_field="document_date",
        number_field="document_number",
        amount_field="total_amount",
        describe=lambda row: row.notes or "Bill",
        is_debit=False,
    ),
    adjustment=Stream(
        model=DebitNote,
        type="debit-note",
        date_field="document_date",
        number_field="document_number",
        amount_field="total_amount",
        describe=lambda row: row.reason or "Debit Note",
        is_debit=True,
    ),
    payment=Stream(
        model=PaymentMade,
        type="payment",
        date_field="payment_date",
        number_field="payment_number",
        amount_field="amount",
        describe=lambda row: row.payment_mode or "Payment Made",
        is_debit=True,
        is_document=False,
    ),
    primary_is_debit=False,
)


# =============================================================================
# Builder
# =============================================================================

def opening_balance(side: LedgerSide, party, start: date) -> Decimal:
    pf = side.party_field
    return round_money(
        party.opening_balance
        + side.primary.total_before(pf, party, start)
        - side.adjustment.total_before(pf, party, start)
        - side.payment.total_before(pf, party, start)
    )


def _collect(side: LedgerSide, party, period: ResolvedPeriod) -> list:
    """
    Raw (date, type, number, description, debit, credit) tuples in
    [primary, adjustment, payment] order, each stream sorted by date.
    """
    entries = []
    for stream in (side.primary, side.adjustment, side.payment):
        for row in stream.within(side.party_field, party, period):
            amount = getattr(row, stream.amount_field)
            entries.append((
                getattr(row, stream.date_field),
                stream.type,
                getattr(row, stream.number_field),
                stream.describe(row),
                amount if stream.is_debit else ZERO,
                ZERO if stream.is_debit else amount,
            ))
    return entries


def build_statement(
    side: LedgerSide,
    party_id,
    query: Optional[Mapping] = None,
    today: Optional[date] = None,
) -> Statement:
    """
    Build the statement for one party.

    Raises PartyNotFound before any aggregation runs.
    """
    party = side.party_model.objects.filter(pk=party_id).first()
    if party is None:
        raise PartyNotFound(
            f"{side.party_type.capitalize()} not found.",
            details={"party_type": side.party_type, "id": party_id},
        )

    with time_statement_build(side.party_type):
        period = resolve_period(query, party.created_at, today)
        opening = opening_balance(side, party, period.start_date)

        entries = _collect(side, party, period)
        # list.sort is stable: same-day entries keep stream order.
        entries.sort(key=lambda entry: entry[0])

        balance = opening
        total_debit = ZERO
        total_credit = ZERO
        lines = []
        for entry_date, entry_type, number, description, debit, credit in entries:
            balance = round_money(side.signed(balance, debit, credit))
            total_debit += debit
            total_credit += credit
            lines.append(StatementLine(
                date=entry_date,
                type=entry_type,
                document_number=number,
                description=description,
                debit=round_money(debit),
                credit=round_money(credit),
                running_balance=balance,
            ))

    logger.info(
        "Statement built",
        extra={
            "party_type": side.party_type,
            "party_id": party.pk,
            "start_date": period.start_date.isoformat(),
            "end_date": period.end_date.isoformat(),
            "transaction_count": len(lines),
            "range_fallback": period.fallback,
        },
    )

    return Statement(
        party_type=side.party_type,
        party=side.party_summary(party),
        period=period,
        opening_balance=opening,
        transactions=lines,
        closing_balance=balance,
        total_debit=round_money(total_debit),
        total_credit=round_money(total_credit),
    )


def build_customer_statement(customer_id, query=None, today=None) -> Statement:
    return build_statement(CUSTOMER_LEDGER, customer_id, query, today)


def build_vendor_statement(vendor_id, query=None, today=None) -> Statement:
    return build_statement(VENDOR_LEDGER, vendor_id, query, today)
