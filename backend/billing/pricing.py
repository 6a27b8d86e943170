# billing/pricing.py
"""
Line item pricing and document rollup.

price_line() is pure: the same LineItemInput and PricingContext always
produce the same PricedLine. Intermediate values keep full Decimal
precision; each output amount is rounded once, half away from zero.

    line_total = quantity * rate
    discount   = line_total * discount_percent / 100
    taxable    = line_total - discount
    tax        = taxable * gst_rate / 100  -> split_gst()

A line's `amount` is its taxable value (before tax). Negative inputs are
rejected by the input serializers, not here.
"""

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from billing.gst import split_gst
from billing.money import ZERO, round_money, to_decimal

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PricingContext:
    """Jurisdictions of the two sides of a document."""

    company_state: Optional[str]
    counterparty_state: Optional[str]
    company_gstin: Optional[str] = None
    counterparty_gstin: Optional[str] = None

    @classmethod
    def for_party(cls, company, party, place_of_supply: Optional[str] = None):
        """
        Build the context for a document against `party`.

        An explicit place_of_supply on the document overrides the party's.
        """
        return cls(
            company_state=company.state if company else None,
            counterparty_state=place_of_supply or party.place_of_supply or None,
            company_gstin=company.gstin if company else None,
            counterparty_gstin=party.gstin or None,
        )


@dataclass(frozen=True)
class LineItemInput:
    quantity: Decimal
    rate: Decimal
    discount_percent: Decimal = ZERO
    gst_rate: Decimal = ZERO
    item_name: str = ""
    description: str = ""
    hsn_code: str = ""
    unit: str = ""

    @classmethod
    def from_payload(cls, data: dict, index: int = 0, allow_discount: bool = True):
        """
        Parse one line from request data.

        quantity and rate are required; discount_percent and gst_rate
        default to zero. Non-numeric values raise ArithmeticInputError.
        """
        prefix = f"items[{index}]"
        discount = to_decimal(data.get("discount_percent"), f"{prefix}.discount_percent")
        return cls(
            quantity=to_decimal(data.get("quantity"), f"{prefix}.quantity", required=True),
            rate=to_decimal(data.get("rate"), f"{prefix}.rate", required=True),
            discount_percent=discount if allow_discount else ZERO,
            gst_rate=to_decimal(data.get("gst_rate"), f"{prefix}.gst_rate"),
            item_name=data.get("item_name") or "",
            description=data.get("description") or "",
            hsn_code=data.get("hsn_code") or "",
            unit=data.get("unit") or "",
        )

    @classmethod
    def from_instance(cls, item):
        """Re-read a stored line so it can be priced again."""
        return cls(
            quantity=item.quantity,
            rate=item.rate,
            discount_percent=item.discount_percent,
            gst_rate=item.gst_rate,
            item_name=item.item_name,
            description=item.description,
            hsn_code=item.hsn_code,
            unit=item.unit,
        )


@dataclass(frozen=True)
class PricedLine:
    quantity: Decimal
    rate: Decimal
    discount_percent: Decimal
    gst_rate: Decimal
    discount_amount: Decimal
    igst_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    amount: Decimal
    item_name: str = ""
    description: str = ""
    hsn_code: str = ""
    unit: str = ""

    @property
    def total_tax(self) -> Decimal:
        return self.igst_amount + self.cgst_amount + self.sgst_amount

    def to_model_fields(self) -> dict:
        return asdict(self)

    def to_dict(self) -> dict:
        data = {key: str(value) if isinstance(value, Decimal) else value
                for key, value in asdict(self).items()}
        data["total_tax"] = str(self.total_tax)
        return data


def price_line(item: LineItemInput, context: PricingContext) -> PricedLine:
    line_total = item.quantity * item.rate
    discount = line_total * item.discount_percent / HUNDRED
    taxable = line_total - discount
    tax = taxable * item.gst_rate / HUNDRED

    split = split_gst(
        tax,
        context.company_state,
        context.counterparty_state,
        context.company_gstin,
        context.counterparty_gstin,
    )

    return PricedLine(
        quantity=item.quantity,
        rate=item.rate,
        discount_percent=item.discount_percent,
        gst_rate=item.gst_rate,
        discount_amount=round_money(discount),
        igst_amount=split.igst,
        cgst_amount=split.cgst,
        sgst_amount=split.sgst,
        amount=round_money(taxable),
        item_name=item.item_name,
        description=item.description,
        hsn_code=item.hsn_code,
        unit=item.unit,
    )


@dataclass(frozen=True)
class DocumentTotals:
    sub_total: Decimal
    igst_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    total_tax: Decimal
    discount_amount: Decimal = ZERO
    shipping_charge: Decimal = ZERO
    round_off: Decimal = ZERO
    total_amount: Decimal = ZERO
    amount_paid: Decimal = ZERO
    balance_due: Decimal = ZERO
    line_count: int = field(default=0, compare=False)

    def header_fields(self, include_charges: bool = False) -> dict:
        """Field values to store on the document header."""
        data = {
            "sub_total": self.sub_total,
            "discount_amount": self.discount_amount,
            "igst_amount": self.igst_amount,
            "cgst_amount": self.cgst_amount,
            "sgst_amount": self.sgst_amount,
            "total_tax": self.total_tax,
            "total_amount": self.total_amount,
            "balance_due": self.balance_due,
        }
        if include_charges:
            data["shipping_charge"] = self.shipping_charge
            data["round_off"] = self.round_off
        return data


def balance_due(total_amount, amount_paid) -> Decimal:
    """Outstanding amount; overpayment never makes it negative."""
    return max(round_money(total_amount - amount_paid), ZERO)


def roll_up(
    lines: Iterable[PricedLine],
    discount_amount=ZERO,
    shipping_charge=ZERO,
    round_off=ZERO,
    amount_paid=ZERO,
) -> DocumentTotals:
    """
    Sum priced lines into document totals.

    total_amount = sub_total - discount_amount + total_tax
                   + shipping_charge + round_off
    balance_due  = max(total_amount - amount_paid, 0)

    Shipping and round-off only apply to invoices; other callers leave
    them at zero.
    """
    lines = list(lines)
    sub_total = sum((line.amount for line in lines), ZERO)
    igst = sum((line.igst_amount for line in lines), ZERO)
    cgst = sum((line.cgst_amount for line in lines), ZERO)
    sgst = sum((line.sgst_amount for line in lines), ZERO)
    total_tax = igst + cgst + sgst

    discount_amount = round_money(to_decimal(discount_amount, "discount_amount"))
    shipping_charge = round_money(to_decimal(shipping_charge, "shipping_charge"))
    round_off = round_money(to_decimal(round_off, "round_off"))
    amount_paid = round_money(to_decimal(amount_paid, "amount_paid"))

    total_amount = round_money(sub_total - discount_amount + total_tax + shipping_charge + round_off)

    return DocumentTotals(
        sub_total=round_money(sub_total),
        igst_amount=round_money(igst),
        cgst_amount=round_money(cgst),
        sgst_amount=round_money(sgst),
        total_tax=round_money(total_tax),
        discount_amount=discount_amount,
        shipping_charge=shipping_charge,
        round_off=round_off,
        total_amount=total_amount,
        amount_paid=amount_paid,
        balance_due=balance_due(total_amount, amount_paid),
        line_count=len(lines),
    )
