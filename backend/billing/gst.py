# billing/gst.py
"""
GST split: IGST for inter-state supply, CGST + SGST for intra-state.

Jurisdiction is compared on normalized state names. A blank state falls
back to the state encoded in the first two digits of the GSTIN. When
either side is still unknown the supply is treated as inter-state, so
tax is never silently split as intra-state.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from billing.money import ZERO, round_money, to_decimal

GST_STATE_CODE_MAP = {
    "01": "Jammu and Kashmir",
    "02": "Himachal Pradesh",
    "03": "Punjab",
    "04": "Chandigarh",
    "05": "Uttarakhand",
    "06": "Haryana",
    "07": "Delhi",
    "08": "Rajasthan",
    "09": "Uttar Pradesh",
    "10": "Bihar",
    "11": "Sikkim",
    "12": "Arunachal Pradesh",
    "13": "Nagaland",
    "14": "Manipur",
    "15": "Mizoram",
    "16": "Tripura",
    "17": "Meghalaya",
    "18": "Assam",
    "19": "West Bengal",
    "20": "Jharkhand",
    "21": "Odisha",
    "22": "Chhattisgarh",
    "23": "Madhya Pradesh",
    "24": "Gujarat",
    "25": "Daman and Diu",
    "26": "Dadra and Nagar Haveli",
    "27": "Maharashtra",
    "28": "Andhra Pradesh",
    "29": "Karnataka",
    "30": "Goa",
    "31": "Lakshadweep",
    "32": "Kerala",
    "33": "Tamil Nadu",
    "34": "Puducherry",
    "35": "Andaman and Nicobar Islands",
    "36": "Telangana",
    "37": "Andhra Pradesh",
}


@dataclass(frozen=True)
class GstSplit:
    igst: Decimal
    cgst: Decimal
    sgst: Decimal

    @property
    def total(self) -> Decimal:
        return self.igst + self.cgst + self.sgst

    @property
    def is_inter_state(self) -> bool:
        return self.cgst == ZERO and self.sgst == ZERO and self.igst != ZERO


def state_from_gstin(gstin: Optional[str]) -> Optional[str]:
    if not gstin or len(gstin.strip()) < 2:
        return None
    return GST_STATE_CODE_MAP.get(gstin.strip()[:2])


def normalized_state(state: Optional[str], gstin: Optional[str] = None) -> Optional[str]:
    """Trimmed, case-folded state name, or None when neither input resolves."""
    if state and state.strip():
        return state.strip().casefold()
    from_gstin = state_from_gstin(gstin)
    if from_gstin:
        return from_gstin.casefold()
    return None


def resolve_state_name(state: Optional[str], gstin: Optional[str] = None) -> str:
    """Display name for a jurisdiction; empty string when unknown."""
    if state and state.strip():
        return state.strip()
    return state_from_gstin(gstin) or ""


def is_inter_state(
    from_state: Optional[str],
    to_state: Optional[str],
    from_gstin: Optional[str] = None,
    to_gstin: Optional[str] = None,
) -> bool:
    company = normalized_state(from_state, from_gstin)
    party = normalized_state(to_state, to_gstin)
    if company is None or party is None:
        return True
    return company != party


def split_gst(
    tax_amount,
    from_state: Optional[str],
    to_state: Optional[str],
    from_gstin: Optional[str] = None,
    to_gstin: Optional[str] = None,
) -> GstSplit:
    """
    Split a tax amount into IGST / CGST / SGST.

    The components always sum to round_money(tax_amount). For intra-state
    supply CGST is half the tax rounded to paise and SGST takes the
    remainder, so an odd paisa lands on SGST.
    """
    tax_amount = to_decimal(tax_amount, "tax_amount", required=True)
    total = round_money(tax_amount)
    if is_inter_state(from_state, to_state, from_gstin, to_gstin):
        return GstSplit(igst=total, cgst=ZERO, sgst=ZERO)

    cgst = round_money(tax_amount / 2)
    return GstSplit(igst=ZERO, cgst=cgst, sgst=total - cgst)
