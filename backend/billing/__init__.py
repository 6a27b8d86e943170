"""
Billing app - documents, payments and the tax/numbering engine.

This app provides:
- gst: IGST vs CGST+SGST split by jurisdiction
- pricing: line item pricing and document rollup
- sequences: collision-free document numbering
- Invoice, Bill, CreditNote, DebitNote with line items
- PaymentReceived, PaymentMade with allocations

Commands handle all mutations so pricing, numbering and allocation
happen inside one transaction.
"""
