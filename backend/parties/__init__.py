"""
Parties app - the counterparties the ledger is kept against.

This app provides:
- CompanyProfile: the home business (its state and GSTIN drive GST splits)
- Customer: receivable side (invoices, credit notes, payments received)
- Vendor: payable side (bills, debit notes, payments made)
"""
