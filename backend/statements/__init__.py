"""
Statements app - customer and vendor statements of account.

This app provides:
- periods: query parameters to an inclusive date range
- builder: opening balance, chronological lines, running balance
- exports: xlsx, csv and txt renditions

Nothing is stored; every statement is derived from billing documents.
"""
