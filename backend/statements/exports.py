"""
Export utilities for party statements.
Supports Excel (.xlsx), CSV (.csv), and Text (.txt) formats.
"""
import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from django.http import HttpResponse
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter

from statements.builder import Statement


class ExportFormat:
    EXCEL = 'xlsx'
    CSV = 'csv'
    TXT = 'txt'

    CHOICES = [EXCEL, CSV, TXT]
    CONTENT_TYPES = {
        EXCEL: 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        CSV: 'text/csv',
        TXT: 'text/plain',
    }


STATEMENT_EXPORT_COLUMNS = [
    {'key': 'date', 'header': 'Date', 'width': 12},
    {'key': 'type', 'header': 'Type', 'width': 12},
    {'key': 'document_number', 'header': 'Number', 'width': 18},
    {'key': 'description', 'header': 'Description', 'width': 30},
    {'key': 'debit', 'header': 'Debit', 'width': 15, 'numeric': True},
    {'key': 'credit', 'header': 'Credit', 'width': 15, 'numeric': True},
    {'key': 'running_balance', 'header': 'Balance', 'width': 15, 'numeric': True},
]


def format_value(value: Any) -> str:
    """Format a value for export."""
    if value is None:
        return ''
    if isinstance(value, datetime):
        return value.strftime('%Y-%m-%d %H:%M:%S')
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return f'{value:.2f}'
    return str(value)


def prepare_statement_rows(statement: Statement) -> list[dict]:
    """
    Flatten a statement into export rows: an opening row, one row per
    transaction, and a closing row.
    """
    period = statement.period
    rows = [{
        'date': period.start_date,
        'type': '',
        'document_number': '',
        'description': 'Opening Balance',
        'debit': None,
        'credit': None,
        'running_balance': statement.opening_balance,
    }]
    for line in statement.transactions:
        rows.append({
            'date': line.date,
            'type': line.type,
            'document_number': line.document_number,
            'description': line.description,
            'debit': line.debit,
            'credit': line.credit,
            'running_balance': line.running_balance,
        })
    rows.append({
        'date': period.end_date,
        'type': '',
        'document_number': '',
        'description': 'Closing Balance',
        'debit': statement.total_debit,
        'credit': statement.total_credit,
        'running_balance': statement.closing_balance,
    })
    return rows


def statement_title(statement: Statement) -> str:
    name = statement.party['display_name']
    return f'Statement of Account - {name}'


def statement_subtitle(statement: Statement) -> str:
    period = statement.period
    return f'Period: {period.start_date.isoformat()} to {period.end_date.isoformat()}'


def export_to_excel(statement: Statement, sheet_name: str = 'Statement') -> bytes:
    """
    Export a statement to Excel.

    Rows 1-3 carry the title, the period and the party currency; the
    column header starts on row 5.
    """
    columns = STATEMENT_EXPORT_COLUMNS
    rows = prepare_statement_rows(statement)

    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name

    # Styles
    header_font = Font(bold=True, color='FFFFFF')
    header_fill = PatternFill(start_color='4472C4', end_color='4472C4', fill_type='solid')
    header_alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)
    thin_border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    # Title, period and currency rows
    preamble = [
        (statement_title(statement), Font(bold=True, size=14)),
        (statement_subtitle(statement), Font(size=11)),
        (f"Currency: {statement.party['currency_code']}", Font(italic=True, size=10, color='666666')),
    ]
    for row_idx, (text, font) in enumerate(preamble, 1):
        ws.merge_cells(start_row=row_idx, start_column=1, end_row=row_idx, end_column=len(columns))
        cell = ws.cell(row=row_idx, column=1, value=text)
        cell.font = font
        cell.alignment = Alignment(horizontal='center')

    # Header row
    header_row = 5
    for col_idx, col in enumerate(columns, 1):
        cell = ws.cell(row=header_row, column=col_idx, value=col['header'])
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment
        cell.border = thin_border
        ws.column_dimensions[get_column_letter(col_idx)].width = col.get('width', 15)

    # Data rows; numeric cells keep numeric values so totals work in Excel
    last_row = header_row + len(rows)
    for row_idx, row_data in enumerate(rows, header_row + 1):
        for col_idx, col in enumerate(columns, 1):
            value = row_data.get(col['key'])
            if col.get('numeric'):
                cell = ws.cell(row=row_idx, column=col_idx, value=float(value) if value is not None else None)
                cell.number_format = '#,##0.00'
                cell.alignment = Alignment(horizontal='right')
            else:
                cell = ws.cell(row=row_idx, column=col_idx, value=format_value(value))
            cell.border = thin_border
            if row_idx in (header_row + 1, last_row):
                cell.font = Font(bold=True)

    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output.getvalue()


def export_to_csv(statement: Statement, delimiter: str = ',') -> str:
    output = io.StringIO()
    writer = csv.writer(output, delimiter=delimiter, quoting=csv.QUOTE_MINIMAL)

    writer.writerow([col['header'] for col in STATEMENT_EXPORT_COLUMNS])
    for row_data in prepare_statement_rows(statement):
        writer.writerow([
            format_value(row_data.get(col['key'])) for col in STATEMENT_EXPORT_COLUMNS
        ])

    return output.getvalue()


def export_to_txt(statement: Statement, separator: str = '  ') -> str:
    """
    Fixed-width text rendition, headed by the title and period lines.
    """
    columns = STATEMENT_EXPORT_COLUMNS
    rows = prepare_statement_rows(statement)

    col_widths = []
    for col in columns:
        width = max(len(col['header']), col.get('width', 0))
        for row_data in rows:
            width = max(width, len(format_value(row_data.get(col['key']))))
        col_widths.append(min(width, 50))  # Cap at 50 chars

    def render(values):
        parts = []
        for idx, col in enumerate(columns):
            value = values[idx]
            if len(value) > col_widths[idx]:
                value = value[:col_widths[idx] - 3] + '...'
            if col.get('numeric'):
                parts.append(value.rjust(col_widths[idx]))
            else:
                parts.append(value.ljust(col_widths[idx]))
        return separator.join(parts).rstrip()

    lines = [statement_title(statement), statement_subtitle(statement), '']
    lines.append(render([col['header'] for col in columns]))
    lines.append(separator.join('-' * width for width in col_widths))
    for row_data in rows:
        lines.append(render([format_value(row_data.get(col['key'])) for col in columns]))

    return '\n'.join(lines) + '\n'


def create_export_response(statement: Statement, format: str, filename: str) -> HttpResponse:
    """
    Create an HTTP response with the exported statement.

    Raises ValueError for an unsupported format.
    """
    if format not in ExportFormat.CHOICES:
        raise ValueError(f"Invalid format: {format}. Must be one of {ExportFormat.CHOICES}")

    content_type = ExportFormat.CONTENT_TYPES[format]
    full_filename = f"{filename}.{format}"

    if format == ExportFormat.EXCEL:
        response = HttpResponse(export_to_excel(statement), content_type=content_type)
    elif format == ExportFormat.CSV:
        response = HttpResponse(export_to_csv(statement), content_type=content_type)
        response.charset = 'utf-8-sig'  # BOM for Excel compatibility
    else:  # TXT
        response = HttpResponse(export_to_txt(statement), content_type=content_type)

    response['Content-Disposition'] = f'attachment; filename="{full_filename}"'
    return response
