"""Spreadsheet export utilities."""
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO

import openpyxl
from django.http import HttpResponse
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def rows_to_xlsx_response(rows, columns, filename, *, title="Export"):
    """Write *rows* to a single-sheet workbook and return it as a download.

    Args:
        rows: iterable of objects (model instances or dicts)
        columns: list of (field_name_or_callable, header_label) tuples.
            Strings are resolved with getattr (or dict lookup), callables
            are called with the row.
        filename: download filename (without extension)
    """
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = title[:31]

    header_font = Font(bold=True, color="FFFFFF", size=11)
    header_fill = PatternFill(start_color="1F3A5F", end_color="1F3A5F", fill_type="solid")

    for col_num, (_, header) in enumerate(columns, 1):
        cell = ws.cell(row=1, column=col_num, value=header)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center", vertical="center")

    widths = [len(header) for _, header in columns]
    for row_num, obj in enumerate(rows, start=2):
        for col_num, (field, _) in enumerate(columns, 1):
            value = _resolve(obj, field)
            ws.cell(row=row_num, column=col_num, value=value)
            if value is not None:
                widths[col_num - 1] = max(widths[col_num - 1], len(str(value)))

    for col_num, width in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(col_num)].width = min(width + 4, 50)

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)

    response = HttpResponse(buffer.getvalue(), content_type=XLSX_CONTENT_TYPE)
    response["Content-Disposition"] = (
        f'attachment; filename="{filename}_{date.today().isoformat()}.xlsx"'
    )
    return response


def _resolve(obj, field):
    if callable(field):
        value = field(obj)
    elif isinstance(obj, dict):
        value = obj.get(field)
    else:
        value = getattr(obj, field, None)
    if isinstance(value, datetime):
        # Workbooks cannot store tz-aware datetimes.
        return value.replace(tzinfo=None)
    if isinstance(value, Decimal):
        return float(value)
    if value is None or isinstance(value, (bool, int, float, str, date)):
        return value
    return str(value)
