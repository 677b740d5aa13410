import re

from django.utils import timezone
from pipeline.dates import normalize_date_value, parse_month_value
from pipeline.models import ExcelData
from pipeline.normalize import (
    ALMACEN_CANDIDATES,
    COORDINADOR_CANDIDATES,
    FECHA_ENVIO_CANDIDATES,
    MONITORISTA_CANDIDATES,
    MONTH_CANDIDATES,
    build_normalized_lookup,
    resolve_field,
)

_INTEGER_RE = re.compile(r'^\s*[+-]?[0-9]+\s*$')
_INT32_MIN, _INT32_MAX = -2 ** 31, 2 ** 31 - 1


def serialize_row(row_data):
    """Copy of the header -> value mapping, header order preserved."""
    return {header: value for header, value in row_data.items()}


def ordered_row(row_data, headers):
    """
    Stored row data re-keyed in the sheet's header order. jsonb columns do
    not keep key order, and field resolution depends on it.
    """
    ordered = {header: row_data[header] for header in headers if header in row_data}
    for key, value in row_data.items():
        ordered.setdefault(key, value)
    return ordered


def _blank_to_none(value):
    if value is None:
        return None
    value = value.strip()
    return value or None


def _column_value(row_data, headers, position):
    if position >= len(headers):
        return None
    return _blank_to_none(row_data.get(headers[position]))


def _parse_int(value):
    """Optional sign and ASCII digits within the 32-bit range, else None."""
    if value is None or not _INTEGER_RE.match(value):
        return None
    number = int(value)
    if not _INT32_MIN <= number <= _INT32_MAX:
        return None
    return number


def project_row(row_data, headers, uploaded_at):
    """
    Resolve the canonical fields of one spreadsheet row.

    Returns a dict of ExcelData field values. Unresolved fields are None;
    `mes` always resolves, falling back to the upload's month.
    """
    lookup = build_normalized_lookup(ordered_row(row_data, headers))

    mes_texto = resolve_field(lookup, MONTH_CANDIDATES)
    fecha_envio_raw = resolve_field(lookup, FECHA_ENVIO_CANDIDATES)

    if timezone.is_aware(uploaded_at):
        fallback = timezone.localtime(uploaded_at).date()
    else:
        fallback = uploaded_at.date()

    columna3 = _column_value(row_data, headers, 2)

    return {
        'mes': parse_month_value(mes_texto, fallback),
        'mes_texto': _blank_to_none(mes_texto),
        'almacen': _blank_to_none(resolve_field(lookup, ALMACEN_CANDIDATES)),
        'monitorista_reporta': _blank_to_none(resolve_field(lookup, MONITORISTA_CANDIDATES)),
        'coordinador_turno': _blank_to_none(resolve_field(lookup, COORDINADOR_CANDIDATES)),
        'fecha_envio': normalize_date_value(fecha_envio_raw),
        'columna1': _column_value(row_data, headers, 0) or '',
        'columna2': _column_value(row_data, headers, 1) or '',
        'columna3': _parse_int(columna3),
    }


def build_excel_data(row_data, headers, upload, row_index):
    """Unsaved ExcelData for one accepted row of `upload`."""
    fields = project_row(row_data, headers, upload.uploaded_at)
    return ExcelData(
        upload=upload,
        sheet_name=upload.sheet_name,
        row_index=row_index,
        uploaded_by=upload.uploaded_by,
        fecha_creacion=upload.uploaded_at,
        **fields
    )
