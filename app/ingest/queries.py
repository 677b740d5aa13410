"""
Read side of the raw-row tables.

Raw rows are left-joined to their ExcelData projection on
(upload_id, row_index); the join is annotated per kind with subqueries
and the two kinds are merged in Python when no kind is requested.
"""
import heapq
import logging

from django.db.models import OuterRef, Q, Subquery
from django.db.models.functions import Coalesce
from ingest.excel import UploadRejected, try_normalize_type
from ingest.models import UPLOAD_TYPES, row_model_for
from pipeline.dates import normalize_date_value, parse_flexible_date
from pipeline.models import ExcelData
from pipeline.normalize import (
    ALMACEN_OPTION_CANDIDATES,
    COORDINADOR_OPTION_CANDIDATES,
    MONITORISTA_OPTION_CANDIDATES,
    build_normalized_lookup,
    resolve_field,
)
from pipeline.stage import ordered_row

logger = logging.getLogger(__name__)

ROW_ORDERING = ('-upload__uploaded_at', 'row_index', 'id')


def parse_type_filter(tipo):
    """Optional kind filter: blank means both kinds."""
    if tipo is None or not str(tipo).strip():
        return None
    normalized = try_normalize_type(tipo)
    if normalized is None:
        raise UploadRejected("Tipo de archivo no soportado. Use 'detecciones' o 'revisiones'.")
    return normalized


def parse_int(value, default=None):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def clamp_paging(page, page_size, default_size, max_size):
    """page < 1 -> 1; page_size < 1 -> default; page_size > max -> max."""
    page = parse_int(page, 1)
    page_size = parse_int(page_size, default_size)
    if page < 1:
        page = 1
    if page_size < 1:
        page_size = default_size
    elif page_size > max_size:
        page_size = max_size
    return page, page_size


def annotated_rows(upload_type):
    """Raw rows of one kind with their projection's canonical fields."""
    model = row_model_for(upload_type)
    projection = ExcelData.objects.filter(
        upload_id=OuterRef('upload_id'),
        row_index=OuterRef('row_index'),
    ).order_by('id')

    return (
        model.objects
        .select_related('upload', 'upload__uploaded_by')
        .annotate(
            almacen=Subquery(projection.values('almacen')[:1]),
            monitorista_reporta=Subquery(projection.values('monitorista_reporta')[:1]),
            coordinador_turno=Subquery(projection.values('coordinador_turno')[:1]),
            fecha_envio=Subquery(
                projection.annotate(effective=Coalesce('fecha_envio', 'columna1')).values('effective')[:1]
            ),
        )
    )


def fecha_envio_patterns(raw):
    """
    Substrings that count as a match for a fechaEnvio filter: the input,
    its yyyy-mm-dd form, and its dd/mm/yyyy and d/m/yyyy renderings.
    """
    trimmed = (raw or '').strip()
    if not trimmed:
        return []

    patterns = [trimmed]
    normalized = normalize_date_value(trimmed)
    if normalized and normalized not in patterns:
        patterns.append(normalized)

    parsed = parse_flexible_date(normalized or trimmed)
    if parsed:
        for rendered in (parsed.strftime('%d/%m/%Y'), f"{parsed.day}/{parsed.month}/{parsed.year}"):
            if rendered not in patterns:
                patterns.append(rendered)
    return patterns


def apply_row_filters(qs, *, upload_id=None, almacen=None, monitorista=None,
                      coordinador=None, fecha_envio=None):
    if upload_id is not None:
        qs = qs.filter(upload_id=upload_id)
    if almacen and almacen.strip():
        qs = qs.filter(almacen__icontains=almacen.strip())
    if monitorista and monitorista.strip():
        qs = qs.filter(monitorista_reporta__icontains=monitorista.strip())
    if coordinador and coordinador.strip():
        qs = qs.filter(coordinador_turno__icontains=coordinador.strip())

    patterns = fecha_envio_patterns(fecha_envio)
    if patterns:
        condition = Q()
        for pattern in patterns:
            condition |= Q(fecha_envio__icontains=pattern)
        qs = qs.filter(condition)
    return qs


def filtered_querysets(upload_type=None, **filters):
    """One filtered, ordered queryset per requested kind."""
    kinds = (upload_type,) if upload_type else UPLOAD_TYPES
    return [
        apply_row_filters(annotated_rows(kind), **filters).order_by(*ROW_ORDERING)
        for kind in kinds
    ]


def _merge_key(row):
    return (-row.upload.uploaded_at.timestamp(), row.row_index, row.id)


def paginate_rows(querysets, page, page_size):
    """
    Page through the union of `querysets`, newest upload first, then row
    index. Returns (total, rows).
    """
    total = sum(qs.count() for qs in querysets)
    offset = (page - 1) * page_size

    if len(querysets) == 1:
        return total, list(querysets[0][offset:offset + page_size])

    heads = [list(qs[:offset + page_size]) for qs in querysets]
    merged = list(heapq.merge(*heads, key=_merge_key))
    return total, merged[offset:offset + page_size]


def uploader_payload(user):
    if user is None:
        return None
    return {
        'id': user.pk,
        'username': user.get_username(),
        'fullName': user.get_full_name(),
    }


def row_payload(row, include_uploader):
    upload = row.upload
    return {
        'rowId': row.id,
        'uploadId': row.upload_id,
        'uploadType': upload.upload_type,
        'fileName': upload.file_name,
        'sheetName': upload.sheet_name,
        'rowIndex': row.row_index,
        'uploadedAt': upload.uploaded_at.isoformat(),
        'uploadedBy': uploader_payload(upload.uploaded_by) if include_uploader else None,
        'data': dict(row.data or {}),
    }


def enriched_data(row):
    """Raw row data plus the canonical fields, without overwriting existing keys."""
    data = dict(row.data or {})
    canonical = (
        (('Almacen', 'almacen'), row.almacen),
        (('Monitorista', 'monitorista'), row.monitorista_reporta),
        (('Coordinador', 'coordinador'), row.coordinador_turno),
        (('FechaEnvio', 'fechaEnvio'), row.fecha_envio),
    )
    for keys, value in canonical:
        if value is None or not str(value).strip():
            continue
        for key in keys:
            data.setdefault(key, value)
    return data


def uploaded_data_payload(row, include_uploader):
    upload = row.upload
    return {
        'id': row.id,
        'uploadId': row.upload_id,
        'uploadType': upload.upload_type,
        'rowIndex': row.row_index,
        'fileName': upload.file_name,
        'sheetName': upload.sheet_name,
        'uploadedAt': upload.uploaded_at.isoformat(),
        'data': enriched_data(row),
        'uploadedBy': uploader_payload(upload.uploaded_by) if include_uploader else None,
    }


def upload_info(row):
    if row is None:
        return None
    upload = row.upload
    return {
        'uploadType': upload.upload_type,
        'uploadedAt': upload.uploaded_at.isoformat(),
        'uploaderName': upload.uploaded_by.get_full_name(),
        'uploaderUsername': upload.uploaded_by.get_username(),
    }


def _distinct_casefold(values):
    seen = {}
    for value in values:
        value = (value or '').strip()
        if value and value.casefold() not in seen:
            seen[value.casefold()] = value
    return [seen[key] for key in sorted(seen)]


def filter_options(upload_type=None):
    """
    Distinct almacenes, monitoristas and coordinadores across raw rows.
    Blank projection values are re-resolved from the row's own data.
    """
    kinds = (upload_type,) if upload_type else UPLOAD_TYPES
    almacenes, monitoristas, coordinadores = [], [], []

    for kind in kinds:
        rows = annotated_rows(kind).values(
            'data', 'upload__headers', 'almacen', 'monitorista_reporta', 'coordinador_turno',
        )
        for row in rows:
            almacen = row['almacen']
            monitorista = row['monitorista_reporta']
            coordinador = row['coordinador_turno']

            blank = [not (v or '').strip() for v in (almacen, monitorista, coordinador)]
            if any(blank) and isinstance(row['data'], dict):
                lookup = build_normalized_lookup(ordered_row(row['data'], row['upload__headers'] or []))
                if blank[0]:
                    almacen = resolve_field(lookup, ALMACEN_OPTION_CANDIDATES)
                if blank[1]:
                    monitorista = resolve_field(lookup, MONITORISTA_OPTION_CANDIDATES)
                if blank[2]:
                    coordinador = resolve_field(lookup, COORDINADOR_OPTION_CANDIDATES)

            almacenes.append(almacen)
            monitoristas.append(monitorista)
            coordinadores.append(coordinador)

    return {
        'almacenes': _distinct_casefold(almacenes),
        'monitoristas': _distinct_casefold(monitoristas),
        'coordinadores': _distinct_casefold(coordinadores),
    }
