"""
Deletion services. ExcelData rows are joined to raw rows by
(upload_id, row_index) without a foreign key, so every delete here removes
the matching projection rows itself.
"""
import logging
from collections import Counter, defaultdict

from django.db import transaction
from django.db.models import Q
from ingest.excel import UploadRejected, try_normalize_type
from ingest.models import Deteccion, ExcelUpload, Revision, row_model_for
from pipeline.models import ExcelData

logger = logging.getLogger(__name__)


class NothingToDelete(Exception):
    """None of the requested rows exist."""


def parse_delete_items(items):
    """
    Validate a list of {"rowId", "tipo"} dicts into {kind: set(row ids)}.
    Raises UploadRejected with the user-facing reason.
    """
    if not items or not isinstance(items, list):
        raise UploadRejected("Debe proporcionar al menos un registro para eliminar.")

    parsed = defaultdict(set)
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            row_id = int(item.get('rowId'))
        except (TypeError, ValueError):
            raise UploadRejected("No se encontraron registros válidos para eliminar.")
        if row_id <= 0:
            raise UploadRejected("No se encontraron registros válidos para eliminar.")

        kind = try_normalize_type(item.get('tipo'))
        if kind is None:
            raise UploadRejected("Solo se pueden eliminar registros de tipo 'detecciones' o 'revisiones'.")
        parsed[kind].add(row_id)

    if not parsed:
        raise UploadRejected("No se encontraron registros válidos para eliminar.")
    return dict(parsed)


def _projection_filter(pairs):
    condition = Q()
    for upload_id, row_index in pairs:
        condition |= Q(upload_id=upload_id, row_index=row_index)
    return condition


def delete_rows(rows_by_kind):
    """
    Delete raw rows by id, their projection rows, and decrement each
    manifest's total_rows (never below zero).

    Returns (deleted_rows, deleted_excel_data). Raises NothingToDelete if no
    requested row exists.
    """
    with transaction.atomic():
        pairs = set()
        per_upload = Counter()
        deleted_rows = 0

        for kind, ids in rows_by_kind.items():
            model = row_model_for(kind)
            rows = list(model.objects.filter(id__in=ids).values_list('id', 'upload_id', 'row_index'))
            if not rows:
                continue
            for _row_id, upload_id, row_index in rows:
                pairs.add((upload_id, row_index))
                per_upload[upload_id] += 1
            model.objects.filter(id__in=[row[0] for row in rows]).delete()
            deleted_rows += len(rows)

        if deleted_rows == 0:
            raise NothingToDelete()

        deleted_excel_data, _ = ExcelData.objects.filter(_projection_filter(pairs)).delete()

        for upload in ExcelUpload.objects.select_for_update().filter(id__in=per_upload):
            upload.total_rows = max(upload.total_rows - per_upload[upload.id], 0)
            upload.save(update_fields=['total_rows'])

    logger.info("Deleted %d raw rows and %d ExcelData rows", deleted_rows, deleted_excel_data)
    return deleted_rows, deleted_excel_data


def delete_upload(upload):
    """Delete one manifest with its raw rows and projection rows."""
    with transaction.atomic():
        deleted_excel_data, _ = ExcelData.objects.filter(upload_id=upload.pk).delete()
        # Raw rows go with the manifest through the CASCADE
        deleted_rows = upload.detecciones.count() + upload.revisiones.count()
        upload_id = upload.pk
        upload.delete()

    logger.info("Deleted upload %s: %d raw rows, %d ExcelData rows",
                upload_id, deleted_rows, deleted_excel_data)
    return {
        'deletedRows': deleted_rows,
        'deletedExcelData': deleted_excel_data,
    }


def delete_all_rows():
    """Delete every raw row, projection row and manifest. Returns per-table counts."""
    with transaction.atomic():
        counts = {
            'deletedDetecciones': Deteccion.objects.count(),
            'deletedRevisiones': Revision.objects.count(),
            'deletedExcelData': ExcelData.objects.count(),
            'deletedUploads': ExcelUpload.objects.count(),
        }
        if not any(counts.values()):
            return counts

        Deteccion.objects.all().delete()
        Revision.objects.all().delete()
        ExcelData.objects.all().delete()
        ExcelUpload.objects.all().delete()

    logger.info("Deleted all ingested data: %s", counts)
    return counts
