"""
Upload API.

- POST upload-excel ingests one workbook as detecciones or revisiones
- GET endpoints list manifests and raw rows joined to their ExcelData
  projection, with the filters used by the dashboard
- DELETE endpoints remove rows or manifests and keep the projection and
  row counts in step
"""

import json
import logging

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from ingest import queries
from ingest.auth import READ_ROLES, ROLE_ADMIN, has_role, role_required
from ingest.cleanup import (
    NothingToDelete,
    delete_all_rows,
    delete_rows,
    delete_upload,
    parse_delete_items,
)
from ingest.excel import IngestionFailed, UploadRejected, ingest_workbook
from ingest.models import ExcelUpload, row_model_for

logger = logging.getLogger(__name__)


def _error(message, status):
    return JsonResponse({"message": message}, status=status)


@csrf_exempt
@require_http_methods(["POST"])
@role_required(ROLE_ADMIN)
def upload_excel(request):
    upload = request.FILES.get("file")
    content = upload.read() if upload is not None else b""
    file_name = getattr(upload, "name", "") or ""

    try:
        result = ingest_workbook(
            content=content,
            file_name=file_name,
            upload_type=request.GET.get("tipo"),
            user=request.user,
        )
    except UploadRejected as e:
        logger.warning("Upload %r rejected: %s", file_name, e.message)
        return _error(e.message, e.status)
    except IngestionFailed as e:
        return _error(e.detail, e.status)

    return JsonResponse(
        {
            "message": "Archivo cargado correctamente",
            "uploadId": result.upload_id,
            "tipo": result.upload_type,
            "totalRows": result.total_rows,
        }
    )


@require_http_methods(["GET"])
@role_required(*READ_ROLES)
def upload_list(request):
    """Manifests newest first; uploader details only for administrators."""
    try:
        upload_type = queries.parse_type_filter(request.GET.get("tipo"))
    except UploadRejected as e:
        return _error(e.message, e.status)

    uploads = ExcelUpload.objects.select_related("uploaded_by").order_by("-uploaded_at")
    if upload_type:
        uploads = uploads.filter(upload_type=upload_type)

    is_admin = has_role(request.user, ROLE_ADMIN)
    data = []
    for upload in uploads:
        data.append(
            {
                "id": upload.id,
                "uploadType": upload.upload_type,
                "fileName": upload.file_name,
                "sheetName": upload.sheet_name,
                "totalRows": upload.total_rows,
                "uploadedAt": upload.uploaded_at.isoformat(),
                "uploadedBy": queries.uploader_payload(upload.uploaded_by) if is_admin else None,
            }
        )

    return JsonResponse(data, safe=False)


@require_http_methods(["GET"])
@role_required(*READ_ROLES)
def upload_rows(request, upload_id):
    try:
        upload = ExcelUpload.objects.get(pk=upload_id)
    except ExcelUpload.DoesNotExist:
        return _error(f"No existe un upload con Id {upload_id}", 404)

    page, page_size = queries.clamp_paging(
        request.GET.get("page"),
        request.GET.get("pageSize"),
        settings.INGEST_ROWS_PAGE_SIZE,
        settings.INGEST_ROWS_MAX_PAGE_SIZE,
    )

    rows = row_model_for(upload.upload_type).objects.filter(upload=upload).order_by("row_index")
    total = rows.count()
    offset = (page - 1) * page_size

    return JsonResponse(
        {
            "id": upload.id,
            "uploadType": upload.upload_type,
            "fileName": upload.file_name,
            "sheetName": upload.sheet_name,
            "headers": upload.headers,
            "totalRows": total,
            "page": page,
            "pageSize": page_size,
            "rows": [
                {"id": row.id, "rowIndex": row.row_index, "data": row.data}
                for row in rows[offset:offset + page_size]
            ],
        }
    )


@csrf_exempt
@require_http_methods(["DELETE"])
@role_required(ROLE_ADMIN)
def upload_delete(request, upload_id):
    try:
        upload = ExcelUpload.objects.get(pk=upload_id)
    except ExcelUpload.DoesNotExist:
        return _error(f"No existe un upload con Id {upload_id}", 404)

    counts = delete_upload(upload)
    return JsonResponse({"message": "Se eliminó la carga.", **counts})


@require_http_methods(["GET"])
@role_required(*READ_ROLES)
def row_list(request):
    """Raw rows of every upload, left-joined to ExcelData, newest upload first."""
    try:
        upload_type = queries.parse_type_filter(request.GET.get("tipo"))
    except UploadRejected as e:
        return _error(e.message, e.status)

    page, page_size = queries.clamp_paging(
        request.GET.get("page"),
        request.GET.get("pageSize"),
        settings.INGEST_ROWS_PAGE_SIZE,
        settings.INGEST_ROWS_MAX_PAGE_SIZE,
    )

    querysets = queries.filtered_querysets(
        upload_type,
        upload_id=queries.parse_int(request.GET.get("uploadId")),
        almacen=request.GET.get("almacen"),
        monitorista=request.GET.get("monitorista"),
        fecha_envio=request.GET.get("fechaEnvio"),
    )
    total, rows = queries.paginate_rows(querysets, page, page_size)

    is_admin = has_role(request.user, ROLE_ADMIN)
    return JsonResponse(
        {
            "totalRows": total,
            "page": page,
            "pageSize": page_size,
            "rows": [queries.row_payload(row, is_admin) for row in rows],
        }
    )


@require_http_methods(["GET"])
@role_required(*READ_ROLES)
def uploaded_data(request):
    """Same join as row_list; data enriched with the canonical fields."""
    try:
        upload_type = queries.parse_type_filter(request.GET.get("tipo"))
    except UploadRejected as e:
        return _error(e.message, e.status)

    page, page_size = queries.clamp_paging(
        request.GET.get("page"),
        request.GET.get("pageSize"),
        settings.INGEST_DATA_PAGE_SIZE,
        settings.INGEST_DATA_MAX_PAGE_SIZE,
    )

    querysets = queries.filtered_querysets(
        upload_type,
        almacen=request.GET.get("almacen"),
        monitorista=request.GET.get("persona"),
        coordinador=request.GET.get("coordinador"),
        fecha_envio=request.GET.get("fechaEnvio"),
    )
    total, rows = queries.paginate_rows(querysets, page, page_size)

    is_admin = has_role(request.user, ROLE_ADMIN)
    return JsonResponse(
        {
            "data": [queries.uploaded_data_payload(row, is_admin) for row in rows],
            "totalRecords": total,
            "page": page,
            "pageSize": page_size,
            "uploadInfo": queries.upload_info(rows[0] if rows else None),
        }
    )


@require_http_methods(["GET"])
@role_required(*READ_ROLES)
def filter_options(request):
    try:
        upload_type = queries.parse_type_filter(request.GET.get("tipo"))
    except UploadRejected as e:
        return _error(e.message, e.status)

    return JsonResponse(queries.filter_options(upload_type))


@csrf_exempt
@require_http_methods(["DELETE"])
@role_required(ROLE_ADMIN)
def rows_delete(request):
    try:
        body = json.loads(request.body or b"{}")
    except ValueError:
        return _error("Debe proporcionar al menos un registro para eliminar.", 400)

    items = body.get("items") if isinstance(body, dict) else None
    try:
        rows_by_kind = parse_delete_items(items)
        deleted_rows, deleted_excel_data = delete_rows(rows_by_kind)
    except UploadRejected as e:
        return _error(e.message, e.status)
    except NothingToDelete:
        return _error("No se encontraron registros para eliminar.", 404)

    return JsonResponse(
        {
            "message": f"Se eliminaron {deleted_rows} registro(s).",
            "deletedRows": deleted_rows,
            "deletedExcelData": deleted_excel_data,
        }
    )


@csrf_exempt
@require_http_methods(["DELETE"])
@role_required(ROLE_ADMIN)
def rows_delete_all(request):
    counts = delete_all_rows()
    if not any(counts.values()):
        return JsonResponse({"message": "No hay registros para eliminar."})
    return JsonResponse({"message": "Se eliminaron todos los registros.", **counts})


@csrf_exempt
@require_http_methods(["GET", "DELETE"])
def rows(request):
    if request.method == "DELETE":
        return rows_delete(request)
    return row_list(request)
