import json
import math

from django.conf import settings
from django.db.models import Max, Min, Q
from django.http import JsonResponse
from django.utils.dateparse import parse_date
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from ingest.auth import READ_ROLES, ROLE_ADMIN, has_role, role_required
from ingest.queries import clamp_paging, uploader_payload
from pipeline.models import ExcelData


def _excel_data_payload(row):
    return {
        "id": row.id,
        "uploadId": row.upload_id,
        "sheetName": row.sheet_name,
        "columna1": row.columna1,
        "columna2": row.columna2,
        "columna3": row.columna3,
        "rowIndex": row.row_index,
        "mes": row.mes.isoformat(),
        "mesTexto": row.mes_texto,
        "almacen": row.almacen,
        "monitoristaReporta": row.monitorista_reporta,
        "coordinadorTurno": row.coordinador_turno,
        "fechaEnvio": row.fecha_envio,
        "incidenceMetadata": row.incidence_metadata,
        "fechaCreacion": row.fecha_creacion.isoformat(),
    }


@require_http_methods(["GET"])
@role_required(*READ_ROLES)
def excel_data_list(request):
    """
    Projection rows, newest first.
    Filters: sheetName (substring), search (any text column), fromDate/toDate on mes.
    """
    page, page_size = clamp_paging(
        request.GET.get("page"),
        request.GET.get("pageSize"),
        settings.EXCEL_DATA_PAGE_SIZE,
        settings.INGEST_DATA_MAX_PAGE_SIZE,
    )
    sheet_name = request.GET.get("sheetName") or None
    search = request.GET.get("search") or None
    from_raw = request.GET.get("fromDate") or None
    to_raw = request.GET.get("toDate") or None

    qs = ExcelData.objects.select_related("uploaded_by")

    if sheet_name:
        qs = qs.filter(sheet_name__icontains=sheet_name)

    if search:
        qs = qs.filter(
            Q(columna1__icontains=search)
            | Q(columna2__icontains=search)
            | Q(sheet_name__icontains=search)
            | Q(mes_texto__icontains=search)
            | Q(almacen__icontains=search)
            | Q(monitorista_reporta__icontains=search)
            | Q(coordinador_turno__icontains=search)
        )

    for raw, lookup in ((from_raw, "mes__gte"), (to_raw, "mes__lte")):
        if not raw:
            continue
        try:
            parsed = parse_date(raw[:10])
        except ValueError:
            parsed = None
        if parsed is None:
            return JsonResponse({"message": f"Fecha inválida: {raw}"}, status=400)
        qs = qs.filter(**{lookup: parsed})

    total = qs.count()
    offset = (page - 1) * page_size
    rows = qs.order_by("-fecha_creacion", "id")[offset:offset + page_size]

    is_admin = has_role(request.user, ROLE_ADMIN)
    return JsonResponse(
        {
            "data": [
                {**_excel_data_payload(row), "uploadedBy": uploader_payload(row.uploaded_by) if is_admin else None}
                for row in rows
            ],
            "totalRecords": total,
            "page": page,
            "pageSize": page_size,
            "totalPages": math.ceil(total / page_size),
            "filters": {
                "sheetName": sheet_name,
                "search": search,
                "fromDate": from_raw,
                "toDate": to_raw,
            },
        }
    )


@csrf_exempt
@require_http_methods(["GET", "DELETE"])
@role_required(*READ_ROLES)
def excel_data_detail(request, pk):
    if request.method == "DELETE" and not has_role(request.user, ROLE_ADMIN):
        return JsonResponse({"message": "No tiene permisos para realizar esta acción."}, status=403)

    try:
        row = ExcelData.objects.get(pk=pk)
    except ExcelData.DoesNotExist:
        return JsonResponse({"message": "Registro no encontrado"}, status=404)

    if request.method == "DELETE":
        row.delete()
        return JsonResponse({"message": "Registro eliminado exitosamente"})

    return JsonResponse(_excel_data_payload(row))


@csrf_exempt
@require_http_methods(["DELETE"])
@role_required(ROLE_ADMIN)
def excel_data_bulk_delete(request):
    try:
        ids = json.loads(request.body or b"[]")
    except ValueError:
        ids = None
    if not isinstance(ids, list):
        return JsonResponse({"message": "Debe enviar una lista de identificadores"}, status=400)

    ids = [i for i in ids if isinstance(i, int) and not isinstance(i, bool)]
    deleted, _ = ExcelData.objects.filter(id__in=ids).delete()
    if not deleted:
        return JsonResponse({"message": "No se encontraron registros para eliminar"}, status=404)

    return JsonResponse({"message": f"{deleted} registros eliminados exitosamente"})


@csrf_exempt
@require_http_methods(["DELETE"])
@role_required(ROLE_ADMIN)
def excel_data_delete_by_sheet(request, sheet_name):
    deleted, _ = ExcelData.objects.filter(sheet_name=sheet_name).delete()
    if not deleted:
        return JsonResponse({"message": "No se encontraron registros para la hoja especificada"}, status=404)

    return JsonResponse(
        {"message": f"{deleted} registros de la hoja '{sheet_name}' eliminados exitosamente"}
    )


@require_http_methods(["GET"])
@role_required(*READ_ROLES)
def sheet_list(request):
    sheets = (
        ExcelData.objects.order_by("sheet_name")
        .values_list("sheet_name", flat=True)
        .distinct()
    )
    return JsonResponse(list(sheets), safe=False)


@require_http_methods(["GET"])
@role_required(*READ_ROLES)
def date_range(request):
    bounds = ExcelData.objects.aggregate(min_date=Min("mes"), max_date=Max("mes"))
    return JsonResponse(
        {
            "minDate": bounds["min_date"].isoformat() if bounds["min_date"] else None,
            "maxDate": bounds["max_date"].isoformat() if bounds["max_date"] else None,
        }
    )
