import logging
from typing import NamedTuple

from django.db import transaction
from django.utils import timezone
from ingest.models import UPLOAD_TYPES, ExcelUpload, row_model_for
from ingest.workbook import open_workbook
from pipeline.models import ExcelData
from pipeline.stage import build_excel_data, serialize_row

logger = logging.getLogger(__name__)


class UploadRejected(Exception):
    """User-correctable problem with the upload (HTTP 400)."""
    status = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class UploadUnauthorized(UploadRejected):
    """Acting user missing or inactive (HTTP 401)."""
    status = 401


class IngestionFailed(Exception):
    """Unexpected parse or persistence failure (HTTP 500). Nothing was written."""
    status = 500

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    @property
    def detail(self):
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"


class IngestResult(NamedTuple):
    upload_id: int
    upload_type: str
    total_rows: int


def try_normalize_type(tipo):
    """Canonical upload kind for `tipo`, or None if unsupported."""
    if tipo is None:
        return None
    normalized = str(tipo).strip().lower()
    return normalized if normalized in UPLOAD_TYPES else None


def normalize_upload_type(tipo):
    if tipo is None or not str(tipo).strip():
        raise UploadRejected("Debe especificar el tipo de archivo (detecciones o revisiones).")
    normalized = try_normalize_type(tipo)
    if normalized is None:
        raise UploadRejected("Tipo de archivo no soportado. Use 'detecciones' o 'revisiones'.")
    return normalized


def _select_sheet(sheets):
    """First worksheet with a header row and at least one data row."""
    for sheet in sheets:
        if sheet.row_count >= 2:
            return sheet
    return None


def extract_headers(sheet):
    """Header text per column; blank header cells become Columna{N}."""
    headers = []
    for column in range(1, sheet.column_count + 1):
        text = sheet.cell_text(1, column).strip()
        headers.append(text or f"Columna{column}")
    return headers


def read_rows(sheet, headers):
    """
    Yield (row_index, row_data) for every non-blank data row.
    A row whose cells are all empty or whitespace is skipped.
    """
    for row_index in range(2, sheet.row_count + 1):
        values = sheet.row_texts(row_index)
        if all(not value.strip() for value in values):
            continue

        # Duplicate header texts keep the last column's value
        yield row_index, dict(zip(headers, values))


def ingest_workbook(*, content, file_name, upload_type, user):
    """
    Ingest one uploaded workbook.

    Validates the request, reads the first sheet with data and writes the
    manifest, the raw rows of the kind and the ExcelData projection in a
    single transaction. Raises UploadRejected/UploadUnauthorized before any
    write, IngestionFailed when reading or persisting fails.
    """
    if not content:
        raise UploadRejected("No se ha proporcionado ningún archivo.")

    upload_type = normalize_upload_type(upload_type)

    if user is None or not user.is_authenticated:
        raise UploadUnauthorized("Usuario no autenticado correctamente.")
    if not user.is_active:
        raise UploadUnauthorized(f"Usuario '{user.get_username()}' no encontrado o inactivo en la base de datos.")

    try:
        sheets = open_workbook(content)
    except Exception as exc:
        logger.exception("Could not read workbook %s", file_name)
        raise IngestionFailed("Error interno del servidor al leer el archivo", cause=exc) from exc

    if not sheets:
        raise UploadRejected("El archivo Excel no contiene ninguna hoja de trabajo.")

    sheet = _select_sheet(sheets)
    if sheet is None:
        raise UploadRejected("El archivo Excel debe tener al menos una hoja con encabezado y datos.")
    if sheet.column_count == 0:
        raise UploadRejected("No se detectaron columnas en la hoja seleccionada.")

    try:
        headers = extract_headers(sheet)
        rows = list(read_rows(sheet, headers))
    except Exception as exc:
        logger.exception("Could not read rows of sheet %r in %s", sheet.name, file_name)
        raise IngestionFailed("Error interno del servidor al leer el archivo", cause=exc) from exc

    if not rows:
        raise UploadRejected("El archivo no contiene filas con datos.")

    row_model = row_model_for(upload_type)
    uploaded_at = timezone.now()

    try:
        with transaction.atomic():
            upload = ExcelUpload.objects.create(
                upload_type=upload_type,
                file_name=file_name or '',
                sheet_name=sheet.name,
                headers=headers,
                total_rows=len(rows),
                uploaded_at=uploaded_at,
                uploaded_by=user,
            )

            row_model.objects.bulk_create([
                row_model(upload=upload, row_index=row_index, data=serialize_row(row_data),
                          created_at=uploaded_at)
                for row_index, row_data in rows
            ])

            ExcelData.objects.bulk_create([
                build_excel_data(row_data, headers, upload, row_index)
                for row_index, row_data in rows
            ])
    except Exception as exc:
        logger.exception("Ingestion of %s rolled back", file_name)
        raise IngestionFailed("Error interno del servidor", cause=exc) from exc

    logger.info(
        "Ingested %s as %s upload %s: %d rows from sheet %r",
        file_name, upload_type, upload.pk, len(rows), sheet.name,
    )
    return IngestResult(upload.pk, upload_type, len(rows))
