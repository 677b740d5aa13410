from django.conf import settings
from django.db import models
from django.utils import timezone
from ingest.models import ExcelUpload


# ============================================================
# SILVER LAYER - Structured projection
# ============================================================

class ExcelData(models.Model):
    """
    Silver: canonical fields resolved from one raw spreadsheet row.

    Joined to Deteccion/Revision by (upload, row_index). The join is kept
    consistent by ingestion and deletion, not by a database constraint.
    """
    upload = models.ForeignKey(ExcelUpload, on_delete=models.SET_NULL, null=True, blank=True,
                               db_constraint=False, related_name='excel_data')
    sheet_name = models.CharField(max_length=255)

    # First three columns by position
    columna1 = models.CharField(max_length=500, blank=True, default='')
    columna2 = models.CharField(max_length=500, blank=True, default='')
    columna3 = models.IntegerField(null=True, blank=True)
    row_index = models.PositiveIntegerField()

    # Resolved canonical fields
    mes = models.DateField(help_text="Effective month (first day) or parsed date")
    mes_texto = models.CharField(max_length=255, null=True, blank=True)
    almacen = models.CharField(max_length=255, null=True, blank=True)
    monitorista_reporta = models.CharField(max_length=255, null=True, blank=True)
    coordinador_turno = models.CharField(max_length=255, null=True, blank=True)
    fecha_envio = models.CharField(max_length=255, null=True, blank=True,
                                   help_text="yyyy-mm-dd when parseable, raw text otherwise")

    incidence_metadata = models.JSONField(null=True, blank=True)

    fecha_creacion = models.DateTimeField(default=timezone.now, db_index=True)
    uploaded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT,
                                    related_name='excel_data')

    class Meta:
        db_table = 'excel_data'
        indexes = [
            models.Index(fields=['upload', 'row_index'], name='excel_data_upload_row_idx'),
            models.Index(fields=['mes'], name='excel_data_mes_idx'),
        ]
        ordering = ['-fecha_creacion']

    def __str__(self):
        return f"{self.sheet_name}:{self.row_index} ({self.almacen or '-'})"
