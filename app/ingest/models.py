from django.conf import settings
from django.db import models
from django.utils import timezone

UPLOAD_TYPE_DETECCIONES = 'detecciones'
UPLOAD_TYPE_REVISIONES = 'revisiones'
UPLOAD_TYPES = (UPLOAD_TYPE_DETECCIONES, UPLOAD_TYPE_REVISIONES)


class ExcelUpload(models.Model):
    """
    Bronze layer: one manifest per ingested spreadsheet.
    total_rows always equals the number of raw rows persisted for it; row deletion decrements it.
    """
    UPLOAD_TYPE_CHOICES = [
        (UPLOAD_TYPE_DETECCIONES, 'Detecciones'),
        (UPLOAD_TYPE_REVISIONES, 'Revisiones'),
    ]

    upload_type = models.CharField(max_length=50, choices=UPLOAD_TYPE_CHOICES, db_index=True)
    file_name = models.CharField(max_length=255)
    sheet_name = models.CharField(max_length=255, blank=True)
    headers = models.JSONField(default=list, help_text="Ordered header texts of the selected sheet")
    total_rows = models.PositiveIntegerField(default=0)
    uploaded_at = models.DateTimeField(default=timezone.now, db_index=True)
    uploaded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT,
                                    related_name='excel_uploads')

    class Meta:
        db_table = 'excel_upload'
        ordering = ['-uploaded_at']

    def __str__(self):
        return f"{self.upload_type}:{self.file_name} ({self.total_rows} rows)"


class RawRow(models.Model):
    """Row of a sheet exactly as read, keyed by header text."""
    row_index = models.PositiveIntegerField(help_text="1-based row number within the sheet")
    data = models.JSONField(help_text="Raw row dict")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        abstract = True
        ordering = ['row_index']

    def __str__(self):
        return f"{self.upload_id}:{self.row_index}"


class Deteccion(RawRow):
    upload = models.ForeignKey(ExcelUpload, on_delete=models.CASCADE, related_name='detecciones')

    class Meta(RawRow.Meta):
        db_table = 'deteccion'
        constraints = [
            models.UniqueConstraint(fields=['upload', 'row_index'], name='unique_deteccion_row'),
        ]


class Revision(RawRow):
    upload = models.ForeignKey(ExcelUpload, on_delete=models.CASCADE, related_name='revisiones')

    class Meta(RawRow.Meta):
        db_table = 'revision'
        constraints = [
            models.UniqueConstraint(fields=['upload', 'row_index'], name='unique_revision_row'),
        ]


def row_model_for(upload_type):
    """Raw row model holding rows of the given upload kind."""
    return Deteccion if upload_type == UPLOAD_TYPE_DETECCIONES else Revision
