from django.contrib import admin
from .models import ExcelData


# Silver layer
@admin.register(ExcelData)
class ExcelDataAdmin(admin.ModelAdmin):
    list_display = ['id', 'sheet_name', 'row_index', 'mes', 'almacen', 'monitorista_reporta',
                    'coordinador_turno', 'fecha_envio', 'fecha_creacion']
    list_filter = ['sheet_name', 'mes']
    search_fields = ['almacen', 'monitorista_reporta', 'coordinador_turno', 'columna1', 'columna2']
    readonly_fields = ['id', 'upload', 'row_index', 'fecha_creacion']
    date_hierarchy = 'fecha_creacion'
