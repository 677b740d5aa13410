from django.contrib import admin
from .models import Deteccion, ExcelUpload, Revision


@admin.register(ExcelUpload)
class ExcelUploadAdmin(admin.ModelAdmin):
    list_display = ['id', 'upload_type', 'file_name', 'sheet_name', 'total_rows', 'uploaded_by', 'uploaded_at']
    list_filter = ['upload_type']
    search_fields = ['file_name', 'sheet_name', 'uploaded_by__username']
    readonly_fields = ['id', 'headers', 'uploaded_at']
    date_hierarchy = 'uploaded_at'
    ordering = ['-uploaded_at']


class RawRowAdmin(admin.ModelAdmin):
    list_display = ['id', 'upload', 'row_index', 'created_at']
    list_filter = ['upload__upload_type']
    search_fields = ['data']
    readonly_fields = ['id', 'upload', 'row_index', 'created_at']
    ordering = ['-upload__uploaded_at', 'row_index']


admin.site.register(Deteccion, RawRowAdmin)
admin.site.register(Revision, RawRowAdmin)
