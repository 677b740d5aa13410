from django.urls import path

from ingest import views

urlpatterns = [
    path("upload-excel", views.upload_excel, name="upload_excel"),
    path("uploads", views.upload_list, name="upload_list"),
    path("uploads/<int:upload_id>/rows", views.upload_rows, name="upload_rows"),
    path("uploads/<int:upload_id>", views.upload_delete, name="upload_delete"),
    path("rows", views.rows, name="rows"),
    path("rows/all", views.rows_delete_all, name="rows_delete_all"),
    path("uploaded-data", views.uploaded_data, name="uploaded_data"),
    path("filter-options", views.filter_options, name="filter_options"),
]
