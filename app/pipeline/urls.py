from django.urls import path

from pipeline import views

urlpatterns = [
    path("excel-data", views.excel_data_list, name="excel_data_list"),
    path("excel-data/bulk", views.excel_data_bulk_delete, name="excel_data_bulk_delete"),
    path("excel-data/by-sheet/<str:sheet_name>", views.excel_data_delete_by_sheet, name="excel_data_delete_by_sheet"),
    path("excel-data/<int:pk>", views.excel_data_detail, name="excel_data_detail"),
    path("sheets", views.sheet_list, name="sheet_list"),
    path("date-range", views.date_range, name="date_range"),
]
