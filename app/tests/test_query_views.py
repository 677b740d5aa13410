import json

import pytest
from ingest.models import Deteccion, ExcelUpload, Revision
from ingest.queries import fecha_envio_patterns
from pipeline.models import ExcelData


@pytest.fixture
def loaded(admin_api, upload_file, make_xlsx):
    """One detecciones upload followed by one revisiones upload."""
    detecciones = make_xlsx([
        ["Almacén", "Monitorista Quien Reporta", "Coordinador en turno", "Fecha de Envío"],
        ["Centro", "Ana", "Luis", "01/02/2024"],
        ["Norte", "Beto", "Marta", "15/03/2024"],
    ])
    revisiones = make_xlsx([
        ["Fecha", "Sucursal", "Persona que reporta"],
        ["05/04/2024", "Tienda Sur", "Carla"],
    ])
    first = upload_file(admin_api, detecciones, tipo="detecciones").json()["uploadId"]
    second = upload_file(admin_api, revisiones, tipo="revisiones").json()["uploadId"]
    return {"detecciones": first, "revisiones": second}


@pytest.mark.django_db
class TestRowsEndpoint:
    """GET /api/upload/rows"""

    def test_combined_newest_upload_first(self, admin_api, loaded):
        body = admin_api.get("/api/upload/rows").json()
        assert body["totalRows"] == 3
        assert [(r["uploadType"], r["rowIndex"]) for r in body["rows"]] == [
            ("revisiones", 2),
            ("detecciones", 2),
            ("detecciones", 3),
        ]

    def test_paging_across_kinds(self, admin_api, loaded):
        body = admin_api.get("/api/upload/rows?page=2&pageSize=2").json()
        assert body["totalRows"] == 3
        assert body["page"] == 2
        assert [(r["uploadType"], r["rowIndex"]) for r in body["rows"]] == [("detecciones", 3)]

    def test_page_size_clamped(self, admin_api, loaded):
        assert admin_api.get("/api/upload/rows?pageSize=0").json()["pageSize"] == 50
        assert admin_api.get("/api/upload/rows?pageSize=9999").json()["pageSize"] == 500
        assert admin_api.get("/api/upload/rows?page=-3").json()["page"] == 1

    def test_filter_by_tipo_and_upload(self, admin_api, loaded):
        body = admin_api.get("/api/upload/rows?tipo=detecciones").json()
        assert body["totalRows"] == 2

        body = admin_api.get(f"/api/upload/rows?uploadId={loaded['revisiones']}").json()
        assert [r["uploadId"] for r in body["rows"]] == [loaded["revisiones"]]

    def test_invalid_tipo(self, admin_api, loaded):
        assert admin_api.get("/api/upload/rows?tipo=otro").status_code == 400

    def test_almacen_filter_case_insensitive(self, admin_api, loaded):
        body = admin_api.get("/api/upload/rows?almacen=CENT").json()
        assert [r["data"]["Almacén"] for r in body["rows"]] == ["Centro"]

    def test_monitorista_filter(self, admin_api, loaded):
        body = admin_api.get("/api/upload/rows?monitorista=bet").json()
        assert body["totalRows"] == 1
        assert body["rows"][0]["data"]["Monitorista Quien Reporta"] == "Beto"

    @pytest.mark.parametrize("fecha", ["2024-02-01", "01/02/2024", "1/2/2024"])
    def test_fecha_envio_filter_any_rendering(self, admin_api, loaded, fecha):
        body = admin_api.get(f"/api/upload/rows?fechaEnvio={fecha}").json()
        assert body["totalRows"] == 1
        assert body["rows"][0]["data"]["Almacén"] == "Centro"

    def test_fecha_envio_falls_back_to_columna1(self, admin_api, loaded):
        # columna1 of the revisiones row holds the date text
        ExcelData.objects.filter(upload_id=loaded["revisiones"]).update(fecha_envio=None)
        body = admin_api.get("/api/upload/rows?fechaEnvio=05/04/2024").json()
        assert [r["uploadType"] for r in body["rows"]] == ["revisiones"]

    def test_uploader_only_for_admin(self, admin_api, monitor_api, loaded):
        assert admin_api.get("/api/upload/rows").json()["rows"][0]["uploadedBy"]["username"] == "admin.ops"
        assert monitor_api.get("/api/upload/rows").json()["rows"][0]["uploadedBy"] is None

    def test_row_without_projection_still_listed(self, admin_api, loaded):
        ExcelData.objects.filter(upload_id=loaded["detecciones"], row_index=3).delete()
        body = admin_api.get("/api/upload/rows?tipo=detecciones").json()
        assert body["totalRows"] == 2


@pytest.mark.django_db
class TestUploadedDataEndpoint:
    """GET /api/upload/uploaded-data"""

    def test_enriched_data_and_upload_info(self, admin_api, loaded):
        body = admin_api.get("/api/upload/uploaded-data?tipo=detecciones").json()
        assert body["totalRecords"] == 2
        assert body["pageSize"] == 25

        first = body["data"][0]
        assert first["data"]["almacen"] == "Centro"
        assert first["data"]["Almacen"] == "Centro"
        assert first["data"]["monitorista"] == "Ana"
        assert first["data"]["coordinador"] == "Luis"
        assert first["data"]["fechaEnvio"] == "2024-02-01"
        # Sheet headers are untouched
        assert first["data"]["Fecha de Envío"] == "01/02/2024"

        assert body["uploadInfo"]["uploadType"] == "detecciones"
        assert body["uploadInfo"]["uploaderUsername"] == "admin.ops"

    def test_persona_and_coordinador_filters(self, admin_api, loaded):
        body = admin_api.get("/api/upload/uploaded-data?persona=ana&coordinador=lu").json()
        assert body["totalRecords"] == 1

        body = admin_api.get("/api/upload/uploaded-data?coordinador=nadie").json()
        assert body["totalRecords"] == 0
        assert body["data"] == []
        assert body["uploadInfo"] is None

    def test_page_size_max(self, admin_api, loaded):
        assert admin_api.get("/api/upload/uploaded-data?pageSize=1000").json()["pageSize"] == 200


@pytest.mark.django_db
class TestFilterOptions:
    """GET /api/upload/filter-options"""

    def test_distinct_sorted_values(self, monitor_api, loaded):
        body = monitor_api.get("/api/upload/filter-options").json()
        assert body["almacenes"] == ["Centro", "Norte", "Tienda Sur"]
        assert body["monitoristas"] == ["Ana", "Beto", "Carla"]
        assert body["coordinadores"] == ["Luis", "Marta"]

    def test_by_tipo(self, monitor_api, loaded):
        body = monitor_api.get("/api/upload/filter-options?tipo=revisiones").json()
        assert body["almacenes"] == ["Tienda Sur"]
        assert body["coordinadores"] == []

    def test_case_insensitive_distinct(self, admin_api, upload_file, make_xlsx):
        upload_file(admin_api, make_xlsx([["Almacén"], ["centro"], ["CENTRO"], ["Centro "]]))
        body = admin_api.get("/api/upload/filter-options").json()
        assert body["almacenes"] == ["centro"]

    def test_re_resolution_follows_sheet_header_order(self, admin_api, upload_file, make_xlsx):
        upload_file(admin_api, make_xlsx([["Almacén", "ALMACEN"], ["Centro", "Norte"]]))
        Deteccion.objects.update(data={"ALMACEN": "Norte", "Almacén": "Centro"})
        ExcelData.objects.update(almacen=None)

        body = admin_api.get("/api/upload/filter-options").json()
        assert body["almacenes"] == ["Centro"]

    def test_re_resolves_blank_projection_from_row_data(self, admin_api, loaded):
        ExcelData.objects.update(almacen=None)
        body = admin_api.get("/api/upload/filter-options?tipo=detecciones").json()
        assert body["almacenes"] == ["Centro", "Norte"]


@pytest.mark.django_db
class TestDeleteRows:
    """DELETE /api/upload/rows and /api/upload/rows/all"""

    def _delete(self, api, items):
        return api.delete("/api/upload/rows", data=json.dumps({"items": items}),
                          content_type="application/json")

    def test_deletes_rows_projection_and_decrements_total(self, admin_api, loaded):
        row = Deteccion.objects.get(upload_id=loaded["detecciones"], row_index=2)

        response = self._delete(admin_api, [{"rowId": row.id, "tipo": "Detecciones"}])
        assert response.status_code == 200
        assert response.json()["deletedRows"] == 1
        assert response.json()["deletedExcelData"] == 1

        assert not Deteccion.objects.filter(id=row.id).exists()
        assert not ExcelData.objects.filter(upload_id=loaded["detecciones"], row_index=2).exists()
        assert ExcelData.objects.filter(upload_id=loaded["detecciones"], row_index=3).exists()
        assert ExcelUpload.objects.get(id=loaded["detecciones"]).total_rows == 1

    def test_mixed_kinds(self, admin_api, loaded):
        items = [
            {"rowId": r.id, "tipo": "detecciones"} for r in Deteccion.objects.all()
        ] + [
            {"rowId": r.id, "tipo": "revisiones"} for r in Revision.objects.all()
        ]
        response = self._delete(admin_api, items)
        assert response.json()["deletedRows"] == 3
        assert ExcelData.objects.count() == 0
        assert set(ExcelUpload.objects.values_list("total_rows", flat=True)) == {0}

    def test_total_rows_never_negative(self, admin_api, loaded):
        ExcelUpload.objects.filter(id=loaded["revisiones"]).update(total_rows=0)
        row = Revision.objects.get()
        self._delete(admin_api, [{"rowId": row.id, "tipo": "revisiones"}])
        assert ExcelUpload.objects.get(id=loaded["revisiones"]).total_rows == 0

    @pytest.mark.parametrize("items, message", [
        ([], "al menos un registro"),
        ([{"rowId": 0, "tipo": "detecciones"}], "válidos"),
        ([{"rowId": "abc", "tipo": "detecciones"}], "válidos"),
        ([{"rowId": 1, "tipo": "catalogo"}], "Solo se pueden eliminar"),
    ])
    def test_bad_items(self, admin_api, loaded, items, message):
        response = self._delete(admin_api, items)
        assert response.status_code == 400
        assert message in response.json()["message"]

    def test_nothing_matched(self, admin_api, loaded):
        response = self._delete(admin_api, [{"rowId": 987654, "tipo": "detecciones"}])
        assert response.status_code == 404
        assert ExcelUpload.objects.get(id=loaded["detecciones"]).total_rows == 2

    def test_requires_admin(self, monitor_api, loaded):
        row = Deteccion.objects.first()
        response = self._delete(monitor_api, [{"rowId": row.id, "tipo": "detecciones"}])
        assert response.status_code == 403

    def test_delete_all(self, admin_api, loaded):
        response = admin_api.delete("/api/upload/rows/all")
        body = response.json()
        assert body["deletedDetecciones"] == 2
        assert body["deletedRevisiones"] == 1
        assert body["deletedExcelData"] == 3
        assert body["deletedUploads"] == 2
        assert ExcelUpload.objects.count() == 0
        assert ExcelData.objects.count() == 0

    def test_delete_all_when_empty(self, admin_api):
        response = admin_api.delete("/api/upload/rows/all")
        assert response.status_code == 200
        assert response.json()["message"] == "No hay registros para eliminar."


@pytest.mark.django_db
class TestExcelDataApi:
    """/api/data/"""

    def test_list_and_filters(self, monitor_api, loaded):
        body = monitor_api.get("/api/data/excel-data").json()
        assert body["totalRecords"] == 3
        assert body["pageSize"] == 10
        assert body["totalPages"] == 1
        assert body["data"][0]["uploadedBy"] is None

        body = monitor_api.get("/api/data/excel-data?search=beto").json()
        assert [d["almacen"] for d in body["data"]] == ["Norte"]

        body = monitor_api.get("/api/data/excel-data?fromDate=2024-03-01&toDate=2024-03-31").json()
        assert [d["mes"] for d in body["data"]] == ["2024-03-15"]

    def test_invalid_date_filter(self, monitor_api, loaded):
        assert monitor_api.get("/api/data/excel-data?fromDate=ayer").status_code == 400

    def test_detail_and_delete(self, admin_api, monitor_api, loaded):
        row = ExcelData.objects.get(almacen="Centro")
        body = monitor_api.get(f"/api/data/excel-data/{row.id}").json()
        assert body["fechaEnvio"] == "2024-02-01"
        assert body["rowIndex"] == 2

        assert monitor_api.delete(f"/api/data/excel-data/{row.id}").status_code == 403
        assert admin_api.delete(f"/api/data/excel-data/{row.id}").status_code == 200
        assert admin_api.get(f"/api/data/excel-data/{row.id}").status_code == 404

    def test_bulk_delete(self, admin_api, loaded):
        ids = list(ExcelData.objects.filter(upload_id=loaded["detecciones"]).values_list("id", flat=True))
        response = admin_api.delete("/api/data/excel-data/bulk", data=json.dumps(ids),
                                    content_type="application/json")
        assert response.status_code == 200
        assert ExcelData.objects.count() == 1

        response = admin_api.delete("/api/data/excel-data/bulk", data=json.dumps(ids),
                                    content_type="application/json")
        assert response.status_code == 404

    def test_delete_by_sheet_sheets_and_range(self, admin_api, loaded):
        assert admin_api.get("/api/data/sheets").json() == ["Hoja1"]
        assert admin_api.get("/api/data/date-range").json() == {"minDate": "2024-02-01", "maxDate": "2024-04-05"}

        response = admin_api.delete("/api/data/excel-data/by-sheet/Hoja1")
        assert response.status_code == 200
        assert ExcelData.objects.count() == 0
        assert admin_api.get("/api/data/date-range").json() == {"minDate": None, "maxDate": None}
        assert admin_api.delete("/api/data/excel-data/by-sheet/Hoja1").status_code == 404


class TestFechaEnvioPatterns:
    def test_parseable_input_expands(self):
        assert fecha_envio_patterns(" 1/2/2024 ") == ["1/2/2024", "2024-02-01", "01/02/2024"]

    def test_unparseable_input_kept(self):
        assert fecha_envio_patterns("pendiente") == ["pendiente"]
        assert fecha_envio_patterns("  ") == []
