import io

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import Client
from openpyxl import Workbook

from ingest.auth import ROLE_ADMIN, ROLE_COORDINATOR, ROLE_MONITORISTA, ROLE_TECHNICIAN

SAMPLE_HEADERS = ["Almacén", "Monitorista Quien Reporta", "Fecha de Envío"]


def _xlsx(sheets):
    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets:
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def make_xlsx():
    """
    Build workbook bytes in memory.

    make_xlsx(rows) gives a single sheet "Hoja1";
    make_xlsx(sheets=[(title, rows), ...]) gives several sheets in order.
    """
    def _make(rows=None, sheets=None, title="Hoja1"):
        if sheets is None:
            sheets = [(title, rows or [])]
        return _xlsx(sheets)
    return _make


@pytest.fixture
def sample_xlsx(make_xlsx):
    return make_xlsx([
        SAMPLE_HEADERS,
        ["Centro", "Ana", "01/02/2024"],
        ["", "", ""],
    ])


def _user_with_role(django_user_model, username, role=None, **extra):
    user = django_user_model.objects.create_user(
        username=username, password="pw-not-used", **extra
    )
    if role:
        from django.contrib.auth.models import Group

        group, _ = Group.objects.get_or_create(name=role)
        user.groups.add(group)
    return user


@pytest.fixture
def administrador(django_user_model):
    return _user_with_role(django_user_model, "admin.ops", ROLE_ADMIN,
                           first_name="Laura", last_name="Pérez")


@pytest.fixture
def coordinador(django_user_model):
    return _user_with_role(django_user_model, "coord.turno", ROLE_COORDINATOR)


@pytest.fixture
def monitorista(django_user_model):
    return _user_with_role(django_user_model, "monitor.uno", ROLE_MONITORISTA)


@pytest.fixture
def tecnico(django_user_model):
    return _user_with_role(django_user_model, "tecnico.uno", ROLE_TECHNICIAN)


@pytest.fixture
def admin_api(administrador):
    c = Client()
    c.force_login(administrador)
    return c


@pytest.fixture
def monitor_api(monitorista):
    c = Client()
    c.force_login(monitorista)
    return c


@pytest.fixture
def upload_file():
    def _upload(api, content, tipo="detecciones", name="reporte.xlsx"):
        url = "/api/upload/upload-excel"
        if tipo is not None:
            url += f"?tipo={tipo}"
        data = {}
        if content is not None:
            data["file"] = SimpleUploadedFile(
                name, content,
                content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            )
        return api.post(url, data)
    return _upload
