import os
import tempfile

import pytest

_TMP = tempfile.mkdtemp(prefix="barberia_tests_")
os.environ["BARBERIA_DB_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["BARBERIA_MEDIA_DIR"] = os.path.join(_TMP, "media")
os.environ.setdefault("SECRET_KEY", "clave-de-pruebas")

from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

from barberia_core import security  # noqa: E402
from barberia_core.core_app import app  # noqa: E402
from barberia_core.db import conexion  # noqa: E402
from barberia_core.db import modelos  # noqa: E402,F401
from barberia_core.servicios import datos  # noqa: E402


@pytest.fixture(autouse=True)
def base_limpia():
    SQLModel.metadata.drop_all(conexion.engine)
    SQLModel.metadata.create_all(conexion.engine)
    security._tokens_revocados.clear()
    datos._solicitudes.clear()
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def registrar_y_loguear(client, email, password="secreto123", nombre="Usuario", rol="usuario"):
    r = client.post(
        "/api/auth/registro",
        json={"email": email, "password": password, "nombre_completo": nombre, "rol": rol},
    )
    assert r.status_code == 201, r.text
    r = client.post("/api/auth/login", data={"username": email, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    return registrar_y_loguear(client, "admin@barberia.com", nombre="Admin", rol="admin")


@pytest.fixture
def user_headers(client):
    return registrar_y_loguear(client, "pedro@barberia.com", nombre="Pedro Pérez")


@pytest.fixture
def crear_barbero(client, admin_headers):
    def _crear(nombre="Luis"):
        r = client.post("/api/barberos/", json={"nombre": nombre}, headers=admin_headers)
        assert r.status_code == 201, r.text
        return r.json()

    return _crear
