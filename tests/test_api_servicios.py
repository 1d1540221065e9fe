from datetime import date
from decimal import Decimal

from sqlalchemy import DateTime
from sqlmodel import Session

from barberia_core.db.conexion import engine
from barberia_core.db.modelos import Servicio


def test_catalogo(client, user_headers):
    r = client.get("/api/servicios/catalogo", headers=user_headers)
    assert r.status_code == 200
    catalogo = r.json()
    assert len(catalogo) == 9
    assert catalogo[0]["nombre"] == "Corte"
    assert Decimal(str(catalogo[0]["ganancia"])) == Decimal("4.5")


def test_registrar_servicio_con_propina_y_contador(client, admin_headers, crear_barbero):
    barbero = crear_barbero("Luis")
    r = client.post(
        "/api/servicios/",
        json={
            "barbero_id": barbero["id"],
            "tipo_servicio": "Corte",
            "propina": "1.5",
            "metodo_pago": "pago_movil",
            "fecha_hora": "2024-06-04T10:00:00",
        },
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    creados = r.json()
    assert len(creados) == 1
    assert Decimal(str(creados[0]["ganancia_barbero"])) == Decimal("6.0")

    b = client.get(f"/api/barberos/{barbero['id']}", headers=admin_headers).json()
    assert b["cantidad_cortes"] == 1

    r = client.delete(f"/api/servicios/{creados[0]['id']}", headers=admin_headers)
    assert r.status_code == 204
    b = client.get(f"/api/barberos/{barbero['id']}", headers=admin_headers).json()
    assert b["cantidad_cortes"] == 0


def test_validacion_sin_barbero(client, user_headers):
    r = client.post("/api/servicios/", json={"tipo_servicio": "Corte"}, headers=user_headers)
    assert r.status_code == 422
    assert r.json()["detail"] == "Por favor selecciona barbero y servicio"


def test_tipo_fuera_de_catalogo_requiere_ganancia(client, admin_headers, crear_barbero):
    barbero = crear_barbero()
    r = client.post(
        "/api/servicios/",
        json={"barbero_id": barbero["id"], "tipo_servicio": "Tinte"},
        headers=admin_headers,
    )
    assert r.status_code == 422
    r = client.post(
        "/api/servicios/",
        json={"barbero_id": barbero["id"], "tipo_servicio": "Tinte", "ganancia_barbero": "7"},
        headers=admin_headers,
    )
    assert r.status_code == 201


def test_combo_con_segundo_barbero_crea_dos_filas(client, admin_headers, crear_barbero):
    luis = crear_barbero("Luis")
    ana = crear_barbero("Ana")
    r = client.post(
        "/api/servicios/",
        json={
            "barbero_id": luis["id"],
            "tipo_servicio": "Corte+Barba Premium",
            "barbero_secundario_id": ana["id"],
            "ganancia_secundaria": "2",
            "fecha_hora": "2024-06-05T15:30:00",
        },
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    filas = r.json()
    assert len(filas) == 2
    assert filas[0]["created_at"] == filas[1]["created_at"]
    assert {f["barbero_id"] for f in filas} == {luis["id"], ana["id"]}

    r = client.post(
        "/api/servicios/",
        json={"barbero_id": luis["id"], "tipo_servicio": "Corte", "barbero_secundario_id": ana["id"]},
        headers=admin_headers,
    )
    assert r.status_code == 422


def test_subir_comprobante(client, admin_headers, crear_barbero):
    barbero = crear_barbero()
    servicio = client.post(
        "/api/servicios/",
        json={"barbero_id": barbero["id"], "tipo_servicio": "Cejas", "metodo_pago": "transferencia"},
        headers=admin_headers,
    ).json()[0]

    r = client.post(
        f"/api/servicios/{servicio['id']}/comprobante",
        files={"archivo": ("pago.png", b"\x89PNG\r\n\x1a\nfalso", "image/png")},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    url = r.json()["comprobante_url"]
    assert url.startswith("/media/comprobantes/") and url.endswith(".png")
    assert client.get(url).status_code == 200

    r = client.post(
        f"/api/servicios/{servicio['id']}/comprobante",
        files={"archivo": ("nota.txt", b"hola", "text/plain")},
        headers=admin_headers,
    )
    assert r.status_code == 422


def test_eliminar_barbero_borra_sus_servicios(client, admin_headers, crear_barbero):
    barbero = crear_barbero()
    client.post(
        "/api/servicios/",
        json={"barbero_id": barbero["id"], "tipo_servicio": "Corte"},
        headers=admin_headers,
    )
    assert client.delete(f"/api/barberos/{barbero['id']}", headers=admin_headers).status_code == 204
    assert client.get("/api/servicios/", headers=admin_headers).json() == []
    assert client.get(f"/api/barberos/{barbero['id']}", headers=admin_headers).status_code == 404


def test_sin_fecha_usa_el_dia_local(client, admin_headers, crear_barbero):
    barbero = crear_barbero("Luis")
    r = client.post(
        "/api/servicios/",
        json={"barbero_id": barbero["id"], "tipo_servicio": "Corte"},
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    assert r.json()[0]["created_at"][:10] == date.today().isoformat()

    r = client.get("/api/servicios/hoy", headers=admin_headers)
    assert r.json()["fecha"] == date.today().isoformat()
    assert r.json()["cantidad"] == 1


def test_fechas_se_guardan_sin_zona(client, admin_headers, crear_barbero):
    columna = Servicio.__table__.c.created_at.type
    assert isinstance(columna, DateTime)
    assert not columna.timezone

    barbero = crear_barbero("Luis")
    r = client.post(
        "/api/servicios/",
        json={"barbero_id": barbero["id"], "tipo_servicio": "Corte", "fecha_hora": "2024-06-04T10:00:00-04:00"},
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    with Session(engine) as session:
        servicio = session.get(Servicio, r.json()[0]["id"])
        assert servicio.created_at.tzinfo is None
