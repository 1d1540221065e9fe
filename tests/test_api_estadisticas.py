from decimal import Decimal

import pytest


@pytest.fixture
def semana_cargada(client, admin_headers, crear_barbero):
    luis = crear_barbero("Luis")
    ana = crear_barbero("Ana")

    def registrar(**datos):
        r = client.post("/api/servicios/", json=datos, headers=admin_headers)
        assert r.status_code == 201, r.text

    for _ in range(3):
        registrar(
            barbero_id=luis["id"], tipo_servicio="Corte",
            ganancia_barbero="4.6", fecha_hora="2024-06-04T10:00:00",
        )
    registrar(barbero_id=luis["id"], tipo_servicio="Barba Premium", fecha_hora="2024-06-04T11:00:00")
    registrar(
        barbero_id=luis["id"], tipo_servicio="Corte+Barba Premium",
        barbero_secundario_id=ana["id"], fecha_hora="2024-06-07T16:00:00",
    )
    # Domingo: fuera de la ventana
    registrar(barbero_id=ana["id"], tipo_servicio="Corte", fecha_hora="2024-06-09T10:00:00")
    return luis, ana


def test_semana(client, user_headers):
    r = client.get("/api/estadisticas/semana", params={"fecha": "2024-06-09"}, headers=user_headers)
    datos = r.json()
    assert datos["etiqueta"] == "03/06/2024 - 08/06/2024"
    assert [d["dia"] for d in datos["dias"]][-1] == "Sábado"


def test_admin_por_barbero(client, admin_headers, semana_cargada):
    r = client.get("/api/estadisticas/admin", params={"fecha": "2024-06-05"}, headers=admin_headers)
    assert r.status_code == 200
    ana, luis = r.json()
    assert ana["nombre"] == "Ana"
    martes = luis["resumen"]["dias"][1]
    assert martes["total_servicios"] == 4
    assert Decimal(str(martes["ganancias"])) == Decimal("15.8")
    assert ana["resumen"]["total"]["conteos"]["Corte+Barba Premium"] == 1
    assert ana["resumen"]["total"]["conteos"]["Corte"] == 0

    r = client.get(
        "/api/estadisticas/admin",
        params={"fecha": "2024-06-05", "estrategia": "palabra_clave"},
        headers=admin_headers,
    )
    luis = r.json()[1]
    assert luis["resumen"]["total"]["conteos"] == {"Cortes": 4, "Barbas": 2, "Cejas": 0}

    r = client.get("/api/estadisticas/admin", params={"estrategia": "otra"}, headers=admin_headers)
    assert r.status_code == 422


def test_manuel_cuenta_el_combo_una_vez(client, admin_headers, semana_cargada):
    r = client.get("/api/estadisticas/manuel", params={"fecha": "2024-06-05"}, headers=admin_headers)
    assert r.status_code == 200
    datos = r.json()
    assert len(datos["servicios"]) == 5
    # 3 cortes x 3.4 + barba premium 2 + combo 4
    assert Decimal(str(datos["total"])) == Decimal("16.2")
    assert datos["ventas_inventario"]["cantidad_total"] == 0


def test_semanal_historico(client, admin_headers, semana_cargada):
    r = client.get("/api/estadisticas/semanal", params={"fecha": "2024-06-05"}, headers=admin_headers)
    assert r.status_code == 200
    datos = r.json()
    luis = next(b for b in datos["barberos"] if b["nombre"] == "Luis")
    assert luis["cantidad_servicios"] == 5
    # 3 cortes y el combo a 3.5, la barba a 1.5
    assert Decimal(str(luis["ganancias"])) == Decimal("15.5")
    assert datos["inventario"]["total_articulos"] == 0


def test_usuario_no_ve_estadisticas_de_admin(client, user_headers):
    assert client.get("/api/estadisticas/admin", headers=user_headers).status_code == 403
    assert client.get("/api/estadisticas/manuel", headers=user_headers).status_code == 403


@pytest.mark.parametrize("formato,firma", [("xlsx", b"PK"), ("pdf", b"%PDF")])
def test_exportar_estadisticas(client, admin_headers, semana_cargada, formato, firma):
    for ruta in ("/api/estadisticas/admin/exportar", "/api/estadisticas/manuel/exportar"):
        r = client.get(ruta, params={"fecha": "2024-06-05", "formato": formato}, headers=admin_headers)
        assert r.status_code == 200
        assert r.content.startswith(firma)
        assert "attachment" in r.headers["content-disposition"]


def test_ultimo_instante_del_sabado_cuenta(client, admin_headers, crear_barbero):
    luis = crear_barbero("Luis")
    r = client.post(
        "/api/servicios/",
        json={"barbero_id": luis["id"], "tipo_servicio": "Corte", "fecha_hora": "2024-06-08T23:59:59.500000"},
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text

    r = client.get("/api/estadisticas/admin", params={"fecha": "2024-06-05"}, headers=admin_headers)
    sabado = r.json()[0]["resumen"]["dias"][-1]
    assert sabado["dia"] == "Sábado"
    assert sabado["conteos"]["Corte"] == 1
