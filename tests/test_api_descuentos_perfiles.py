from decimal import Decimal


def test_descuento_y_bono(client, admin_headers, crear_barbero):
    luis = crear_barbero("Luis")
    for monto, concepto in (("10", "Adelanto"), ("-4", "Bono puntualidad")):
        r = client.post(
            "/api/descuentos/",
            json={
                "barbero_id": luis["id"],
                "monto": monto,
                "concepto": concepto,
                "fecha_hora": "2024-06-04T12:00:00",
            },
            headers=admin_headers,
        )
        assert r.status_code == 201, r.text

    r = client.get("/api/descuentos/resumen", params={"fecha": "2024-06-05"}, headers=admin_headers)
    resumen = r.json()
    fila = resumen["barberos"][0]
    assert fila["nombre"] == "Luis"
    assert Decimal(str(fila["neto"])) == Decimal("-6")
    assert Decimal(str(resumen["total_bonos"])) == Decimal("4")

    lista = client.get("/api/descuentos/", params={"fecha": "2024-06-05"}, headers=admin_headers).json()
    assert len(lista) == 2
    assert client.delete(f"/api/descuentos/{lista[0]['id']}", headers=admin_headers).status_code == 204


def test_descuento_invalido(client, admin_headers, crear_barbero):
    luis = crear_barbero()
    r = client.post(
        "/api/descuentos/",
        json={"barbero_id": luis["id"], "monto": "0", "concepto": "x"},
        headers=admin_headers,
    )
    assert r.status_code == 422
    r = client.post("/api/descuentos/", json={"monto": "3"}, headers=admin_headers)
    assert r.status_code == 422


def test_vincular_perfil_y_mi_semana(client, admin_headers, user_headers, crear_barbero):
    r = client.get("/api/estadisticas/mi-semana", headers=user_headers)
    assert r.status_code == 404
    assert r.json()["detail"] == "Tu usuario no está vinculado a ningún barbero"

    luis = crear_barbero("Luis")
    perfiles = client.get("/api/perfiles/", headers=admin_headers).json()
    pedro = next(p for p in perfiles if p["email"] == "pedro@barberia.com")

    r = client.put(
        f"/api/perfiles/{pedro['id']}/barbero",
        json={"barbero_id": luis["id"]},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert client.get("/api/auth/me", headers=user_headers).json()["barbero_id"] == luis["id"]

    client.post(
        "/api/servicios/",
        json={"barbero_id": luis["id"], "tipo_servicio": "Corte", "fecha_hora": "2024-06-04T10:00:00"},
        headers=user_headers,
    )
    r = client.get("/api/estadisticas/mi-semana", params={"fecha": "2024-06-06"}, headers=user_headers)
    assert r.status_code == 200
    assert r.json()["resumen"]["total"]["total_servicios"] == 1

    r = client.put(f"/api/perfiles/{pedro['id']}/barbero", json={"barbero_id": None}, headers=admin_headers)
    assert r.json()["barbero_id"] is None


def test_eliminar_descuento_actualiza_resumen(client, admin_headers, crear_barbero):
    luis = crear_barbero("Luis")
    for monto, concepto in (("10", "Adelanto"), ("-4", "Bono puntualidad")):
        client.post(
            "/api/descuentos/",
            json={"barbero_id": luis["id"], "monto": monto, "concepto": concepto, "fecha_hora": "2024-06-04T12:00:00"},
            headers=admin_headers,
        )
    lista = client.get("/api/descuentos/", params={"fecha": "2024-06-05"}, headers=admin_headers).json()
    adelanto = next(d for d in lista if d["concepto"] == "Adelanto")
    assert client.delete(f"/api/descuentos/{adelanto['id']}", headers=admin_headers).status_code == 204

    resumen = client.get("/api/descuentos/resumen", params={"fecha": "2024-06-05"}, headers=admin_headers).json()
    fila = resumen["barberos"][0]
    assert fila["cantidad_movimientos"] == 1
    assert Decimal(str(fila["neto"])) == Decimal("4")
    assert Decimal(str(resumen["total_descuentos"])) == Decimal("0")
    assert Decimal(str(resumen["neto"])) == Decimal("4")
